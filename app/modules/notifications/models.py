"""Notification domain models.

The ``Notification`` record is the single aggregate of the delivery pipeline.
``NotificationSpec`` is the loosely typed creation request: its fields are
optional so that one bad item in a bulk request is reported as a
``ValidationError`` instead of failing request parsing for the whole batch.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional
import uuid

from pydantic import BaseModel, Field, field_validator


def utc_now() -> datetime:
    """Timezone-aware current time in UTC."""
    return datetime.now(timezone.utc)


def new_notification_id() -> str:
    return str(uuid.uuid4())


class NotificationType(Enum):
    """Delivery channel. Fixed at creation, selects the channel sender."""

    EMAIL = "email"
    PUSH = "push"
    SMS = "sms"
    IN_APP = "in_app"


class NotificationStatus(Enum):
    """Lifecycle status owned by the record store.

    pending -> sent -> delivered -> opened -> clicked, pending -> failed,
    and pending/sent/delivered -> bounced.
    """

    PENDING = "pending"
    SENT = "sent"
    DELIVERED = "delivered"
    FAILED = "failed"
    BOUNCED = "bounced"
    OPENED = "opened"
    CLICKED = "clicked"


class NotificationPriority(Enum):
    """Queue ordering hint. Never affects correctness."""

    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"

    @property
    def rank(self) -> int:
        """Higher rank is dequeued first."""
        return _PRIORITY_RANKS[self]


_PRIORITY_RANKS = {
    NotificationPriority.URGENT: 10,
    NotificationPriority.HIGH: 5,
    NotificationPriority.NORMAL: 0,
    NotificationPriority.LOW: -5,
}


class Notification(BaseModel):
    """Persisted record of one message delivered through one channel.

    Attributes:
        id: Opaque identifier generated at creation
        user_id: Owner of the notification (trusted, not validated)
        type: Channel used for delivery
        status: Lifecycle status, only changed through the record store
        priority: Queue ordering hint
        title: Subject line (email), push title, SMS prefix-less title
        content: Body (HTML for email), may be empty with template_id
        data: Free-form payload; template params for email template sends
        template_id: Remote provider template id
        recipient: Email address, E.164 phone number or device token
        external_id: Provider message id, set once on successful send
        error_message: Last failure reason
        retry_count: Failed send attempts so far
        scheduled_at: Earliest dispatch time
        sent_at, delivered_at, opened_at, clicked_at: Set once, never overwritten
        created_at, updated_at: Bookkeeping
    """

    id: str = Field(default_factory=new_notification_id)
    user_id: Optional[str] = None
    type: NotificationType
    status: NotificationStatus = NotificationStatus.PENDING
    priority: NotificationPriority = NotificationPriority.NORMAL
    title: str
    content: str = ""
    data: Dict[str, Any] = Field(default_factory=dict)
    template_id: Optional[str] = None
    recipient: str
    external_id: Optional[str] = None
    error_message: Optional[str] = None
    retry_count: int = 0
    scheduled_at: Optional[datetime] = None
    sent_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    opened_at: Optional[datetime] = None
    clicked_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    def is_due(self, now: datetime) -> bool:
        """True unless scheduled_at is still in the future."""
        return self.scheduled_at is None or self.scheduled_at <= now


class NotificationSpec(BaseModel):
    """Creation request for a notification.

    Example:
        spec = NotificationSpec(
            user_id="user-1",
            type="email",
            title="Welcome",
            content="<p>Hello</p>",
            recipient="a@x.com",
        )
    """

    user_id: Optional[str] = None
    type: Optional[str] = None
    title: Optional[str] = None
    content: Optional[str] = None
    recipient: Optional[str] = None
    template_id: Optional[str] = None
    data: Optional[Dict[str, Any]] = None
    scheduled_at: Optional[datetime] = None
    priority: Optional[str] = None


class NotificationFilters(BaseModel):
    """Filters for store queries. Unset fields do not filter."""

    user_id: Optional[str] = None
    type: Optional[NotificationType] = None
    status: Optional[NotificationStatus] = None
    created_from: Optional[datetime] = None
    created_to: Optional[datetime] = None

    @field_validator("created_from", "created_to", mode="after")
    @classmethod
    def _assume_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Timestamps without a timezone are read as UTC."""
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    def matches(self, notification: Notification) -> bool:
        if self.user_id is not None and notification.user_id != self.user_id:
            return False
        if self.type is not None and notification.type != self.type:
            return False
        if self.status is not None and notification.status != self.status:
            return False
        if self.created_from is not None and notification.created_at < self.created_from:
            return False
        if self.created_to is not None and notification.created_at > self.created_to:
            return False
        return True


class NotificationPage(BaseModel):
    """One page of a filtered listing, newest first."""

    items: List[Notification]
    total: int
    page: int
    limit: int
    total_pages: int


class BulkItemResult(BaseModel):
    """Outcome of one item in a bulk creation request."""

    index: int
    notification: Optional[Notification] = None
    error: Optional[Dict[str, Any]] = None

    @property
    def is_success(self) -> bool:
        return self.notification is not None


class NotificationStats(BaseModel):
    """Aggregate counts for operational dashboards.

    Rates are percentages of ``total`` (delivery counts every record that
    reached delivered or beyond, open counts opened or clicked). ``by_day``
    maps each UTC creation date, newest first, to its counts per status and
    is only filled for a ``days`` window.
    """

    total: int = 0
    pending: int = 0
    sent: int = 0
    delivered: int = 0
    opened: int = 0
    clicked: int = 0
    bounced: int = 0
    failed: int = 0
    delivery_rate: float = 0.0
    open_rate: float = 0.0
    failure_rate: float = 0.0
    by_type: Dict[str, int] = Field(default_factory=dict)
    by_day: Dict[str, Dict[str, int]] = Field(default_factory=dict)
