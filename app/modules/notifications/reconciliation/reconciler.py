"""Status reconciliation from provider delivery events."""

from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Optional

from infrastructure.logging import get_module_logger
from modules.notifications.errors import InvalidStateTransition, NotFound
from modules.notifications.models import Notification, NotificationStatus
from modules.notifications.store.base import NotificationStore
from modules.notifications.transitions import RECONCILE_FROM, TIMESTAMP_FIELD_FOR

logger = get_module_logger()


class EventKind(Enum):
    """Normalized provider event."""

    DELIVERED = "delivered"
    OPENED = "opened"
    CLICKED = "clicked"
    BOUNCED = "bounced"

    @property
    def target_status(self) -> NotificationStatus:
        return NotificationStatus(self.value)


class ReconcileResult(Enum):
    APPLIED = "applied"
    IGNORED = "ignored"
    UNKNOWN = "unknown"


class StatusReconciler:
    """Applies provider events as forward-only status transitions.

    Duplicate and out-of-order events are rejected by the store and reported
    as ``IGNORED``, so replaying a webhook is always safe. An opened event
    may arrive before delivered; the late delivered is then ignored.
    """

    def __init__(self, store: NotificationStore):
        self.store = store

    def reconcile(
        self,
        external_id: str,
        event_kind: EventKind,
        event_timestamp: Optional[datetime] = None,
        reason: Optional[str] = None,
    ) -> ReconcileResult:
        log = logger.bind(external_id=external_id, event_kind=event_kind.value)

        try:
            notification = self.store.get_by_external_id(external_id)
        except NotFound:
            log.warning("reconcile_unknown_external_id")
            return ReconcileResult.UNKNOWN

        return self.apply(notification, event_kind, event_timestamp, reason)

    def apply(
        self,
        notification: Notification,
        event_kind: EventKind,
        event_timestamp: Optional[datetime] = None,
        reason: Optional[str] = None,
    ) -> ReconcileResult:
        """Apply an event to a record that is already loaded."""
        log = logger.bind(notification_id=notification.id, event_kind=event_kind.value)
        target = event_kind.target_status

        timestamp = event_timestamp or datetime.now(timezone.utc)
        if timestamp.tzinfo is None:
            timestamp = timestamp.replace(tzinfo=timezone.utc)

        fields: Dict[str, object] = {}
        timestamp_field = TIMESTAMP_FIELD_FOR.get(target)
        if timestamp_field:
            fields[timestamp_field] = timestamp
        if event_kind is EventKind.BOUNCED:
            fields["error_message"] = reason or "bounced"

        try:
            self.store.apply_transition(
                notification.id, RECONCILE_FROM[target], target, fields
            )
        except InvalidStateTransition as e:
            log.info(
                "reconcile_ignored",
                current=e.current.value if e.current else None,
                target=target.value,
            )
            return ReconcileResult.IGNORED
        except NotFound:
            log.warning("reconcile_record_removed")
            return ReconcileResult.UNKNOWN

        log.info("reconcile_applied", target=target.value)
        return ReconcileResult.APPLIED
