"""Validation of notification creation requests."""

from datetime import timezone
from typing import List

from modules.notifications.errors import FieldError, ValidationError
from modules.notifications.models import (
    Notification,
    NotificationPriority,
    NotificationSpec,
    NotificationType,
    new_notification_id,
    utc_now,
)

_TYPE_VALUES = [t.value for t in NotificationType]
_PRIORITY_VALUES = [p.value for p in NotificationPriority]


def _blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def validate_spec(spec: NotificationSpec) -> List[FieldError]:
    """Return every problem with the spec (empty list when valid)."""
    errors: List[FieldError] = []

    if _blank(spec.type):
        errors.append(FieldError("type", "is required"))
    elif spec.type not in _TYPE_VALUES:
        errors.append(
            FieldError("type", f"must be one of {', '.join(_TYPE_VALUES)}")
        )

    recipient = spec.recipient
    if _blank(recipient) and spec.type == NotificationType.IN_APP.value:
        recipient = spec.user_id
    if _blank(recipient):
        errors.append(FieldError("recipient", "is required"))

    if _blank(spec.title):
        errors.append(FieldError("title", "is required"))

    if _blank(spec.content) and _blank(spec.template_id):
        errors.append(FieldError("content", "is required unless template_id is set"))

    if spec.priority is not None and spec.priority not in _PRIORITY_VALUES:
        errors.append(
            FieldError("priority", f"must be one of {', '.join(_PRIORITY_VALUES)}")
        )

    return errors


def build_notification(spec: NotificationSpec) -> Notification:
    """Validate the spec and build a pending record.

    Raises:
        ValidationError: If any required field is missing or invalid
    """
    errors = validate_spec(spec)
    if errors:
        raise ValidationError(errors)

    notification_type = NotificationType(spec.type)
    recipient = spec.recipient
    if _blank(recipient):
        recipient = spec.user_id

    scheduled_at = spec.scheduled_at
    if scheduled_at is not None and scheduled_at.tzinfo is None:
        scheduled_at = scheduled_at.replace(tzinfo=timezone.utc)

    now = utc_now()
    return Notification(
        id=new_notification_id(),
        user_id=spec.user_id,
        type=notification_type,
        priority=NotificationPriority(spec.priority or NotificationPriority.NORMAL.value),
        title=spec.title.strip(),
        content=spec.content or "",
        data=dict(spec.data or {}),
        template_id=spec.template_id,
        recipient=recipient.strip(),
        scheduled_at=scheduled_at,
        created_at=now,
        updated_at=now,
    )
