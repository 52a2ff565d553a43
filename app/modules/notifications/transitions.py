"""Status transition rules shared by the record stores, worker and reconciler.

Forward-only progress is enforced by the ``from_statuses`` passed to
``apply_transition``; this module names those sets once.
"""

from datetime import datetime
from typing import Any, Dict, FrozenSet, Mapping, Optional

from modules.notifications.models import Notification, NotificationStatus

S = NotificationStatus

# Worker outcomes
SENDABLE: FrozenSet[NotificationStatus] = frozenset({S.PENDING})
CANCELLABLE: FrozenSet[NotificationStatus] = frozenset({S.PENDING})

# Provider callbacks, keyed by target status
RECONCILE_FROM: Dict[NotificationStatus, FrozenSet[NotificationStatus]] = {
    S.DELIVERED: frozenset({S.SENT}),
    S.OPENED: frozenset({S.SENT, S.DELIVERED}),
    S.CLICKED: frozenset({S.SENT, S.DELIVERED, S.OPENED}),
    S.BOUNCED: frozenset({S.PENDING, S.SENT, S.DELIVERED}),
}

TIMESTAMP_FIELD_FOR: Dict[NotificationStatus, str] = {
    S.SENT: "sent_at",
    S.DELIVERED: "delivered_at",
    S.OPENED: "opened_at",
    S.CLICKED: "clicked_at",
}

SET_ONCE_FIELDS: FrozenSet[str] = frozenset(
    set(TIMESTAMP_FIELD_FOR.values()) | {"external_id"}
)
TRANSITION_FIELDS: FrozenSet[str] = SET_ONCE_FIELDS | {"error_message"}

TERMINAL_STATUSES: FrozenSet[NotificationStatus] = frozenset(
    {S.FAILED, S.BOUNCED, S.CLICKED}
)


def check_fields(fields: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Reject fields that a transition is not allowed to touch."""
    fields = dict(fields or {})
    unknown = set(fields) - TRANSITION_FIELDS
    if unknown:
        raise ValueError(f"Fields cannot be changed by a transition: {sorted(unknown)}")
    return fields


def merge_transition(
    notification: Notification,
    to_status: NotificationStatus,
    fields: Mapping[str, Any],
    now: datetime,
) -> Notification:
    """Return a copy of the record with the transition applied.

    Set-once fields keep their existing value when already present.
    """
    updates: Dict[str, Any] = {"status": to_status, "updated_at": now}
    for name, value in fields.items():
        if name in SET_ONCE_FIELDS and getattr(notification, name) is not None:
            continue
        updates[name] = value
    return notification.model_copy(update=updates, deep=True)
