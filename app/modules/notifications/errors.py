"""Errors for the notifications module."""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from modules.notifications.models import NotificationStatus


class NotificationError(Exception):
    """Base class for notification pipeline errors."""


@dataclass(frozen=True)
class FieldError:
    """One invalid field of a creation request."""

    field: str
    message: str


class ValidationError(NotificationError):
    """Creation request rejected; never enters the pipeline.

    Attributes:
        errors: Every offending field, in declaration order
    """

    def __init__(self, errors: List[FieldError]):
        self.errors = errors
        super().__init__(
            "; ".join(f"{error.field}: {error.message}" for error in errors)
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": "validation_error",
            "fields": [{"field": e.field, "message": e.message} for e in self.errors],
        }


class InvalidStateTransition(NotificationError):
    """Attempted status change outside the allowed from-states.

    Usually a benign race (duplicate webhook, late retry, cancelled job).
    Callers log it and treat it as a no-op.
    """

    def __init__(
        self,
        notification_id: str,
        current: Optional[NotificationStatus],
        target: Optional[NotificationStatus],
        reason: Optional[str] = None,
    ):
        self.notification_id = notification_id
        self.current = current
        self.target = target
        self.reason = reason
        current_value = current.value if current else None
        target_value = target.value if target else None
        message = (
            f"Notification {notification_id}: cannot move from "
            f"{current_value} to {target_value}"
        )
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class NotFound(NotificationError):
    """Unknown notification id or provider external id."""

    def __init__(self, key: str, kind: str = "id"):
        self.key = key
        self.kind = kind
        super().__init__(f"Notification not found for {kind} {key}")


class SendFailure(NotificationError):
    """Raised by channel senders; converted to a SendOutcome by the base class."""

    def __init__(self, message: str, error_code: Optional[str] = None):
        self.error_code = error_code
        super().__init__(message)


class TransientSendFailure(SendFailure):
    """Provider timeout, rate limit or 5xx; retried with backoff."""


class PermanentSendFailure(SendFailure):
    """Invalid recipient or rejected content; fails the record immediately."""


class StoreUnavailableError(NotificationError):
    """The record store cannot be reached. Dispatch halts until it recovers."""
