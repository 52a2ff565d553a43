"""Provider status reconciliation."""

from modules.notifications.reconciliation.providers import (
    BREVO_EVENTS,
    TWILIO_EVENTS,
    ProviderEvent,
    parse_brevo_event,
    parse_twilio_event,
)
from modules.notifications.reconciliation.reconciler import (
    EventKind,
    ReconcileResult,
    StatusReconciler,
)

__all__ = [
    "EventKind",
    "ReconcileResult",
    "StatusReconciler",
    "ProviderEvent",
    "BREVO_EVENTS",
    "TWILIO_EVENTS",
    "parse_brevo_event",
    "parse_twilio_event",
]
