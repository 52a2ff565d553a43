"""Provider webhook payload parsing.

Each parser turns one provider payload into ``ProviderEvent`` values, or
None when the event is not tracked. Malformed payloads raise ``ValueError``.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

from modules.notifications.reconciliation.reconciler import EventKind


@dataclass(frozen=True)
class ProviderEvent:
    external_id: str
    kind: EventKind
    timestamp: datetime
    reason: Optional[str] = None


BREVO_EVENTS: Dict[str, EventKind] = {
    "delivered": EventKind.DELIVERED,
    "opened": EventKind.OPENED,
    "unique_opened": EventKind.OPENED,
    "proxy_open": EventKind.OPENED,
    "click": EventKind.CLICKED,
    "hard_bounce": EventKind.BOUNCED,
    "soft_bounce": EventKind.BOUNCED,
    "bounce": EventKind.BOUNCED,
    "blocked": EventKind.BOUNCED,
    "invalid_email": EventKind.BOUNCED,
    "spam": EventKind.BOUNCED,
    "error": EventKind.BOUNCED,
}

TWILIO_EVENTS: Dict[str, EventKind] = {
    "delivered": EventKind.DELIVERED,
    "read": EventKind.OPENED,
    "failed": EventKind.BOUNCED,
    "undelivered": EventKind.BOUNCED,
}


def _brevo_timestamp(payload: Mapping[str, Any]) -> datetime:
    # ts_event and ts are epoch seconds, ts_epoch is milliseconds
    for key in ("ts_event", "ts_epoch", "ts"):
        value = payload.get(key)
        if value is None:
            continue
        try:
            epoch = float(value)
        except (TypeError, ValueError):
            continue
        if key == "ts_epoch":
            epoch = epoch / 1000
        return datetime.fromtimestamp(epoch, tz=timezone.utc)
    return datetime.now(timezone.utc)


def parse_brevo_event(payload: Any) -> Optional[ProviderEvent]:
    """Parse one Brevo transactional webhook event.

    Raises:
        ValueError: If the payload is not an object or has no message id
    """
    if not isinstance(payload, Mapping):
        raise ValueError("Brevo payload must be a JSON object")

    event = str(payload.get("event") or "").strip().lower()
    kind = BREVO_EVENTS.get(event)
    if kind is None:
        return None

    external_id = payload.get("message-id") or payload.get("message_id")
    if not external_id:
        raise ValueError(f"Brevo {event} event without message-id")

    reason = payload.get("reason")
    if kind is EventKind.BOUNCED:
        reason = reason or event

    return ProviderEvent(
        external_id=str(external_id),
        kind=kind,
        timestamp=_brevo_timestamp(payload),
        reason=reason,
    )


def parse_twilio_event(
    form: Mapping[str, Any], received_at: Optional[datetime] = None
) -> Optional[ProviderEvent]:
    """Parse one Twilio message status callback (form fields).

    Twilio callbacks carry no event time, so the receipt time is used.

    Raises:
        ValueError: If the message sid is missing
    """
    status = str(form.get("MessageStatus") or form.get("SmsStatus") or "").strip().lower()
    kind = TWILIO_EVENTS.get(status)
    if kind is None:
        return None

    external_id = form.get("MessageSid") or form.get("SmsSid")
    if not external_id:
        raise ValueError(f"Twilio {status} callback without MessageSid")

    reason = None
    if kind is EventKind.BOUNCED:
        error_code = form.get("ErrorCode")
        reason = f"twilio {status}: {error_code}" if error_code else f"twilio {status}"

    return ProviderEvent(
        external_id=str(external_id),
        kind=kind,
        timestamp=received_at or datetime.now(timezone.utc),
        reason=reason,
    )
