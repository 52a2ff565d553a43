"""Provider delivery status webhooks.

Providers retry on non-2xx responses, so these endpoints always answer 200.
Unknown ids, untracked events and malformed payloads are only logged.
"""

from datetime import datetime, timezone
import json
from typing import Any, List
from urllib.parse import parse_qsl

from fastapi import APIRouter, Request
from starlette.concurrency import run_in_threadpool

from api.dependencies.notifications import ReconcilerDep
from api.dependencies.rate_limits import get_limiter
from infrastructure.logging import get_module_logger
from modules.notifications.reconciliation import (
    ProviderEvent,
    StatusReconciler,
    parse_brevo_event,
    parse_twilio_event,
)

logger = get_module_logger()
router = APIRouter(prefix="/webhooks", tags=["Webhooks"])
limiter = get_limiter()


def _reconcile(reconciler: StatusReconciler, event: ProviderEvent, provider: str) -> str:
    result = reconciler.reconcile(
        event.external_id,
        event.kind,
        event_timestamp=event.timestamp,
        reason=event.reason,
    )
    logger.info(
        "webhook_event_processed",
        provider=provider,
        external_id=event.external_id,
        event_kind=event.kind.value,
        result=result.value,
    )
    return result.value


def _process_brevo(reconciler: StatusReconciler, payload: Any) -> None:
    events: List[Any] = payload if isinstance(payload, list) else [payload]
    for raw in events:
        try:
            event = parse_brevo_event(raw)
        except ValueError as e:
            logger.warning("webhook_payload_invalid", provider="brevo", error=str(e))
            continue
        if event is None:
            logger.debug(
                "webhook_event_untracked",
                provider="brevo",
                provider_event=raw.get("event") if isinstance(raw, dict) else None,
            )
            continue
        _reconcile(reconciler, event, "brevo")


def _process_twilio(reconciler: StatusReconciler, form: dict, received_at: datetime) -> None:
    try:
        event = parse_twilio_event(form, received_at=received_at)
    except ValueError as e:
        logger.warning("webhook_payload_invalid", provider="twilio", error=str(e))
        return
    if event is None:
        logger.debug(
            "webhook_event_untracked",
            provider="twilio",
            status=form.get("MessageStatus") or form.get("SmsStatus"),
        )
        return
    _reconcile(reconciler, event, "twilio")


@router.post("/brevo")
@limiter.limit("600/minute")
async def brevo_webhook(request: Request, reconciler: ReconcilerDep):
    """Brevo transactional email events (single event or list of events)."""
    body = await request.body()
    try:
        payload = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        logger.warning("webhook_payload_invalid", provider="brevo", error=str(e))
        return {"ok": True}

    try:
        await run_in_threadpool(_process_brevo, reconciler, payload)
    except Exception as e:  # pylint: disable=broad-except
        logger.exception("webhook_processing_error", provider="brevo", error=str(e))
    return {"ok": True}


@router.post("/twilio")
@limiter.limit("600/minute")
async def twilio_webhook(request: Request, reconciler: ReconcilerDep):
    """Twilio message status callbacks (form encoded)."""
    received_at = datetime.now(timezone.utc)
    body = await request.body()
    try:
        form = dict(parse_qsl(body.decode("utf-8"), keep_blank_values=True))
    except UnicodeDecodeError as e:
        logger.warning("webhook_payload_invalid", provider="twilio", error=str(e))
        return {"ok": True}

    try:
        await run_in_threadpool(_process_twilio, reconciler, form, received_at)
    except Exception as e:  # pylint: disable=broad-except
        logger.exception("webhook_processing_error", provider="twilio", error=str(e))
    return {"ok": True}
