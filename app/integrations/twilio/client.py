"""Twilio Programmable Messaging client."""

from typing import Any, Dict, Optional, Tuple

import requests

from infrastructure.configuration.integrations.twilio import TwilioSettings
from infrastructure.logging import get_module_logger

logger = get_module_logger()


def _auth(config: TwilioSettings) -> Tuple[str, str]:
    if not config.TWILIO_ACCOUNT_SID or not config.TWILIO_AUTH_TOKEN:
        logger.error(
            "twilio_auth_creation_failed",
            error="TWILIO_ACCOUNT_SID or TWILIO_AUTH_TOKEN is missing",
        )
        raise ValueError("TWILIO_ACCOUNT_SID or TWILIO_AUTH_TOKEN is missing")
    return config.TWILIO_ACCOUNT_SID, config.TWILIO_AUTH_TOKEN


def send_message(
    config: TwilioSettings,
    to: str,
    body: str,
    status_callback: Optional[str] = None,
) -> Dict[str, Any]:
    """Create an outbound SMS.

    Returns:
        Parsed message resource; ``sid`` identifies the message in status callbacks.

    Raises:
        requests.RequestException: On network errors and non-2xx responses
    """
    account_sid, auth_token = _auth(config)
    form = {"To": to, "From": config.TWILIO_FROM_NUMBER, "Body": body}
    if status_callback:
        form["StatusCallback"] = status_callback

    response = requests.post(
        f"{config.TWILIO_API_URL}/Accounts/{account_sid}/Messages.json",
        data=form,
        auth=(account_sid, auth_token),
        timeout=config.TWILIO_TIMEOUT_SECONDS,
    )
    response.raise_for_status()
    return response.json()


def get_account(config: TwilioSettings) -> Dict[str, Any]:
    """Fetch the account resource; used as a credentials health check."""
    account_sid, auth_token = _auth(config)
    response = requests.get(
        f"{config.TWILIO_API_URL}/Accounts/{account_sid}.json",
        auth=(account_sid, auth_token),
        timeout=config.TWILIO_TIMEOUT_SECONDS,
    )
    response.raise_for_status()
    return response.json()
