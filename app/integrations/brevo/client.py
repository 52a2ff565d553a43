"""Brevo transactional email client."""

from typing import Any, Dict

import requests

from infrastructure.configuration.integrations.brevo import BrevoSettings
from infrastructure.logging import get_module_logger

logger = get_module_logger()


def create_headers(config: BrevoSettings) -> Dict[str, str]:
    """Headers for the Brevo API. Raises ValueError when the key is missing."""
    if not config.BREVO_API_KEY:
        logger.error("brevo_headers_creation_failed", error="BREVO_API_KEY is missing")
        raise ValueError("BREVO_API_KEY is missing")
    return {
        "api-key": config.BREVO_API_KEY,
        "accept": "application/json",
        "content-type": "application/json",
    }


def send_transactional_email(config: BrevoSettings, payload: Dict[str, Any]) -> Dict[str, Any]:
    """Send one transactional email.

    The payload follows the ``/smtp/email`` request body: ``sender``, ``to``
    and either ``subject`` + ``htmlContent`` or ``templateId`` + ``params``.

    Returns:
        Parsed response body, e.g. ``{"messageId": "<...@smtp-relay.mailin.fr>"}``

    Raises:
        requests.RequestException: On network errors and non-2xx responses
    """
    response = requests.post(
        f"{config.BREVO_API_URL}/smtp/email",
        json=payload,
        headers=create_headers(config),
        timeout=config.BREVO_TIMEOUT_SECONDS,
    )
    response.raise_for_status()
    return response.json()


def get_account(config: BrevoSettings) -> Dict[str, Any]:
    """Fetch account details; used as a credentials health check."""
    response = requests.get(
        f"{config.BREVO_API_URL}/account",
        headers=create_headers(config),
        timeout=config.BREVO_TIMEOUT_SECONDS,
    )
    response.raise_for_status()
    return response.json()
