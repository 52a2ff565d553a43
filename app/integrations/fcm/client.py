"""Firebase Cloud Messaging HTTP v1 client."""

from typing import Any, Dict, Optional

import requests

from infrastructure.configuration.integrations.fcm import FcmSettings
from infrastructure.logging import get_module_logger

logger = get_module_logger()


def create_headers(config: FcmSettings) -> Dict[str, str]:
    """Bearer headers for FCM. Raises ValueError when credentials are missing."""
    if not config.FCM_ACCESS_TOKEN or not config.FCM_PROJECT_ID:
        logger.error(
            "fcm_headers_creation_failed",
            error="FCM_PROJECT_ID or FCM_ACCESS_TOKEN is missing",
        )
        raise ValueError("FCM_PROJECT_ID or FCM_ACCESS_TOKEN is missing")
    return {
        "Authorization": f"Bearer {config.FCM_ACCESS_TOKEN}",
        "Content-Type": "application/json",
    }


def send_message(
    config: FcmSettings,
    token: str,
    title: str,
    body: str,
    data: Optional[Dict[str, Any]] = None,
    validate_only: bool = False,
) -> Dict[str, Any]:
    """Send a push message to one device token.

    FCM only accepts string values in ``data``, so values are stringified.

    Returns:
        Parsed response, e.g. ``{"name": "projects/p/messages/0:1500415314455276%31bd1c9631bd1c96"}``

    Raises:
        requests.RequestException: On network errors and non-2xx responses
    """
    message: Dict[str, Any] = {
        "token": token,
        "notification": {"title": title, "body": body},
    }
    if data:
        message["data"] = {str(key): str(value) for key, value in data.items()}

    response = requests.post(
        f"{config.FCM_API_URL}/projects/{config.FCM_PROJECT_ID}/messages:send",
        json={"message": message, "validate_only": validate_only},
        headers=create_headers(config),
        timeout=config.FCM_TIMEOUT_SECONDS,
    )
    response.raise_for_status()
    return response.json()
