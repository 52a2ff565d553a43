"""SMS channel sender using Twilio Programmable Messaging."""

import re
from typing import Optional, TYPE_CHECKING

from infrastructure.logging import get_module_logger
from infrastructure.operations import OperationResult
from integrations.twilio import client as twilio
from modules.notifications.channels.base import ProviderChannelSender
from modules.notifications.errors import PermanentSendFailure, TransientSendFailure
from modules.notifications.models import Notification, NotificationType

if TYPE_CHECKING:
    from infrastructure.configuration import Settings

logger = get_module_logger()

MAX_SMS_LENGTH = 1600
TWILIO_WEBHOOK_PATH = "/api/v1/webhooks/twilio"

_SEPARATORS = re.compile(r"[\s\-().]")
_E164 = re.compile(r"^\+\d{8,15}$")


def normalize_phone_number(value: str) -> str:
    """Normalize to E.164, adding the leading ``+`` when missing.

    Raises:
        PermanentSendFailure: If the result is not 8 to 15 digits
    """
    number = _SEPARATORS.sub("", value or "")
    if number.startswith("00"):
        number = number[2:]
    if not number.startswith("+"):
        number = f"+{number}"
    if not _E164.match(number):
        raise PermanentSendFailure(
            f"Invalid phone number: {value}", error_code="INVALID_RECIPIENT"
        )
    return number


class SmsSender(ProviderChannelSender):
    """SMS sender backed by Twilio ``Messages.json``.

    Requires phone numbers in E.164 format (+1234567890). Status callbacks
    point at this service's Twilio webhook when enabled.
    """

    def __init__(self, settings: "Settings"):
        self._config = settings.twilio
        self._status_callback: Optional[str] = None
        if self._config.TWILIO_STATUS_CALLBACK_ENABLED:
            base_url = settings.server.BACKEND_URL.rstrip("/")
            self._status_callback = f"{base_url}{TWILIO_WEBHOOK_PATH}"
        super().__init__(
            provider="twilio",
            bulk_delay_seconds=settings.delivery.bulk_delay_seconds,
        )
        logger.info(
            "initialized_sms_sender",
            backend="twilio",
            status_callback=self._status_callback,
        )

    @property
    def channel(self) -> NotificationType:
        return NotificationType.SMS

    def deliver(self, notification: Notification) -> str:
        to = normalize_phone_number(notification.recipient)
        body = (notification.content or notification.title)[:MAX_SMS_LENGTH]

        response = self._call_provider(
            twilio.send_message,
            self._config,
            to,
            body,
            status_callback=self._status_callback,
        )

        sid = response.get("sid")
        if not sid:
            raise TransientSendFailure(
                "Twilio response did not include a sid", error_code="MISSING_MESSAGE_ID"
            )
        return sid

    def health_check(self) -> OperationResult:
        return self._health_from(twilio.get_account, self._config)
