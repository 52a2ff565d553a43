"""Push channel sender using Firebase Cloud Messaging HTTP v1."""

from typing import TYPE_CHECKING

from infrastructure.logging import get_module_logger
from infrastructure.operations import OperationResult
from integrations.fcm import client as fcm
from modules.notifications.channels.base import ProviderChannelSender
from modules.notifications.errors import PermanentSendFailure, TransientSendFailure
from modules.notifications.models import Notification, NotificationType

if TYPE_CHECKING:
    from infrastructure.configuration import Settings

logger = get_module_logger()


class PushSender(ProviderChannelSender):
    """Push sender backed by FCM ``messages:send``.

    The recipient is the device token. FCM answers 404 (UNREGISTERED) and
    400 (INVALID_ARGUMENT) for dead or malformed tokens; both are permanent.
    """

    def __init__(self, settings: "Settings"):
        self._config = settings.fcm
        super().__init__(
            provider="fcm",
            bulk_delay_seconds=settings.delivery.bulk_delay_seconds,
        )
        logger.info(
            "initialized_push_sender",
            backend="fcm",
            project_id=self._config.FCM_PROJECT_ID,
        )

    @property
    def channel(self) -> NotificationType:
        return NotificationType.PUSH

    def deliver(self, notification: Notification) -> str:
        if not notification.recipient.strip():
            raise PermanentSendFailure("Missing device token", error_code="INVALID_RECIPIENT")

        response = self._call_provider(
            fcm.send_message,
            self._config,
            notification.recipient,
            notification.title,
            notification.content,
            data=notification.data,
        )

        name = response.get("name")
        if not name:
            raise TransientSendFailure(
                "FCM response did not include a message name", error_code="MISSING_MESSAGE_ID"
            )
        return name

    def health_check(self) -> OperationResult:
        if not self._config.FCM_PROJECT_ID or not self._config.FCM_ACCESS_TOKEN:
            return OperationResult.permanent_error(
                "fcm is not configured", error_code="MISSING_CREDENTIALS"
            )
        return OperationResult.success(
            data={"provider": self.provider, "circuit": self.circuit_breaker.state.value},
            message="fcm configured",
        )
