"""Email channel sender using the Brevo transactional email API."""

from typing import Any, Dict, TYPE_CHECKING

from pydantic import EmailStr, TypeAdapter, ValidationError as PydanticValidationError

from infrastructure.logging import get_module_logger
from infrastructure.operations import OperationResult
from integrations.brevo import client as brevo
from modules.notifications.channels.base import ProviderChannelSender
from modules.notifications.errors import PermanentSendFailure, TransientSendFailure
from modules.notifications.models import Notification, NotificationType

if TYPE_CHECKING:
    from infrastructure.configuration import Settings

logger = get_module_logger()

_email_adapter = TypeAdapter(EmailStr)


class EmailSender(ProviderChannelSender):
    """Email sender backed by Brevo ``/smtp/email``.

    Direct sends use ``title`` as subject and ``content`` as HTML body.
    Template sends use ``template_id`` with ``data`` as template params.
    The notification id travels in the ``X-Mailin-custom`` header so it is
    echoed back on webhooks.
    """

    def __init__(self, settings: "Settings"):
        self._config = settings.brevo
        super().__init__(
            provider="brevo",
            bulk_delay_seconds=settings.delivery.bulk_delay_seconds,
        )
        logger.info(
            "initialized_email_sender",
            backend="brevo",
            sender=self._config.BREVO_SENDER_EMAIL,
        )

    @property
    def channel(self) -> NotificationType:
        return NotificationType.EMAIL

    def build_payload(self, notification: Notification) -> Dict[str, Any]:
        """Brevo request body for the notification.

        Raises:
            PermanentSendFailure: Invalid recipient or template id
        """
        try:
            recipient = _email_adapter.validate_python(notification.recipient)
        except PydanticValidationError as e:
            raise PermanentSendFailure(
                f"Invalid email recipient: {notification.recipient}",
                error_code="INVALID_RECIPIENT",
            ) from e

        payload: Dict[str, Any] = {
            "sender": {
                "name": self._config.BREVO_SENDER_NAME,
                "email": self._config.BREVO_SENDER_EMAIL,
            },
            "to": [{"email": recipient}],
            "headers": {"X-Mailin-custom": notification.id},
        }

        if notification.template_id:
            if not str(notification.template_id).isdigit():
                raise PermanentSendFailure(
                    f"Brevo template id must be numeric: {notification.template_id}",
                    error_code="INVALID_TEMPLATE",
                )
            payload["templateId"] = int(notification.template_id)
            if notification.data:
                payload["params"] = notification.data
        else:
            payload["subject"] = notification.title
            payload["htmlContent"] = notification.content

        return payload

    def deliver(self, notification: Notification) -> str:
        payload = self.build_payload(notification)
        response = self._call_provider(brevo.send_transactional_email, self._config, payload)

        message_id = response.get("messageId")
        if not message_id:
            raise TransientSendFailure(
                "Brevo response did not include a messageId", error_code="MISSING_MESSAGE_ID"
            )
        return message_id

    def health_check(self) -> OperationResult:
        return self._health_from(brevo.get_account, self._config)
