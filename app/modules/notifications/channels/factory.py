"""Channel sender registry."""

from typing import Dict, TYPE_CHECKING

from infrastructure.logging import get_module_logger
from modules.notifications.channels.base import ChannelSender
from modules.notifications.channels.email import EmailSender
from modules.notifications.channels.in_app import InAppSender
from modules.notifications.channels.push import PushSender
from modules.notifications.channels.sms import SmsSender
from modules.notifications.models import NotificationType

if TYPE_CHECKING:
    from infrastructure.configuration import Settings

logger = get_module_logger()


def build_senders(settings: "Settings") -> Dict[NotificationType, ChannelSender]:
    """One sender per notification type."""
    senders: Dict[NotificationType, ChannelSender] = {
        NotificationType.EMAIL: EmailSender(settings),
        NotificationType.PUSH: PushSender(settings),
        NotificationType.SMS: SmsSender(settings),
        NotificationType.IN_APP: InAppSender(
            bulk_delay_seconds=settings.delivery.bulk_delay_seconds
        ),
    }
    logger.info("channel_senders_built", channels=[t.value for t in senders])
    return senders
