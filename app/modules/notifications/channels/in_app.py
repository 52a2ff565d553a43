"""In-app channel sender.

The stored record is the in-app message; clients read it through the API.
Sending only marks it as available.
"""

from infrastructure.operations import OperationResult
from modules.notifications.channels.base import ChannelSender
from modules.notifications.models import Notification, NotificationType


class InAppSender(ChannelSender):
    """Always succeeds; the external id is the notification id."""

    @property
    def channel(self) -> NotificationType:
        return NotificationType.IN_APP

    def deliver(self, notification: Notification) -> str:
        return notification.id

    def health_check(self) -> OperationResult:
        return OperationResult.success(message="In-app channel available")
