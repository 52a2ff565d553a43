"""Notification record stores."""

from modules.notifications.store.base import NotificationStore
from modules.notifications.store.dynamodb import DynamoDBNotificationStore
from modules.notifications.store.factory import create_notification_store
from modules.notifications.store.memory import InMemoryNotificationStore

__all__ = [
    "NotificationStore",
    "InMemoryNotificationStore",
    "DynamoDBNotificationStore",
    "create_notification_store",
]
