"""Factory for creating notification stores based on configuration."""

from typing import Optional

from infrastructure.logging import get_module_logger
from infrastructure.services.providers import get_dynamodb_client, get_settings
from modules.notifications.store.base import NotificationStore
from modules.notifications.store.dynamodb import DynamoDBNotificationStore
from modules.notifications.store.memory import InMemoryNotificationStore

logger = get_module_logger()


def create_notification_store(backend: Optional[str] = None) -> NotificationStore:
    """Create the notification store for the configured backend.

    Args:
        backend: Optional backend override (memory, dynamodb).
                If None, uses settings.store.backend

    Raises:
        ValueError: If unknown backend specified

    Examples:
        >>> store = create_notification_store()  # Uses settings.store.backend
        >>> store = create_notification_store(backend="memory")
    """
    settings = get_settings()
    backend = backend or settings.store.backend

    if backend == "memory":
        logger.info("creating_in_memory_notification_store")
        return InMemoryNotificationStore()

    if backend == "dynamodb":
        logger.info(
            "creating_dynamodb_notification_store",
            table_name=settings.store.dynamodb_table_name,
        )
        return DynamoDBNotificationStore(
            client=get_dynamodb_client(),
            table_name=settings.store.dynamodb_table_name,
        )

    raise ValueError(
        f"Unknown notification store backend: {backend}. Supported: memory, dynamodb"
    )
