"""Unit tests for create_notification_store."""

from unittest.mock import MagicMock

import pytest

from modules.notifications.store import (
    DynamoDBNotificationStore,
    InMemoryNotificationStore,
    create_notification_store,
)
from modules.notifications.store import factory


@pytest.mark.unit
class TestCreateNotificationStore:
    def test_memory_backend(self):
        assert isinstance(create_notification_store("memory"), InMemoryNotificationStore)

    def test_default_backend_from_settings(self, monkeypatch):
        monkeypatch.setenv("NOTIFICATION_STORE_BACKEND", "memory")
        assert isinstance(create_notification_store(), InMemoryNotificationStore)

    def test_dynamodb_backend(self, monkeypatch):
        client = MagicMock()
        monkeypatch.setattr(factory, "get_dynamodb_client", lambda: client)
        monkeypatch.setenv("NOTIFICATION_DYNAMODB_TABLE_NAME", "notifications-test")

        store = create_notification_store("dynamodb")

        assert isinstance(store, DynamoDBNotificationStore)
        assert store.client is client
        assert store.table_name == "notifications-test"

    def test_unknown_backend(self):
        with pytest.raises(ValueError, match="Unknown notification store backend"):
            create_notification_store("redis")
