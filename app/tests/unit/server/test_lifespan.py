"""Unit tests for application startup helpers."""

from unittest.mock import MagicMock, patch

import pytest

from server import lifespan


@pytest.fixture
def settings():
    settings = MagicMock()
    settings.PREFIX = ""
    settings.delivery.enabled = True
    settings.store.retention_days = 30
    return settings


@pytest.mark.unit
class TestStartDispatch:
    def test_recovers_then_starts(self, settings):
        pool = MagicMock()
        pool.recover.return_value = 3

        assert lifespan._start_dispatch(pool, settings, MagicMock()) is True

        pool.recover.assert_called_once_with()
        pool.start.assert_called_once_with()

    def test_skipped_when_disabled(self, settings):
        settings.delivery.enabled = False
        pool = MagicMock()

        assert lifespan._start_dispatch(pool, settings, MagicMock()) is False
        pool.start.assert_not_called()


@pytest.mark.unit
class TestStartScheduledTasks:
    @patch("server.lifespan.scheduled_tasks")
    def test_started_without_prefix(self, mock_tasks, settings):
        service = MagicMock()
        mock_tasks.run_continuously.return_value = "stop-event"

        result = lifespan._start_scheduled_tasks(service, settings, MagicMock())

        assert result == "stop-event"
        mock_tasks.init.assert_called_once_with(service, retention_days=30)

    @patch("server.lifespan.scheduled_tasks")
    def test_skipped_with_prefix(self, mock_tasks, settings):
        settings.PREFIX = "dev-"

        assert lifespan._start_scheduled_tasks(MagicMock(), settings, MagicMock()) is None
        mock_tasks.init.assert_not_called()


@pytest.mark.unit
class TestBuildService:
    @patch("server.lifespan.build_senders")
    @patch("server.lifespan.create_notification_store")
    def test_wires_service_on_app_state(
        self, mock_create_store, mock_build_senders, memory_store, sender_factory
    ):
        mock_create_store.return_value = memory_store
        sender = sender_factory()
        mock_build_senders.return_value = {sender.channel: sender}
        settings = MagicMock()
        app = MagicMock()

        with patch("server.lifespan.DispatchPool") as mock_pool_cls:
            pool = lifespan._build_service(app, settings, MagicMock())

        assert pool is mock_pool_cls.from_settings.return_value
        assert app.state.store is memory_store
        assert app.state.notification_service.store is memory_store
        assert app.state.reconciler.store is memory_store
