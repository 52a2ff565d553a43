from datetime import datetime, timedelta, timezone

import pytest

from api.dependencies.rate_limits import get_limiter
from infrastructure.services.providers import get_settings
from modules.notifications.models import NotificationType
from modules.notifications.queue import DeliveryPolicy, DispatchPool
from modules.notifications.store import InMemoryNotificationStore
from tests.factories.notifications import ScriptedSender, make_notification, make_spec


@pytest.fixture(autouse=True)
def reset_rate_limits():
    """Rate limit counters are process wide; start every test from zero."""
    get_limiter().reset()
    yield


@pytest.fixture(autouse=True)
def clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def spec_factory():
    """Factory for NotificationSpec instances."""
    return make_spec


@pytest.fixture
def notification_factory():
    """Factory for Notification instances in any state."""
    return make_notification


@pytest.fixture
def memory_store():
    return InMemoryNotificationStore()


@pytest.fixture
def fixed_now():
    return datetime(2025, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock(fixed_now):
    """Mutable UTC clock; call ``clock.advance(seconds)`` to move it."""

    class Clock:
        def __init__(self, now):
            self.now = now

        def __call__(self):
            return self.now

        def advance(self, seconds):
            self.now = self.now + timedelta(seconds=seconds)

    return Clock(fixed_now)


@pytest.fixture
def monotonic_clock():
    """Mutable monotonic clock for queue delays."""

    class MonotonicClock:
        def __init__(self):
            self.value = 1000.0

        def __call__(self):
            return self.value

        def advance(self, seconds):
            self.value += seconds

    return MonotonicClock()


@pytest.fixture
def sender_factory():
    """Factory for ScriptedSender instances."""

    def _factory(channel=NotificationType.EMAIL, script=None, on_deliver=None):
        return ScriptedSender(channel=channel, script=script, on_deliver=on_deliver)

    return _factory


@pytest.fixture
def pool_factory(memory_store, clock, monotonic_clock):
    """Factory for unstarted DispatchPool instances driven by ``process_next``."""

    def _factory(
        senders=None,
        store=None,
        max_attempts=3,
        base_delay_seconds=1,
        max_delay_seconds=60,
        defer_recheck_seconds=60,
    ):
        senders = senders or {NotificationType.EMAIL: ScriptedSender()}
        policy = DeliveryPolicy(
            max_attempts=max_attempts,
            base_delay_seconds=base_delay_seconds,
            max_delay_seconds=max_delay_seconds,
            concurrency=1,
        )
        return DispatchPool(
            store=store or memory_store,
            senders=senders,
            policies={channel: policy for channel in senders},
            defer_recheck_seconds=defer_recheck_seconds,
            poll_interval_seconds=0.01,
            store_probe_seconds=0.01,
            queue_clock=monotonic_clock,
            clock=clock,
        )

    return _factory
