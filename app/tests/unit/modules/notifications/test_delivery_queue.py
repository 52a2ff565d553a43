"""Unit tests for DeliveryPolicy and DeliveryQueue."""

import threading

import pytest

from infrastructure.configuration import DeliverySettings
from modules.notifications.models import NotificationPriority, NotificationType
from modules.notifications.queue import DeliveryJob, DeliveryPolicy, DeliveryQueue

P = NotificationPriority


def _job(notification_id, priority=P.NORMAL):
    return DeliveryJob(
        notification_id=notification_id, channel=NotificationType.EMAIL, priority=priority
    )


@pytest.fixture
def queue(monotonic_clock):
    return DeliveryQueue(NotificationType.EMAIL, clock=monotonic_clock)


@pytest.mark.unit
class TestDeliveryPolicy:
    def test_backoff_doubles_from_retry_count(self):
        policy = DeliveryPolicy(base_delay_seconds=1, max_delay_seconds=60)
        assert [policy.backoff_seconds(n) for n in (1, 2, 3)] == [2, 4, 8]

    def test_backoff_is_capped(self):
        policy = DeliveryPolicy(base_delay_seconds=30, max_delay_seconds=100)
        assert policy.backoff_seconds(10) == 100

    def test_zero_base_delay_is_allowed(self):
        assert DeliveryPolicy(base_delay_seconds=0).backoff_seconds(3) == 0

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"max_attempts": 0},
            {"base_delay_seconds": -1},
            {"base_delay_seconds": 10, "max_delay_seconds": 5},
            {"concurrency": 0},
        ],
    )
    def test_rejects_invalid_values(self, kwargs):
        with pytest.raises(ValueError):
            DeliveryPolicy(**kwargs)

    def test_from_settings_applies_channel_overrides(self):
        delivery = DeliverySettings(
            DELIVERY_MAX_ATTEMPTS=3,
            DELIVERY_CHANNEL_OVERRIDES={"sms": {"max_attempts": 6, "concurrency": 1}},
        )

        sms = DeliveryPolicy.from_settings(delivery, NotificationType.SMS)
        email = DeliveryPolicy.from_settings(delivery, "email")

        assert (sms.max_attempts, sms.concurrency) == (6, 1)
        assert email.max_attempts == 3


@pytest.mark.unit
class TestDeliveryQueue:
    def test_priority_then_fifo(self, queue):
        queue.put(_job("normal-1"))
        queue.put(_job("low", P.LOW))
        queue.put(_job("urgent", P.URGENT))
        queue.put(_job("normal-2"))
        queue.put(_job("high", P.HIGH))

        order = [queue.get(timeout=0).notification_id for _ in range(5)]

        assert order == ["urgent", "high", "normal-1", "normal-2", "low"]
        assert queue.get(timeout=0) is None

    def test_delayed_job_waits_for_clock(self, queue, monotonic_clock):
        queue.put(_job("later"), delay_seconds=30)

        assert queue.get(timeout=0) is None
        assert (queue.ready_count, queue.delayed_count) == (0, 1)

        monotonic_clock.advance(30)

        assert queue.get(timeout=0).notification_id == "later"

    def test_due_delayed_jobs_respect_priority(self, queue, monotonic_clock):
        queue.put(_job("normal"), delay_seconds=5)
        queue.put(_job("urgent", P.URGENT), delay_seconds=10)
        monotonic_clock.advance(10)

        assert queue.get(timeout=0).notification_id == "urgent"
        assert queue.get(timeout=0).notification_id == "normal"

    def test_len_counts_ready_and_delayed(self, queue):
        queue.put(_job("a"))
        queue.put(_job("b"), delay_seconds=60)
        assert len(queue) == 2

    def test_closed_queue_rejects_jobs(self, queue):
        queue.close()
        assert queue.closed
        assert queue.put(_job("a")) is False
        assert queue.get(timeout=0) is None

    def test_close_drains_ready_jobs_first(self, queue):
        queue.put(_job("a"))
        queue.close()
        assert queue.get().notification_id == "a"
        assert queue.get() is None

    def test_blocking_get_wakes_on_put(self):
        queue = DeliveryQueue(NotificationType.EMAIL)
        received = []

        consumer = threading.Thread(target=lambda: received.append(queue.get(timeout=5)))
        consumer.start()
        queue.put(_job("wake"))
        consumer.join(timeout=5)

        assert received[0].notification_id == "wake"

    def test_blocking_get_wakes_on_close(self):
        queue = DeliveryQueue(NotificationType.EMAIL)
        received = []

        consumer = threading.Thread(target=lambda: received.append(queue.get()))
        consumer.start()
        queue.close()
        consumer.join(timeout=5)

        assert received == [None]
