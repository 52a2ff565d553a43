"""End to end delivery with real worker threads."""

import time

import pytest

from modules.notifications.errors import PermanentSendFailure, TransientSendFailure
from modules.notifications.models import NotificationStatus, NotificationType
from modules.notifications.queue import DeliveryPolicy, DispatchPool
from modules.notifications.reconciliation import EventKind
from modules.notifications.service import NotificationService

S = NotificationStatus


def wait_for(predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return False


@pytest.fixture
def email_sender(sender_factory):
    return sender_factory()


@pytest.fixture
def pool(memory_store, email_sender):
    pool = DispatchPool(
        store=memory_store,
        senders={NotificationType.EMAIL: email_sender},
        policies={
            NotificationType.EMAIL: DeliveryPolicy(
                max_attempts=3,
                base_delay_seconds=0.01,
                max_delay_seconds=0.05,
                concurrency=2,
            )
        },
        poll_interval_seconds=0.01,
        store_probe_seconds=0.01,
    )
    yield pool
    pool.stop(timeout=2)


@pytest.fixture
def service(memory_store, pool):
    return NotificationService(store=memory_store, pool=pool)


@pytest.mark.integration
class TestDeliveryPipeline:
    def test_send_and_reconcile(self, service, pool, email_sender, spec_factory):
        pool.start()
        notification = service.create(spec_factory())

        assert wait_for(lambda: service.get(notification.id).status == S.SENT)
        sent = service.get(notification.id)
        assert sent.external_id == f"ext-{notification.id}"
        assert email_sender.calls == [notification.id]

        service.reconciler.reconcile(sent.external_id, EventKind.DELIVERED)
        assert service.get(notification.id).status == S.DELIVERED

    def test_transient_failures_are_retried(self, service, pool, email_sender, spec_factory):
        email_sender.script = [TransientSendFailure("timeout"), TransientSendFailure("503")]
        pool.start()
        notification = service.create(spec_factory())

        assert wait_for(lambda: service.get(notification.id).status == S.SENT)
        assert service.get(notification.id).retry_count == 2
        assert len(email_sender.calls) == 3

    def test_permanent_failure(self, service, pool, email_sender, spec_factory):
        email_sender.script = [PermanentSendFailure("invalid recipient")]
        pool.start()
        notification = service.create(spec_factory())

        assert wait_for(lambda: service.get(notification.id).status == S.FAILED)
        assert service.get(notification.id).error_message == "invalid recipient"
        assert len(email_sender.calls) == 1

    def test_recover_after_restart(self, memory_store, pool, email_sender, spec_factory):
        created = [memory_store.create(spec_factory(title=f"t{i}")) for i in range(5)]

        assert pool.recover() == 5
        pool.start()

        assert wait_for(
            lambda: all(memory_store.get(n.id).status == S.SENT for n in created)
        )
        assert sorted(email_sender.calls) == sorted(n.id for n in created)

    def test_each_record_sent_once(self, service, pool, email_sender, spec_factory):
        pool.start()
        created = [service.create(spec_factory(title=f"t{i}")) for i in range(20)]
        for notification in created:
            pool.enqueue(notification)

        assert wait_for(lambda: len(email_sender.calls) >= 20)
        time.sleep(0.1)
        assert sorted(email_sender.calls) == sorted(n.id for n in created)
