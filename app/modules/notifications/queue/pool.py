"""Dispatch pool: one delivery queue and a set of worker threads per channel."""

from contextlib import contextmanager
from datetime import datetime
import threading
import time
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Set, TYPE_CHECKING

from infrastructure.logging import get_module_logger
from modules.notifications.channels.base import ChannelSender
from modules.notifications.errors import StoreUnavailableError
from modules.notifications.models import (
    Notification,
    NotificationFilters,
    NotificationStatus,
    NotificationType,
    utc_now,
)
from modules.notifications.queue.policy import DeliveryPolicy
from modules.notifications.queue.queue import DeliveryJob, DeliveryQueue
from modules.notifications.queue.worker import DeliveryWorker, JobState
from modules.notifications.store.base import NotificationStore

if TYPE_CHECKING:
    from infrastructure.configuration import DeliverySettings

logger = get_module_logger()


class DispatchPool:
    """Owns the delivery queues and worker threads.

    Queue state is in-process only and is rebuilt from pending records with
    ``recover()``; retry counters live on the records. A notification id is
    tracked from enqueue until its job reaches a final state, so the same
    record is never queued twice.

    When the store becomes unavailable every worker stops dispatching. One
    worker probes ``store.health_check()`` every ``store_probe_seconds`` and
    dispatch resumes once it succeeds.

    Args:
        store: Notification record store
        senders: Sender per notification type; one queue is created per sender
        policies: Delivery policy per notification type
        defer_recheck_seconds: Longest wait before a scheduled job is re-checked
        poll_interval_seconds: Queue poll timeout for worker threads
        store_probe_seconds: Interval between store probes while halted
        queue_clock: Monotonic clock for queue delays
        clock: UTC clock for scheduling checks and timestamps
    """

    def __init__(
        self,
        store: NotificationStore,
        senders: Mapping[NotificationType, ChannelSender],
        policies: Optional[Mapping[NotificationType, DeliveryPolicy]] = None,
        defer_recheck_seconds: float = 60,
        poll_interval_seconds: float = 1.0,
        store_probe_seconds: float = 5,
        queue_clock: Callable[[], float] = time.monotonic,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.policies: Dict[NotificationType, DeliveryPolicy] = {
            channel: (policies or {}).get(channel) or DeliveryPolicy() for channel in senders
        }
        self.poll_interval_seconds = poll_interval_seconds
        self.store_probe_seconds = store_probe_seconds
        self._queue_clock = queue_clock

        self._queues: Dict[NotificationType, DeliveryQueue] = self._build_queues()
        self._worker = DeliveryWorker(
            store=store,
            senders=senders,
            policies=self.policies,
            requeue=self._requeue,
            defer_recheck_seconds=defer_recheck_seconds,
            clock=clock,
        )

        self._lock = threading.Lock()
        self._tracked: Set[str] = set()
        self._in_flight: Dict[str, NotificationType] = {}
        self._cancelling: Set[str] = set()

        self._threads: List[threading.Thread] = []
        self._stop_event = threading.Event()
        self._dispatch_allowed = threading.Event()
        self._dispatch_allowed.set()
        self._probe_lock = threading.Lock()

    @classmethod
    def from_settings(
        cls,
        store: NotificationStore,
        senders: Mapping[NotificationType, ChannelSender],
        delivery: "DeliverySettings",
    ) -> "DispatchPool":
        policies = {
            channel: DeliveryPolicy.from_settings(delivery, channel) for channel in senders
        }
        return cls(
            store=store,
            senders=senders,
            policies=policies,
            defer_recheck_seconds=delivery.defer_recheck_seconds,
            poll_interval_seconds=delivery.poll_interval_seconds,
            store_probe_seconds=delivery.store_probe_seconds,
        )

    @property
    def worker(self) -> DeliveryWorker:
        return self._worker

    @property
    def running(self) -> bool:
        return any(thread.is_alive() for thread in self._threads)

    @property
    def halted(self) -> bool:
        return not self._dispatch_allowed.is_set()

    def _build_queues(self) -> Dict[NotificationType, DeliveryQueue]:
        return {
            channel: DeliveryQueue(channel, clock=self._queue_clock)
            for channel in self.policies
        }

    def queue_for(self, channel: NotificationType) -> DeliveryQueue:
        return self._queues[channel]

    def start(self) -> None:
        """Start ``concurrency`` worker threads per channel.

        After ``stop()`` the closed queues are replaced with empty ones; call
        ``recover()`` to queue the pending records again.
        """
        if self.running:
            return
        if any(queue.closed for queue in self._queues.values()):
            with self._lock:
                self._queues = self._build_queues()
                self._tracked.clear()
                self._cancelling.clear()
        self._stop_event.clear()
        self._threads = []
        for channel, policy in self.policies.items():
            for index in range(policy.concurrency):
                worker_id = f"{channel.value}-{index}"
                thread = threading.Thread(
                    target=self._run_worker,
                    args=(channel, worker_id),
                    name=f"delivery-{worker_id}",
                    daemon=True,
                )
                thread.start()
                self._threads.append(thread)
        logger.info(
            "dispatch_pool_started",
            workers={c.value: p.concurrency for c, p in self.policies.items()},
        )

    def stop(self, timeout: float = 10) -> None:
        """Stop the worker threads. Queued jobs are abandoned; they are
        recovered from the store on the next start."""
        self._stop_event.set()
        self._dispatch_allowed.set()
        for queue in self._queues.values():
            queue.close()
        deadline = time.monotonic() + timeout
        for thread in self._threads:
            thread.join(max(deadline - time.monotonic(), 0))
        alive = [thread.name for thread in self._threads if thread.is_alive()]
        if alive:
            logger.warning("dispatch_pool_stop_timeout", threads=alive)
        self._threads = []
        logger.info("dispatch_pool_stopped")

    def enqueue(self, notification: Notification) -> bool:
        """Queue a pending notification for delivery.

        Returns:
            False if the notification is already queued or in flight

        Raises:
            ValueError: If no sender handles the notification type
        """
        queue = self._queues.get(notification.type)
        if queue is None:
            raise ValueError(f"No delivery queue for {notification.type.value}")

        with self._lock:
            if notification.id in self._tracked:
                return False
            self._tracked.add(notification.id)

        job = DeliveryJob(
            notification_id=notification.id,
            channel=notification.type,
            priority=notification.priority,
        )
        if not queue.put(job):
            with self._lock:
                self._tracked.discard(notification.id)
            return False
        logger.debug(
            "notification_enqueued",
            notification_id=notification.id,
            channel=notification.type.value,
            priority=notification.priority.value,
        )
        return True

    def recover(self) -> int:
        """Queue every pending record, oldest first. Returns the number queued."""
        pending = list(self.store.query(NotificationFilters(status=NotificationStatus.PENDING)))
        recovered = 0
        for notification in reversed(pending):
            if notification.type not in self._queues:
                continue
            if self.enqueue(notification):
                recovered += 1
        logger.info("dispatch_pool_recovered", recovered=recovered, pending=len(pending))
        return recovered

    def is_in_flight(self, notification_id: str) -> bool:
        with self._lock:
            return notification_id in self._in_flight

    @contextmanager
    def cancel_hold(self, notification_id: str) -> Iterator[bool]:
        """Keep workers off a notification while it is being cancelled.

        Yields:
            False if a worker is already sending it
        """
        with self._lock:
            if notification_id in self._in_flight:
                held = False
            else:
                held = True
                self._cancelling.add(notification_id)
        try:
            yield held
        finally:
            if held:
                with self._lock:
                    self._cancelling.discard(notification_id)

    def stats(self) -> Dict[str, Any]:
        """Queue depth and in-flight count per channel."""
        with self._lock:
            in_flight = list(self._in_flight.values())
        channels = {}
        for channel, queue in self._queues.items():
            channels[channel.value] = {
                "ready": queue.ready_count,
                "delayed": queue.delayed_count,
                "in_flight": in_flight.count(channel),
                "workers": self.policies[channel].concurrency,
            }
        return {"running": self.running, "halted": self.halted, "channels": channels}

    def _requeue(self, job: DeliveryJob, delay_seconds: float) -> None:
        if not self._queues[job.channel].put(job, delay_seconds=delay_seconds):
            with self._lock:
                self._tracked.discard(job.notification_id)

    def process_next(
        self, channel: NotificationType, timeout: Optional[float] = 0
    ) -> Optional[JobState]:
        """Take one job from the channel queue and process it.

        Returns:
            The job state, or None if no job was ready within ``timeout``
        """
        job = self._queues[channel].get(timeout=timeout)
        if job is None:
            return None
        if self.halted:
            self._requeue(job, 0)
            return JobState.ENQUEUED

        with self._lock:
            if job.notification_id in self._cancelling:
                cancelling = True
            else:
                cancelling = False
                self._in_flight[job.notification_id] = channel
        if cancelling:
            self._requeue(job, self.poll_interval_seconds)
            return JobState.DEFERRED

        state = JobState.ENQUEUED
        try:
            state = self._worker.process(job)
        except StoreUnavailableError as e:
            logger.error(
                "dispatch_halted_store_unavailable",
                notification_id=job.notification_id,
                error=str(e),
            )
            self._dispatch_allowed.clear()
            self._requeue(job, 0)
        except Exception as e:  # pylint: disable=broad-except
            logger.exception(
                "delivery_job_error",
                notification_id=job.notification_id,
                channel=channel.value,
                error=str(e),
            )
            state = JobState.DROPPED
        finally:
            with self._lock:
                self._in_flight.pop(job.notification_id, None)
                if state.is_final:
                    self._tracked.discard(job.notification_id)
        return state

    def probe_store(self) -> bool:
        """Check the store once and resume dispatch if it is reachable."""
        try:
            result = self.store.health_check()
            healthy = result.is_success
        except Exception as e:  # pylint: disable=broad-except
            logger.warning("store_probe_error", error=str(e))
            healthy = False

        if healthy:
            self._dispatch_allowed.set()
            logger.info("dispatch_resumed")
        else:
            logger.warning("store_probe_failed", retry_in_seconds=self.store_probe_seconds)
        return healthy

    def _wait_for_store(self) -> None:
        if self._probe_lock.acquire(blocking=False):
            try:
                while self.halted and not self._stop_event.is_set():
                    if self.probe_store():
                        return
                    self._stop_event.wait(self.store_probe_seconds)
            finally:
                self._probe_lock.release()
        else:
            self._dispatch_allowed.wait(self.store_probe_seconds)

    def _run_worker(self, channel: NotificationType, worker_id: str) -> None:
        log = logger.bind(channel=channel.value, worker_id=worker_id)
        log.debug("delivery_worker_started")
        while not self._stop_event.is_set():
            if self.halted:
                self._wait_for_store()
                continue
            self.process_next(channel, timeout=self.poll_interval_seconds)
        log.debug("delivery_worker_stopped")
