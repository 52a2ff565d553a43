"""In-process delivery queue.

One queue per channel. Ready jobs are served by priority, then FIFO; delayed
jobs wait in a second heap until their ready time.
"""

from dataclasses import dataclass, field
import heapq
import itertools
import threading
import time
from typing import Callable, List, Optional, Tuple

from infrastructure.logging import get_module_logger
from modules.notifications.models import NotificationPriority, NotificationType

logger = get_module_logger()


@dataclass(frozen=True)
class DeliveryJob:
    """A pending send. Jobs carry ids only; the worker reloads the record."""

    notification_id: str
    channel: NotificationType
    priority: NotificationPriority = NotificationPriority.NORMAL
    enqueued_at: float = field(default_factory=time.monotonic, compare=False)


class DeliveryQueue:
    """Thread-safe priority queue with delayed jobs.

    Args:
        channel: Channel served by this queue
        clock: Monotonic clock in seconds; injectable for tests
    """

    def __init__(
        self,
        channel: NotificationType,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.channel = channel
        self._clock = clock
        self._ready: List[Tuple[int, int, DeliveryJob]] = []
        self._delayed: List[Tuple[float, int, DeliveryJob]] = []
        self._sequence = itertools.count()
        self._condition = threading.Condition()
        self._closed = False

    def put(self, job: DeliveryJob, delay_seconds: float = 0) -> bool:
        """Add a job, optionally not before ``delay_seconds`` from now.

        Returns:
            False if the queue is closed and the job was not accepted
        """
        with self._condition:
            if self._closed:
                logger.debug(
                    "delivery_queue_closed",
                    channel=self.channel.value,
                    notification_id=job.notification_id,
                )
                return False
            sequence = next(self._sequence)
            if delay_seconds > 0:
                ready_at = self._clock() + delay_seconds
                heapq.heappush(self._delayed, (ready_at, sequence, job))
            else:
                heapq.heappush(self._ready, (-job.priority.rank, sequence, job))
            self._condition.notify()
            return True

    def _promote_due(self) -> None:
        now = self._clock()
        while self._delayed and self._delayed[0][0] <= now:
            _, sequence, job = heapq.heappop(self._delayed)
            heapq.heappush(self._ready, (-job.priority.rank, sequence, job))

    def get(self, timeout: Optional[float] = None) -> Optional[DeliveryJob]:
        """Next ready job, waiting up to ``timeout`` seconds.

        Returns:
            The job, or None on timeout or when the queue is closed
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._condition:
            while True:
                self._promote_due()
                if self._ready:
                    return heapq.heappop(self._ready)[2]
                if self._closed:
                    return None

                wait: Optional[float] = None
                if deadline is not None:
                    wait = deadline - time.monotonic()
                    if wait <= 0:
                        return None
                if self._delayed:
                    until_ready = max(self._delayed[0][0] - self._clock(), 0.001)
                    wait = until_ready if wait is None else min(wait, until_ready)
                self._condition.wait(wait)

    def close(self) -> None:
        """Stop accepting jobs and wake every waiting consumer."""
        with self._condition:
            self._closed = True
            self._condition.notify_all()

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def ready_count(self) -> int:
        with self._condition:
            self._promote_due()
            return len(self._ready)

    @property
    def delayed_count(self) -> int:
        with self._condition:
            self._promote_due()
            return len(self._delayed)

    def __len__(self) -> int:
        with self._condition:
            return len(self._ready) + len(self._delayed)
