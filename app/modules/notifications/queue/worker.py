"""Delivery worker: processes one job against the store and a channel sender."""

from datetime import datetime
from enum import Enum
from typing import Callable, Dict, Mapping, Optional

from infrastructure.logging import get_module_logger
from modules.notifications.channels.base import ChannelSender, ErrorKind, SendOutcome
from modules.notifications.errors import InvalidStateTransition, NotFound
from modules.notifications.models import (
    Notification,
    NotificationStatus,
    NotificationType,
    utc_now,
)
from modules.notifications.queue.policy import DeliveryPolicy
from modules.notifications.queue.queue import DeliveryJob
from modules.notifications.store.base import NotificationStore
from modules.notifications.transitions import SENDABLE

logger = get_module_logger()


class JobState(Enum):
    """Outcome of processing one job."""

    ENQUEUED = "enqueued"
    IN_FLIGHT = "in_flight"
    SUCCEEDED = "succeeded"
    RETRY_SCHEDULED = "retry_scheduled"
    DEFERRED = "deferred"
    FAILED = "failed"
    DROPPED = "dropped"

    @property
    def is_final(self) -> bool:
        return self in (JobState.SUCCEEDED, JobState.FAILED, JobState.DROPPED)


Requeue = Callable[[DeliveryJob, float], None]


class DeliveryWorker:
    """Processes delivery jobs.

    The worker is stateless between jobs; the pool calls ``process`` from
    many threads. ``StoreUnavailableError`` is not handled here and reaches
    the pool, which halts dispatch.

    Args:
        store: Notification record store
        senders: Sender per notification type
        policies: Delivery policy per notification type
        requeue: Callback putting a job back with a delay in seconds
        defer_recheck_seconds: Longest wait before a scheduled job is re-checked
        clock: Current UTC time; injectable for tests
    """

    def __init__(
        self,
        store: NotificationStore,
        senders: Mapping[NotificationType, ChannelSender],
        policies: Mapping[NotificationType, DeliveryPolicy],
        requeue: Requeue,
        defer_recheck_seconds: float = 60,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.senders: Dict[NotificationType, ChannelSender] = dict(senders)
        self.policies: Dict[NotificationType, DeliveryPolicy] = dict(policies)
        self._requeue = requeue
        self.defer_recheck_seconds = defer_recheck_seconds
        self._clock = clock

    def policy_for(self, channel: NotificationType) -> DeliveryPolicy:
        return self.policies.get(channel) or DeliveryPolicy()

    def process(self, job: DeliveryJob) -> JobState:
        """Process one job and return what happened to it."""
        log = logger.bind(
            notification_id=job.notification_id,
            channel=job.channel.value,
        )
        try:
            return self._process(job, log)
        except InvalidStateTransition as e:
            log.info(
                "delivery_job_dropped_state_changed",
                current=e.current.value if e.current else None,
                target=e.target.value if e.target else None,
            )
            return JobState.DROPPED

    def _process(self, job: DeliveryJob, log) -> JobState:
        try:
            notification = self.store.get(job.notification_id)
        except NotFound:
            log.warning("delivery_job_dropped_not_found")
            return JobState.DROPPED

        if notification.status != NotificationStatus.PENDING:
            log.info("delivery_job_dropped_not_pending", status=notification.status.value)
            return JobState.DROPPED

        now = self._clock()
        if not notification.is_due(now):
            delay = min(
                (notification.scheduled_at - now).total_seconds(),
                self.defer_recheck_seconds,
            )
            self._requeue(job, delay)
            log.debug(
                "delivery_deferred",
                scheduled_at=notification.scheduled_at.isoformat(),
                recheck_in_seconds=delay,
            )
            return JobState.DEFERRED

        policy = self.policy_for(notification.type)
        if notification.retry_count >= policy.max_attempts:
            self._fail(notification, notification.error_message or "max attempts reached", log)
            return JobState.FAILED

        outcome = self._send(notification, log)

        if outcome.success:
            self.store.apply_transition(
                notification.id,
                SENDABLE,
                NotificationStatus.SENT,
                {
                    "sent_at": self._clock(),
                    "external_id": outcome.external_id,
                    "error_message": None,
                },
            )
            log.info(
                "notification_sent",
                external_id=outcome.external_id,
                attempt=notification.retry_count + 1,
            )
            return JobState.SUCCEEDED

        retry_count = self.store.increment_retry(notification.id, outcome.error_message)

        if outcome.is_permanent or retry_count >= policy.max_attempts:
            self._fail(notification, outcome.error_message, log, retry_count=retry_count)
            return JobState.FAILED

        delay = policy.backoff_seconds(retry_count)
        self._requeue(job, delay)
        log.info(
            "delivery_retry_scheduled",
            retry_count=retry_count,
            max_attempts=policy.max_attempts,
            delay_seconds=delay,
            error=outcome.error_message,
        )
        return JobState.RETRY_SCHEDULED

    def _send(self, notification: Notification, log) -> SendOutcome:
        sender = self.senders.get(notification.type)
        if sender is None:
            return SendOutcome.failure(
                ErrorKind.PERMANENT,
                f"No sender configured for {notification.type.value}",
                "NO_SENDER",
            )
        try:
            return sender.send(notification)
        except Exception as e:  # pylint: disable=broad-except
            log.exception("sender_raised", error=str(e))
            return SendOutcome.failure(ErrorKind.TRANSIENT, str(e), "UNEXPECTED_ERROR")

    def _fail(
        self,
        notification: Notification,
        error_message: Optional[str],
        log,
        retry_count: Optional[int] = None,
    ) -> None:
        self.store.apply_transition(
            notification.id,
            SENDABLE,
            NotificationStatus.FAILED,
            {"error_message": error_message},
        )
        log.warning(
            "notification_failed",
            retry_count=retry_count if retry_count is not None else notification.retry_count,
            error=error_message,
        )
