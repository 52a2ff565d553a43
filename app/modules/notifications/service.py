"""Notification service: orchestrates the store, dispatch pool and reconciler."""

from datetime import datetime, timedelta
import math
from typing import Any, Dict, List, Mapping, Optional, Sequence

from infrastructure.logging import get_module_logger
from infrastructure.operations import OperationResult
from modules.notifications.channels.base import ChannelSender
from modules.notifications.errors import (
    InvalidStateTransition,
    NotFound,
    StoreUnavailableError,
    ValidationError,
)
from modules.notifications.models import (
    BulkItemResult,
    Notification,
    NotificationFilters,
    NotificationPage,
    NotificationSpec,
    NotificationStats,
    NotificationStatus,
    NotificationType,
    utc_now,
)
from modules.notifications.queue.pool import DispatchPool
from modules.notifications.reconciliation.reconciler import (
    EventKind,
    ReconcileResult,
    StatusReconciler,
)
from modules.notifications.store.base import NotificationStore
from modules.notifications.transitions import CANCELLABLE

logger = get_module_logger()

MAX_PAGE_SIZE = 100
CANCELLED_MESSAGE = "cancelled"

_REACHED_DELIVERED = {
    NotificationStatus.DELIVERED,
    NotificationStatus.OPENED,
    NotificationStatus.CLICKED,
}
_REACHED_OPENED = {NotificationStatus.OPENED, NotificationStatus.CLICKED}
_UNSUCCESSFUL = {NotificationStatus.FAILED, NotificationStatus.BOUNCED}


def _percent(part: int, total: int) -> float:
    return round(part / total * 100, 2) if total else 0.0


class NotificationService:
    """Entry point for creating, reading and cancelling notifications.

    Args:
        store: Notification record store
        pool: Dispatch pool; when None records are created but not dispatched
        reconciler: Status reconciler, built on the store when omitted
        senders: Channel senders for health reporting; defaults to the pool's
    """

    def __init__(
        self,
        store: NotificationStore,
        pool: Optional[DispatchPool] = None,
        reconciler: Optional[StatusReconciler] = None,
        senders: Optional[Mapping[NotificationType, ChannelSender]] = None,
    ):
        self.store = store
        self.pool = pool
        self.reconciler = reconciler or StatusReconciler(store)
        if senders is None and pool is not None:
            senders = pool.worker.senders
        self.senders: Dict[NotificationType, ChannelSender] = dict(senders or {})

    def create(self, spec: NotificationSpec) -> Notification:
        """Persist a pending notification and queue it for delivery.

        Raises:
            ValidationError: If the spec is invalid
        """
        notification = self.store.create(spec)
        if self.pool is not None:
            self.pool.enqueue(notification)
        logger.info(
            "notification_created",
            notification_id=notification.id,
            type=notification.type.value,
            priority=notification.priority.value,
            scheduled=notification.scheduled_at is not None,
        )
        return notification

    def create_bulk(self, specs: Sequence[NotificationSpec]) -> List[BulkItemResult]:
        """Create each spec independently; one bad item never aborts the batch."""
        results: List[BulkItemResult] = []
        for index, spec in enumerate(specs):
            try:
                results.append(BulkItemResult(index=index, notification=self.create(spec)))
            except ValidationError as e:
                results.append(BulkItemResult(index=index, error=e.to_dict()))
            except StoreUnavailableError as e:
                results.append(
                    BulkItemResult(
                        index=index,
                        error={"error": "store_unavailable", "message": str(e)},
                    )
                )

        created = sum(1 for result in results if result.is_success)
        logger.info(
            "notifications_bulk_created",
            requested=len(specs),
            created=created,
            rejected=len(specs) - created,
        )
        return results

    def get(self, notification_id: str) -> Notification:
        return self.store.get(notification_id)

    def list(
        self,
        filters: Optional[NotificationFilters] = None,
        page: int = 1,
        limit: int = 20,
    ) -> NotificationPage:
        """One page of matching notifications, newest first.

        Raises:
            ValueError: If page or limit is out of range
        """
        if page < 1:
            raise ValueError("page must be at least 1")
        if limit < 1 or limit > MAX_PAGE_SIZE:
            raise ValueError(f"limit must be between 1 and {MAX_PAGE_SIZE}")

        start = (page - 1) * limit
        end = start + limit
        items: List[Notification] = []
        total = 0
        for notification in self.store.query(filters or NotificationFilters()):
            if start <= total < end:
                items.append(notification)
            total += 1

        return NotificationPage(
            items=items,
            total=total,
            page=page,
            limit=limit,
            total_pages=math.ceil(total / limit) if total else 0,
        )

    def stats(
        self,
        days: Optional[int] = None,
        user_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> NotificationStats:
        """Counts per status and type, optionally limited to the last ``days``.

        With ``days`` the counts are also broken down per creation day.
        """
        created_from = None
        if days is not None:
            created_from = (now or utc_now()) - timedelta(days=days)
        filters = NotificationFilters(user_id=user_id, created_from=created_from)

        counts: Dict[NotificationStatus, int] = {status: 0 for status in NotificationStatus}
        by_type: Dict[str, int] = {}
        by_day: Dict[str, Dict[str, int]] = {}
        for notification in self.store.query(filters):
            counts[notification.status] += 1
            by_type[notification.type.value] = by_type.get(notification.type.value, 0) + 1
            if days is not None:
                day = by_day.setdefault(notification.created_at.date().isoformat(), {})
                day[notification.status.value] = day.get(notification.status.value, 0) + 1

        total = sum(counts.values())
        return NotificationStats(
            total=total,
            pending=counts[NotificationStatus.PENDING],
            sent=counts[NotificationStatus.SENT],
            delivered=counts[NotificationStatus.DELIVERED],
            opened=counts[NotificationStatus.OPENED],
            clicked=counts[NotificationStatus.CLICKED],
            bounced=counts[NotificationStatus.BOUNCED],
            failed=counts[NotificationStatus.FAILED],
            delivery_rate=_percent(sum(counts[s] for s in _REACHED_DELIVERED), total),
            open_rate=_percent(sum(counts[s] for s in _REACHED_OPENED), total),
            failure_rate=_percent(sum(counts[s] for s in _UNSUCCESSFUL), total),
            by_type=by_type,
            by_day=dict(sorted(by_day.items(), reverse=True)),
        )

    def cancel(self, notification_id: str) -> Notification:
        """Fail a pending notification with error message ``cancelled``.

        Raises:
            NotFound: If the notification does not exist
            InvalidStateTransition: If it is no longer pending or a worker is
                sending it right now
        """
        current = self.store.get(notification_id)

        if self.pool is None:
            return self._cancel(notification_id)

        with self.pool.cancel_hold(notification_id) as held:
            if not held:
                raise InvalidStateTransition(
                    notification_id,
                    current.status,
                    NotificationStatus.FAILED,
                    reason="delivery in progress",
                )
            return self._cancel(notification_id)

    def _cancel(self, notification_id: str) -> Notification:
        notification = self.store.apply_transition(
            notification_id,
            CANCELLABLE,
            NotificationStatus.FAILED,
            {"error_message": CANCELLED_MESSAGE},
        )
        logger.info("notification_cancelled", notification_id=notification_id)
        return notification

    def mark_as_read(self, notification_id: str, user_id: str) -> Notification:
        """Record an in-app read receipt as an ``opened`` event.

        Raises:
            NotFound: If the notification does not exist or belongs to
                another user
        """
        notification = self.store.get(notification_id)
        if notification.user_id != user_id:
            raise NotFound(notification_id)

        result = self.reconciler.apply(notification, EventKind.OPENED)
        if result is ReconcileResult.IGNORED:
            logger.debug(
                "mark_as_read_ignored",
                notification_id=notification_id,
                status=notification.status.value,
            )
        return self.store.get(notification_id)

    def cleanup(self, older_than_days: int) -> int:
        """Delete notifications created more than ``older_than_days`` ago."""
        cutoff = utc_now() - timedelta(days=older_than_days)
        deleted = self.store.delete_older_than(cutoff)
        logger.info(
            "notifications_cleaned_up",
            older_than_days=older_than_days,
            deleted=deleted,
        )
        return deleted

    def health(self) -> Dict[str, Any]:
        """Store and channel health plus queue statistics."""
        store_result = self._safe_health(self.store.health_check)
        channels = {
            channel.value: self._describe(self._safe_health(sender.health_check))
            for channel, sender in self.senders.items()
        }
        return {
            "healthy": store_result.is_success,
            "store": self._describe(store_result),
            "channels": channels,
            "queues": self.pool.stats() if self.pool is not None else None,
        }

    @staticmethod
    def _safe_health(check) -> OperationResult:
        try:
            return check()
        except Exception as e:  # pylint: disable=broad-except
            return OperationResult.transient_error(str(e), error_code="HEALTH_CHECK_ERROR")

    @staticmethod
    def _describe(result: OperationResult) -> Dict[str, Any]:
        return {
            "status": result.status.value,
            "message": result.message,
            "error_code": result.error_code,
        }
