"""In-memory notification store."""

import threading
from datetime import datetime
from typing import Any, Dict, Iterable, Iterator, List, Optional

from infrastructure.logging import get_module_logger
from infrastructure.operations import OperationResult
from modules.notifications.errors import InvalidStateTransition, NotFound
from modules.notifications.models import (
    Notification,
    NotificationFilters,
    NotificationSpec,
    NotificationStatus,
    utc_now,
)
from modules.notifications.transitions import check_fields, merge_transition
from modules.notifications.validation import build_notification

logger = get_module_logger()


class InMemoryNotificationStore:
    """Thread-safe in-process store for development and tests.

    Each record has its own lock. The registry lock only guards the record
    and lock dictionaries, so transitions on different records never contend.
    Records are copied on the way in and out; callers never hold a live
    reference to stored state.
    """

    def __init__(self) -> None:
        self._records: Dict[str, Notification] = {}
        self._locks: Dict[str, threading.Lock] = {}
        self._external_index: Dict[str, str] = {}
        self._registry_lock = threading.Lock()

        logger.info("in_memory_notification_store_initialized")

    def _lock_for(self, notification_id: str) -> threading.Lock:
        with self._registry_lock:
            lock = self._locks.get(notification_id)
            if lock is None:
                raise NotFound(notification_id)
            return lock

    def _current(self, notification_id: str) -> Notification:
        record = self._records.get(notification_id)
        if record is None:
            raise NotFound(notification_id)
        return record

    def create(self, spec: NotificationSpec) -> Notification:
        notification = build_notification(spec)
        self.save(notification)
        logger.debug(
            "notification_persisted",
            notification_id=notification.id,
            type=notification.type.value,
        )
        return notification.model_copy(deep=True)

    def save(self, notification: Notification) -> None:
        """Insert a fully built record (used by create and test fixtures)."""
        with self._registry_lock:
            self._records[notification.id] = notification.model_copy(deep=True)
            self._locks[notification.id] = threading.Lock()
            if notification.external_id:
                self._external_index[notification.external_id] = notification.id

    def apply_transition(
        self,
        notification_id: str,
        from_statuses: Iterable[NotificationStatus],
        to_status: NotificationStatus,
        fields: Optional[Dict[str, Any]] = None,
    ) -> Notification:
        allowed = frozenset(from_statuses)
        fields = check_fields(fields)

        with self._lock_for(notification_id):
            current = self._current(notification_id)
            if current.status not in allowed:
                raise InvalidStateTransition(notification_id, current.status, to_status)

            updated = merge_transition(current, to_status, fields, utc_now())
            with self._registry_lock:
                self._records[notification_id] = updated
                if updated.external_id and current.external_id is None:
                    self._external_index[updated.external_id] = notification_id

        logger.debug(
            "notification_transition_applied",
            notification_id=notification_id,
            from_status=current.status.value,
            to_status=to_status.value,
        )
        return updated.model_copy(deep=True)

    def get(self, notification_id: str) -> Notification:
        with self._registry_lock:
            return self._current(notification_id).model_copy(deep=True)

    def get_by_external_id(self, external_id: str) -> Notification:
        with self._registry_lock:
            notification_id = self._external_index.get(external_id)
            if notification_id is None or notification_id not in self._records:
                raise NotFound(external_id, kind="external_id")
            return self._records[notification_id].model_copy(deep=True)

    def query(self, filters: NotificationFilters) -> Iterator[Notification]:
        with self._registry_lock:
            snapshot: List[Notification] = [
                record for record in self._records.values() if filters.matches(record)
            ]
        snapshot.sort(key=lambda n: (n.created_at, n.id), reverse=True)
        for record in snapshot:
            yield record.model_copy(deep=True)

    def increment_retry(
        self, notification_id: str, error_message: Optional[str] = None
    ) -> int:
        with self._lock_for(notification_id):
            current = self._current(notification_id)
            if current.status != NotificationStatus.PENDING:
                raise InvalidStateTransition(
                    notification_id,
                    current.status,
                    current.status,
                    reason="retry count only changes while pending",
                )
            updated = current.model_copy(
                update={
                    "retry_count": current.retry_count + 1,
                    "error_message": error_message,
                    "updated_at": utc_now(),
                }
            )
            with self._registry_lock:
                self._records[notification_id] = updated
        return updated.retry_count

    def delete_older_than(self, cutoff: datetime) -> int:
        with self._registry_lock:
            expired = [
                notification_id
                for notification_id, record in self._records.items()
                if record.created_at < cutoff
            ]
            for notification_id in expired:
                record = self._records.pop(notification_id)
                self._locks.pop(notification_id, None)
                if record.external_id:
                    self._external_index.pop(record.external_id, None)
        return len(expired)

    def health_check(self) -> OperationResult:
        with self._registry_lock:
            count = len(self._records)
        return OperationResult.success(
            data={"backend": "memory", "records": count},
            message="In-memory store available",
        )
