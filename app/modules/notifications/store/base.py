"""Notification record store interface.

The store is the single owner of notification records. Every status change
goes through ``apply_transition``, which checks the current status against the
caller's allowed from-states atomically per record.
"""

from datetime import datetime
from typing import Any, Dict, Iterable, Iterator, Optional, Protocol

from infrastructure.operations import OperationResult
from modules.notifications.models import (
    Notification,
    NotificationFilters,
    NotificationSpec,
    NotificationStatus,
)


class NotificationStore(Protocol):
    """Storage interface for notification records.

    Methods:
        create: Validate a spec and persist a pending record
        apply_transition: Guarded status change, the only status mutation path
        get: Load a record by id
        get_by_external_id: Load a record by provider message id
        query: Lazy, newest-first iteration over matching records
        increment_retry: Count a failed send attempt on a pending record
        delete_older_than: Retention purge
        health_check: Store reachability
    """

    def create(self, spec: NotificationSpec) -> Notification:
        """Validate and persist a new pending notification.

        Raises:
            ValidationError: If the spec is missing required fields
        """
        ...

    def apply_transition(
        self,
        notification_id: str,
        from_statuses: Iterable[NotificationStatus],
        to_status: NotificationStatus,
        fields: Optional[Dict[str, Any]] = None,
    ) -> Notification:
        """Move a record to ``to_status`` if its status is in ``from_statuses``.

        Set-once fields (timestamps, external_id) keep an existing value.

        Raises:
            InvalidStateTransition: If the current status is not allowed
            NotFound: If the record does not exist
        """
        ...

    def get(self, notification_id: str) -> Notification:
        """Raises NotFound."""
        ...

    def get_by_external_id(self, external_id: str) -> Notification:
        """Raises NotFound."""
        ...

    def query(self, filters: NotificationFilters) -> Iterator[Notification]:
        """Yield matching records ordered by created_at desc, id desc."""
        ...

    def increment_retry(
        self, notification_id: str, error_message: Optional[str] = None
    ) -> int:
        """Increment retry_count of a pending record and return the new value.

        Raises:
            InvalidStateTransition: If the record is no longer pending
            NotFound: If the record does not exist
        """
        ...

    def delete_older_than(self, cutoff: datetime) -> int:
        """Delete records created before ``cutoff``; returns the count."""
        ...

    def health_check(self) -> OperationResult:
        ...
