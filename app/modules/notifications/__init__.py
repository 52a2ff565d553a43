"""Notification delivery module.

Public API:
    - NotificationService: create, bulk create, list, stats, cancel, read receipts
    - NotificationStore / create_notification_store: record stores
    - DispatchPool: per-channel delivery queues and worker threads
    - StatusReconciler: provider delivery events
"""

from modules.notifications.errors import (
    FieldError,
    InvalidStateTransition,
    NotFound,
    NotificationError,
    PermanentSendFailure,
    SendFailure,
    StoreUnavailableError,
    TransientSendFailure,
    ValidationError,
)
from modules.notifications.models import (
    BulkItemResult,
    Notification,
    NotificationFilters,
    NotificationPage,
    NotificationPriority,
    NotificationSpec,
    NotificationStats,
    NotificationStatus,
    NotificationType,
)
from modules.notifications.service import NotificationService

__all__ = [
    "NotificationService",
    "Notification",
    "NotificationSpec",
    "NotificationFilters",
    "NotificationPage",
    "NotificationStats",
    "BulkItemResult",
    "NotificationType",
    "NotificationStatus",
    "NotificationPriority",
    "NotificationError",
    "FieldError",
    "ValidationError",
    "InvalidStateTransition",
    "NotFound",
    "SendFailure",
    "TransientSendFailure",
    "PermanentSendFailure",
    "StoreUnavailableError",
]
