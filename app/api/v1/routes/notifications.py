"""Notification endpoints."""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query, Request, status
from pydantic import BaseModel, Field

from api.dependencies.notifications import NotificationServiceDep
from api.dependencies.rate_limits import get_limiter
from infrastructure.logging import get_module_logger
from modules.notifications.errors import (
    InvalidStateTransition,
    NotFound,
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
)

logger = get_module_logger()
router = APIRouter(prefix="/notifications", tags=["Notifications"])
limiter = get_limiter()

MAX_BULK_ITEMS = 1000


class BulkCreateRequest(BaseModel):
    items: List[NotificationSpec] = Field(..., min_length=1, max_length=MAX_BULK_ITEMS)


class BulkCreateResponse(BaseModel):
    items: List[BulkItemResult]


class CancelResponse(BaseModel):
    cancelled: bool
    status: NotificationStatus
    reason: Optional[str] = None


class ReadReceipt(BaseModel):
    user_id: str


def _not_found(e: NotFound) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.post("", status_code=status.HTTP_201_CREATED, response_model=Notification)
@limiter.limit("120/minute")
def create_notification(
    request: Request,  # pylint: disable=unused-argument
    spec: NotificationSpec,
    service: NotificationServiceDep,
):
    """Create a notification and queue it for delivery."""
    try:
        return service.create(spec)
    except ValidationError as e:
        logger.info("notification_rejected", errors=str(e))
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.to_dict()) from e


@router.post("/bulk", response_model=BulkCreateResponse)
@limiter.limit("30/minute")
def create_notifications_bulk(
    request: Request,  # pylint: disable=unused-argument
    body: BulkCreateRequest,
    service: NotificationServiceDep,
):
    """Create many notifications; each item reports its own result."""
    return BulkCreateResponse(items=service.create_bulk(body.items))


@router.get("", response_model=NotificationPage)
@limiter.limit("120/minute")
def list_notifications(
    request: Request,  # pylint: disable=unused-argument
    service: NotificationServiceDep,
    user_id: Optional[str] = None,
    type: Optional[NotificationType] = None,  # pylint: disable=redefined-builtin
    status_filter: Optional[NotificationStatus] = Query(default=None, alias="status"),
    created_from: Optional[datetime] = None,
    created_to: Optional[datetime] = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
):
    """List notifications, newest first."""
    filters = NotificationFilters(
        user_id=user_id,
        type=type,
        status=status_filter,
        created_from=created_from,
        created_to=created_to,
    )
    return service.list(filters, page=page, limit=limit)


@router.get("/stats", response_model=NotificationStats)
@limiter.limit("60/minute")
def get_notification_stats(
    request: Request,  # pylint: disable=unused-argument
    service: NotificationServiceDep,
    days: Optional[int] = Query(default=None, ge=1),
    user_id: Optional[str] = None,
):
    """Counts and rates, optionally limited to the last ``days``."""
    return service.stats(days=days, user_id=user_id)


@router.get("/{notification_id}", response_model=Notification)
@limiter.limit("240/minute")
def get_notification(
    request: Request,  # pylint: disable=unused-argument
    notification_id: str,
    service: NotificationServiceDep,
):
    try:
        return service.get(notification_id)
    except NotFound as e:
        raise _not_found(e) from e


@router.post("/{notification_id}/cancel", response_model=CancelResponse)
@limiter.limit("60/minute")
def cancel_notification(
    request: Request,  # pylint: disable=unused-argument
    notification_id: str,
    service: NotificationServiceDep,
):
    """Cancel a pending notification. Not possible once it was handed to a provider."""
    try:
        notification = service.cancel(notification_id)
    except NotFound as e:
        raise _not_found(e) from e
    except InvalidStateTransition as e:
        return CancelResponse(
            cancelled=False,
            status=e.current or NotificationStatus.PENDING,
            reason=e.reason or f"notification is {e.current.value if e.current else 'unknown'}",
        )
    return CancelResponse(cancelled=True, status=notification.status)


@router.post("/{notification_id}/read", response_model=Notification)
@limiter.limit("240/minute")
def mark_notification_read(
    request: Request,  # pylint: disable=unused-argument
    notification_id: str,
    receipt: ReadReceipt,
    service: NotificationServiceDep,
):
    """Record that the user read an in-app notification."""
    try:
        return service.mark_as_read(notification_id, receipt.user_id)
    except NotFound as e:
        raise _not_found(e) from e
