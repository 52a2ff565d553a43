"""FastAPI dependencies for the notification service.

The service and reconciler are built once in the application lifespan and
stored on ``app.state``.
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Request

from modules.notifications.reconciliation import StatusReconciler
from modules.notifications.service import NotificationService


def get_notification_service(request: Request) -> NotificationService:
    service = getattr(request.app.state, "notification_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Notification service not initialized")
    return service


def get_reconciler(request: Request) -> StatusReconciler:
    reconciler = getattr(request.app.state, "reconciler", None)
    if reconciler is None:
        service = get_notification_service(request)
        reconciler = service.reconciler
    return reconciler


NotificationServiceDep = Annotated[NotificationService, Depends(get_notification_service)]
ReconcilerDep = Annotated[StatusReconciler, Depends(get_reconciler)]
