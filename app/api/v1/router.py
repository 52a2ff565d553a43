from fastapi import APIRouter
from api.v1.routes.notifications import router as notifications_router
from api.v1.routes.webhooks import router as webhooks_router

router = APIRouter()
router.include_router(notifications_router)
router.include_router(webhooks_router)
