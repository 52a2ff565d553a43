from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.router import api_router
from api.dependencies.rate_limits import setup_rate_limiter, get_limiter
from infrastructure.logging import bind_request_context, get_module_logger
from infrastructure.services.providers import get_settings
from modules.notifications.errors import StoreUnavailableError
from server.lifespan import lifespan

logger = get_module_logger()
settings = get_settings()


handler = FastAPI(title="Notification Service", lifespan=lifespan)
setup_rate_limiter(handler)
limiter = get_limiter()


allow_origins = ["*"] if settings.is_production else settings.server.cors_origins
handler.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@handler.middleware("http")
async def correlation_id_middleware(request: Request, call_next):
    with bind_request_context(
        correlation_id=request.headers.get("X-Correlation-ID"),
        request_path=request.url.path,
        request_method=request.method,
    ) as correlation_id:
        response = await call_next(request)
        response.headers["X-Correlation-ID"] = correlation_id
        return response


@handler.exception_handler(StoreUnavailableError)
async def store_unavailable_handler(_request: Request, exc: StoreUnavailableError):
    logger.error("request_failed_store_unavailable", error=str(exc))
    return JSONResponse(
        status_code=503,
        content={"message": "Notification store unavailable"},
    )


handler.include_router(api_router)
