from contextlib import asynccontextmanager
import threading
from typing import AsyncIterator, Optional, TYPE_CHECKING

from fastapi import FastAPI
from structlog.stdlib import BoundLogger

from infrastructure.logging.setup import configure_logging
from infrastructure.services import get_settings
from jobs import scheduled_tasks
from modules.notifications.channels import build_senders
from modules.notifications.queue import DispatchPool
from modules.notifications.reconciliation import StatusReconciler
from modules.notifications.service import NotificationService
from modules.notifications.store import create_notification_store

if TYPE_CHECKING:
    from infrastructure.configuration import Settings


def _get_logger(settings: "Settings") -> BoundLogger:
    return configure_logging(
        log_level=settings.LOG_LEVEL, is_production=settings.is_production
    )


def _list_configs(settings: "Settings", logger: BoundLogger) -> None:
    config_settings: dict[str, list[object]] = {"settings": []}

    for key, value in settings.model_dump().items():
        if isinstance(value, dict):
            config_settings[key] = list(value.keys())
        else:
            config_settings["settings"].append({key: value})

    logger.info("configuration_initialized", base_settings=config_settings["settings"])
    for key, value in config_settings.items():
        if key != "settings":
            logger.info("configuration_loaded", config_setting=key, keys=value)


def _build_service(app: FastAPI, settings: "Settings", logger: BoundLogger) -> DispatchPool:
    store = create_notification_store()
    senders = build_senders(settings)
    pool = DispatchPool.from_settings(store, senders, settings.delivery)
    reconciler = StatusReconciler(store)

    app.state.store = store
    app.state.pool = pool
    app.state.reconciler = reconciler
    app.state.notification_service = NotificationService(
        store=store,
        pool=pool,
        reconciler=reconciler,
        senders=senders,
    )
    logger.info(
        "notification_service_initialized",
        store_backend=settings.store.backend,
        channels=[channel.value for channel in senders],
    )
    return pool


def _start_dispatch(pool: DispatchPool, settings: "Settings", logger: BoundLogger) -> bool:
    if not settings.delivery.enabled:
        logger.info("dispatch_skipped", reason="delivery_disabled")
        return False

    recovered = pool.recover()
    pool.start()
    logger.info("dispatch_started", recovered=recovered)
    return True


def _start_scheduled_tasks(
    service: NotificationService,
    settings: "Settings",
    logger: BoundLogger,
) -> Optional[threading.Event]:
    if settings.PREFIX != "":
        logger.info("scheduled_tasks_skipped", reason="prefix_not_empty")
        return None

    scheduled_tasks.init(service, retention_days=settings.store.retention_days)
    stop_event = scheduled_tasks.run_continuously()
    logger.info("scheduled_tasks_started")
    return stop_event


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()
    logger = _get_logger(settings)

    app.state.settings = settings
    app.state.logger = logger

    logger.info("application_startup")
    _list_configs(settings, logger)

    pool = _build_service(app, settings, logger)
    dispatching = _start_dispatch(pool, settings, logger)
    scheduled_stop_event = _start_scheduled_tasks(
        app.state.notification_service, settings, logger
    )
    app.state.scheduled_stop_event = scheduled_stop_event

    yield

    logger.info("application_shutdown")

    if scheduled_stop_event is not None:
        scheduled_stop_event.set()
        scheduled_tasks.clear()

    if dispatching:
        pool.stop()
