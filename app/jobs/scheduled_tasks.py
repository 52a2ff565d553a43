import threading
import time

import schedule

from infrastructure.logging import get_module_logger
from modules.notifications.service import NotificationService

logger = get_module_logger()

JOB_TAG = "notifications"


def safe_run(job):
    def wrapper(*args, **kwargs):
        try:
            job(*args, **kwargs)
        except Exception as e:  # pylint: disable=broad-except
            logger.error("scheduled_job_failed", job=job.__name__, error=str(e))

    wrapper.__name__ = job.__name__
    return wrapper


def init(service: NotificationService, retention_days: int = 90):
    logger.info("scheduled_tasks_initialized", retention_days=retention_days)

    schedule.every().day.at("03:00").do(
        safe_run(retention_cleanup), service=service, retention_days=retention_days
    ).tag(JOB_TAG)
    schedule.every(5).minutes.do(safe_run(scheduler_heartbeat)).tag(JOB_TAG)
    schedule.every(5).minutes.do(safe_run(channel_healthchecks), service=service).tag(
        JOB_TAG
    )


def clear():
    schedule.clear(JOB_TAG)


def scheduler_heartbeat():
    logger.info("scheduler_heartbeat", time=time.ctime())


def retention_cleanup(service: NotificationService, retention_days: int):
    deleted = service.cleanup(retention_days)
    logger.info("retention_cleanup_completed", deleted=deleted, retention_days=retention_days)


def channel_healthchecks(service: NotificationService):
    report = service.health()
    for name, result in report["channels"].items():
        if result["status"] != "success":
            logger.error("channel_unhealthy", channel=name, message=result["message"])
        else:
            logger.info("channel_healthy", channel=name)
    if not report["healthy"]:
        logger.error("store_unhealthy", message=report["store"]["message"])


def run_continuously(interval=1) -> threading.Event:
    """Continuously run, while executing pending jobs at each
    elapsed time interval.
    @return cease_continuous_run: threading. Event which can
    be set to cease continuous run. Missed jobs are not replayed:
    a job due every minute with a one hour interval runs once.
    """
    cease_continuous_run = threading.Event()

    class ScheduleThread(threading.Thread):
        @classmethod
        def run(cls):
            while not cease_continuous_run.is_set():
                schedule.run_pending()
                cease_continuous_run.wait(interval)

    continuous_thread = ScheduleThread(name="scheduled-tasks", daemon=True)
    continuous_thread.start()
    return cease_continuous_run

