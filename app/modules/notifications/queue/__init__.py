"""Delivery queue, worker and dispatch pool."""

from modules.notifications.queue.policy import DeliveryPolicy
from modules.notifications.queue.pool import DispatchPool
from modules.notifications.queue.queue import DeliveryJob, DeliveryQueue
from modules.notifications.queue.worker import DeliveryWorker, JobState

__all__ = [
    "DeliveryPolicy",
    "DeliveryJob",
    "DeliveryQueue",
    "DeliveryWorker",
    "JobState",
    "DispatchPool",
]
