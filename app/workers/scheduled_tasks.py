"""
Scheduled Tasks: background task definitions for the UnifiedScheduler.

Tasks by namespace:
- device.*: sensor node liveness
- irrigation.*: automatic watering decisions

Usage:
    from app.workers.scheduled_tasks import configure_scheduler

    configure_scheduler(container.scheduler, container, start=True)
"""

from __future__ import annotations

import logging
from functools import wraps
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from app.services.container import ServiceContainer
    from app.workers.unified_scheduler import UnifiedScheduler

logger = logging.getLogger(__name__)

LIVENESS_TASK = "device.liveness_check"
DECISION_TASK = "irrigation.watering_decision"


# ==================== Device Namespace Tasks ====================


def device_liveness_check_task(container: "ServiceContainer") -> dict[str, Any]:
    """Flip the device offline once its heartbeat is older than the timeout."""
    went_offline = container.liveness_monitor.check()
    return {
        "went_offline": went_offline,
        "is_online": container.status_register.snapshot().is_online,
    }


# ==================== Irrigation Namespace Tasks ====================


def irrigation_watering_decision_task(container: "ServiceContainer") -> dict[str, Any]:
    """
    Evaluate the automatic watering policy once.

    Store failures are logged by the decision service and reported here as a
    skipped tick; they never reach the scheduler loop.
    """
    decision = container.decision_service.run_scheduled_tick()
    if decision is None:
        return {"evaluated": False}
    return {"evaluated": True, **decision.to_dict()}


# ==================== Task Registration ====================


def register_all_tasks(
    scheduler: "UnifiedScheduler",
    container: "ServiceContainer",
) -> None:
    """
    Register all tasks with the scheduler.

    Args:
        scheduler: UnifiedScheduler instance
        container: ServiceContainer with all services
    """

    def bind_noargs(task_fn):
        @wraps(task_fn)
        def bound_task():
            try:
                return task_fn(container)
            except Exception as e:
                logger.exception("Scheduled task %s raised: %s", task_fn.__name__, e)
                # Re-raise to let scheduler record failure in history as well
                raise

        return bound_task

    scheduler.register_task(LIVENESS_TASK, bind_noargs(device_liveness_check_task))
    scheduler.register_task(DECISION_TASK, bind_noargs(irrigation_watering_decision_task))
    logger.info("Registered scheduled tasks: %s, %s", LIVENESS_TASK, DECISION_TASK)


def schedule_default_jobs(scheduler: "UnifiedScheduler", container: "ServiceContainer") -> None:
    """Schedule the recurring jobs using the intervals from the app config."""
    config = container.config

    scheduler.schedule_interval(
        LIVENESS_TASK,
        interval_seconds=config.liveness_check_interval_seconds,
        job_id="device_liveness_check",
    )

    # Fixed cadence, independent of the displayed scheduled_interval setting
    scheduler.schedule_interval(
        DECISION_TASK,
        interval_seconds=config.decision_interval_seconds,
        job_id="irrigation_watering_decision",
    )

    for job in scheduler.get_jobs():
        logger.debug("  - %s: every %ss (%s)", job.job_id, job.interval_seconds, job.namespace)


def configure_scheduler(
    scheduler: "UnifiedScheduler",
    container: "ServiceContainer",
    *,
    reset_jobs: bool = True,
    start: bool = True,
) -> None:
    """Register tasks, apply default schedules, and optionally start the scheduler."""
    if reset_jobs:
        scheduler.clear_jobs()

    register_all_tasks(scheduler, container)
    schedule_default_jobs(scheduler, container)

    if start:
        scheduler.start()
