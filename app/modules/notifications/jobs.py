"""Periodic jobs of the notification engine."""

from typing import TYPE_CHECKING

from infrastructure.configuration import SchedulerSettings
from infrastructure.logging import get_module_logger
from infrastructure.scheduling import PeriodicScheduler

if TYPE_CHECKING:
    from modules.notifications.engine import NotificationEngine

logger = get_module_logger()

SCHEDULED_PROMOTION_JOB = "scheduled_promotion"
RECURRENCE_JOB = "recurrence_materialization"
RETRY_SWEEP_JOB = "retry_sweep"
BATCH_DISPATCH_JOB = "batch_dispatch"
RECLAIM_JOB = "stale_processing_reclaim"


def register_jobs(
    scheduler: PeriodicScheduler,
    engine: "NotificationEngine",
    settings: SchedulerSettings,
) -> None:
    """Register every engine sweep on ``scheduler`` at its configured interval."""
    scheduler.register(
        SCHEDULED_PROMOTION_JOB,
        settings.scheduled_sweep_interval_seconds,
        engine.scheduling.promote_due_scheduled,
    )
    scheduler.register(
        RECURRENCE_JOB,
        settings.recurrence_sweep_interval_seconds,
        engine.scheduling.materialize_recurrences,
    )
    scheduler.register(
        RETRY_SWEEP_JOB,
        settings.retry_sweep_interval_seconds,
        engine.retry.run_retry_sweep,
    )
    scheduler.register(
        BATCH_DISPATCH_JOB,
        settings.batch_dispatch_interval_seconds,
        engine.batcher.run_batch_pass,
    )
    scheduler.register(
        RECLAIM_JOB,
        settings.reclaim_sweep_interval_seconds,
        engine.retry.reclaim_stale_processing,
    )
    logger.info("notification_jobs_registered", jobs=scheduler.job_names)
