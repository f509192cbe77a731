"""Periodic scheduler infrastructure settings."""

from pydantic import Field

from infrastructure.configuration.base import InfrastructureSettings


class SchedulerSettings(InfrastructureSettings):
    """Intervals for the periodic delivery sweeps.

    Environment Variables:
        SCHEDULER_ENABLED: Start periodic sweeps with the engine (default: True)
        SCHEDULER_TICK_SECONDS: How often pending jobs are checked (default: 1)
        SCHEDULED_SWEEP_INTERVAL_SECONDS: Due-scheduled promotion (default: 60)
        RETRY_SWEEP_INTERVAL_SECONDS: Retry sweep (default: 60)
        RECURRENCE_SWEEP_INTERVAL_SECONDS: Recurrence materialization (default: 60)
        BATCH_DISPATCH_INTERVAL_SECONDS: Priority batch dispatch (default: 30)
        RECLAIM_SWEEP_INTERVAL_SECONDS: Stale PROCESSING reclaim (default: 60)
    """

    enabled: bool = Field(default=True, alias="SCHEDULER_ENABLED")
    tick_seconds: float = Field(default=1.0, alias="SCHEDULER_TICK_SECONDS")
    scheduled_sweep_interval_seconds: int = Field(
        default=60, alias="SCHEDULED_SWEEP_INTERVAL_SECONDS"
    )
    retry_sweep_interval_seconds: int = Field(
        default=60, alias="RETRY_SWEEP_INTERVAL_SECONDS"
    )
    recurrence_sweep_interval_seconds: int = Field(
        default=60, alias="RECURRENCE_SWEEP_INTERVAL_SECONDS"
    )
    batch_dispatch_interval_seconds: int = Field(
        default=30, alias="BATCH_DISPATCH_INTERVAL_SECONDS"
    )
    reclaim_sweep_interval_seconds: int = Field(
        default=60, alias="RECLAIM_SWEEP_INTERVAL_SECONDS"
    )
