"""Periodic job scheduling."""

from infrastructure.scheduling.scheduler import PeriodicScheduler, safe_run

__all__ = ["PeriodicScheduler", "safe_run"]
