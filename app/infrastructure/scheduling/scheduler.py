"""Process-wide periodic scheduler.

Owns the periodic sweeps of the delivery engine on a private
``schedule.Scheduler`` driven by one background thread. Every job is wrapped
so an exception is logged and the next tick runs normally.

Usage:
    scheduler = PeriodicScheduler(tick_seconds=1.0)
    scheduler.register("retry_sweep", 60, engine.retry.run_retry_sweep)
    scheduler.start()
    ...
    scheduler.stop()

Jobs can also be triggered directly, which is how tests exercise them:

    scheduler.run_job("retry_sweep")
"""

import threading
from typing import Any, Callable, Dict, List, Optional

import schedule
import structlog

logger = structlog.get_logger()


def safe_run(name: str, job: Callable[[], Any]) -> Callable[[], Any]:
    """Wrap ``job`` so exceptions are logged instead of propagated."""

    def wrapper():
        try:
            return job()
        except Exception as e:  # pylint: disable=broad-except
            logger.error(
                "scheduled_job_failed",
                job=name,
                error=str(e),
                exc_info=True,
            )
            return None

    return wrapper


class PeriodicScheduler:
    """Explicit start/stop lifecycle around a set of interval jobs.

    Missed runs are not replayed: if a job is late it runs once at the next
    tick, then resumes its normal interval.
    """

    def __init__(self, tick_seconds: float = 1.0):
        self._scheduler = schedule.Scheduler()
        self._jobs: Dict[str, Callable[[], Any]] = {}
        self._tick_seconds = tick_seconds
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def job_names(self) -> List[str]:
        return list(self._jobs)

    def register(
        self, name: str, interval_seconds: float, job: Callable[[], Any]
    ) -> None:
        """Register ``job`` to run every ``interval_seconds``.

        Raises:
            ValueError: If a job named ``name`` already exists or the interval
                is not positive.
        """
        if interval_seconds <= 0:
            raise ValueError(f"interval_seconds must be positive for job {name}")
        with self._lock:
            if name in self._jobs:
                raise ValueError(f"Job already registered: {name}")
            wrapped = safe_run(name, job)
            self._jobs[name] = wrapped
            self._scheduler.every(interval_seconds).seconds.do(wrapped).tag(name)
        logger.info("scheduled_job_registered", job=name, interval_seconds=interval_seconds)

    def run_pending(self) -> None:
        """Run every job whose interval has elapsed."""
        self._scheduler.run_pending()

    def run_job(self, name: str) -> Any:
        """Run the job registered as ``name`` immediately.

        Raises:
            KeyError: If no such job is registered.
        """
        with self._lock:
            job = self._jobs[name]
        return job()

    def start(self) -> None:
        """Start the background tick thread. No-op if already running.

        Raises:
            RuntimeError: If a previous ``stop`` has not finished yet.
        """
        if self.is_running:
            if self._stop_event.is_set():
                raise RuntimeError("Scheduler is still stopping; the current job has not returned")
            return
        self._stop_event.clear()

        def loop():
            while not self._stop_event.is_set():
                self.run_pending()
                self._stop_event.wait(self._tick_seconds)

        self._thread = threading.Thread(target=loop, name="periodic-scheduler", daemon=True)
        self._thread.start()
        logger.info("scheduler_started", jobs=self.job_names, tick_seconds=self._tick_seconds)

    def stop(self, wait: bool = True, timeout: Optional[float] = None) -> None:
        """Signal the tick thread to stop, optionally joining it.

        The thread is only forgotten once it has exited, so ``is_running``
        stays True while a job started before the stop is still running.
        """
        self._stop_event.set()
        thread = self._thread
        if thread is None:
            return
        if wait:
            thread.join(timeout)
        if thread.is_alive():
            logger.warning("scheduler_stop_pending", waited=wait, timeout=timeout)
            return
        self._thread = None
        logger.info("scheduler_stopped")

    def clear(self) -> None:
        """Remove every registered job."""
        with self._lock:
            self._scheduler.clear()
            self._jobs.clear()
