"""Bounded worker pool for per-notification work inside a sweep."""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from threading import Lock
from typing import Any, Callable, Generic, List, Optional, Sequence, TypeVar

from infrastructure.logging import clear_delivery_context, get_module_logger

logger = get_module_logger()

T = TypeVar("T")


@dataclass
class ItemResult(Generic[T]):
    """Outcome of running the worker function on one item.

    Exactly one of ``result`` and ``error`` is meaningful.
    """

    item: T
    result: Any = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class WorkerPool:
    """Runs a function over items concurrently, isolating failures per item.

    The underlying ThreadPoolExecutor is created lazily and reused across
    sweeps until ``shutdown`` is called.
    """

    def __init__(self, max_workers: int = 8):
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self._max_workers = max_workers
        self._executor: Optional[ThreadPoolExecutor] = None
        self._lock = Lock()
        self._shutdown = False

    def _get_executor(self) -> ThreadPoolExecutor:
        with self._lock:
            if self._shutdown:
                raise RuntimeError("WorkerPool has been shut down")
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self._max_workers,
                    thread_name_prefix="notification-worker",
                )
                logger.debug("created_worker_pool", max_workers=self._max_workers)
            return self._executor

    def run_isolated(
        self, items: Sequence[T], fn: Callable[[T], Any]
    ) -> List[ItemResult[T]]:
        """Apply ``fn`` to every item and wait for all of them.

        An exception raised for one item is captured in its ItemResult and
        logged; it never affects the other items.

        Returns:
            One ItemResult per item, in input order
        """
        if not items:
            return []

        def guarded(item: T) -> ItemResult[T]:
            try:
                return ItemResult(item=item, result=fn(item))
            except Exception as e:  # pylint: disable=broad-except
                logger.error("worker_item_failed", error=str(e), exc_info=True)
                return ItemResult(item=item, error=e)
            finally:
                clear_delivery_context()

        executor = self._get_executor()
        futures = [executor.submit(guarded, item) for item in items]
        return [future.result() for future in futures]

    def shutdown(self, wait: bool = True) -> None:
        with self._lock:
            self._shutdown = True
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=wait)
            logger.debug("worker_pool_shut_down", wait=wait)
