"""Priority dispatch batcher.

Selects PENDING notifications plus RETRY notifications whose backoff has
elapsed, ordered by priority then creation time, and drives them through the
orchestrator one tier at a time. A tier is drained completely, in fixed-size
batches, before the next lower tier starts. Items inside a batch run
concurrently on the worker pool.
"""

from datetime import datetime
from itertools import groupby
from typing import Any, Callable, Dict, List

from infrastructure.logging import bind_delivery_context, get_module_logger
from modules.notifications.domain import (
    Notification,
    NotificationPriority,
    NotificationStatus,
    utc_now,
)
from modules.notifications.orchestrator import DeliveryOrchestrator
from modules.notifications.reports import BatchReport
from modules.notifications.repository import NotificationRepository
from modules.notifications.workers import WorkerPool

logger = get_module_logger()


def dispatch_order(notification: Notification):
    """Sort key: priority rank, then FIFO within a tier."""
    return (notification.priority.rank, notification.created_at)


def chunked(items: List[Notification], size: int):
    for start in range(0, len(items), size):
        yield items[start : start + size]


class PriorityDispatchBatcher:
    def __init__(
        self,
        repository: NotificationRepository,
        orchestrator: DeliveryOrchestrator,
        workers: WorkerPool,
        batch_size: int = 100,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self.repository = repository
        self.orchestrator = orchestrator
        self.workers = workers
        self.batch_size = batch_size
        self.clock = clock

    def select_dispatchable(self) -> List[Notification]:
        """Dispatchable notifications in dispatch order."""
        return sorted(self.repository.find_dispatchable(self.clock()), key=dispatch_order)

    def run_batch_pass(self) -> BatchReport:
        """Run one pass over the dispatchable set, HIGH tier first.

        Ordering holds within this pass only; a HIGH notification created
        while a LOW batch is in flight waits for the next pass.
        """
        report = BatchReport()
        with bind_delivery_context(sweep="batch_dispatch"):
            candidates = self.select_dispatchable()
            if not candidates:
                logger.debug("batch_pass_no_records")
                return report

            logger.info("batch_pass_start", record_count=len(candidates))
            for priority, tier in groupby(candidates, key=lambda n: n.priority):
                stats = report.tiers[priority]
                for batch in chunked(list(tier), self.batch_size):
                    results = self.workers.run_isolated(
                        [n.id for n in batch], self.orchestrator.dispatch
                    )
                    for item in results:
                        stats.record(item)
                    report.batches += 1
                logger.info(
                    "batch_tier_complete",
                    priority=priority.value,
                    attempted=stats.attempted,
                    succeeded=stats.succeeded,
                    failed=stats.failed,
                    skipped=stats.skipped,
                )

            logger.info("batch_pass_complete", **report.to_dict())
        return report

    def get_statistics(self) -> Dict[str, Any]:
        """Per-status counts and the pending backlog per priority."""
        by_status = {
            status.value: self.repository.count_by_status(status)
            for status in NotificationStatus
        }
        pending = self.repository.find_by_status(NotificationStatus.PENDING)
        pending_by_priority = {
            priority.value: sum(1 for n in pending if n.priority == priority)
            for priority in NotificationPriority
        }
        return {
            "by_status": by_status,
            "pending_by_priority": pending_by_priority,
            "batch_size": self.batch_size,
        }
