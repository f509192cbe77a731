"""Sweep and batch reports returned by the periodic engines."""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable

from modules.notifications.domain import NotificationPriority
from modules.notifications.orchestrator import DispatchOutcome, DispatchResult
from modules.notifications.workers import ItemResult


@dataclass
class SweepReport:
    """Counts for one sweep.

    ``errors`` counts items whose processing raised; those items were
    logged and skipped without affecting the rest of the sweep.
    """

    sweep: str
    selected: int = 0
    sent: int = 0
    retried: int = 0
    failed: int = 0
    skipped: int = 0
    created: int = 0
    errors: int = 0

    def record(self, result: DispatchResult) -> None:
        if result.outcome == DispatchOutcome.SENT:
            self.sent += 1
        elif result.outcome == DispatchOutcome.RETRY:
            self.retried += 1
        elif result.outcome == DispatchOutcome.FAILED:
            self.failed += 1
        else:
            self.skipped += 1

    def record_items(self, items: Iterable[ItemResult]) -> None:
        for item in items:
            if not item.ok:
                self.errors += 1
            elif isinstance(item.result, DispatchResult):
                self.record(item.result)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sweep": self.sweep,
            "selected": self.selected,
            "sent": self.sent,
            "retried": self.retried,
            "failed": self.failed,
            "skipped": self.skipped,
            "created": self.created,
            "errors": self.errors,
        }


@dataclass
class TierStats:
    """Per-priority counts for one batch pass."""

    attempted: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0

    def record(self, item: ItemResult) -> None:
        self.attempted += 1
        if not item.ok:
            self.failed += 1
            return
        result: DispatchResult = item.result
        if result.outcome == DispatchOutcome.SENT:
            self.succeeded += 1
        elif result.outcome in (DispatchOutcome.RETRY, DispatchOutcome.FAILED):
            self.failed += 1
        else:
            self.skipped += 1


@dataclass
class BatchReport:
    """Result of one priority batch pass, tiers in dispatch order."""

    tiers: Dict[NotificationPriority, TierStats] = field(
        default_factory=lambda: {p: TierStats() for p in NotificationPriority}
    )
    batches: int = 0

    @property
    def attempted(self) -> int:
        return sum(t.attempted for t in self.tiers.values())

    @property
    def succeeded(self) -> int:
        return sum(t.succeeded for t in self.tiers.values())

    @property
    def failed(self) -> int:
        return sum(t.failed for t in self.tiers.values())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "batches": self.batches,
            "attempted": self.attempted,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "tiers": {
                priority.value: vars(stats).copy() for priority, stats in self.tiers.items()
            },
        }
