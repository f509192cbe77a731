"""Retry engine.

Owns the retry side of the delivery lifecycle:
- backoff and retry decisions (delegated to RetryConfig)
- the periodic retry sweep over RETRY notifications whose backoff elapsed
- operator-triggered manual retry and reset
- reclaim of PROCESSING claims abandoned by a crashed or hung worker
"""

from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional

from infrastructure.logging import bind_delivery_context, get_module_logger
from infrastructure.operations import OperationResult
from infrastructure.resilience.retry import RetryConfig
from modules.notifications.domain import (
    InvalidTransitionError,
    Notification,
    NotificationStatus,
    utc_now,
)
from modules.notifications.orchestrator import DeliveryOrchestrator
from modules.notifications.reports import SweepReport
from modules.notifications.repository import NotificationRepository
from modules.notifications.workers import WorkerPool

logger = get_module_logger()

PROCESSING_EXPIRED_REASON = "processing claim expired"


class RetryEngine:
    """Retry sweep, manual retry and stale-claim recovery.

    Attributes:
        repository: Notification store
        orchestrator: Performs the actual re-dispatch
        workers: Pool used to re-dispatch notifications concurrently
        config: Retry policy
        clock: Returns the current UTC time
    """

    def __init__(
        self,
        repository: NotificationRepository,
        orchestrator: DeliveryOrchestrator,
        workers: WorkerPool,
        config: Optional[RetryConfig] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.repository = repository
        self.orchestrator = orchestrator
        self.workers = workers
        self.config = config or RetryConfig()
        self.clock = clock

    def compute_backoff(self, attempt_number: int) -> timedelta:
        return self.config.compute_backoff(attempt_number)

    def should_retry(self, notification: Notification) -> bool:
        return self.config.should_retry(
            notification.current_attempt, notification.max_attempts
        )

    def run_retry_sweep(self) -> SweepReport:
        """Re-dispatch every RETRY notification whose backoff has elapsed.

        Each notification is dispatched independently; a failure of one never
        affects the others.

        Returns:
            SweepReport with per-outcome counts
        """
        report = SweepReport(sweep="retry")
        with bind_delivery_context(sweep="retry"):
            now = self.clock()
            due = [n for n in self.repository.find_due_retries(now) if self.should_retry(n)]
            report.selected = len(due)
            if not due:
                logger.debug("retry_sweep_no_records")
                return report

            logger.info("retry_sweep_start", record_count=len(due))
            results = self.workers.run_isolated(
                [n.id for n in due], self.orchestrator.dispatch
            )
            report.record_items(results)
            logger.info("retry_sweep_complete", **report.to_dict())
        return report

    def manual_retry(self, notification_id: str) -> OperationResult:
        """Reset the attempt budget and dispatch immediately.

        Accepted from PENDING, RETRY and FAILED, ignoring any pending backoff.

        Returns:
            OperationResult with the DispatchResult in ``data`` on success,
            NOT_FOUND for unknown ids, STATE_CONFLICT for other statuses
        """
        notification = self.repository.find_by_id(notification_id)
        if notification is None:
            return OperationResult.not_found(f"Notification not found: {notification_id}")

        prior_status = notification.status
        try:
            notification.prepare_manual_retry(self.clock())
        except InvalidTransitionError as e:
            logger.info(
                "manual_retry_rejected",
                notification_id=notification_id,
                status=prior_status.value,
            )
            return OperationResult.state_conflict(
                str(e), data=self.repository.find_by_id(notification_id)
            )

        if not self.repository.compare_and_set(notification, prior_status):
            return OperationResult.state_conflict(
                "Notification changed concurrently",
                data=self.repository.find_by_id(notification_id),
            )

        logger.info(
            "manual_retry_requested",
            notification_id=notification_id,
            prior_status=prior_status.value,
        )
        result = self.orchestrator.dispatch(notification_id)
        return OperationResult.success(
            data=result, message=f"Manual retry dispatched: {result.outcome.value}"
        )

    def reset(self, notification_id: str) -> OperationResult:
        """Return a FAILED, CANCELLED or RETRY notification to PENDING.

        Clears attempts and failure state; the next batch pass picks it up.
        """
        notification = self.repository.find_by_id(notification_id)
        if notification is None:
            return OperationResult.not_found(f"Notification not found: {notification_id}")

        prior_status = notification.status
        try:
            notification.reset_for_retry(self.clock())
        except InvalidTransitionError as e:
            logger.info(
                "reset_rejected",
                notification_id=notification_id,
                status=prior_status.value,
            )
            return OperationResult.state_conflict(
                str(e), data=self.repository.find_by_id(notification_id)
            )

        if not self.repository.compare_and_set(notification, prior_status):
            return OperationResult.state_conflict(
                "Notification changed concurrently",
                data=self.repository.find_by_id(notification_id),
            )

        logger.info(
            "notification_reset",
            notification_id=notification_id,
            prior_status=prior_status.value,
        )
        return OperationResult.success(data=notification, message="Notification reset to PENDING")

    def reclaim_stale_processing(self) -> SweepReport:
        """Treat PROCESSING claims older than the processing timeout as failed.

        Each stale claim is fed through ``record_failure`` so it either goes
        back to RETRY with backoff or, with no attempts left, to FAILED.
        """
        report = SweepReport(sweep="reclaim")
        with bind_delivery_context(sweep="reclaim"):
            now = self.clock()
            cutoff = now - timedelta(seconds=self.config.processing_timeout_seconds)
            stale = self.repository.find_stale_processing(cutoff)
            report.selected = len(stale)

            for notification in stale:
                try:
                    notification.record_failure(PROCESSING_EXPIRED_REASON, self.config, now)
                    if not self.repository.compare_and_set(
                        notification, NotificationStatus.PROCESSING
                    ):
                        report.skipped += 1
                        continue
                except Exception as e:  # pylint: disable=broad-except
                    report.errors += 1
                    logger.error(
                        "reclaim_processing_failed",
                        notification_id=notification.id,
                        error=str(e),
                        exc_info=True,
                    )
                    continue

                if notification.status == NotificationStatus.FAILED:
                    report.failed += 1
                else:
                    report.retried += 1
                logger.warning(
                    "stale_processing_reclaimed",
                    notification_id=notification.id,
                    status=notification.status.value,
                    attempt=notification.current_attempt,
                )

            if stale:
                logger.info("reclaim_sweep_complete", **report.to_dict())
        return report

    def get_statistics(self) -> Dict[str, Any]:
        return {
            "retry_count": self.repository.count_by_status(NotificationStatus.RETRY),
            "failed_count": self.repository.count_by_status(NotificationStatus.FAILED),
            "processing_count": self.repository.count_by_status(NotificationStatus.PROCESSING),
            "max_attempts": self.config.max_attempts,
            "initial_interval_ms": self.config.initial_interval_ms,
            "backoff_multiplier": self.config.backoff_multiplier,
            "max_interval_ms": self.config.max_interval_ms,
        }
