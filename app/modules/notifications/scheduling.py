"""Schedule and recurrence engine.

Two independent sweeps:
- Promotion: SCHEDULED occurrences whose due time passed are checked for
  recipient eligibility and dispatched, or failed if the recipient can no
  longer receive.
- Materialization: due RECURRING definitions spawn one SCHEDULED occurrence
  each and advance to their next due time (or complete).

Plus the synchronous operator operations ``reschedule`` and ``cancel``.
"""

from datetime import datetime
from typing import Callable

from infrastructure.logging import bind_delivery_context, get_module_logger
from infrastructure.operations import OperationResult
from modules.notifications.domain import (
    InvalidTransitionError,
    Notification,
    NotificationStatus,
    ValidationError,
    utc_now,
)
from modules.notifications.orchestrator import DeliveryOrchestrator, DispatchResult
from modules.notifications.recipients import RecipientDirectory
from modules.notifications.reports import SweepReport
from modules.notifications.repository import NotificationRepository
from modules.notifications.validation import validate_reschedule
from modules.notifications.workers import WorkerPool

logger = get_module_logger()

INELIGIBLE_AT_SCHEDULED_TIME = "recipient ineligible at scheduled time"

RESCHEDULABLE = (NotificationStatus.PENDING, NotificationStatus.SCHEDULED)


class ScheduleEngine:
    """Promotion and recurrence sweeps, reschedule and cancel."""

    def __init__(
        self,
        repository: NotificationRepository,
        orchestrator: DeliveryOrchestrator,
        directory: RecipientDirectory,
        workers: WorkerPool,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.repository = repository
        self.orchestrator = orchestrator
        self.directory = directory
        self.workers = workers
        self.clock = clock

    def promote_due_scheduled(self) -> SweepReport:
        """Dispatch every SCHEDULED occurrence whose due time has passed."""
        report = SweepReport(sweep="scheduled")
        with bind_delivery_context(sweep="scheduled"):
            due = self.repository.find_due_scheduled(self.clock())
            report.selected = len(due)
            if not due:
                logger.debug("scheduled_sweep_no_records")
                return report

            logger.info("scheduled_sweep_start", record_count=len(due))
            results = self.workers.run_isolated(due, self._promote)
            report.record_items(results)
            logger.info("scheduled_sweep_complete", **report.to_dict())
        return report

    def _promote(self, notification: Notification) -> DispatchResult:
        recipient = self.directory.get(notification.recipient_id)
        if recipient is None or not self.directory.is_eligible(recipient, notification.channel):
            with bind_delivery_context(notification_id=notification.id):
                return self.orchestrator.fail(notification, INELIGIBLE_AT_SCHEDULED_TIME)
        return self.orchestrator.dispatch(notification.id)

    def materialize_recurrences(self) -> SweepReport:
        """Spawn the next occurrence of every due recurrence definition.

        The definition is written first with compare-and-set; the occurrence
        is only saved once the definition has been advanced, so a definition
        claimed by a concurrent sweep never yields a duplicate occurrence.
        """
        report = SweepReport(sweep="recurrence")
        with bind_delivery_context(sweep="recurrence"):
            now = self.clock()
            definitions = self.repository.find_recurring_due(now)
            report.selected = len(definitions)

            for definition in definitions:
                try:
                    occurrence = definition.spawn_occurrence(now)
                    definition.advance_recurrence(now)
                    if not self.repository.compare_and_set(
                        definition, NotificationStatus.SCHEDULED
                    ):
                        report.skipped += 1
                        continue
                    self.repository.save(occurrence)
                except Exception as e:  # pylint: disable=broad-except
                    report.errors += 1
                    logger.error(
                        "recurrence_materialization_failed",
                        definition_id=definition.id,
                        error=str(e),
                        exc_info=True,
                    )
                    continue

                report.created += 1
                logger.info(
                    "recurrence_occurrence_created",
                    definition_id=definition.id,
                    occurrence_id=occurrence.id,
                    due_time=occurrence.due_time.isoformat(),
                    occurrence_count=definition.occurrence_count,
                    completed=definition.recurrence_completed_at is not None,
                )

            if definitions:
                logger.info("recurrence_sweep_complete", **report.to_dict())
        return report

    def reschedule(self, notification_id: str, due_time: datetime) -> OperationResult:
        """Move a PENDING or SCHEDULED notification to a new future due time.

        Returns:
            SUCCESS with the updated notification, NOT_FOUND, STATE_CONFLICT
            (record unchanged) or VALIDATION_ERROR
        """
        notification = self.repository.find_by_id(notification_id)
        if notification is None:
            return OperationResult.not_found(f"Notification not found: {notification_id}")

        prior_status = notification.status
        if prior_status not in RESCHEDULABLE:
            return OperationResult.state_conflict(
                f"Cannot reschedule a {prior_status.value} notification",
                data=notification,
            )

        now = self.clock()
        try:
            due_time = validate_reschedule(due_time, now)
            notification.reschedule(due_time, now)
        except ValidationError as e:
            return OperationResult.validation_error(str(e))
        except InvalidTransitionError as e:
            return OperationResult.state_conflict(str(e))

        if not self.repository.compare_and_set(notification, prior_status):
            return OperationResult.state_conflict(
                "Notification changed concurrently",
                data=self.repository.find_by_id(notification_id),
            )

        logger.info(
            "notification_rescheduled",
            notification_id=notification_id,
            due_time=due_time.isoformat(),
        )
        return OperationResult.success(data=notification, message="Notification rescheduled")

    def cancel(self, notification_id: str) -> OperationResult:
        """Cancel a SCHEDULED notification (or recurrence definition).

        A promotion sweep that already selected the notification may still
        dispatch it once; cancellation then loses the compare-and-set and
        reports a conflict.
        """
        notification = self.repository.find_by_id(notification_id)
        if notification is None:
            return OperationResult.not_found(f"Notification not found: {notification_id}")

        prior_status = notification.status
        try:
            notification.mark_cancelled(self.clock())
        except InvalidTransitionError as e:
            return OperationResult.state_conflict(
                str(e), data=self.repository.find_by_id(notification_id)
            )

        if not self.repository.compare_and_set(notification, prior_status):
            return OperationResult.state_conflict(
                "Notification changed concurrently",
                data=self.repository.find_by_id(notification_id),
            )

        logger.info("notification_cancelled", notification_id=notification_id)
        return OperationResult.success(data=notification, message="Notification cancelled")
