"""Notification service: the caller-facing surface of the engine.

Single-item operations return OperationResult so callers branch on the kind
of outcome (validation error, state conflict, not found) instead of catching
exceptions.

Usage:
    result = service.create(
        NotificationRequest(
            body="Hi {{name}}",
            channel=ChannelType.EMAIL,
            recipient_id="user-1",
        )
    )
    if result.is_validation_error:
        ...
"""

from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Union

import pydantic

from infrastructure.logging import get_module_logger
from infrastructure.notifications import ChannelRegistry
from infrastructure.operations import OperationResult
from infrastructure.resilience.retry import RetryConfig
from modules.notifications.dispatch import PriorityDispatchBatcher
from modules.notifications.domain import (
    Notification,
    NotificationStatus,
    ScheduleKind,
    ValidationError,
    utc_now,
)
from modules.notifications.orchestrator import DeliveryOrchestrator, DispatchResult
from modules.notifications.recipients import RecipientDirectory
from modules.notifications.repository import NotificationRepository
from modules.notifications.retry import RetryEngine
from modules.notifications.scheduling import ScheduleEngine
from modules.notifications.schemas import NotificationRequest
from modules.notifications.validation import validate_schedule

logger = get_module_logger()


class NotificationService:
    """Create, inspect and operate on notifications."""

    def __init__(
        self,
        repository: NotificationRepository,
        directory: RecipientDirectory,
        channels: ChannelRegistry,
        orchestrator: DeliveryOrchestrator,
        retry_engine: RetryEngine,
        schedule_engine: ScheduleEngine,
        batcher: PriorityDispatchBatcher,
        config: Optional[RetryConfig] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.repository = repository
        self.directory = directory
        self.channels = channels
        self.orchestrator = orchestrator
        self.retry_engine = retry_engine
        self.schedule_engine = schedule_engine
        self.batcher = batcher
        self.config = config or RetryConfig()
        self.clock = clock

    def create(
        self, request: Union[NotificationRequest, Mapping[str, Any]]
    ) -> OperationResult:
        """Validate ``request`` and persist a new notification.

        IMMEDIATE requests start PENDING; SCHEDULED and RECURRING requests
        start SCHEDULED. Nothing is persisted on a validation error.

        Returns:
            SUCCESS with the Notification in ``data``, or VALIDATION_ERROR
        """
        if not isinstance(request, NotificationRequest):
            try:
                request = NotificationRequest.model_validate(request)
            except pydantic.ValidationError as e:
                return OperationResult.validation_error(
                    "; ".join(err["msg"] for err in e.errors())
                )

        now = self.clock()
        try:
            validate_schedule(request, now)
            self._validate_delivery_target(request)
        except ValidationError as e:
            logger.info(
                "notification_rejected",
                recipient_id=request.recipient_id,
                channel=request.channel.value,
                reason=str(e),
            )
            return OperationResult.validation_error(str(e))

        notification = self._build(request, now)
        self.repository.save(notification)
        logger.info(
            "notification_created",
            notification_id=notification.id,
            channel=notification.channel.value,
            priority=notification.priority.value,
            schedule_kind=notification.schedule_kind.value,
            status=notification.status.value,
        )
        return OperationResult.success(data=notification, message="Notification created")

    def create_bulk(
        self, request: NotificationRequest, recipient_ids: Iterable[str]
    ) -> List[OperationResult]:
        """Create one notification per recipient from a shared request.

        Each recipient is handled independently; one rejection does not
        affect the others.
        """
        results: List[OperationResult] = []
        for recipient_id in recipient_ids:
            per_recipient = request.model_copy(update={"recipient_id": recipient_id})
            try:
                results.append(self.create(per_recipient))
            except Exception as e:  # pylint: disable=broad-except
                logger.error(
                    "bulk_create_item_failed",
                    recipient_id=recipient_id,
                    error=str(e),
                    exc_info=True,
                )
                results.append(
                    OperationResult.permanent_error(
                        f"Failed to create notification for {recipient_id}: {e}",
                        error_code="CREATE_FAILED",
                    )
                )

        created = sum(1 for r in results if r.is_success)
        logger.info("bulk_create_complete", requested=len(results), created=created)
        return results

    def get(self, notification_id: str) -> OperationResult:
        notification = self.repository.find_by_id(notification_id)
        if notification is None:
            return OperationResult.not_found(f"Notification not found: {notification_id}")
        return OperationResult.success(data=notification)

    def send_now(self, notification_id: str) -> DispatchResult:
        """Dispatch immediately, outside the periodic batch pass."""
        return self.orchestrator.dispatch(notification_id)

    def reschedule(self, notification_id: str, due_time: datetime) -> OperationResult:
        return self.schedule_engine.reschedule(notification_id, due_time)

    def cancel(self, notification_id: str) -> OperationResult:
        return self.schedule_engine.cancel(notification_id)

    def manual_retry(self, notification_id: str) -> OperationResult:
        return self.retry_engine.manual_retry(notification_id)

    def reset(self, notification_id: str) -> OperationResult:
        return self.retry_engine.reset(notification_id)

    def get_statistics(self) -> Dict[str, Any]:
        return {
            "retry": self.retry_engine.get_statistics(),
            "dispatch": self.batcher.get_statistics(),
        }

    def _validate_delivery_target(self, request: NotificationRequest) -> None:
        recipient = self.directory.get(request.recipient_id)
        if recipient is None:
            raise ValidationError(f"Recipient not found: {request.recipient_id}")
        if not self.directory.is_eligible(recipient, request.channel):
            raise ValidationError(
                f"Recipient {recipient.id} cannot receive {request.channel.value} notifications"
            )
        channel = self.channels.get(request.channel)
        if channel is None:
            raise ValidationError(f"Channel not supported: {request.channel.value}")
        if not channel.can_deliver(recipient):
            raise ValidationError(
                f"Recipient {recipient.id} has no {request.channel.value} address"
            )

    def _build(self, request: NotificationRequest, now: datetime) -> Notification:
        immediate = request.schedule_kind == ScheduleKind.IMMEDIATE
        recurring = request.schedule_kind == ScheduleKind.RECURRING
        return Notification(
            subject=request.subject,
            body=request.body,
            template=request.template,
            metadata=dict(request.metadata),
            channel=request.channel,
            recipient_id=request.recipient_id,
            priority=request.priority,
            status=NotificationStatus.PENDING if immediate else NotificationStatus.SCHEDULED,
            schedule_kind=request.schedule_kind,
            due_time=None if immediate else request.due_time,
            recurrence_interval=request.recurrence_interval if recurring else None,
            recurrence_end_time=request.recurrence_end_time if recurring else None,
            max_occurrences=request.max_occurrences if recurring else None,
            max_attempts=request.max_attempts or self.config.max_attempts,
            created_at=now,
            updated_at=now,
        )
