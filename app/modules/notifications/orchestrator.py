"""Delivery orchestrator.

The only component that invokes a channel. ``dispatch`` runs one delivery
attempt for one notification:

1. Load the record and skip it unless it is dispatchable now
2. Fail it (without consuming an attempt) if the recipient is unknown or
   ineligible, or the channel is missing or cannot address the recipient
3. Claim it: ``mark_processing`` written with compare-and-set against the
   status it was loaded in, so two workers racing on the same id cannot
   both send
4. Send through the channel under a per-attempt deadline. Each channel has
   its own send pool, so a hung provider only holds up its own channel. A
   send still queued when the deadline passes never started; its claim is
   released without consuming an attempt
5. ``mark_sent`` on success, ``record_failure`` otherwise
6. Persist the outcome and append one audit entry. If the record changed
   during the send the outcome is not written, and the audit entry records
   the stored status instead

Delivery failures (provider errors, timeouts, channel exceptions) never
propagate out of ``dispatch``; they are recorded on the notification.
"""

import threading
import time
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FuturesTimeoutError
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, Dict, Optional

from infrastructure.audit import AuditSink, DeliveryAuditEntry
from infrastructure.logging import bind_delivery_context, get_module_logger
from infrastructure.notifications import (
    ChannelRegistry,
    DeliveryContent,
    DeliveryOutcome,
    NotificationChannel,
    Recipient,
)
from infrastructure.resilience.retry import RetryConfig
from modules.notifications.domain import (
    InvalidTransitionError,
    Notification,
    NotificationStatus,
    utc_now,
)
from modules.notifications.recipients import RecipientDirectory
from modules.notifications.repository import NotificationRepository

logger = get_module_logger()


class DispatchOutcome(Enum):
    SENT = "SENT"
    RETRY = "RETRY"
    FAILED = "FAILED"
    SKIPPED = "SKIPPED"
    NOT_FOUND = "NOT_FOUND"


_STATUS_OUTCOMES = {
    NotificationStatus.SENT: DispatchOutcome.SENT,
    NotificationStatus.RETRY: DispatchOutcome.RETRY,
    NotificationStatus.FAILED: DispatchOutcome.FAILED,
}


@dataclass
class DispatchResult:
    """Result of one ``dispatch`` call.

    Attributes:
        notification_id: Notification that was dispatched
        outcome: What happened
        status: Notification status after the call, if known
        message: Human-readable summary
        attempt_number: Attempt number of the send, 0 when nothing was sent
        error_detail: Failure detail, if any
        persisted: False if the outcome could not be written because the
            record changed during the send
    """

    notification_id: str
    outcome: DispatchOutcome
    status: Optional[NotificationStatus] = None
    message: str = ""
    attempt_number: int = 0
    error_detail: Optional[str] = None
    persisted: bool = True

    @property
    def delivered(self) -> bool:
        return self.outcome == DispatchOutcome.SENT

    @property
    def attempted(self) -> bool:
        return self.attempt_number > 0


class DeliveryOrchestrator:
    """Drives single notifications through a delivery attempt.

    Args:
        repository: Notification store with compare-and-set support
        directory: Recipient directory
        channels: Registry of channel implementations
        audit_sink: Append-only audit sink
        retry_config: Retry policy applied on failure
        send_timeout_seconds: Deadline for one channel call
        max_send_workers: Threads per channel available for concurrent sends
        clock: Returns the current UTC time
    """

    def __init__(
        self,
        repository: NotificationRepository,
        directory: RecipientDirectory,
        channels: ChannelRegistry,
        audit_sink: AuditSink,
        retry_config: Optional[RetryConfig] = None,
        send_timeout_seconds: float = 10.0,
        max_send_workers: int = 8,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.repository = repository
        self.directory = directory
        self.channels = channels
        self.audit_sink = audit_sink
        self.retry_config = retry_config or RetryConfig()
        self.send_timeout_seconds = send_timeout_seconds
        self.clock = clock
        self.max_send_workers = max_send_workers
        self._send_executors: Dict[str, ThreadPoolExecutor] = {}
        self._executors_lock = threading.Lock()

    def dispatch(self, notification_id: str) -> DispatchResult:
        """Run one delivery attempt for ``notification_id``.

        Safe to call repeatedly: a notification that is not dispatchable, or
        that another worker claimed first, is skipped.
        """
        with bind_delivery_context(notification_id=notification_id):
            notification = self.repository.find_by_id(notification_id)
            if notification is None:
                logger.warning("dispatch_notification_not_found")
                return DispatchResult(
                    notification_id=notification_id,
                    outcome=DispatchOutcome.NOT_FOUND,
                    message="Notification not found",
                )

            now = self.clock()
            if not notification.is_dispatchable(now):
                logger.info("dispatch_skipped_not_dispatchable", status=notification.status.value)
                return self._skipped(notification, f"Not dispatchable in status {notification.status.value}")

            recipient = self.directory.get(notification.recipient_id)
            channel = self.channels.get(notification.channel)
            reason = self._ineligibility_reason(notification, recipient, channel)
            if reason is not None:
                return self.fail(notification, reason)

            return self._attempt(notification, recipient, channel)

    def fail(self, notification: Notification, reason: str) -> DispatchResult:
        """Move ``notification`` to FAILED without a send attempt.

        The write is guarded by the status the notification was loaded in.
        """
        prior_status = notification.status
        try:
            notification.mark_failed(reason, self.clock())
        except InvalidTransitionError as e:
            return self._skipped(notification, str(e))

        if not self.repository.compare_and_set(notification, prior_status):
            logger.info("dispatch_fail_lost_race", reason=reason)
            return DispatchResult(
                notification_id=notification.id,
                outcome=DispatchOutcome.SKIPPED,
                message="Notification changed concurrently",
            )

        logger.warning("notification_failed_without_attempt", reason=reason)
        self._audit(notification, attempt_number=notification.current_attempt, message=reason)
        return DispatchResult(
            notification_id=notification.id,
            outcome=DispatchOutcome.FAILED,
            status=notification.status,
            message=reason,
            error_detail=reason,
        )

    def shutdown(self, wait: bool = False) -> None:
        with self._executors_lock:
            executors = list(self._send_executors.values())
            self._send_executors.clear()
        for executor in executors:
            executor.shutdown(wait=wait)

    def _attempt(
        self,
        notification: Notification,
        recipient: Recipient,
        channel: NotificationChannel,
    ) -> DispatchResult:
        prior_status = notification.status
        attempt_number = notification.current_attempt + 1

        notification.mark_processing(self.clock())
        if not self.repository.compare_and_set(notification, prior_status):
            logger.info("dispatch_claim_lost", prior_status=prior_status.value)
            return DispatchResult(
                notification_id=notification.id,
                outcome=DispatchOutcome.SKIPPED,
                message="Claimed by another worker",
            )

        content = DeliveryContent(
            notification_id=notification.id,
            subject=notification.subject,
            body=notification.render_body(recipient.variables),
            priority=notification.priority.value,
            metadata=dict(notification.metadata),
        )

        started = time.monotonic()
        delivery = self._send_with_deadline(channel, content, recipient)
        duration_ms = int((time.monotonic() - started) * 1000)

        if delivery is None:
            return self._release_claim(notification, prior_status)

        now = self.clock()
        if delivery.success:
            notification.mark_sent(now)
        else:
            notification.record_failure(
                delivery.error_detail or delivery.message,
                self.retry_config,
                now,
                retryable=delivery.retryable,
                retry_after_seconds=delivery.retry_after_seconds,
            )

        error_detail = None if delivery.success else notification.last_failure_reason
        status = notification.status
        message = delivery.message
        persisted = self.repository.compare_and_set(notification, NotificationStatus.PROCESSING)
        if not persisted:
            stored = self.repository.find_by_id(notification.id)
            status = stored.status if stored is not None else None
            stored_label = status.value if status is not None else "missing"
            logger.warning(
                "dispatch_outcome_not_persisted",
                attempted_status=notification.status.value,
                stored_status=stored_label,
            )
            message = (
                f"{delivery.message}; outcome {notification.status.value} not persisted, "
                f"record is {stored_label}"
            )

        self._audit(
            notification,
            attempt_number=attempt_number,
            message=message,
            error_detail=error_detail,
            status=status,
        )

        log = logger.info if delivery.success else logger.warning
        log(
            "notification_dispatched",
            channel=notification.channel.value,
            status=status.value if status is not None else None,
            attempt_number=attempt_number,
            duration_ms=duration_ms,
            error=error_detail,
        )

        return DispatchResult(
            notification_id=notification.id,
            outcome=_STATUS_OUTCOMES[notification.status],
            status=status,
            message=message,
            attempt_number=attempt_number,
            error_detail=error_detail,
            persisted=persisted,
        )

    def _release_claim(
        self, notification: Notification, prior_status: NotificationStatus
    ) -> DispatchResult:
        """Hand back a claim whose send never reached the channel."""
        notification.release_claim(prior_status, self.clock())
        released = self.repository.compare_and_set(notification, NotificationStatus.PROCESSING)
        logger.warning(
            "dispatch_send_not_started",
            channel=notification.channel.value,
            released=released,
            timeout_seconds=self.send_timeout_seconds,
        )
        return DispatchResult(
            notification_id=notification.id,
            outcome=DispatchOutcome.SKIPPED,
            status=notification.status if released else None,
            message=f"Send not started within {self.send_timeout_seconds}s; claim released",
            persisted=released,
        )

    def _ineligibility_reason(
        self,
        notification: Notification,
        recipient: Optional[Recipient],
        channel: Optional[NotificationChannel],
    ) -> Optional[str]:
        if recipient is None:
            return f"Recipient not found: {notification.recipient_id}"
        if not self.directory.is_eligible(recipient, notification.channel):
            return f"Recipient {recipient.id} is not eligible for {notification.channel.value}"
        if channel is None:
            return f"No channel registered for {notification.channel.value}"
        if not channel.can_deliver(recipient):
            return f"Channel {notification.channel.value} cannot deliver to recipient {recipient.id}"
        return None

    def _executor_for(self, channel: NotificationChannel) -> ThreadPoolExecutor:
        with self._executors_lock:
            executor = self._send_executors.get(channel.channel_name)
            if executor is None:
                executor = ThreadPoolExecutor(
                    max_workers=self.max_send_workers,
                    thread_name_prefix=f"send-{channel.channel_name.lower()}",
                )
                self._send_executors[channel.channel_name] = executor
            return executor

    def _send_with_deadline(
        self,
        channel: NotificationChannel,
        content: DeliveryContent,
        recipient: Recipient,
    ) -> Optional[DeliveryOutcome]:
        """Call ``channel.send`` and convert timeouts and exceptions to failures.

        Returns None when the deadline passed before the send was picked up
        by a worker thread, i.e. the channel was never called.
        """
        future = self._executor_for(channel).submit(channel.send, content, recipient)
        try:
            return future.result(timeout=self.send_timeout_seconds)
        except FuturesTimeoutError:
            if future.cancel():
                return None
            return DeliveryOutcome.failed(
                f"Channel send timed out after {self.send_timeout_seconds}s"
            )
        except Exception as e:  # pylint: disable=broad-except
            logger.error("channel_send_raised", error=str(e), exc_info=True)
            return DeliveryOutcome.failed(
                f"Channel raised {type(e).__name__}", error_detail=f"{type(e).__name__}: {e}"
            )

    def _audit(
        self,
        notification: Notification,
        attempt_number: int,
        message: str,
        error_detail: Optional[str] = None,
        status: Optional[NotificationStatus] = None,
    ) -> None:
        """Append one audit entry; ``status`` overrides the in-memory status."""
        if status is None:
            status = notification.status
        entry = DeliveryAuditEntry(
            notification_id=notification.id,
            status=status.value,
            attempt_number=attempt_number,
            message=message,
            error_detail=error_detail,
            channel=notification.channel.value,
            timestamp=self.clock(),
        )
        try:
            self.audit_sink.append(entry)
        except Exception as e:  # pylint: disable=broad-except
            logger.error("audit_append_failed", error=str(e))

    def _skipped(self, notification: Notification, message: str) -> DispatchResult:
        return DispatchResult(
            notification_id=notification.id,
            outcome=DispatchOutcome.SKIPPED,
            status=notification.status,
            message=message,
        )
