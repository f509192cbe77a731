"""Notification aggregate and its state machine.

A ``Notification`` is mutated only through its record operations. Each
operation validates the transition, updates status together with the
matching timestamps and counters, and stamps ``updated_at``; callers never
set status and timestamps separately.

State machine:

    PENDING    -> PROCESSING | SCHEDULED | FAILED
    SCHEDULED  -> PROCESSING | SCHEDULED | CANCELLED | FAILED
    PROCESSING -> SENT | RETRY | FAILED
    RETRY      -> PROCESSING | PENDING | FAILED
    FAILED     -> PENDING            (explicit reset only)
    CANCELLED  -> PENDING            (explicit reset only)
    SENT       -> (terminal)

A PROCESSING claim whose send never started is released back to the status
it was claimed from (``release_claim``), without consuming an attempt.

A RECURRING notification is a recurrence definition: it stays SCHEDULED and
spawns independent SCHEDULED occurrences as its due time passes. Definitions
are never dispatched, reset or manually retried.
"""

import re
import uuid
from datetime import datetime, timedelta, timezone
from typing import Dict, Mapping, Optional

from pydantic import BaseModel, Field, field_validator

from infrastructure.resilience.retry import RetryConfig
from modules.notifications.domain.enums import (
    ChannelType,
    NotificationPriority,
    NotificationStatus,
    ScheduleKind,
)
from modules.notifications.domain.errors import InvalidTransitionError, ValidationError

MAX_FAILURE_REASON_LENGTH = 500
EXHAUSTED_PREFIX = "Max retry attempts exceeded"

_PLACEHOLDER = re.compile(r"\{\{\s*([A-Za-z0-9_.-]+)\s*\}\}")

ALLOWED_TRANSITIONS: Dict[NotificationStatus, frozenset] = {
    NotificationStatus.PENDING: frozenset(
        {
            NotificationStatus.PROCESSING,
            NotificationStatus.SCHEDULED,
            NotificationStatus.FAILED,
        }
    ),
    NotificationStatus.SCHEDULED: frozenset(
        {
            NotificationStatus.PROCESSING,
            NotificationStatus.SCHEDULED,
            NotificationStatus.CANCELLED,
            NotificationStatus.FAILED,
        }
    ),
    NotificationStatus.PROCESSING: frozenset(
        {
            NotificationStatus.SENT,
            NotificationStatus.RETRY,
            NotificationStatus.FAILED,
        }
    ),
    NotificationStatus.RETRY: frozenset(
        {
            NotificationStatus.PROCESSING,
            NotificationStatus.PENDING,
            NotificationStatus.FAILED,
        }
    ),
    NotificationStatus.FAILED: frozenset({NotificationStatus.PENDING}),
    NotificationStatus.CANCELLED: frozenset({NotificationStatus.PENDING}),
    NotificationStatus.SENT: frozenset(),
}


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes as UTC and normalize aware ones to UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def truncate_reason(reason: Optional[str]) -> str:
    text = (reason or "").strip() or "unknown failure"
    return text[:MAX_FAILURE_REASON_LENGTH]


class Notification(BaseModel):
    """A message to deliver to one recipient over one channel.

    Attributes:
        id: Opaque identifier, assigned at creation (immutable)
        subject: Subject line / title
        body: Message body, may contain ``{{key}}`` placeholders
        template: Optional template reference
        metadata: Free-form string metadata
        channel: Target channel
        recipient_id: Recipient reference in the external directory
        priority: Dispatch priority (immutable)
        status: Lifecycle status
        schedule_kind: IMMEDIATE, SCHEDULED or RECURRING
        due_time: When a SCHEDULED notification becomes dispatchable, or the
            next occurrence time of a RECURRING definition
        recurrence_interval: Time between occurrences of a definition
        recurrence_end_time: No occurrence is due after this time
        max_occurrences: Upper bound on materialized occurrences
        occurrence_count: Occurrences materialized so far
        recurrence_completed_at: Set when a definition stops recurring
        definition_id: Definition that spawned this occurrence
        current_attempt: Failed attempts since the last success or reset
        max_attempts: Attempts allowed before the notification is FAILED
        next_retry_time: Earliest time a RETRY notification may be re-sent
        last_failure_reason: Most recent failure, bounded to 500 characters
        version: Optimistic concurrency counter maintained by the repository
    """

    id: str = Field(default_factory=lambda: uuid.uuid4().hex, frozen=True)
    subject: str = ""
    body: str
    template: Optional[str] = None
    metadata: Dict[str, str] = Field(default_factory=dict)

    channel: ChannelType
    recipient_id: str
    priority: NotificationPriority = Field(
        default=NotificationPriority.MEDIUM, frozen=True
    )

    status: NotificationStatus = NotificationStatus.PENDING
    schedule_kind: ScheduleKind = ScheduleKind.IMMEDIATE
    due_time: Optional[datetime] = None
    recurrence_interval: Optional[timedelta] = None
    recurrence_end_time: Optional[datetime] = None
    max_occurrences: Optional[int] = None
    occurrence_count: int = 0
    recurrence_completed_at: Optional[datetime] = None
    definition_id: Optional[str] = None

    current_attempt: int = 0
    max_attempts: int = 3
    next_retry_time: Optional[datetime] = None
    last_failure_reason: Optional[str] = None

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    sent_at: Optional[datetime] = None
    failed_at: Optional[datetime] = None

    version: int = 0

    @field_validator(
        "due_time",
        "recurrence_end_time",
        "recurrence_completed_at",
        "next_retry_time",
        "created_at",
        "updated_at",
        "sent_at",
        "failed_at",
    )
    @classmethod
    def normalize_timestamps(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def is_recurring_definition(self) -> bool:
        return self.schedule_kind == ScheduleKind.RECURRING

    @property
    def is_terminal(self) -> bool:
        return self.status in (
            NotificationStatus.SENT,
            NotificationStatus.FAILED,
            NotificationStatus.CANCELLED,
        )

    def is_dispatchable(self, now: datetime) -> bool:
        """True if the orchestrator may claim this notification at ``now``.

        PENDING always qualifies. A SCHEDULED occurrence qualifies once due.
        RETRY qualifies once its backoff has elapsed and attempts remain.
        Recurrence definitions are never dispatched themselves.
        """
        if self.is_recurring_definition:
            return False
        if self.status == NotificationStatus.PENDING:
            return True
        if self.status == NotificationStatus.SCHEDULED:
            return self.due_time is None or self.due_time <= now
        if self.status == NotificationStatus.RETRY:
            if self.current_attempt >= self.max_attempts:
                return False
            return self.next_retry_time is None or self.next_retry_time <= now
        return False

    def should_continue_recurrence(self) -> bool:
        """True while this definition may materialize another occurrence.

        Requires remaining occurrences (when capped) and a due time inside
        the end time (when set).
        """
        if not self.is_recurring_definition:
            return False
        if self.status != NotificationStatus.SCHEDULED:
            return False
        if self.recurrence_completed_at is not None:
            return False
        if self.due_time is None or self.recurrence_interval is None:
            return False
        if self.max_occurrences is not None and self.occurrence_count >= self.max_occurrences:
            return False
        if self.recurrence_end_time is not None and self.due_time > self.recurrence_end_time:
            return False
        return True

    def is_recurrence_due(self, now: datetime) -> bool:
        return self.should_continue_recurrence() and self.due_time <= now

    def render_body(self, variables: Optional[Mapping[str, str]] = None) -> str:
        """Replace ``{{key}}`` placeholders with ``variables``.

        Unknown placeholders are left as-is.
        """
        if not variables:
            return self.body

        def replace(match: "re.Match[str]") -> str:
            key = match.group(1)
            if key in variables:
                return str(variables[key])
            return match.group(0)

        return _PLACEHOLDER.sub(replace, self.body)

    # ------------------------------------------------------------------
    # Record operations
    # ------------------------------------------------------------------

    def _transition(self, target: NotificationStatus, now: datetime) -> None:
        if target not in ALLOWED_TRANSITIONS[self.status]:
            raise InvalidTransitionError(self.status, target)
        self.status = target
        self.updated_at = now

    def _reject_definition(self, action: str) -> None:
        if self.is_recurring_definition:
            raise InvalidTransitionError(
                self.status,
                NotificationStatus.PENDING,
                f"Recurrence definitions cannot be {action}",
            )

    def mark_processing(self, now: datetime) -> None:
        """Claim the notification for a send attempt."""
        if self.is_recurring_definition:
            raise InvalidTransitionError(
                self.status,
                NotificationStatus.PROCESSING,
                "Recurrence definitions are never dispatched",
            )
        self._transition(NotificationStatus.PROCESSING, now)

    def mark_sent(self, now: datetime) -> None:
        self._transition(NotificationStatus.SENT, now)
        self.sent_at = now
        self.current_attempt = 0
        self.next_retry_time = None

    def release_claim(self, prior_status: NotificationStatus, now: datetime) -> None:
        """Undo ``mark_processing`` when the send never started.

        The attempt counter, failure reason and backoff are left as they were
        before the claim.
        """
        if self.status != NotificationStatus.PROCESSING:
            raise InvalidTransitionError(self.status, prior_status)
        if prior_status not in (
            NotificationStatus.PENDING,
            NotificationStatus.SCHEDULED,
            NotificationStatus.RETRY,
        ):
            raise InvalidTransitionError(
                self.status,
                prior_status,
                f"A claim cannot be released to {prior_status.value}",
            )
        self.status = prior_status
        self.updated_at = now

    def record_failure(
        self,
        reason: str,
        policy: RetryConfig,
        now: datetime,
        retryable: bool = True,
        retry_after_seconds: Optional[int] = None,
    ) -> None:
        """Record a failed attempt and decide between RETRY and FAILED.

        Increments ``current_attempt``. While attempts remain the record
        moves to RETRY with ``next_retry_time = now + backoff(current_attempt)``,
        pushed out to ``retry_after_seconds`` when the provider asked for a
        longer wait. A non-retryable failure, or one that exhausts the
        attempts, makes it FAILED.
        """
        if self.status != NotificationStatus.PROCESSING:
            raise InvalidTransitionError(self.status, NotificationStatus.RETRY)

        reason = truncate_reason(reason)
        self.current_attempt = min(self.current_attempt + 1, self.max_attempts)

        if not retryable:
            self._transition(NotificationStatus.FAILED, now)
            self.last_failure_reason = reason
            self.next_retry_time = None
            self.failed_at = now
            return

        if policy.should_retry(self.current_attempt, self.max_attempts):
            self._transition(NotificationStatus.RETRY, now)
            self.last_failure_reason = reason
            delay = policy.compute_backoff(self.current_attempt)
            if retry_after_seconds:
                delay = max(delay, timedelta(seconds=retry_after_seconds))
            self.next_retry_time = now + delay
            return

        self._transition(NotificationStatus.FAILED, now)
        self.last_failure_reason = truncate_reason(f"{EXHAUSTED_PREFIX}: {reason}")
        self.next_retry_time = None
        self.failed_at = now

    def mark_failed(self, reason: str, now: datetime) -> None:
        """Fail the notification without consuming an attempt.

        Used for failures no retry can fix, such as an ineligible recipient.
        """
        self._transition(NotificationStatus.FAILED, now)
        self.last_failure_reason = truncate_reason(reason)
        self.next_retry_time = None
        self.failed_at = now

    def mark_cancelled(self, now: datetime) -> None:
        if self.status != NotificationStatus.SCHEDULED:
            raise InvalidTransitionError(
                self.status,
                NotificationStatus.CANCELLED,
                f"Only SCHEDULED notifications can be cancelled (status is {self.status.value})",
            )
        self._transition(NotificationStatus.CANCELLED, now)

    def reset_for_retry(self, now: datetime) -> None:
        """Return a FAILED, CANCELLED or RETRY notification to PENDING.

        Clears attempts, failure reason, next retry time and ``failed_at``.
        """
        self._reject_definition("reset")
        if self.status not in (
            NotificationStatus.FAILED,
            NotificationStatus.CANCELLED,
            NotificationStatus.RETRY,
        ):
            raise InvalidTransitionError(self.status, NotificationStatus.PENDING)
        self._transition(NotificationStatus.PENDING, now)
        self.current_attempt = 0
        self.last_failure_reason = None
        self.next_retry_time = None
        self.failed_at = None

    def prepare_manual_retry(self, now: datetime) -> None:
        """Make the notification immediately dispatchable with a fresh budget.

        FAILED records are reset first; PENDING and RETRY records drop their
        attempt count and backoff.
        """
        self._reject_definition("retried")
        if self.status in (NotificationStatus.FAILED, NotificationStatus.RETRY):
            self.reset_for_retry(now)
            return
        if self.status != NotificationStatus.PENDING:
            raise InvalidTransitionError(
                self.status,
                NotificationStatus.PENDING,
                f"Manual retry is not allowed from {self.status.value}",
            )
        self.current_attempt = 0
        self.next_retry_time = None
        self.updated_at = now

    def reschedule(self, due_time: datetime, now: datetime) -> None:
        """Move the due time of a PENDING or SCHEDULED notification.

        Raises:
            InvalidTransitionError: From any other status.
            ValidationError: If ``due_time`` is not strictly in the future or
                falls after the recurrence end time.
        """
        if self.status not in (NotificationStatus.PENDING, NotificationStatus.SCHEDULED):
            raise InvalidTransitionError(
                self.status,
                NotificationStatus.SCHEDULED,
                f"Cannot reschedule a {self.status.value} notification",
            )
        due_time = ensure_utc(due_time)
        if due_time <= now:
            raise ValidationError("Scheduled time must be in the future")
        if self.recurrence_end_time is not None and due_time > self.recurrence_end_time:
            raise ValidationError("Scheduled time must not be after the recurrence end time")

        self._transition(NotificationStatus.SCHEDULED, now)
        self.due_time = due_time
        if self.schedule_kind == ScheduleKind.IMMEDIATE:
            self.schedule_kind = ScheduleKind.SCHEDULED

    def spawn_occurrence(self, now: datetime) -> "Notification":
        """Create the concrete SCHEDULED occurrence for the current due time."""
        if not self.should_continue_recurrence():
            raise InvalidTransitionError(
                self.status,
                NotificationStatus.SCHEDULED,
                f"Recurrence {self.id} has no further occurrences",
            )
        return Notification(
            subject=self.subject,
            body=self.body,
            template=self.template,
            metadata=dict(self.metadata),
            channel=self.channel,
            recipient_id=self.recipient_id,
            priority=self.priority,
            status=NotificationStatus.SCHEDULED,
            schedule_kind=ScheduleKind.SCHEDULED,
            due_time=self.due_time,
            max_attempts=self.max_attempts,
            definition_id=self.id,
            created_at=now,
            updated_at=now,
        )

    def advance_recurrence(self, now: datetime) -> None:
        """Count one materialized occurrence and move to the next due time.

        The definition completes instead of advancing when the occurrence cap
        is reached or the next due time would pass the end time.
        """
        self.occurrence_count += 1
        self.updated_at = now

        next_due = self.due_time + self.recurrence_interval
        capped = (
            self.max_occurrences is not None
            and self.occurrence_count >= self.max_occurrences
        )
        past_end = (
            self.recurrence_end_time is not None and next_due > self.recurrence_end_time
        )
        if capped or past_end:
            self.recurrence_completed_at = now
            return
        self.due_time = next_due
