"""Unit tests for the Notification state machine."""

from datetime import timedelta

import pytest
from freezegun import freeze_time
from pydantic import ValidationError as PydanticValidationError

from infrastructure.resilience.retry import RetryConfig
from modules.notifications.domain import (
    ALLOWED_TRANSITIONS,
    EXHAUSTED_PREFIX,
    MAX_FAILURE_REASON_LENGTH,
    InvalidTransitionError,
    Notification,
    NotificationPriority,
    NotificationStatus,
    ScheduleKind,
    ValidationError,
)
from tests.factories import make_notification


@pytest.fixture
def policy():
    return RetryConfig()


@pytest.mark.unit
class TestPriority:
    def test_ranks_order_high_first(self):
        assert NotificationPriority.HIGH.rank < NotificationPriority.MEDIUM.rank
        assert NotificationPriority.MEDIUM.rank < NotificationPriority.LOW.rank

    def test_is_higher_than(self):
        assert NotificationPriority.HIGH.is_higher_than(NotificationPriority.LOW)
        assert not NotificationPriority.LOW.is_higher_than(NotificationPriority.MEDIUM)

    def test_priority_is_immutable(self, base_time):
        notification = make_notification(base_time)

        with pytest.raises(PydanticValidationError):
            notification.priority = NotificationPriority.HIGH


@pytest.mark.unit
class TestTransitions:
    def test_sent_is_terminal(self):
        assert ALLOWED_TRANSITIONS[NotificationStatus.SENT] == frozenset()

    def test_failed_and_cancelled_only_reset_to_pending(self):
        assert ALLOWED_TRANSITIONS[NotificationStatus.FAILED] == {NotificationStatus.PENDING}
        assert ALLOWED_TRANSITIONS[NotificationStatus.CANCELLED] == {NotificationStatus.PENDING}

    def test_processing_then_sent(self, base_time):
        notification = make_notification(base_time, current_attempt=1)
        later = base_time + timedelta(seconds=5)

        notification.mark_processing(base_time)
        notification.mark_sent(later)

        assert notification.status == NotificationStatus.SENT
        assert notification.sent_at == later
        assert notification.updated_at == later
        assert notification.current_attempt == 0
        assert notification.next_retry_time is None

    def test_sent_cannot_be_processed_again(self, base_time):
        notification = make_notification(base_time, status=NotificationStatus.SENT)

        with pytest.raises(InvalidTransitionError) as exc_info:
            notification.mark_processing(base_time)

        assert exc_info.value.current == NotificationStatus.SENT
        assert exc_info.value.target == NotificationStatus.PROCESSING

    def test_mark_sent_requires_processing(self, base_time):
        notification = make_notification(base_time)

        with pytest.raises(InvalidTransitionError):
            notification.mark_sent(base_time)

    def test_recurring_definition_is_never_processed(self, base_time):
        definition = make_notification(
            base_time,
            status=NotificationStatus.SCHEDULED,
            schedule_kind=ScheduleKind.RECURRING,
            due_time=base_time,
            recurrence_interval=timedelta(hours=1),
            max_occurrences=3,
        )

        with pytest.raises(InvalidTransitionError):
            definition.mark_processing(base_time)


@pytest.mark.unit
class TestRecordFailure:
    def test_first_failure_schedules_retry_with_backoff(self, base_time, policy):
        notification = make_notification(base_time)
        notification.mark_processing(base_time)

        notification.record_failure("provider down", policy, base_time)

        assert notification.status == NotificationStatus.RETRY
        assert notification.current_attempt == 1
        assert notification.last_failure_reason == "provider down"
        assert notification.next_retry_time == base_time + timedelta(milliseconds=2000)

    def test_exhaustion_marks_failed(self, base_time, policy):
        notification = make_notification(base_time)

        for _ in range(3):
            if notification.status == NotificationStatus.RETRY:
                assert notification.current_attempt < notification.max_attempts
            notification.mark_processing(base_time)
            notification.record_failure("provider down", policy, base_time)

        assert notification.status == NotificationStatus.FAILED
        assert notification.current_attempt == 3
        assert notification.last_failure_reason.startswith(EXHAUSTED_PREFIX)
        assert notification.failed_at == base_time
        assert notification.next_retry_time is None

    def test_per_notification_max_attempts(self, base_time, policy):
        notification = make_notification(base_time, max_attempts=1)
        notification.mark_processing(base_time)

        notification.record_failure("nope", policy, base_time)

        assert notification.status == NotificationStatus.FAILED
        assert notification.current_attempt == 1

    def test_reason_is_truncated(self, base_time, policy):
        notification = make_notification(base_time)
        notification.mark_processing(base_time)

        notification.record_failure("x" * 2000, policy, base_time)

        assert len(notification.last_failure_reason) == MAX_FAILURE_REASON_LENGTH

    def test_non_retryable_failure_skips_remaining_attempts(self, base_time, policy):
        notification = make_notification(base_time)
        notification.mark_processing(base_time)

        notification.record_failure("UNAUTHORIZED", policy, base_time, retryable=False)

        assert notification.status == NotificationStatus.FAILED
        assert notification.current_attempt == 1
        assert notification.last_failure_reason == "UNAUTHORIZED"
        assert notification.failed_at == base_time

    def test_retry_after_longer_than_backoff_wins(self, base_time, policy):
        notification = make_notification(base_time)
        notification.mark_processing(base_time)

        notification.record_failure("rate limited", policy, base_time, retry_after_seconds=60)

        assert notification.next_retry_time == base_time + timedelta(seconds=60)

    def test_requires_processing(self, base_time, policy):
        notification = make_notification(base_time)

        with pytest.raises(InvalidTransitionError):
            notification.record_failure("boom", policy, base_time)


@pytest.mark.unit
class TestDispatchable:
    def test_pending_is_dispatchable(self, base_time):
        assert make_notification(base_time).is_dispatchable(base_time)

    def test_retry_waits_for_backoff(self, base_time):
        notification = make_notification(
            base_time,
            status=NotificationStatus.RETRY,
            current_attempt=1,
            next_retry_time=base_time + timedelta(seconds=2),
        )

        assert not notification.is_dispatchable(base_time)
        assert notification.is_dispatchable(base_time + timedelta(seconds=2))

    def test_exhausted_retry_is_not_dispatchable(self, base_time):
        notification = make_notification(
            base_time,
            status=NotificationStatus.RETRY,
            current_attempt=3,
            next_retry_time=base_time,
        )

        assert not notification.is_dispatchable(base_time)

    def test_scheduled_waits_for_due_time(self, base_time):
        notification = make_notification(
            base_time,
            status=NotificationStatus.SCHEDULED,
            schedule_kind=ScheduleKind.SCHEDULED,
            due_time=base_time + timedelta(minutes=5),
        )

        assert not notification.is_dispatchable(base_time)
        assert notification.is_dispatchable(base_time + timedelta(minutes=5))

    @pytest.mark.parametrize(
        "status",
        [NotificationStatus.PROCESSING, NotificationStatus.SENT, NotificationStatus.FAILED],
    )
    def test_other_statuses_are_not_dispatchable(self, base_time, status):
        assert not make_notification(base_time, status=status).is_dispatchable(base_time)


@pytest.mark.unit
class TestOperatorTransitions:
    def test_cancel_only_from_scheduled(self, base_time):
        pending = make_notification(base_time)

        with pytest.raises(InvalidTransitionError):
            pending.mark_cancelled(base_time)

    def test_cancel_scheduled(self, base_time):
        notification = make_notification(
            base_time,
            status=NotificationStatus.SCHEDULED,
            schedule_kind=ScheduleKind.SCHEDULED,
            due_time=base_time + timedelta(hours=1),
        )

        notification.mark_cancelled(base_time)

        assert notification.status == NotificationStatus.CANCELLED

    def test_reset_clears_failure_state(self, base_time):
        notification = make_notification(
            base_time,
            status=NotificationStatus.FAILED,
            current_attempt=3,
            last_failure_reason="boom",
            failed_at=base_time,
        )

        notification.reset_for_retry(base_time)

        assert notification.status == NotificationStatus.PENDING
        assert notification.current_attempt == 0
        assert notification.last_failure_reason is None
        assert notification.failed_at is None

    def test_reset_rejected_for_sent(self, base_time):
        notification = make_notification(base_time, status=NotificationStatus.SENT)

        with pytest.raises(InvalidTransitionError):
            notification.reset_for_retry(base_time)

    def test_manual_retry_from_pending_clears_backoff(self, base_time):
        notification = make_notification(base_time, current_attempt=2)

        notification.prepare_manual_retry(base_time)

        assert notification.status == NotificationStatus.PENDING
        assert notification.current_attempt == 0

    @pytest.mark.parametrize(
        "status", [NotificationStatus.SCHEDULED, NotificationStatus.CANCELLED]
    )
    def test_recurrence_definition_cannot_be_reset_or_retried(self, base_time, status):
        definition = make_notification(
            base_time,
            status=status,
            schedule_kind=ScheduleKind.RECURRING,
            due_time=base_time,
            recurrence_interval=timedelta(hours=1),
        )

        with pytest.raises(InvalidTransitionError, match="Recurrence definitions"):
            definition.reset_for_retry(base_time)
        with pytest.raises(InvalidTransitionError, match="Recurrence definitions"):
            definition.prepare_manual_retry(base_time)

        assert definition.status == status

    def test_release_claim_restores_prior_status(self, base_time):
        notification = make_notification(
            base_time,
            status=NotificationStatus.RETRY,
            current_attempt=1,
            last_failure_reason="down",
            next_retry_time=base_time,
        )
        notification.mark_processing(base_time)

        notification.release_claim(NotificationStatus.RETRY, base_time + timedelta(seconds=1))

        assert notification.status == NotificationStatus.RETRY
        assert notification.current_attempt == 1
        assert notification.last_failure_reason == "down"
        assert notification.next_retry_time == base_time

    def test_release_claim_requires_processing(self, base_time):
        notification = make_notification(base_time)

        with pytest.raises(InvalidTransitionError):
            notification.release_claim(NotificationStatus.PENDING, base_time)

    def test_manual_retry_rejected_for_scheduled(self, base_time):
        notification = make_notification(
            base_time,
            status=NotificationStatus.SCHEDULED,
            schedule_kind=ScheduleKind.SCHEDULED,
            due_time=base_time + timedelta(hours=1),
        )

        with pytest.raises(InvalidTransitionError):
            notification.prepare_manual_retry(base_time)

    def test_reschedule_pending_becomes_scheduled(self, base_time):
        notification = make_notification(base_time)
        due = base_time + timedelta(hours=2)

        notification.reschedule(due, base_time)

        assert notification.status == NotificationStatus.SCHEDULED
        assert notification.schedule_kind == ScheduleKind.SCHEDULED
        assert notification.due_time == due

    def test_reschedule_into_past_rejected(self, base_time):
        notification = make_notification(base_time)

        with pytest.raises(ValidationError):
            notification.reschedule(base_time, base_time)

        assert notification.status == NotificationStatus.PENDING

    def test_reschedule_sent_rejected(self, base_time):
        notification = make_notification(base_time, status=NotificationStatus.SENT)

        with pytest.raises(InvalidTransitionError):
            notification.reschedule(base_time + timedelta(hours=1), base_time)


@pytest.mark.unit
class TestRecurrence:
    def _definition(self, base_time, **kwargs):
        kwargs.setdefault("max_occurrences", 3)
        return make_notification(
            base_time,
            status=NotificationStatus.SCHEDULED,
            schedule_kind=ScheduleKind.RECURRING,
            due_time=base_time,
            recurrence_interval=timedelta(hours=1),
            **kwargs,
        )

    def test_spawn_copies_content_and_due_time(self, base_time):
        definition = self._definition(base_time, priority=NotificationPriority.HIGH)

        occurrence = definition.spawn_occurrence(base_time)

        assert occurrence.id != definition.id
        assert occurrence.definition_id == definition.id
        assert occurrence.status == NotificationStatus.SCHEDULED
        assert occurrence.schedule_kind == ScheduleKind.SCHEDULED
        assert occurrence.due_time == base_time
        assert occurrence.priority == NotificationPriority.HIGH
        assert occurrence.body == definition.body

    def test_advance_moves_due_time(self, base_time):
        definition = self._definition(base_time)

        definition.advance_recurrence(base_time)

        assert definition.occurrence_count == 1
        assert definition.due_time == base_time + timedelta(hours=1)
        assert definition.should_continue_recurrence()

    def test_completes_at_max_occurrences(self, base_time):
        definition = self._definition(base_time, max_occurrences=2)

        definition.advance_recurrence(base_time)
        definition.advance_recurrence(base_time)

        assert definition.recurrence_completed_at == base_time
        assert not definition.should_continue_recurrence()
        assert definition.status == NotificationStatus.SCHEDULED

    def test_completes_past_end_time(self, base_time):
        definition = self._definition(
            base_time,
            max_occurrences=None,
            recurrence_end_time=base_time + timedelta(minutes=90),
        )

        definition.advance_recurrence(base_time)
        assert definition.recurrence_completed_at is None

        definition.advance_recurrence(base_time)
        assert definition.recurrence_completed_at == base_time

    def test_spawn_after_completion_rejected(self, base_time):
        definition = self._definition(base_time, max_occurrences=1)
        definition.advance_recurrence(base_time)

        with pytest.raises(InvalidTransitionError):
            definition.spawn_occurrence(base_time)

    def test_recurrence_due(self, base_time):
        definition = self._definition(base_time)

        assert definition.is_recurrence_due(base_time)
        assert not definition.is_recurrence_due(base_time - timedelta(seconds=1))


@pytest.mark.unit
class TestRenderBody:
    def test_substitutes_known_placeholders(self, base_time):
        notification = make_notification(base_time, body="Hi {{name}}, code {{ code }}")

        assert notification.render_body({"name": "Alice", "code": "42"}) == "Hi Alice, code 42"

    def test_unknown_placeholders_left_intact(self, base_time):
        notification = make_notification(base_time, body="Hi {{name}} {{missing}}")

        assert notification.render_body({"name": "Bob"}) == "Hi Bob {{missing}}"

    def test_no_variables_returns_body(self, base_time):
        notification = make_notification(base_time, body="Hi {{name}}")

        assert notification.render_body() == "Hi {{name}}"


@pytest.mark.unit
@freeze_time("2025-01-01 12:00:00")
def test_timestamps_default_to_current_utc_time(base_time):
    notification = Notification(body="hi", channel="EMAIL", recipient_id="user-1")

    assert notification.created_at == base_time
    assert notification.updated_at == base_time
    assert notification.created_at.tzinfo is not None
