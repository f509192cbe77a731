"""Unit tests for ScheduleEngine."""

from datetime import timedelta

import pytest

from infrastructure.operations import OperationStatus
from modules.notifications.domain import NotificationStatus, ScheduleKind
from modules.notifications.scheduling import INELIGIBLE_AT_SCHEDULED_TIME


@pytest.fixture
def scheduled(stored, clock):
    def _factory(due_in: timedelta = timedelta(0), **kwargs):
        return stored(
            status=NotificationStatus.SCHEDULED,
            schedule_kind=ScheduleKind.SCHEDULED,
            due_time=clock() + due_in,
            **kwargs,
        )

    return _factory


@pytest.fixture
def definition(stored, clock):
    def _factory(**kwargs):
        kwargs.setdefault("recurrence_interval", timedelta(hours=1))
        return stored(
            status=NotificationStatus.SCHEDULED,
            schedule_kind=ScheduleKind.RECURRING,
            due_time=clock(),
            **kwargs,
        )

    return _factory


@pytest.mark.unit
class TestPromotion:
    def test_due_occurrence_is_sent(self, schedule_engine, scheduled, repository, email_channel):
        notification = scheduled()

        report = schedule_engine.promote_due_scheduled()

        assert report.selected == 1
        assert report.sent == 1
        email_channel.send.assert_called_once()
        assert repository.find_by_id(notification.id).status == NotificationStatus.SENT

    def test_future_occurrence_waits(self, schedule_engine, scheduled, repository, clock):
        notification = scheduled(due_in=timedelta(minutes=5))

        assert schedule_engine.promote_due_scheduled().selected == 0

        clock.advance(minutes=5)
        schedule_engine.promote_due_scheduled()
        assert repository.find_by_id(notification.id).status == NotificationStatus.SENT

    def test_ineligible_recipient_fails(
        self, schedule_engine, scheduled, repository, directory, email_channel
    ):
        notification = scheduled()
        directory.deactivate("user-1")

        report = schedule_engine.promote_due_scheduled()

        assert report.failed == 1
        email_channel.send.assert_not_called()
        saved = repository.find_by_id(notification.id)
        assert saved.status == NotificationStatus.FAILED
        assert saved.last_failure_reason == INELIGIBLE_AT_SCHEDULED_TIME

    def test_unknown_recipient_fails(self, schedule_engine, scheduled, repository):
        notification = scheduled(recipient_id="ghost")

        schedule_engine.promote_due_scheduled()

        assert repository.find_by_id(notification.id).status == NotificationStatus.FAILED


@pytest.mark.unit
class TestRecurrence:
    def test_max_occurrences_caps_materialization(
        self, schedule_engine, definition, repository, clock
    ):
        recurring = definition(max_occurrences=5)

        for _ in range(10):
            schedule_engine.materialize_recurrences()
            clock.advance(hours=1)

        occurrences = repository.find_occurrences(recurring.id)
        assert len(occurrences) == 5
        assert len({o.due_time for o in occurrences}) == 5
        saved = repository.find_by_id(recurring.id)
        assert saved.occurrence_count == 5
        assert saved.recurrence_completed_at is not None
        assert saved.status == NotificationStatus.SCHEDULED

    def test_end_time_stops_materialization(
        self, schedule_engine, definition, repository, clock, email_channel
    ):
        recurring = definition(recurrence_end_time=clock() + timedelta(minutes=150))

        for _ in range(6):
            schedule_engine.materialize_recurrences()
            clock.advance(hours=1)
        report = schedule_engine.promote_due_scheduled()

        occurrences = repository.find_occurrences(recurring.id)
        assert sorted(o.due_time - recurring.due_time for o in occurrences) == [
            timedelta(0),
            timedelta(hours=1),
            timedelta(hours=2),
        ]
        assert all(
            repository.find_by_id(o.id).status == NotificationStatus.SENT for o in occurrences
        )
        assert email_channel.send.call_count == 3
        assert report.selected == 3

    def test_one_occurrence_per_sweep(self, schedule_engine, definition, repository, clock):
        recurring = definition(max_occurrences=5)
        clock.advance(hours=3)

        report = schedule_engine.materialize_recurrences()

        assert report.created == 1
        assert len(repository.find_occurrences(recurring.id)) == 1

    def test_occurrences_are_promoted(
        self, schedule_engine, definition, repository, email_channel
    ):
        recurring = definition(max_occurrences=2)

        schedule_engine.materialize_recurrences()
        schedule_engine.promote_due_scheduled()

        [occurrence] = repository.find_occurrences(recurring.id)
        assert repository.find_by_id(occurrence.id).status == NotificationStatus.SENT
        assert repository.find_by_id(recurring.id).status == NotificationStatus.SCHEDULED
        email_channel.send.assert_called_once()

    def test_cancelled_definition_stops(self, schedule_engine, definition, repository):
        recurring = definition(max_occurrences=5)

        assert schedule_engine.cancel(recurring.id).is_success
        report = schedule_engine.materialize_recurrences()

        assert report.selected == 0
        assert repository.find_occurrences(recurring.id) == []


@pytest.mark.unit
class TestReschedule:
    def test_moves_due_time(self, schedule_engine, scheduled, repository, clock):
        notification = scheduled(due_in=timedelta(minutes=5))
        new_due = clock() + timedelta(hours=3)

        result = schedule_engine.reschedule(notification.id, new_due)

        assert result.is_success
        assert repository.find_by_id(notification.id).due_time == new_due

    def test_pending_becomes_scheduled(self, schedule_engine, stored, repository, clock):
        notification = stored()

        schedule_engine.reschedule(notification.id, clock() + timedelta(hours=1))

        saved = repository.find_by_id(notification.id)
        assert saved.status == NotificationStatus.SCHEDULED
        assert saved.schedule_kind == ScheduleKind.SCHEDULED

    def test_sent_notification_is_unchanged(self, schedule_engine, stored, repository, clock):
        notification = stored(status=NotificationStatus.SENT)
        before = repository.find_by_id(notification.id)

        result = schedule_engine.reschedule(notification.id, clock() + timedelta(hours=1))

        assert result.status == OperationStatus.STATE_CONFLICT
        after = repository.find_by_id(notification.id)
        assert after.status == NotificationStatus.SENT
        assert after.version == before.version
        assert after.due_time is None

    def test_past_due_time_rejected(self, schedule_engine, scheduled, clock):
        notification = scheduled(due_in=timedelta(minutes=5))

        result = schedule_engine.reschedule(notification.id, clock() - timedelta(minutes=1))

        assert result.is_validation_error

    def test_unknown_notification(self, schedule_engine, clock):
        result = schedule_engine.reschedule("missing", clock() + timedelta(hours=1))

        assert result.status == OperationStatus.NOT_FOUND


@pytest.mark.unit
class TestCancel:
    def test_cancelled_occurrence_is_not_sent(
        self, schedule_engine, scheduled, repository, clock, email_channel
    ):
        notification = scheduled(due_in=timedelta(minutes=5))

        result = schedule_engine.cancel(notification.id)
        clock.advance(minutes=10)
        schedule_engine.promote_due_scheduled()

        assert result.is_success
        assert repository.find_by_id(notification.id).status == NotificationStatus.CANCELLED
        email_channel.send.assert_not_called()

    def test_pending_cannot_be_cancelled(self, schedule_engine, stored):
        notification = stored()

        result = schedule_engine.cancel(notification.id)

        assert result.is_state_conflict
        assert result.data.status == NotificationStatus.PENDING
