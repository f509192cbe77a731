"""Unit tests for NotificationService."""

from datetime import timedelta

import pytest

from infrastructure.operations import OperationStatus
from modules.notifications.domain import (
    ChannelType,
    NotificationPriority,
    NotificationStatus,
    RecurrenceFrequency,
    ScheduleKind,
)
from modules.notifications.orchestrator import DispatchOutcome
from tests.factories import make_recipient, make_request


@pytest.mark.unit
class TestCreate:
    def test_immediate_starts_pending(self, service, repository, clock):
        result = service.create(make_request(priority=NotificationPriority.HIGH))

        assert result.is_success
        saved = repository.find_by_id(result.data.id)
        assert saved.status == NotificationStatus.PENDING
        assert saved.priority == NotificationPriority.HIGH
        assert saved.max_attempts == 3
        assert saved.created_at == clock()

    def test_scheduled_starts_scheduled(self, service, clock):
        due = clock() + timedelta(hours=1)

        result = service.create(
            make_request(schedule_kind=ScheduleKind.SCHEDULED, due_time=due)
        )

        assert result.data.status == NotificationStatus.SCHEDULED
        assert result.data.due_time == due

    def test_recurring_definition(self, service, clock):
        result = service.create(
            make_request(
                schedule_kind=ScheduleKind.RECURRING,
                due_time=clock() + timedelta(hours=1),
                frequency=RecurrenceFrequency.DAILY,
                max_occurrences=5,
            )
        )

        definition = result.data
        assert definition.status == NotificationStatus.SCHEDULED
        assert definition.schedule_kind == ScheduleKind.RECURRING
        assert definition.recurrence_interval == timedelta(days=1)
        assert definition.max_occurrences == 5

    def test_accepts_plain_mapping(self, service):
        result = service.create(
            {"body": "Hi", "channel": "SMS", "recipient_id": "user-1", "priority": "LOW"}
        )

        assert result.is_success
        assert result.data.channel == ChannelType.SMS

    def test_schema_errors_become_validation_errors(self, service, repository):
        result = service.create({"body": "  ", "channel": "EMAIL", "recipient_id": "user-1"})

        assert result.is_validation_error
        assert repository.count() == 0

    def test_past_schedule_rejected(self, service, repository, clock):
        result = service.create(
            make_request(
                schedule_kind=ScheduleKind.SCHEDULED, due_time=clock() - timedelta(minutes=1)
            )
        )

        assert result.is_validation_error
        assert "future" in result.message
        assert repository.count() == 0

    def test_unknown_recipient_rejected(self, service):
        result = service.create(make_request(recipient_id="ghost"))

        assert result.is_validation_error
        assert "Recipient not found" in result.message

    def test_recipient_preferences_respected(self, service, directory):
        directory.add(make_recipient(id="email-only", preferred_channels=["EMAIL"]))

        result = service.create(make_request(recipient_id="email-only", channel=ChannelType.SMS))

        assert result.is_validation_error
        assert "cannot receive SMS" in result.message

    def test_unsupported_channel_rejected(self, service):
        result = service.create(make_request(channel=ChannelType.PUSH))

        assert result.is_validation_error
        assert "Channel not supported" in result.message

    def test_missing_address_rejected(self, service, email_channel):
        email_channel.can_deliver.return_value = False

        result = service.create(make_request())

        assert result.is_validation_error
        assert "has no EMAIL address" in result.message


@pytest.mark.unit
class TestCreateBulk:
    def test_one_result_per_recipient(self, service, directory, repository):
        directory.add(make_recipient(id="user-2"))

        results = service.create_bulk(make_request(), ["user-1", "ghost", "user-2"])

        assert [r.status for r in results] == [
            OperationStatus.SUCCESS,
            OperationStatus.VALIDATION_ERROR,
            OperationStatus.SUCCESS,
        ]
        assert repository.count() == 2
        assert {results[0].data.recipient_id, results[2].data.recipient_id} == {
            "user-1",
            "user-2",
        }


@pytest.mark.unit
class TestOperations:
    def test_send_now(self, service, email_channel):
        created = service.create(make_request()).data

        result = service.send_now(created.id)

        assert result.outcome == DispatchOutcome.SENT
        email_channel.send.assert_called_once()

    def test_get(self, service):
        created = service.create(make_request()).data

        assert service.get(created.id).data.id == created.id
        assert service.get("missing").status == OperationStatus.NOT_FOUND

    def test_reschedule_and_cancel(self, service, repository, clock):
        created = service.create(make_request()).data

        assert service.reschedule(created.id, clock() + timedelta(hours=1)).is_success
        assert service.cancel(created.id).is_success
        assert repository.find_by_id(created.id).status == NotificationStatus.CANCELLED

        assert service.reset(created.id).is_success
        assert repository.find_by_id(created.id).status == NotificationStatus.PENDING

    def test_manual_retry(self, service):
        created = service.create(make_request()).data

        result = service.manual_retry(created.id)

        assert result.is_success
        assert result.data.delivered

    def test_statistics(self, service):
        service.create(make_request(priority=NotificationPriority.HIGH))

        stats = service.get_statistics()

        assert stats["dispatch"]["pending_by_priority"]["HIGH"] == 1
        assert stats["retry"]["retry_count"] == 0
