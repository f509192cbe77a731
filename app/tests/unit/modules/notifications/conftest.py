"""Fixtures for notification engine tests.

Every engine shares one repository, directory, channel registry, audit sink
and FakeClock so tests can drive sweeps and inspect the stored records.
"""

from unittest.mock import MagicMock

import pytest

from infrastructure.audit import InMemoryAuditSink
from infrastructure.notifications import (
    ChannelRegistry,
    DeliveryOutcome,
    NotificationChannel,
)
from infrastructure.operations import OperationResult
from infrastructure.resilience.retry import RetryConfig
from modules.notifications.dispatch import PriorityDispatchBatcher
from modules.notifications.orchestrator import DeliveryOrchestrator
from modules.notifications.recipients import InMemoryRecipientDirectory
from modules.notifications.repository import InMemoryNotificationRepository
from modules.notifications.retry import RetryEngine
from modules.notifications.scheduling import ScheduleEngine
from modules.notifications.service import NotificationService
from modules.notifications.workers import WorkerPool
from tests.factories import make_notification, make_recipient


def _mock_channel(channel_name: str) -> MagicMock:
    channel = MagicMock(spec=NotificationChannel)
    channel.channel_name = channel_name
    channel.send.return_value = DeliveryOutcome.delivered(provider_message_id="msg-1")
    channel.can_deliver.return_value = True
    channel.health_check.return_value = OperationResult.success(message="ok")
    return channel


@pytest.fixture
def retry_config():
    return RetryConfig(
        max_attempts=3,
        initial_interval_ms=1000,
        backoff_multiplier=2.0,
        max_interval_ms=10000,
        batch_size=2,
        processing_timeout_seconds=300,
    )


@pytest.fixture
def repository():
    return InMemoryNotificationRepository()


@pytest.fixture
def recipient():
    return make_recipient(variables={"name": "Alice"})


@pytest.fixture
def directory(recipient):
    return InMemoryRecipientDirectory([recipient])


@pytest.fixture
def email_channel():
    return _mock_channel("EMAIL")


@pytest.fixture
def sms_channel():
    return _mock_channel("SMS")


@pytest.fixture
def channels(email_channel, sms_channel):
    return ChannelRegistry([email_channel, sms_channel])


@pytest.fixture
def audit_sink():
    return InMemoryAuditSink()


@pytest.fixture
def orchestrator(repository, directory, channels, audit_sink, retry_config, clock):
    orchestrator = DeliveryOrchestrator(
        repository=repository,
        directory=directory,
        channels=channels,
        audit_sink=audit_sink,
        retry_config=retry_config,
        send_timeout_seconds=0.5,
        max_send_workers=4,
        clock=clock,
    )
    yield orchestrator
    orchestrator.shutdown(wait=False)


@pytest.fixture
def workers():
    pool = WorkerPool(max_workers=4)
    yield pool
    pool.shutdown()


@pytest.fixture
def retry_engine(repository, orchestrator, workers, retry_config, clock):
    return RetryEngine(repository, orchestrator, workers, config=retry_config, clock=clock)


@pytest.fixture
def schedule_engine(repository, orchestrator, directory, workers, clock):
    return ScheduleEngine(repository, orchestrator, directory, workers, clock=clock)


@pytest.fixture
def batcher(repository, orchestrator, workers, retry_config, clock):
    return PriorityDispatchBatcher(
        repository,
        orchestrator,
        workers,
        batch_size=retry_config.batch_size,
        clock=clock,
    )


@pytest.fixture
def service(
    repository,
    directory,
    channels,
    orchestrator,
    retry_engine,
    schedule_engine,
    batcher,
    retry_config,
    clock,
):
    return NotificationService(
        repository=repository,
        directory=directory,
        channels=channels,
        orchestrator=orchestrator,
        retry_engine=retry_engine,
        schedule_engine=schedule_engine,
        batcher=batcher,
        config=retry_config,
        clock=clock,
    )


@pytest.fixture
def stored(repository, clock):
    """Factory that saves a notification built with ``make_notification``."""

    def _factory(**kwargs):
        kwargs.setdefault("created_at", clock())
        return repository.save(make_notification(**kwargs))

    return _factory
