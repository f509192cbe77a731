"""Engine wiring.

``build_engine`` assembles repository, directory, channels, audit sink,
orchestrator, engines, service and scheduler from Settings. Every
collaborator can be overridden, which is how tests build engines around
fakes and a fixed clock.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from infrastructure.audit import AuditSink, StructlogAuditSink
from infrastructure.configuration import ChannelSettings, Settings
from infrastructure.logging import get_module_logger
from infrastructure.notifications import (
    ChannelRegistry,
    HttpRelayChannel,
    LoggingChannel,
)
from infrastructure.scheduling import PeriodicScheduler
from infrastructure.services.providers import get_settings
from modules.notifications.dispatch import PriorityDispatchBatcher
from modules.notifications.domain import ChannelType, utc_now
from modules.notifications.jobs import register_jobs
from modules.notifications.orchestrator import DeliveryOrchestrator
from modules.notifications.recipients import (
    InMemoryRecipientDirectory,
    RecipientDirectory,
)
from modules.notifications.repository import (
    InMemoryNotificationRepository,
    NotificationRepository,
)
from modules.notifications.retry import RetryEngine
from modules.notifications.scheduling import ScheduleEngine
from modules.notifications.service import NotificationService
from modules.notifications.workers import WorkerPool

logger = get_module_logger()


@dataclass
class NotificationEngine:
    """All wired components of one engine instance."""

    settings: Settings
    repository: NotificationRepository
    directory: RecipientDirectory
    channels: ChannelRegistry
    audit_sink: AuditSink
    workers: WorkerPool
    orchestrator: DeliveryOrchestrator
    retry: RetryEngine
    scheduling: ScheduleEngine
    batcher: PriorityDispatchBatcher
    service: NotificationService
    scheduler: PeriodicScheduler

    def start(self) -> None:
        """Start the periodic sweeps if the scheduler is enabled."""
        if not self.settings.scheduler.enabled:
            logger.info("scheduler_disabled")
            return
        self.scheduler.start()

    def stop(self) -> None:
        self.scheduler.stop()
        self.workers.shutdown()
        self.orchestrator.shutdown()
        logger.info("notification_engine_stopped")


def build_channel_registry(channel_settings: ChannelSettings) -> ChannelRegistry:
    """One channel per ChannelType: an HTTP relay where a URL is configured,
    a LoggingChannel otherwise."""
    registry = ChannelRegistry()
    relay_urls = channel_settings.relay_urls()
    for channel_type in ChannelType:
        url = relay_urls.get(channel_type.value)
        if url:
            registry.register(
                HttpRelayChannel(
                    channel_type.value,
                    url,
                    api_key=channel_settings.relay_api_key,
                    timeout_seconds=channel_settings.relay_timeout_seconds,
                )
            )
        else:
            registry.register(LoggingChannel(channel_type.value))
    return registry


def build_engine(
    settings: Optional[Settings] = None,
    repository: Optional[NotificationRepository] = None,
    directory: Optional[RecipientDirectory] = None,
    channels: Optional[ChannelRegistry] = None,
    audit_sink: Optional[AuditSink] = None,
    clock: Callable[[], datetime] = utc_now,
) -> NotificationEngine:
    """Assemble a NotificationEngine.

    Args:
        settings: Defaults to the process-wide settings
        repository: Defaults to an InMemoryNotificationRepository
        directory: Defaults to an empty InMemoryRecipientDirectory
        channels: Defaults to channels built from ``settings.channels``
        audit_sink: Defaults to a StructlogAuditSink
        clock: Returns the current UTC time

    Returns:
        NotificationEngine with its jobs registered but not started
    """
    settings = settings or get_settings()
    delivery = settings.delivery
    retry_config = delivery.to_retry_config()

    repository = repository if repository is not None else InMemoryNotificationRepository()
    directory = directory if directory is not None else InMemoryRecipientDirectory()
    channels = channels if channels is not None else build_channel_registry(settings.channels)
    audit_sink = audit_sink if audit_sink is not None else StructlogAuditSink()

    workers = WorkerPool(max_workers=delivery.max_workers)
    orchestrator = DeliveryOrchestrator(
        repository=repository,
        directory=directory,
        channels=channels,
        audit_sink=audit_sink,
        retry_config=retry_config,
        send_timeout_seconds=delivery.send_timeout_seconds,
        max_send_workers=delivery.max_workers,
        clock=clock,
    )
    retry = RetryEngine(repository, orchestrator, workers, config=retry_config, clock=clock)
    scheduling = ScheduleEngine(repository, orchestrator, directory, workers, clock=clock)
    batcher = PriorityDispatchBatcher(
        repository,
        orchestrator,
        workers,
        batch_size=retry_config.batch_size,
        clock=clock,
    )
    service = NotificationService(
        repository=repository,
        directory=directory,
        channels=channels,
        orchestrator=orchestrator,
        retry_engine=retry,
        schedule_engine=scheduling,
        batcher=batcher,
        config=retry_config,
        clock=clock,
    )

    engine = NotificationEngine(
        settings=settings,
        repository=repository,
        directory=directory,
        channels=channels,
        audit_sink=audit_sink,
        workers=workers,
        orchestrator=orchestrator,
        retry=retry,
        scheduling=scheduling,
        batcher=batcher,
        service=service,
        scheduler=PeriodicScheduler(tick_seconds=settings.scheduler.tick_seconds),
    )
    register_jobs(engine.scheduler, engine, settings.scheduler)
    logger.info(
        "notification_engine_built",
        channels=channels.channel_names(),
        max_attempts=retry_config.max_attempts,
        batch_size=retry_config.batch_size,
    )
    return engine
