"""Logging channel: records deliveries as structured log events.

Used in development and demos where no real provider is wired up. The
channel still enforces addressability so eligibility paths behave as they
would against a real transport.
"""

import uuid

import structlog

from infrastructure.notifications.channels.base import NotificationChannel
from infrastructure.notifications.models import (
    DeliveryContent,
    DeliveryOutcome,
    Recipient,
)
from infrastructure.operations import OperationResult

logger = structlog.get_logger()


class LoggingChannel(NotificationChannel):
    """Channel that logs each delivery instead of calling a provider."""

    def __init__(self, channel_name: str):
        self._channel_name = channel_name.upper()

    @property
    def channel_name(self) -> str:
        """Channel identifier."""
        return self._channel_name

    def send(self, content: DeliveryContent, recipient: Recipient) -> DeliveryOutcome:
        address = recipient.address_for(self._channel_name)
        if address is None:
            return DeliveryOutcome.failed(
                f"Recipient {recipient.id} has no {self._channel_name} address"
            )

        message_id = uuid.uuid4().hex
        logger.info(
            "notification_delivered",
            channel=self._channel_name,
            notification_id=content.notification_id,
            recipient_id=recipient.id,
            subject=content.subject,
            body=content.body,
            provider_message_id=message_id,
        )
        return DeliveryOutcome.delivered(
            message=f"Logged {self._channel_name} delivery",
            provider_message_id=message_id,
        )

    def can_deliver(self, recipient: Recipient) -> bool:
        return recipient.address_for(self._channel_name) is not None

    def health_check(self) -> OperationResult:
        return OperationResult.success(
            message="Logging channel available",
            data={"channel": self._channel_name},
        )
