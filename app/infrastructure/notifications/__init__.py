"""Channel capability interface for notification delivery.

Provides the transport side of the delivery engine:
- NotificationChannel interface (send, can_deliver, health_check)
- ChannelRegistry mapping channel names to implementations
- Reference transports (LoggingChannel, HttpRelayChannel)

Usage:
    from infrastructure.notifications import (
        ChannelRegistry,
        DeliveryContent,
        LoggingChannel,
        Recipient,
    )

    registry = ChannelRegistry([LoggingChannel("EMAIL")])

    channel = registry.get("EMAIL")
    outcome = channel.send(
        DeliveryContent(notification_id="n-1", subject="Hi", body="Hello"),
        Recipient(id="user-1", email="user@example.com"),
    )
    if not outcome.success:
        logger.warning("delivery_failed", error=outcome.error_detail)
"""

# Models
from infrastructure.notifications.models import (
    DeliveryContent,
    DeliveryOutcome,
    Recipient,
)

# Channel interface and registry
from infrastructure.notifications.channels.base import NotificationChannel
from infrastructure.notifications.registry import ChannelRegistry

# Channel implementations
from infrastructure.notifications.channels.http_relay import HttpRelayChannel
from infrastructure.notifications.channels.logging_channel import LoggingChannel

__all__ = [
    # Models
    "DeliveryContent",
    "DeliveryOutcome",
    "Recipient",
    # Interface
    "NotificationChannel",
    "ChannelRegistry",
    # Implementations
    "HttpRelayChannel",
    "LoggingChannel",
]
