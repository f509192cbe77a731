"""Notification channel implementations."""

from infrastructure.notifications.channels.base import NotificationChannel
from infrastructure.notifications.channels.http_relay import HttpRelayChannel
from infrastructure.notifications.channels.logging_channel import LoggingChannel

__all__ = [
    "NotificationChannel",
    "HttpRelayChannel",
    "LoggingChannel",
]
