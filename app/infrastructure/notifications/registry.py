"""Channel registry.

Maps channel names to NotificationChannel implementations. Populated once at
startup; the delivery orchestrator only ever looks channels up by name.
"""

import threading
from typing import Dict, List, Optional

import structlog

from infrastructure.notifications.channels.base import NotificationChannel
from infrastructure.operations import OperationResult

logger = structlog.get_logger()


class ChannelRegistry:
    """Thread-safe mapping of channel name to channel implementation.

    Keys are upper-case channel names. String-valued enums (e.g. a
    ``ChannelType`` member) can be passed wherever a name is expected.

    Example:
        registry = ChannelRegistry()
        registry.register(LoggingChannel("EMAIL"))

        channel = registry.get("EMAIL")
        if channel and channel.can_deliver(recipient):
            outcome = channel.send(content, recipient)
    """

    def __init__(self, channels: Optional[List[NotificationChannel]] = None):
        self._channels: Dict[str, NotificationChannel] = {}
        self._lock = threading.Lock()
        for channel in channels or []:
            self.register(channel)

    @staticmethod
    def _key(channel_name) -> str:
        value = getattr(channel_name, "value", channel_name)
        return str(value).upper()

    def register(self, channel: NotificationChannel) -> None:
        """Register ``channel`` under its ``channel_name``.

        A later registration for the same name replaces the earlier one.
        """
        key = self._key(channel.channel_name)
        with self._lock:
            replaced = key in self._channels
            self._channels[key] = channel
        logger.info(
            "channel_registered",
            channel=key,
            implementation=type(channel).__name__,
            replaced=replaced,
        )

    def get(self, channel_name) -> Optional[NotificationChannel]:
        with self._lock:
            return self._channels.get(self._key(channel_name))

    def is_supported(self, channel_name) -> bool:
        with self._lock:
            return self._key(channel_name) in self._channels

    def channel_names(self) -> List[str]:
        with self._lock:
            return sorted(self._channels)

    def health_check(self) -> Dict[str, OperationResult]:
        """Run ``health_check`` on every registered channel.

        Returns:
            Mapping of channel name to its health result. Channels that raise
            are reported as transient errors.
        """
        with self._lock:
            channels = dict(self._channels)

        results: Dict[str, OperationResult] = {}
        for name, channel in channels.items():
            try:
                results[name] = channel.health_check()
            except Exception as e:  # pylint: disable=broad-except
                logger.error("channel_health_check_error", channel=name, error=str(e))
                results[name] = OperationResult.transient_error(
                    f"Health check raised: {e}", error_code="HEALTH_CHECK_ERROR"
                )
        return results
