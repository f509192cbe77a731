"""Notification channel abstract base class.

All channel implementations (logging, HTTP relay, ...) must implement this
interface.
"""

from abc import ABC, abstractmethod

from infrastructure.notifications.models import (
    DeliveryContent,
    DeliveryOutcome,
    Recipient,
)
from infrastructure.operations import OperationResult


class NotificationChannel(ABC):
    """Abstract base class for notification channels.

    Each channel handles delivery through one transport (EMAIL, SMS, PUSH,
    ...). Channels are looked up by ``channel_name`` in a ChannelRegistry, so
    adding a transport never touches the delivery orchestrator.

    Example Implementation:
        class PagerChannel(NotificationChannel):

            @property
            def channel_name(self) -> str:
                return "PAGER"

            def send(self, content, recipient) -> DeliveryOutcome:
                ...

            def can_deliver(self, recipient) -> bool:
                return recipient.address_for(self.channel_name) is not None

            def health_check(self) -> OperationResult:
                return OperationResult.success(message="ok")
    """

    @property
    @abstractmethod
    def channel_name(self) -> str:
        """Channel identifier (EMAIL, SMS, PUSH, ...).

        Returns:
            Upper-case channel name used for routing and logging
        """
        pass

    @abstractmethod
    def send(self, content: DeliveryContent, recipient: Recipient) -> DeliveryOutcome:
        """Deliver ``content`` to ``recipient``.

        Must handle errors gracefully and return a failed DeliveryOutcome
        rather than raising exceptions.

        Args:
            content: Rendered message content
            recipient: Target recipient with contact details

        Returns:
            DeliveryOutcome describing the provider response
        """
        pass

    @abstractmethod
    def can_deliver(self, recipient: Recipient) -> bool:
        """True if this channel can address ``recipient``.

        Typically checks that the recipient carries the contact attribute the
        transport needs (email address, phone number, device token).
        """
        pass

    @abstractmethod
    def health_check(self) -> OperationResult:
        """Check channel health (provider connectivity, credentials).

        Returns:
            OperationResult indicating channel health
        """
        pass
