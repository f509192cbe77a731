"""Recipient directory.

Recipients are owned by an external directory. The engine asks it for
contact details and whether a recipient may currently receive on a channel.
"""

import threading
from typing import Dict, Iterable, Optional, Protocol

from infrastructure.notifications import Recipient
from modules.notifications.domain import ChannelType


class RecipientDirectory(Protocol):
    """Read interface onto the recipient directory."""

    def get(self, recipient_id: str) -> Optional[Recipient]:
        """Return the recipient, or None if unknown."""
        ...

    def is_eligible(self, recipient: Recipient, channel: ChannelType) -> bool:
        """True if ``recipient`` may currently receive on ``channel``."""
        ...


class InMemoryRecipientDirectory:
    """Dictionary-backed directory used in development and tests.

    A recipient is eligible when it is active and accepts the channel.
    """

    def __init__(self, recipients: Optional[Iterable[Recipient]] = None):
        self._recipients: Dict[str, Recipient] = {}
        self._lock = threading.Lock()
        for recipient in recipients or []:
            self.add(recipient)

    def add(self, recipient: Recipient) -> None:
        with self._lock:
            self._recipients[recipient.id] = recipient

    def deactivate(self, recipient_id: str) -> None:
        with self._lock:
            recipient = self._recipients.get(recipient_id)
            if recipient is not None:
                self._recipients[recipient_id] = recipient.model_copy(update={"active": False})

    def get(self, recipient_id: str) -> Optional[Recipient]:
        with self._lock:
            return self._recipients.get(recipient_id)

    def is_eligible(self, recipient: Recipient, channel: ChannelType) -> bool:
        return recipient.accepts(channel.value)


__all__ = ["Recipient", "RecipientDirectory", "InMemoryRecipientDirectory"]
