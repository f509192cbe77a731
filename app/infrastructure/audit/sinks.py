"""Audit sinks.

The delivery engine only writes to an audit sink; reads exist for tests and
operators. Sinks must never raise into the delivery path.
"""

import threading
from typing import List, Protocol

import structlog

from infrastructure.audit.models import DeliveryAuditEntry

logger = structlog.get_logger()


class AuditSink(Protocol):
    """Append-only audit write interface."""

    def append(self, entry: DeliveryAuditEntry) -> None:
        """Record ``entry``."""
        ...


class InMemoryAuditSink:
    """Thread-safe in-memory audit trail.

    Example:
        sink = InMemoryAuditSink()
        sink.append(DeliveryAuditEntry(notification_id="n-1", status="SENT"))
        assert sink.entries_for("n-1")[0].status == "SENT"
    """

    def __init__(self):
        self._entries: List[DeliveryAuditEntry] = []
        self._lock = threading.Lock()

    def append(self, entry: DeliveryAuditEntry) -> None:
        with self._lock:
            self._entries.append(entry)

    def entries(self) -> List[DeliveryAuditEntry]:
        with self._lock:
            return list(self._entries)

    def entries_for(self, notification_id: str) -> List[DeliveryAuditEntry]:
        """All entries for ``notification_id`` in append order."""
        with self._lock:
            return [e for e in self._entries if e.notification_id == notification_id]


class StructlogAuditSink:
    """Audit sink that emits each entry as a ``notification_audit`` log event."""

    def __init__(self, event_name: str = "notification_audit"):
        self._event_name = event_name

    def append(self, entry: DeliveryAuditEntry) -> None:
        logger.info(self._event_name, **entry.to_log_payload())
