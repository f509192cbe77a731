"""Audit trail for notification deliveries.

This package provides:
- DeliveryAuditEntry: Pydantic model for one delivery attempt
- AuditSink: append-only write interface consumed by the orchestrator
- InMemoryAuditSink / StructlogAuditSink implementations
"""

from infrastructure.audit.models import DeliveryAuditEntry
from infrastructure.audit.sinks import AuditSink, InMemoryAuditSink, StructlogAuditSink

__all__ = [
    "DeliveryAuditEntry",
    "AuditSink",
    "InMemoryAuditSink",
    "StructlogAuditSink",
]
