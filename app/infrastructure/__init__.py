"""Infrastructure modules for the notification engine.

Centralized infrastructure components:
- configuration: Settings management (Settings, DeliverySettings, ...)
- logging: Structured logging setup and context binding
- operations: Operation results and error classification
- resilience: Retry policy and exponential backoff
- notifications: Channel interface, registry and transports
- audit: Delivery audit trail
- scheduling: Process-wide periodic scheduler
- services: Application-scoped providers (get_settings)
"""

from infrastructure.operations.result import OperationResult
from infrastructure.operations.status import OperationStatus
from infrastructure.services import get_settings

__all__ = [
    "OperationResult",
    "OperationStatus",
    "get_settings",
]
