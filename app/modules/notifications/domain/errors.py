"""Errors for the notifications module.

These are raised inside the module and translated into OperationResult
kinds at the service and engine boundary.
"""

from typing import Optional


class NotificationError(Exception):
    """Base class for notification errors."""


class ValidationError(NotificationError):
    """Raised when scheduling input or a requested change is invalid.

    Nothing is persisted when this is raised.
    """


class StateConflictError(NotificationError):
    """Raised when an operation is not allowed in the record's current state."""


class InvalidTransitionError(StateConflictError):
    """Raised by record operations on an illegal status transition.

    Attributes:
        current: Status the record was in
        target: Status the operation tried to move to
    """

    def __init__(self, current, target, message: Optional[str] = None):
        self.current = current
        self.target = target
        super().__init__(
            message
            or f"Cannot transition from {current.value} to {target.value}"
        )
