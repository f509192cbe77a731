"""Operation status enumeration.

Status codes for operation results, used to classify outcomes of operations
across the application so callers branch on the kind of outcome instead of
catching generic exceptions.
"""

from enum import Enum


class OperationStatus(Enum):
    """Status codes for operation results.

    Attributes:
        SUCCESS: Operation completed successfully
        TRANSIENT_ERROR: Retryable error (network, timeout, rate limit)
        PERMANENT_ERROR: Non-retryable error (bad credentials, rejected payload)
        NOT_FOUND: Resource not found
        VALIDATION_ERROR: Input rejected before entering the state machine
        STATE_CONFLICT: Operation not allowed in the resource's current state
    """

    SUCCESS = "success"
    TRANSIENT_ERROR = "transient_error"
    PERMANENT_ERROR = "permanent_error"
    NOT_FOUND = "not_found"
    VALIDATION_ERROR = "validation_error"
    STATE_CONFLICT = "state_conflict"
