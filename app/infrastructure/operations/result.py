"""Operation result dataclass.

Uniform result type returned from single-item operations (create,
reschedule, cancel, manual retry). Callers inspect ``status`` rather than
catching exceptions for expected failure paths.
"""

from typing import Optional, Any
from dataclasses import dataclass

from infrastructure.operations.status import OperationStatus


@dataclass
class OperationResult:
    """Uniform result returned from operations.

    Attributes:
        status: OperationStatus -- high-level outcome
        message: str -- human-friendly message for logs/troubleshooting
        data: Optional[Any] -- optional payload (typically the affected record)
        error_code: Optional[str] -- optional machine error code
        retry_after: Optional[int] -- seconds until retry when rate-limited
    """

    status: OperationStatus
    message: str
    data: Optional[Any] = None
    error_code: Optional[str] = None
    retry_after: Optional[int] = None

    @property
    def is_success(self) -> bool:
        """True if status is SUCCESS."""
        return self.status == OperationStatus.SUCCESS

    @property
    def is_validation_error(self) -> bool:
        return self.status == OperationStatus.VALIDATION_ERROR

    @property
    def is_state_conflict(self) -> bool:
        return self.status == OperationStatus.STATE_CONFLICT

    @classmethod
    def success(
        cls, data: Optional[Any] = None, message: str = "ok"
    ) -> "OperationResult":
        """Create a SUCCESS OperationResult with optional data.

        Args:
            data: Optional payload to include with the result
            message: Human-friendly success message

        Returns:
            OperationResult with SUCCESS status
        """
        return cls(status=OperationStatus.SUCCESS, message=message, data=data)

    @classmethod
    def error(
        cls,
        status: OperationStatus,
        message: str,
        error_code: Optional[str] = None,
        retry_after: Optional[int] = None,
        data: Optional[Any] = None,
    ) -> "OperationResult":
        """Create an error OperationResult.

        Args:
            status: OperationStatus indicating error type
            message: Human-friendly error message
            error_code: Optional machine error code
            retry_after: Optional seconds until retry (for rate limiting)
            data: Optional payload to include with the error

        Returns:
            OperationResult with specified error status
        """
        return cls(
            status=status,
            message=message,
            error_code=error_code,
            retry_after=retry_after,
            data=data,
        )

    @classmethod
    def transient_error(
        cls,
        message: str,
        error_code: Optional[str] = None,
        retry_after: Optional[int] = None,
    ) -> "OperationResult":
        """Create a transient (retryable) error result.

        Use for provider timeouts, 5xx responses and rate limiting.
        """
        return cls.error(
            OperationStatus.TRANSIENT_ERROR, message, error_code, retry_after
        )

    @classmethod
    def permanent_error(
        cls, message: str, error_code: Optional[str] = None
    ) -> "OperationResult":
        """Create a permanent (non-retryable) error result."""
        return cls.error(OperationStatus.PERMANENT_ERROR, message, error_code)

    @classmethod
    def not_found(
        cls, message: str, error_code: Optional[str] = "NOT_FOUND"
    ) -> "OperationResult":
        """Create a NOT_FOUND result for unknown identifiers."""
        return cls.error(OperationStatus.NOT_FOUND, message, error_code)

    @classmethod
    def validation_error(
        cls, message: str, error_code: Optional[str] = "VALIDATION_ERROR"
    ) -> "OperationResult":
        """Create a VALIDATION_ERROR result.

        Used when input (scheduling config, due time, recurrence end
        condition) is rejected before anything is persisted.
        """
        return cls.error(OperationStatus.VALIDATION_ERROR, message, error_code)

    @classmethod
    def state_conflict(
        cls,
        message: str,
        error_code: Optional[str] = "STATE_CONFLICT",
        data: Optional[Any] = None,
    ) -> "OperationResult":
        """Create a STATE_CONFLICT result.

        The target resource is left unchanged; ``data`` may carry its
        current state for the caller.
        """
        return cls.error(
            OperationStatus.STATE_CONFLICT, message, error_code, data=data
        )
