"""Retry system configuration.

This module defines the retry policy used by the delivery engines: attempt
limits, exponential backoff timing, batch sizing and the processing lease.
"""

from dataclasses import dataclass
from datetime import timedelta


@dataclass(frozen=True)
class RetryConfig:
    """Configuration for retry behavior.

    Attributes:
        max_attempts: Attempts allowed before a notification is FAILED
        initial_interval_ms: Backoff delay for attempt number 0
        backoff_multiplier: Growth factor applied per attempt
        max_interval_ms: Cap for the backoff delay
        batch_size: Number of records processed per dispatch batch
        processing_timeout_seconds: Age after which a PROCESSING claim is
            considered abandoned and reclaimed

    Example:
        # Default configuration
        config = RetryConfig()

        # Custom configuration
        config = RetryConfig(
            max_attempts=5,
            initial_interval_ms=500,
            batch_size=50,
        )

        config.compute_backoff(2)  # timedelta(seconds=4)
    """

    max_attempts: int = 3
    initial_interval_ms: int = 1000  # 1 second
    backoff_multiplier: float = 2.0
    max_interval_ms: int = 10000  # 10 seconds
    batch_size: int = 100
    processing_timeout_seconds: int = 300  # 5 minutes

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.initial_interval_ms < 1:
            raise ValueError("initial_interval_ms must be at least 1")
        if self.backoff_multiplier < 1.0:
            raise ValueError("backoff_multiplier must be >= 1.0")
        if self.max_interval_ms < self.initial_interval_ms:
            raise ValueError("max_interval_ms must be >= initial_interval_ms")
        if self.batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        if self.processing_timeout_seconds < 1:
            raise ValueError("processing_timeout_seconds must be at least 1")

    def compute_backoff_ms(self, attempt_number: int) -> int:
        """Calculate exponential backoff delay in milliseconds.

        Uses the formula: initial * (multiplier ^ attempt_number),
        capped at max_interval_ms.

        Args:
            attempt_number: Number of attempts already made (0-based)

        Returns:
            Delay in milliseconds before the next attempt
        """
        if attempt_number < 0:
            attempt_number = 0
        try:
            delay = self.initial_interval_ms * (self.backoff_multiplier**attempt_number)
        except OverflowError:
            return self.max_interval_ms
        return int(min(delay, self.max_interval_ms))

    def compute_backoff(self, attempt_number: int) -> timedelta:
        """Backoff delay for ``attempt_number`` as a timedelta."""
        return timedelta(milliseconds=self.compute_backoff_ms(attempt_number))

    def should_retry(self, current_attempt: int, max_attempts: int | None = None) -> bool:
        """True iff another attempt is allowed.

        Args:
            current_attempt: Attempts already consumed
            max_attempts: Per-record limit; defaults to this config's limit
        """
        limit = self.max_attempts if max_attempts is None else max_attempts
        return current_attempt < limit
