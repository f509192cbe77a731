"""Delivery engine infrastructure settings."""

from pydantic import Field

from infrastructure.configuration.base import InfrastructureSettings
from infrastructure.resilience.retry.config import RetryConfig


class DeliverySettings(InfrastructureSettings):
    """Notification delivery configuration.

    Controls retry backoff, batch sizing, per-attempt send deadlines and the
    concurrency of sweeps.

    Environment Variables:
        NOTIFICATION_MAX_ATTEMPTS: Attempts before a notification is FAILED (default: 3)
        NOTIFICATION_INITIAL_RETRY_INTERVAL_MS: First backoff delay (default: 1000ms)
        NOTIFICATION_BACKOFF_MULTIPLIER: Exponential multiplier (default: 2.0)
        NOTIFICATION_MAX_RETRY_INTERVAL_MS: Backoff cap (default: 10000ms)
        NOTIFICATION_BATCH_SIZE: Notifications per dispatch batch (default: 100)
        NOTIFICATION_SEND_TIMEOUT_SECONDS: Deadline for one channel call (default: 10)
        NOTIFICATION_MAX_WORKERS: Concurrent dispatches per sweep (default: 8)
        NOTIFICATION_PROCESSING_TIMEOUT_SECONDS: Age after which a PROCESSING
            record is reclaimed as a failed attempt (default: 300)

    Exponential Backoff:
        Delay calculation: min(initial * (multiplier ^ attempt), max)

        Example with defaults (initial=1000ms, multiplier=2.0, max=10000ms):
            Attempt 0: 1000ms
            Attempt 1: 2000ms
            Attempt 2: 4000ms
            Attempt 3: 8000ms
            Attempt 4: 10000ms (capped)

    Example:
        ```python
        from infrastructure.services import get_settings

        settings = get_settings()
        retry_config = settings.delivery.to_retry_config()
        ```
    """

    max_attempts: int = Field(
        default=3,
        alias="NOTIFICATION_MAX_ATTEMPTS",
        description="Maximum delivery attempts before a notification fails",
    )
    initial_retry_interval_ms: int = Field(
        default=1000,
        alias="NOTIFICATION_INITIAL_RETRY_INTERVAL_MS",
        description="Initial backoff delay (milliseconds)",
    )
    backoff_multiplier: float = Field(
        default=2.0,
        alias="NOTIFICATION_BACKOFF_MULTIPLIER",
        description="Exponential backoff multiplier",
    )
    max_retry_interval_ms: int = Field(
        default=10000,
        alias="NOTIFICATION_MAX_RETRY_INTERVAL_MS",
        description="Maximum backoff delay (milliseconds)",
    )
    batch_size: int = Field(
        default=100,
        alias="NOTIFICATION_BATCH_SIZE",
        description="Number of notifications dispatched per batch",
    )
    send_timeout_seconds: float = Field(
        default=10.0,
        alias="NOTIFICATION_SEND_TIMEOUT_SECONDS",
        description="Deadline for a single channel send (seconds)",
    )
    max_workers: int = Field(
        default=8,
        alias="NOTIFICATION_MAX_WORKERS",
        description="Concurrent dispatches within one sweep",
    )
    processing_timeout_seconds: int = Field(
        default=300,
        alias="NOTIFICATION_PROCESSING_TIMEOUT_SECONDS",
        description="Age after which a PROCESSING record is reclaimed",
    )

    def to_retry_config(self) -> RetryConfig:
        """Build the RetryConfig consumed by the delivery engines."""
        return RetryConfig(
            max_attempts=self.max_attempts,
            initial_interval_ms=self.initial_retry_interval_ms,
            backoff_multiplier=self.backoff_multiplier,
            max_interval_ms=self.max_retry_interval_ms,
            batch_size=self.batch_size,
            processing_timeout_seconds=self.processing_timeout_seconds,
        )
