"""Retry policy for failed deliveries.

Architecture:
- RetryConfig: attempt limits and exponential backoff shared by the
  delivery engines (record-level failure handling, retry sweep,
  stale-processing reclaim)

Usage:
    from infrastructure.resilience.retry import RetryConfig

    config = RetryConfig(max_attempts=3, initial_interval_ms=1000)
    delay = config.compute_backoff(attempt_number=1)
"""

from infrastructure.resilience.retry.config import RetryConfig

__all__ = [
    "RetryConfig",
]
