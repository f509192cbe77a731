"""Resilience patterns and implementations.

This module contains resilience-related infrastructure components such as
retry policy and exponential backoff.
"""

from infrastructure.resilience.retry import RetryConfig

__all__ = [
    "RetryConfig",
]
