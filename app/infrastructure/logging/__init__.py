"""Structured logging infrastructure.

This package provides centralized logging configuration and utilities
for the notification engine using structlog.

Public API:
    - configure_logging(): Initialize logging for the application
    - get_module_logger(): Get a logger for the calling module
    - bind_delivery_context(): Context manager for delivery-scoped logging
    - get_correlation_id(): Get current correlation ID from context
    - clear_delivery_context(): Clear all bound context

Formatters:
    - add_app_info(): Processor to add app name/version
    - mask_sensitive_data(): Processor to redact sensitive fields
    - truncate_large_values(): Processor to limit string lengths
    - add_environment_info(): Processor to add environment name
"""

from infrastructure.logging.setup import (
    configure_logging,
    get_module_logger,
)

from infrastructure.logging.context import (
    bind_delivery_context,
    get_correlation_id,
    clear_delivery_context,
)

from infrastructure.logging.formatters import (
    add_app_info,
    mask_sensitive_data,
    truncate_large_values,
    add_environment_info,
    SENSITIVE_PATTERNS,
)

__all__ = [
    # Setup
    "configure_logging",
    "get_module_logger",
    # Context
    "bind_delivery_context",
    "get_correlation_id",
    "clear_delivery_context",
    # Formatters
    "add_app_info",
    "mask_sensitive_data",
    "truncate_large_values",
    "add_environment_info",
    "SENSITIVE_PATTERNS",
]
