"""Structlog processors used by the notification engine log pipeline.

Usage:
    from infrastructure.logging.formatters import add_app_info, mask_sensitive_data

Dependencies:
    - structlog processors
"""

from typing import Any, Callable

Processor = Callable[[Any, str, dict[str, Any]], dict[str, Any]]

# Keys whose values must never reach log output (substring, case-insensitive)
SENSITIVE_PATTERNS = frozenset(
    {
        "password",
        "secret",
        "token",
        "api_key",
        "apikey",
        "authorization",
        "credential",
        "private_key",
        "bearer",
    }
)


def add_app_info(app_name: str, app_version: str = "unknown") -> Processor:
    """Create a processor that stamps application name and version.

    Example:
        add_app_info("notification-engine", settings.GIT_SHA)
    """

    def processor(
        logger: Any, method_name: str, event_dict: dict[str, Any]
    ) -> dict[str, Any]:
        event_dict["app_name"] = app_name
        event_dict["app_version"] = app_version
        return event_dict

    return processor


def mask_sensitive_data(
    mask_value: str = "***REDACTED***",
    additional_patterns: frozenset[str] | None = None,
) -> Processor:
    """Create a processor that masks sensitive values in log entries.

    A key is sensitive when any pattern occurs in its lower-cased name.
    Relay API keys and authorization headers are the common offenders.

    Args:
        mask_value: Replacement string for sensitive values.
        additional_patterns: Extra patterns to consider sensitive.

    Returns:
        A structlog processor function.
    """
    patterns = SENSITIVE_PATTERNS
    if additional_patterns:
        patterns = patterns | additional_patterns

    def processor(
        logger: Any, method_name: str, event_dict: dict[str, Any]
    ) -> dict[str, Any]:
        return {
            key: (
                mask_value
                if value is not None
                and any(pattern in key.lower() for pattern in patterns)
                else value
            )
            for key, value in event_dict.items()
        }

    return processor


def truncate_large_values(max_length: int = 500) -> Processor:
    """Create a processor that truncates long string values.

    Notification bodies and relay error payloads can be arbitrarily large.
    """

    def processor(
        logger: Any, method_name: str, event_dict: dict[str, Any]
    ) -> dict[str, Any]:
        for key, value in event_dict.items():
            if isinstance(value, str) and len(value) > max_length:
                event_dict[key] = (
                    value[:max_length] + f"...[truncated, {len(value)} chars total]"
                )
        return event_dict

    return processor


def add_environment_info(environment: str) -> Processor:
    """Create a processor that adds the deployment environment name."""

    def processor(
        logger: Any, method_name: str, event_dict: dict[str, Any]
    ) -> dict[str, Any]:
        event_dict["environment"] = environment
        return event_dict

    return processor
