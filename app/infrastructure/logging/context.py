"""Delivery context binding for structured logging.

Binds notification-scoped metadata (correlation ID, notification ID,
channel) to every log entry emitted while a delivery is in flight.

Usage:
    from infrastructure.logging import bind_delivery_context

    with bind_delivery_context(notification_id="n-1", channel="EMAIL"):
        logger.info("dispatch_started")

Dependencies:
    - structlog.contextvars
"""

import uuid
from contextlib import contextmanager
from typing import Optional, Any, Generator
import structlog


@contextmanager
def bind_delivery_context(
    correlation_id: Optional[str] = None,
    notification_id: Optional[str] = None,
    channel: Optional[str] = None,
    **extra_context: Any,
) -> Generator[None, None, None]:
    """Bind delivery-scoped context to all logs within the block.

    Args:
        correlation_id: Unique operation identifier. Auto-generated if not provided.
        notification_id: Notification being processed.
        channel: Delivery channel name (e.g., "EMAIL").
        **extra_context: Additional key-value pairs to include in logs.

    Yields:
        None - context is bound to structlog's context vars.
    """
    context: dict[str, Any] = {"correlation_id": correlation_id or str(uuid.uuid4())}

    if notification_id is not None:
        context["notification_id"] = notification_id

    if channel is not None:
        context["channel"] = channel

    context.update(extra_context)

    structlog.contextvars.bind_contextvars(**context)
    try:
        yield
    finally:
        structlog.contextvars.unbind_contextvars(*context.keys())


def get_correlation_id() -> Optional[str]:
    """Get the current correlation ID from the logging context."""
    ctx = structlog.contextvars.get_contextvars()
    return ctx.get("correlation_id")


def clear_delivery_context() -> None:
    """Clear all bound context.

    Worker threads call this between jobs so context does not leak from one
    notification to the next.
    """
    structlog.contextvars.clear_contextvars()
