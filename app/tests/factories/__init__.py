"""Test data factories for deterministic test data generation."""

from tests.factories.notifications import (
    make_delivery_content,
    make_notification,
    make_recipient,
    make_request,
)

__all__ = [
    "make_delivery_content",
    "make_notification",
    "make_recipient",
    "make_request",
]
