"""Shared fixtures for channel tests."""

from unittest.mock import MagicMock

import pytest

from infrastructure.notifications import DeliveryOutcome, NotificationChannel
from infrastructure.operations import OperationResult


@pytest.fixture
def mock_notification_channel():
    """Factory for MagicMock channels that deliver successfully."""

    def _factory(channel_name: str = "EMAIL"):
        channel = MagicMock(spec=NotificationChannel)
        channel.channel_name = channel_name
        channel.send.return_value = DeliveryOutcome.delivered()
        channel.can_deliver.return_value = True
        channel.health_check.return_value = OperationResult.success(message="ok")
        return channel

    return _factory


@pytest.fixture
def mock_session():
    """requests.Session stand-in with a real headers dict."""
    session = MagicMock()
    session.headers = {}
    return session


@pytest.fixture
def http_response():
    """Factory for fake requests.Response objects."""

    def _factory(status_code: int = 200, json_body=None, text: str = "", headers=None):
        response = MagicMock()
        response.status_code = status_code
        response.text = text
        response.headers = headers or {}
        if json_body is None:
            response.json.side_effect = ValueError("no json")
        else:
            response.json.return_value = json_body
        return response

    return _factory
