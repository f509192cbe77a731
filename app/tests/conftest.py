import sys
import threading
from datetime import datetime, timedelta, timezone
from pathlib import Path

# Ensure the application package root is on sys.path so importing application
# modules (e.g. `infrastructure.configuration`) works during pytest collection
# regardless of the directory pytest is invoked from.
project_root = str(Path(__file__).resolve().parents[1])
if project_root not in sys.path:
    sys.path.insert(0, project_root)

import pytest

from infrastructure.services.providers import get_settings

BASE_TIME = datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Deterministic, thread-safe clock injected into the engines."""

    def __init__(self, start: datetime = BASE_TIME):
        self._now = start
        self._lock = threading.Lock()

    def __call__(self) -> datetime:
        with self._lock:
            return self._now

    def advance(self, seconds: float = 0, **kwargs) -> datetime:
        with self._lock:
            self._now = self._now + timedelta(seconds=seconds, **kwargs)
            return self._now

    def set(self, value: datetime) -> None:
        with self._lock:
            self._now = value


@pytest.fixture
def base_time() -> datetime:
    return BASE_TIME


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Each test sees settings loaded from its own environment."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def pytest_configure(config):
    """Register test markers."""
    config.addinivalue_line("markers", "unit: fast isolated tests")
    config.addinivalue_line(
        "markers", "integration: tests that drive a fully wired engine"
    )
