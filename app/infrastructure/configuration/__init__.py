"""Infrastructure configuration module - public API.

Centralized configuration management for the notification engine using
Pydantic BaseSettings with domain-based organization.

Exports:
    Settings: Main settings class (for testing/overrides)
    DeliverySettings: Delivery engine settings class
    SchedulerSettings: Periodic scheduler settings class
    ChannelSettings: Channel relay settings class

Example:
    ```python
    from infrastructure.services import get_settings

    settings = get_settings()

    max_attempts = settings.delivery.max_attempts
    if settings.is_production:
        # Production-specific logic...
    ```
"""

from infrastructure.configuration.settings import Settings
from infrastructure.configuration.infrastructure import (
    DeliverySettings,
    SchedulerSettings,
)
from infrastructure.configuration.integrations import ChannelSettings

__all__ = ["Settings", "DeliverySettings", "SchedulerSettings", "ChannelSettings"]
