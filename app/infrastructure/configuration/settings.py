"""Notification engine configuration settings - main aggregator."""

from pydantic_settings import BaseSettings, SettingsConfigDict

# Integration settings
from infrastructure.configuration.integrations import ChannelSettings

# Infrastructure settings
from infrastructure.configuration.infrastructure import (
    DeliverySettings,
    SchedulerSettings,
)


class Settings(BaseSettings):
    """Notification engine configuration settings - main aggregator.

    Aggregates all domain-specific settings into a single configuration object.
    Settings are organized by concern:

    - **Integrations**: Channel transport relays
    - **Infrastructure**: Delivery retries/batching and the periodic scheduler

    Environment Variables:
        PREFIX: Environment prefix for non-production deployments
        LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR)
        GIT_SHA: Git commit SHA for deployment tracking

    Example:
        ```python
        from infrastructure.services import get_settings

        settings = get_settings()

        batch_size = settings.delivery.batch_size
        if settings.scheduler.enabled:
            interval = settings.scheduler.retry_sweep_interval_seconds
        ```
    """

    # Application-level settings
    PREFIX: str = ""
    LOG_LEVEL: str = "INFO"
    GIT_SHA: str = "Unknown"

    # Integration settings
    channels: ChannelSettings

    # Infrastructure settings
    delivery: DeliverySettings
    scheduler: SchedulerSettings

    @property
    def is_production(self) -> bool:
        """Check if the application is running in production.

        Returns:
            True if PREFIX is empty (production), False otherwise.
        """
        return not bool(self.PREFIX)

    def __init__(self, **kwargs):
        """Initialize Settings with automatic subsettings instantiation.

        Args:
            **kwargs: Optional overrides for specific settings sections.
        """
        settings_map = {
            # Integrations
            "channels": ChannelSettings,
            # Infrastructure
            "delivery": DeliverySettings,
            "scheduler": SchedulerSettings,
        }

        for setting_name, setting_class in settings_map.items():
            if setting_name not in kwargs:
                kwargs[setting_name] = setting_class()

        super().__init__(**kwargs)

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )
