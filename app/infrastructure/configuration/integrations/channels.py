"""Channel transport integration settings."""

from typing import Dict, Optional

from pydantic import Field

from infrastructure.configuration.base import IntegrationSettings


class ChannelSettings(IntegrationSettings):
    """Provider relay configuration for HTTP-backed channels.

    A relay URL left empty means the channel falls back to the logging
    channel (development mode).

    Environment Variables:
        CHANNEL_EMAIL_RELAY_URL: Endpoint accepting email deliveries
        CHANNEL_SMS_RELAY_URL: Endpoint accepting SMS deliveries
        CHANNEL_PUSH_RELAY_URL: Endpoint accepting push deliveries
        CHANNEL_RELAY_API_KEY: Bearer token sent to every relay
        CHANNEL_RELAY_TIMEOUT_SECONDS: HTTP timeout for relay calls (default: 5)

    Example:
        ```python
        from infrastructure.services import get_settings

        settings = get_settings()
        urls = settings.channels.relay_urls()
        ```
    """

    email_relay_url: str = Field(default="", alias="CHANNEL_EMAIL_RELAY_URL")
    sms_relay_url: str = Field(default="", alias="CHANNEL_SMS_RELAY_URL")
    push_relay_url: str = Field(default="", alias="CHANNEL_PUSH_RELAY_URL")
    relay_api_key: Optional[str] = Field(default=None, alias="CHANNEL_RELAY_API_KEY")
    relay_timeout_seconds: float = Field(
        default=5.0, alias="CHANNEL_RELAY_TIMEOUT_SECONDS"
    )

    def relay_urls(self) -> Dict[str, str]:
        """Configured relay URLs keyed by channel name (empty ones omitted)."""
        urls = {
            "EMAIL": self.email_relay_url,
            "SMS": self.sms_relay_url,
            "PUSH": self.push_relay_url,
        }
        return {name: url for name, url in urls.items() if url}
