"""Integration settings __init__ - exports all integration settings."""

from infrastructure.configuration.integrations.channels import ChannelSettings

__all__ = [
    "ChannelSettings",
]
