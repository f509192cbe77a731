"""Infrastructure settings __init__ - exports all infrastructure settings."""

from infrastructure.configuration.infrastructure.delivery import DeliverySettings
from infrastructure.configuration.infrastructure.scheduler import SchedulerSettings

__all__ = [
    "DeliverySettings",
    "SchedulerSettings",
]
