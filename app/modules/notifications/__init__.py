"""Notification delivery engine.

Public API:
    - build_engine(): wire an engine from settings
    - NotificationService / NotificationRequest: caller surface
    - Notification and its enums
"""

from modules.notifications.domain import (
    ChannelType,
    Notification,
    NotificationPriority,
    NotificationStatus,
    RecurrenceFrequency,
    ScheduleKind,
)
from modules.notifications.engine import NotificationEngine, build_engine
from modules.notifications.orchestrator import DispatchOutcome, DispatchResult
from modules.notifications.schemas import NotificationRequest
from modules.notifications.service import NotificationService

__all__ = [
    "ChannelType",
    "Notification",
    "NotificationPriority",
    "NotificationStatus",
    "RecurrenceFrequency",
    "ScheduleKind",
    "NotificationEngine",
    "build_engine",
    "DispatchOutcome",
    "DispatchResult",
    "NotificationRequest",
    "NotificationService",
]
