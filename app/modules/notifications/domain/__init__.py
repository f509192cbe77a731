"""Notification domain: aggregate, enums and errors."""

from modules.notifications.domain.enums import (
    ChannelType,
    NotificationPriority,
    NotificationStatus,
    RecurrenceFrequency,
    ScheduleKind,
)
from modules.notifications.domain.errors import (
    InvalidTransitionError,
    NotificationError,
    StateConflictError,
    ValidationError,
)
from modules.notifications.domain.models import (
    ALLOWED_TRANSITIONS,
    EXHAUSTED_PREFIX,
    MAX_FAILURE_REASON_LENGTH,
    Notification,
    ensure_utc,
    utc_now,
)

__all__ = [
    "ChannelType",
    "NotificationPriority",
    "NotificationStatus",
    "RecurrenceFrequency",
    "ScheduleKind",
    "InvalidTransitionError",
    "NotificationError",
    "StateConflictError",
    "ValidationError",
    "ALLOWED_TRANSITIONS",
    "EXHAUSTED_PREFIX",
    "MAX_FAILURE_REASON_LENGTH",
    "Notification",
    "ensure_utc",
    "utc_now",
]
