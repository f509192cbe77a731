"""Enumerations for the notification lifecycle."""

from datetime import timedelta
from enum import Enum


class NotificationStatus(Enum):
    """Lifecycle status of a notification.

    PROCESSING is transient: it is only held while a channel call is in
    flight and is never selected for dispatch.
    """

    PENDING = "PENDING"
    SCHEDULED = "SCHEDULED"
    PROCESSING = "PROCESSING"
    SENT = "SENT"
    RETRY = "RETRY"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"


class NotificationPriority(Enum):
    """Dispatch priority. Lower rank is dispatched first."""

    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"

    @property
    def rank(self) -> int:
        return _PRIORITY_RANKS[self]

    def is_higher_than(self, other: "NotificationPriority") -> bool:
        return self.rank < other.rank


_PRIORITY_RANKS = {
    NotificationPriority.HIGH: 1,
    NotificationPriority.MEDIUM: 2,
    NotificationPriority.LOW: 3,
}


class ChannelType(Enum):
    """Delivery channels known to the engine.

    Adding a channel means adding a member here and registering an
    implementation in the ChannelRegistry.
    """

    EMAIL = "EMAIL"
    SMS = "SMS"
    PUSH = "PUSH"
    WHATSAPP = "WHATSAPP"
    SLACK = "SLACK"


class ScheduleKind(Enum):
    IMMEDIATE = "IMMEDIATE"
    SCHEDULED = "SCHEDULED"
    RECURRING = "RECURRING"


class RecurrenceFrequency(Enum):
    """Convenience recurrence intervals. MONTHLY is a fixed 30 days."""

    MINUTELY = "MINUTELY"
    HOURLY = "HOURLY"
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"

    @property
    def interval(self) -> timedelta:
        return _FREQUENCY_INTERVALS[self]


_FREQUENCY_INTERVALS = {
    RecurrenceFrequency.MINUTELY: timedelta(minutes=1),
    RecurrenceFrequency.HOURLY: timedelta(hours=1),
    RecurrenceFrequency.DAILY: timedelta(days=1),
    RecurrenceFrequency.WEEKLY: timedelta(weeks=1),
    RecurrenceFrequency.MONTHLY: timedelta(days=30),
}
