"""Request schemas for the notification service.

Pydantic models describing caller input. Field-level checks live here;
scheduling rules that depend on the current time live in validation.py.
"""

from datetime import datetime, timedelta
from typing import Dict, Optional

from pydantic import BaseModel, Field, field_validator

from modules.notifications.domain import (
    ChannelType,
    NotificationPriority,
    RecurrenceFrequency,
    ScheduleKind,
    ensure_utc,
)


class NotificationRequest(BaseModel):
    """Input for creating a notification.

    Attributes:
        subject: Subject line / title
        body: Message body; ``{{key}}`` placeholders are filled from the
            recipient's variables at send time
        template: Optional template reference, stored as-is
        metadata: Free-form string metadata
        channel: Target channel
        recipient_id: Recipient reference in the directory
        priority: Dispatch priority
        schedule_kind: IMMEDIATE, SCHEDULED or RECURRING
        due_time: Required for SCHEDULED and RECURRING
        frequency: Recurrence frequency (alternative to recurrence_interval_seconds)
        recurrence_interval_seconds: Explicit recurrence interval
        recurrence_end_time: End condition for RECURRING
        max_occurrences: End condition for RECURRING
        max_attempts: Per-notification attempt limit; defaults to the
            configured limit

    Example:
        request = NotificationRequest(
            subject="Reminder",
            body="Hi {{name}}, your report is ready",
            channel=ChannelType.EMAIL,
            recipient_id="user-1",
            priority=NotificationPriority.HIGH,
        )
    """

    subject: str = ""
    body: str
    template: Optional[str] = None
    metadata: Dict[str, str] = Field(default_factory=dict)
    channel: ChannelType
    recipient_id: str = Field(..., min_length=1)
    priority: NotificationPriority = NotificationPriority.MEDIUM

    schedule_kind: ScheduleKind = ScheduleKind.IMMEDIATE
    due_time: Optional[datetime] = None
    frequency: Optional[RecurrenceFrequency] = None
    recurrence_interval_seconds: Optional[int] = Field(default=None, gt=0)
    recurrence_end_time: Optional[datetime] = None
    max_occurrences: Optional[int] = None
    max_attempts: Optional[int] = Field(default=None, ge=1)

    @field_validator("body")
    @classmethod
    def validate_body(cls, v: str) -> str:
        """Ensure body is not empty."""
        if not v or not v.strip():
            raise ValueError("Notification body cannot be empty")
        return v

    @field_validator("due_time", "recurrence_end_time")
    @classmethod
    def normalize_timestamps(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v)

    @property
    def recurrence_interval(self) -> Optional[timedelta]:
        """Explicit interval if given, else the frequency's interval."""
        if self.recurrence_interval_seconds is not None:
            return timedelta(seconds=self.recurrence_interval_seconds)
        if self.frequency is not None:
            return self.frequency.interval
        return None
