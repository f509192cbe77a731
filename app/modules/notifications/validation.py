"""Validation of scheduling input.

Rules:
- SCHEDULED requires a due time in the future
- RECURRING requires an interval, a future first due time and an end
  condition (end time or max occurrences)
- The end time must be after the first due time
- max occurrences must be between 1 and 1000
- A new due time for reschedule must be strictly in the future

All validation raises ValidationError with descriptive messages.
"""

from datetime import datetime
from typing import Optional

from modules.notifications.domain import ScheduleKind, ValidationError, ensure_utc
from modules.notifications.schemas import NotificationRequest

MIN_OCCURRENCES = 1
MAX_OCCURRENCES = 1000


def validate_future(due_time: Optional[datetime], now: datetime, label: str = "Scheduled time") -> datetime:
    """Return ``due_time`` (as UTC) if strictly after ``now``.

    Raises:
        ValidationError: If missing or not in the future
    """
    if due_time is None:
        raise ValidationError(f"{label} is required")
    due_time = ensure_utc(due_time)
    if due_time <= now:
        raise ValidationError(f"{label} must be in the future")
    return due_time


def validate_schedule(request: NotificationRequest, now: datetime) -> None:
    """Check the scheduling fields of ``request`` against ``now``.

    Raises:
        ValidationError: On the first rule that fails
    """
    kind = request.schedule_kind

    if kind == ScheduleKind.IMMEDIATE:
        if request.due_time is not None:
            raise ValidationError("Immediate notifications must not have a scheduled time")
        return

    if kind == ScheduleKind.SCHEDULED:
        validate_future(request.due_time, now)
        return

    # RECURRING
    if request.recurrence_interval is None:
        raise ValidationError(
            "Recurring notifications require a frequency or recurrence interval"
        )
    due_time = validate_future(request.due_time, now)

    if request.recurrence_end_time is None and request.max_occurrences is None:
        raise ValidationError(
            "Recurring notifications require an end time or max occurrences"
        )
    if request.recurrence_end_time is not None and request.recurrence_end_time <= due_time:
        raise ValidationError("Recurrence end time must be after the scheduled time")
    if request.max_occurrences is not None and not (
        MIN_OCCURRENCES <= request.max_occurrences <= MAX_OCCURRENCES
    ):
        raise ValidationError(
            f"Max occurrences must be between {MIN_OCCURRENCES} and {MAX_OCCURRENCES}"
        )


def validate_reschedule(due_time: Optional[datetime], now: datetime) -> datetime:
    """Validate a reschedule target and return it as UTC."""
    return validate_future(due_time, now, label="New scheduled time")
