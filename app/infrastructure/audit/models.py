"""Delivery audit models.

One ``DeliveryAuditEntry`` is appended per delivery attempt (and per
terminal decision taken without an attempt, e.g. recipient ineligible).
Entries use a flat structure so they stay easy to query once shipped to a
log or SIEM backend.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class DeliveryAuditEntry(BaseModel):
    """Append-only record of a delivery attempt.

    Attributes:
        notification_id: Notification the attempt belongs to.
        status: Resulting notification status name (SENT, RETRY, FAILED...).
        attempt_number: Attempt counter after the attempt was recorded.
        message: Human-readable summary of the attempt.
        error_detail: Provider or engine error detail when the attempt failed.
        channel: Channel name used for the attempt.
        timestamp: When the outcome was recorded (UTC).
    """

    notification_id: str = Field(..., description="Notification identifier")
    status: str = Field(..., description="Resulting notification status")
    attempt_number: int = Field(default=0, ge=0)
    message: str = Field(default="", description="Attempt summary")
    error_detail: Optional[str] = Field(default=None, description="Failure detail")
    channel: Optional[str] = Field(default=None, description="Channel name")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "notification_id": "3f2c9a0e6b9d4b9e8f1e2d3c4b5a6978",
                "status": "RETRY",
                "attempt_number": 1,
                "message": "Delivery failed",
                "error_detail": "SERVER_ERROR: upstream unavailable",
                "channel": "EMAIL",
                "timestamp": "2025-01-08T12:00:00+00:00",
            }
        },
    )

    def to_log_payload(self) -> Dict[str, Any]:
        """Flat payload for structured logging (ISO timestamp, no None values)."""
        payload = self.model_dump(exclude_none=True)
        payload["timestamp"] = self.timestamp.isoformat()
        return payload
