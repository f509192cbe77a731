"""Channel-facing delivery models.

The delivery engine hands each channel a rendered ``DeliveryContent`` and the
target ``Recipient``; the channel answers with a ``DeliveryOutcome``.

Uses Pydantic BaseModel for:
- RFC 5322 compliant email validation (EmailStr)
- E.164 phone number validation
- Runtime input validation with proper error messages
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

# Contact attribute consulted for each channel name
ADDRESS_FIELDS: Dict[str, str] = {
    "EMAIL": "email",
    "SMS": "phone_number",
    "WHATSAPP": "phone_number",
    "PUSH": "device_token",
    "SLACK": "slack_user_id",
}


class Recipient(BaseModel):
    """Notification recipient and contact details.

    Recipient records are owned by an external directory; the engine only
    reads them to check eligibility and to address deliveries.

    Attributes:
        id: Directory identifier referenced by notifications
        email: Email address (validated with EmailStr)
        phone_number: Phone number for SMS/WhatsApp (E.164, +1234567890)
        device_token: Push notification device token
        slack_user_id: Slack member ID
        active: Inactive recipients are never delivered to
        preferred_channels: Channels the recipient accepts; empty means all
        variables: Personalization values for ``{{key}}`` placeholders

    Example:
        recipient = Recipient(
            id="user-1",
            email="user@example.com",
            preferred_channels=["EMAIL"],
            variables={"name": "Ada"},
        )
    """

    id: str
    email: Optional[EmailStr] = None
    phone_number: Optional[str] = None
    device_token: Optional[str] = None
    slack_user_id: Optional[str] = None
    active: bool = True
    preferred_channels: List[str] = Field(default_factory=list)
    variables: Dict[str, str] = Field(default_factory=dict)

    @field_validator("phone_number")
    @classmethod
    def validate_phone_number(cls, v: Optional[str]) -> Optional[str]:
        """Validate E.164 phone format if provided."""
        if v is None:
            return v
        if not v.startswith("+") or not v[1:].isdigit():
            raise ValueError(f"Phone number must be in E.164 format: {v}")
        if len(v) < 8 or len(v) > 16:
            raise ValueError(f"Phone number length invalid: {v}")
        return v

    def address_for(self, channel_name: str) -> Optional[str]:
        """Return the contact address used by ``channel_name``, if any."""
        field_name = ADDRESS_FIELDS.get(str(channel_name).upper())
        if field_name is None:
            return None
        value = getattr(self, field_name)
        return str(value) if value else None

    def accepts(self, channel_name: str) -> bool:
        """True if the recipient is active and opted in to ``channel_name``."""
        if not self.active:
            return False
        if not self.preferred_channels:
            return True
        wanted = str(channel_name).upper()
        return any(c.upper() == wanted for c in self.preferred_channels)


class DeliveryContent(BaseModel):
    """Rendered message content for a single delivery attempt.

    Attributes:
        notification_id: Notification being delivered (for provider references)
        subject: Subject line (email), title (push), ignored by SMS
        body: Personalized message body
        priority: Priority name, forwarded to providers that support it
        metadata: Free-form string metadata from the notification
    """

    notification_id: str
    subject: str = ""
    body: str
    priority: str = "MEDIUM"
    metadata: Dict[str, str] = Field(default_factory=dict)


class DeliveryOutcome(BaseModel):
    """Result of one channel send.

    Channels return a failed outcome instead of raising for delivery errors.

    Attributes:
        success: True if the provider accepted the message
        message: Human-readable summary
        error_detail: Provider error detail on failure
        provider_message_id: Provider reference on success
        retryable: False when retrying cannot help (rejected credentials,
            malformed request); the notification fails without further attempts
        retry_after_seconds: Minimum wait the provider asked for, if any
    """

    success: bool
    message: str = ""
    error_detail: Optional[str] = None
    provider_message_id: Optional[str] = None
    retryable: bool = True
    retry_after_seconds: Optional[int] = None

    @classmethod
    def delivered(
        cls, message: str = "delivered", provider_message_id: Optional[str] = None
    ) -> "DeliveryOutcome":
        return cls(success=True, message=message, provider_message_id=provider_message_id)

    @classmethod
    def failed(
        cls,
        message: str,
        error_detail: Optional[str] = None,
        retryable: bool = True,
        retry_after_seconds: Optional[int] = None,
    ) -> "DeliveryOutcome":
        return cls(
            success=False,
            message=message,
            error_detail=error_detail or message,
            retryable=retryable,
            retry_after_seconds=retry_after_seconds,
        )
