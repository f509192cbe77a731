"""HTTP relay channel: forwards deliveries to a provider gateway.

The relay receives a JSON payload per delivery and answers with an HTTP
status; non-2xx responses and transport errors become failed outcomes.
Rate limiting, server errors and transport errors are retryable; rejected
credentials and other client errors are not.
"""

from typing import Optional

import requests
import structlog

from infrastructure.notifications.channels.base import NotificationChannel
from infrastructure.notifications.models import (
    DeliveryContent,
    DeliveryOutcome,
    Recipient,
)
from infrastructure.operations import (
    OperationResult,
    OperationStatus,
    classify_http_status,
    classify_request_exception,
)

logger = structlog.get_logger()


def _failed_outcome(result: OperationResult, error_detail: str) -> DeliveryOutcome:
    """Failed outcome that keeps the transient/permanent classification."""
    return DeliveryOutcome.failed(
        result.message,
        error_detail=error_detail,
        retryable=result.status == OperationStatus.TRANSIENT_ERROR,
        retry_after_seconds=result.retry_after,
    )


class HttpRelayChannel(NotificationChannel):
    """Channel that POSTs deliveries to an HTTP relay.

    Payload:
        {"notification_id", "to", "subject", "body", "priority", "metadata"}

    Args:
        channel_name: Channel identifier (EMAIL, SMS, ...)
        url: Relay endpoint URL
        api_key: Optional bearer token for the relay
        timeout_seconds: Per-request HTTP timeout
        session: Optional requests.Session (injected in tests)
    """

    def __init__(
        self,
        channel_name: str,
        url: str,
        api_key: Optional[str] = None,
        timeout_seconds: float = 5.0,
        session: Optional[requests.Session] = None,
    ):
        self._channel_name = channel_name.upper()
        self._url = url
        self._timeout = timeout_seconds
        self._session = session or requests.Session()
        self._session.headers.update({"Content-Type": "application/json"})
        if api_key:
            self._session.headers.update({"Authorization": f"Bearer {api_key}"})
        logger.info(
            "initialized_http_relay_channel",
            channel=self._channel_name,
            url=self._url,
        )

    @property
    def channel_name(self) -> str:
        """Channel identifier."""
        return self._channel_name

    def send(self, content: DeliveryContent, recipient: Recipient) -> DeliveryOutcome:
        """POST ``content`` to the relay for ``recipient``.

        Args:
            content: Rendered message content
            recipient: Target recipient

        Returns:
            DeliveryOutcome; failed on missing address, HTTP error or
            transport exception.
        """
        address = recipient.address_for(self._channel_name)
        if address is None:
            return DeliveryOutcome.failed(
                f"Recipient {recipient.id} has no {self._channel_name} address"
            )

        payload = {
            "notification_id": content.notification_id,
            "to": address,
            "subject": content.subject,
            "body": content.body,
            "priority": content.priority,
            "metadata": content.metadata,
        }

        try:
            response = self._session.post(self._url, json=payload, timeout=self._timeout)
        except requests.RequestException as e:
            result = classify_request_exception(e)
            logger.warning(
                "relay_request_failed",
                channel=self._channel_name,
                notification_id=content.notification_id,
                error=str(e),
            )
            return _failed_outcome(result, error_detail=str(e))

        result = classify_http_status(
            response.status_code, response.headers.get("Retry-After")
        )
        if not result.is_success:
            logger.warning(
                "relay_rejected_delivery",
                channel=self._channel_name,
                notification_id=content.notification_id,
                status_code=response.status_code,
                error_code=result.error_code,
            )
            return _failed_outcome(
                result, error_detail=f"{result.error_code}: {response.text[:200]}"
            )

        provider_id = None
        try:
            body = response.json()
            if isinstance(body, dict):
                provider_id = body.get("id")
        except ValueError:
            pass

        return DeliveryOutcome.delivered(
            message=f"Relayed {self._channel_name} delivery",
            provider_message_id=provider_id,
        )

    def can_deliver(self, recipient: Recipient) -> bool:
        return recipient.address_for(self._channel_name) is not None

    def health_check(self) -> OperationResult:
        """Probe the relay with a HEAD request."""
        try:
            response = self._session.head(self._url, timeout=self._timeout)
        except requests.RequestException as e:
            logger.error(
                "relay_health_check_failed",
                channel=self._channel_name,
                error=str(e),
            )
            return classify_request_exception(e)

        if response.status_code < 500:
            return OperationResult.success(
                message="Relay reachable",
                data={"channel": self._channel_name, "url": self._url},
            )
        return classify_http_status(response.status_code)
