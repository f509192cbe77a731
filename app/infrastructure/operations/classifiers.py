"""Error classifiers for provider responses.

Converts provider HTTP responses and ``requests`` exceptions into standardized
OperationResult objects so channel implementations share one classification.

Usage:
    from infrastructure.operations.classifiers import (
        classify_http_status,
        classify_request_exception,
    )

    try:
        response = session.post(url, json=payload, timeout=timeout)
    except requests.RequestException as exc:
        return classify_request_exception(exc)
    return classify_http_status(response.status_code, response.headers.get("Retry-After"))
"""

from typing import Optional

import requests

from infrastructure.operations.result import OperationResult
from infrastructure.operations.status import OperationStatus


def classify_http_status(
    status_code: int, retry_after_header: Optional[str] = None
) -> OperationResult:
    """Classify a provider HTTP status code into OperationResult.

    Status Code Mapping:
    - 2xx: SUCCESS
    - 429: Rate limiting → TRANSIENT_ERROR with retry_after
    - 401/403: PERMANENT_ERROR (credentials rejected)
    - 404: NOT_FOUND
    - 5xx: TRANSIENT_ERROR
    - Other 4xx: PERMANENT_ERROR

    Args:
        status_code: HTTP status code returned by the provider
        retry_after_header: Raw ``Retry-After`` header value, if any

    Returns:
        OperationResult with appropriate status, message and error_code
    """
    if 200 <= status_code < 300:
        return OperationResult.success(message=f"Provider accepted ({status_code})")

    if status_code == 429:
        retry_after = 60
        if retry_after_header:
            try:
                retry_after = int(retry_after_header)
            except (ValueError, TypeError):
                pass  # Use default if header is malformed

        return OperationResult.error(
            OperationStatus.TRANSIENT_ERROR,
            "Provider rate limited",
            error_code="RATE_LIMITED",
            retry_after=retry_after,
        )

    if status_code in (401, 403):
        return OperationResult.permanent_error(
            f"Provider rejected credentials ({status_code})",
            error_code="UNAUTHORIZED" if status_code == 401 else "FORBIDDEN",
        )

    if status_code == 404:
        return OperationResult.not_found("Provider endpoint not found")

    if 500 <= status_code < 600:
        return OperationResult.transient_error(
            f"Provider server error ({status_code})",
            error_code="SERVER_ERROR",
        )

    return OperationResult.permanent_error(
        f"Provider client error ({status_code})",
        error_code="HTTP_ERROR",
    )


def classify_request_exception(exc: Exception) -> OperationResult:
    """Classify a ``requests`` exception raised before a response arrived.

    Timeouts and connection errors are transient; anything else raised by
    ``requests`` is treated as transient too, since the provider never saw
    a well-formed request rejection.
    """
    if isinstance(exc, requests.Timeout):
        return OperationResult.transient_error(
            f"Provider request timed out: {exc}",
            error_code="TIMEOUT",
        )

    if isinstance(exc, requests.ConnectionError):
        return OperationResult.transient_error(
            f"Connection error: {exc}",
            error_code="CONNECTION_ERROR",
        )

    return OperationResult.transient_error(
        f"Request error: {type(exc).__name__}: {exc}",
        error_code="REQUEST_ERROR",
    )
