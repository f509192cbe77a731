"""Operation result types and status enums.

Standardized result types for operations across the application, plus the
HTTP error classifier used by HTTP-backed channels.
"""

from infrastructure.operations.classifiers import (
    classify_http_status,
    classify_request_exception,
)
from infrastructure.operations.result import OperationResult
from infrastructure.operations.status import OperationStatus

__all__ = [
    "OperationResult",
    "OperationStatus",
    "classify_http_status",
    "classify_request_exception",
]
