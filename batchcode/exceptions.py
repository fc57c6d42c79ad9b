"""
Exception hierarchy for webhook processing.

Every error raised by the store, the Monday.com client or the processor is a
BatchCodeError, so the HTTP layer can translate it with a single handler.
"""
from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Error codes returned in API error bodies."""

    INTERNAL_ERROR = "internal_error"
    MALFORMED_PAYLOAD = "malformed_payload"
    UNAUTHORIZED = "unauthorized"
    CONSTRAINT_VIOLATION = "constraint_violation"
    REMOTE_API_ERROR = "remote_api_error"
    STORE_ERROR = "store_error"


class BatchCodeError(Exception):
    """Base exception for all service errors."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        status_code: int = 500,
        details: dict[str, Any] | None = None
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.message,
            "code": self.error_code.value,
            "details": self.details,
        }


class MalformedPayload(BatchCodeError):
    """Raised when a webhook body is structurally invalid."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(
            message=message,
            error_code=ErrorCode.MALFORMED_PAYLOAD,
            status_code=500,
            details=details
        )


class Unauthorized(BatchCodeError):
    """Raised when the webhook signature header does not match."""

    def __init__(self, message: str = "Invalid webhook signature"):
        super().__init__(
            message=message,
            error_code=ErrorCode.UNAUTHORIZED,
            status_code=401
        )


class ConstraintViolation(BatchCodeError):
    """Raised when a code or item uniqueness constraint rejects an insert."""

    def __init__(self, field: str, value: str):
        super().__init__(
            message=f"Batch code {field} already exists: {value}",
            error_code=ErrorCode.CONSTRAINT_VIOLATION,
            status_code=500,
            details={"field": field, "value": value}
        )
        self.field = field


class RemoteApiError(BatchCodeError):
    """
    Raised when a Monday.com API call fails.

    `status` is the HTTP status of the response, or None when the request
    never got one (timeout, connection error).
    """

    def __init__(self, message: str, status: int | None = None):
        super().__init__(
            message=message,
            error_code=ErrorCode.REMOTE_API_ERROR,
            status_code=500,
            details={"status": status}
        )
        self.status = status


class StoreError(BatchCodeError):
    """Raised when the underlying database operation fails."""

    def __init__(self, message: str):
        super().__init__(
            message=message,
            error_code=ErrorCode.STORE_ERROR,
            status_code=500
        )
