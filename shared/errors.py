"""
Shared error handling for the asset gateway.
"""

from typing import Any, Dict, Iterable, Optional

from pydantic import BaseModel

from shared.logging import request_id_var


class ErrorResponse(BaseModel):
    """Standard error response format."""

    request_id: Optional[str] = None
    code: str
    message: str
    details: Dict[str, Any] = {}


class AccessLayerException(Exception):
    """Base exception for gateway errors."""

    status_code = 400

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    @property
    def headers(self) -> Dict[str, str]:
        """Extra response headers for this error."""
        return {}

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            request_id=request_id_var.get(),
            code=self.code,
            message=self.message,
            details=self.details
        )


class AuthenticationError(AccessLayerException):
    """Authentication-related errors."""

    status_code = 401

    def __init__(self, message: str = "Authentication failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("AUTHENTICATION_ERROR", message, details)


class ValidationError(AccessLayerException):
    """Validation-related errors."""

    status_code = 400

    def __init__(self, message: str = "Validation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("VALIDATION_ERROR", message, details)


class NotFoundError(AccessLayerException):
    """Requested object does not exist."""

    status_code = 404

    def __init__(self, message: str = "Not found", details: Optional[Dict[str, Any]] = None):
        super().__init__("NOT_FOUND", message, details)


class MethodNotAllowedError(AccessLayerException):
    """HTTP method not supported by the route."""

    status_code = 405

    def __init__(self, method: str, allowed: Iterable[str]):
        self.allowed = list(allowed)
        super().__init__(
            "METHOD_NOT_ALLOWED",
            f"Method {method} not allowed",
            {"allowed": self.allowed},
        )

    @property
    def headers(self) -> Dict[str, str]:
        return {"Allow": ", ".join(self.allowed)}


class ExternalServiceError(AccessLayerException):
    """External service errors."""

    status_code = 502

    def __init__(self, service: str, message: str = "External service error", details: Optional[Dict[str, Any]] = None):
        super().__init__("EXTERNAL_SERVICE_ERROR", f"{service}: {message}", details)


class StoreError(ExternalServiceError):
    """A backing store adapter failed (I/O fault, transient unavailability)."""

    def __init__(self, store: str, message: str = "Store operation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__(store, message, details)
        self.code = "STORE_ERROR"
        self.store = store
