"""
Service Errors

Typed exceptions raised by the service layer. Each error carries its HTTP
status code and a machine-readable error code, so routers never have to
inspect message strings to pick a response status.
"""

from fastapi import HTTPException


class ServiceError(Exception):
    """Base exception for service errors."""

    def __init__(self, message: str, error_code: str, status_code: int = 400):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        super().__init__(message)


class InvalidRequestError(ServiceError):
    """Raised when a request is well-formed but semantically invalid."""

    def __init__(self, message: str, error_code: str = "INVALID_REQUEST"):
        super().__init__(message=message, error_code=error_code, status_code=400)


class AccessDeniedError(ServiceError):
    """Raised when an authenticated user may not touch a resource."""

    def __init__(self, message: str, error_code: str = "ACCESS_DENIED"):
        super().__init__(message=message, error_code=error_code, status_code=403)


class NotFoundError(ServiceError):
    """Raised when a referenced resource does not exist."""

    def __init__(self, message: str, error_code: str = "NOT_FOUND"):
        super().__init__(message=message, error_code=error_code, status_code=404)


class ConflictError(ServiceError):
    """Raised when a write conflicts with existing state."""

    def __init__(self, message: str, error_code: str = "CONFLICT"):
        super().__init__(message=message, error_code=error_code, status_code=409)


def to_http_exception(error: ServiceError) -> HTTPException:
    """Convert a service error into the HTTPException a router raises."""
    return HTTPException(
        status_code=error.status_code,
        detail={
            "error": error.error_code,
            "message": error.message,
        },
    )


__all__ = [
    "ServiceError",
    "InvalidRequestError",
    "AccessDeniedError",
    "NotFoundError",
    "ConflictError",
    "to_http_exception",
]
