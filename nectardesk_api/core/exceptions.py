"""
Error types rendered by the API as {"error", "message", "details"} bodies
"""
from typing import Optional, Dict, Any


class BaseAPIException(Exception):
    """Carries an HTTP status and a stable error code alongside the message"""
    status_code = 400
    error_code = "BAD_REQUEST"

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        if error_code is not None:
            self.error_code = error_code
        self.details = dict(details) if details else {}


class AuthenticationError(BaseAPIException):
    status_code = 401
    error_code = "AUTHENTICATION_ERROR"

    def __init__(self, message: str = "Authentication failed", details: Optional[Dict] = None):
        super().__init__(message, details=details)


class AuthorizationError(BaseAPIException):
    status_code = 403
    error_code = "AUTHORIZATION_ERROR"

    def __init__(self, message: str = "Insufficient permissions", details: Optional[Dict] = None):
        super().__init__(message, details=details)


class NotFoundError(BaseAPIException):
    status_code = 404
    error_code = "NOT_FOUND"

    def __init__(self, resource: str, identifier: str):
        super().__init__(
            f"{resource} not found: {identifier}",
            details={"resource": resource, "id": identifier}
        )


class ValidationError(BaseAPIException):
    error_code = "VALIDATION_ERROR"

    def __init__(self, message: str, field: Optional[str] = None, details: Optional[Dict] = None):
        extra = {"field": field} if field else {}
        super().__init__(message, details={**(details or {}), **extra})


class ConflictError(BaseAPIException):
    """A unique value (email, external id, code) is already taken"""
    error_code = "CONFLICT"

    def __init__(self, message: str, details: Optional[Dict] = None):
        super().__init__(message, details=details)


class QuotaExceededError(BaseAPIException):
    """An organization is at its plan limit for some resource"""
    error_code = "QUOTA_EXCEEDED"

    def __init__(self, resource: str, limit: int, current: int):
        super().__init__(
            f"Organization {resource} limit reached: {current}/{limit}",
            details={"resource": resource, "limit": limit, "current": current}
        )


class ServiceUnavailableError(BaseAPIException):
    status_code = 503
    error_code = "SERVICE_UNAVAILABLE"
