"""
Error taxonomy for the Skill Portal.

Services raise these; the application maps each one to an HTTP response
with FastAPI's ``{"detail": ...}`` body.
"""

from typing import Any, Optional


class ServiceError(Exception):
    """Base class for errors raised by the service layer."""

    status_code: int = 500
    default_detail: str = "Internal server error"

    def __init__(self, detail: Optional[Any] = None):
        self.detail = detail if detail is not None else self.default_detail
        super().__init__(self.detail)


class Unauthorized(ServiceError):
    status_code = 401
    default_detail = "Could not validate credentials"


class Forbidden(ServiceError):
    status_code = 403
    default_detail = "Forbidden"


class NotFound(ServiceError):
    status_code = 404
    default_detail = "Not found"


class ValidationError(ServiceError):
    status_code = 400
    default_detail = "Invalid request"


class PastDue(ValidationError):
    default_detail = "Assignment is past due"


class Conflict(ServiceError):
    status_code = 409
    default_detail = "Already exists"


class TooManyRequests(ServiceError):
    status_code = 429
    default_detail = "Too many requests"
