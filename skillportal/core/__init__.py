"""
Core module for the Skill Portal backend.

This module contains core functionality including:
- Configuration management
- Database connections
- Security utilities (JWT, password hashing, principals)
- The service error taxonomy
"""

from .config import settings
from .database import get_db, engine, SessionLocal
from .errors import (
    ServiceError,
    Unauthorized,
    Forbidden,
    NotFound,
    ValidationError,
    PastDue,
    Conflict,
    TooManyRequests
)
from .security import (
    create_access_token,
    verify_password,
    get_password_hash,
    verify_token,
    Principal
)

__all__ = [
    "settings",
    "get_db",
    "engine",
    "SessionLocal",
    "ServiceError",
    "Unauthorized",
    "Forbidden",
    "NotFound",
    "ValidationError",
    "PastDue",
    "Conflict",
    "TooManyRequests",
    "create_access_token",
    "verify_password",
    "get_password_hash",
    "verify_token",
    "Principal"
]
