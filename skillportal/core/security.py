"""
Security utilities for the Skill Portal.

Handles password hashing, JWT token creation/verification, one-time
registration codes and the request-scoped principal.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Dict, Any
import secrets

from jose import JWTError, jwt
from passlib.context import CryptContext

from .config import settings
from .errors import Forbidden


# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a plain password against a hashed password.

    Args:
        plain_password: The plain text password to verify
        hashed_password: The hashed password to compare against

    Returns:
        bool: True if password matches, False otherwise
    """
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """
    Hash a password using bcrypt.

    Args:
        password: The plain text password to hash

    Returns:
        str: The hashed password
    """
    return pwd_context.hash(password)


def create_access_token(
    subject: str,
    expires_delta: Optional[timedelta] = None,
    additional_claims: Optional[Dict[str, Any]] = None
) -> str:
    """
    Create a JWT access token.

    Args:
        subject: The subject of the token (the user ID)
        expires_delta: Optional custom expiration time
        additional_claims: Optional additional claims to include in the token

    Returns:
        str: The encoded JWT token
    """
    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(
            minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES
        )

    to_encode = {"exp": expire, "sub": subject}

    if additional_claims:
        to_encode.update(additional_claims)

    to_encode["iat"] = datetime.utcnow()

    return jwt.encode(
        to_encode,
        settings.SECRET_KEY,
        algorithm=settings.ALGORITHM
    )


def verify_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Verify and decode a JWT token.

    Args:
        token: The JWT token to verify

    Returns:
        Optional[Dict[str, Any]]: The decoded token payload if valid, None otherwise
    """
    try:
        return jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM]
        )
    except JWTError:
        return None


def generate_otp(length: Optional[int] = None) -> str:
    """
    Generate a numeric one-time code.

    The first digit is never zero, so a 6 digit code lies in 100000-999999.
    """
    length = length or settings.OTP_LENGTH
    first = str(secrets.randbelow(9) + 1)
    rest = "".join(str(secrets.randbelow(10)) for _ in range(length - 1))
    return first + rest


def otp_matches(expected: str, supplied: str) -> bool:
    """Compare two codes in constant time."""
    return secrets.compare_digest(str(expected), str(supplied).strip())


@dataclass(frozen=True)
class Principal:
    """
    Verified identity of the caller for a single request.

    Built once per request from the bearer token and passed explicitly
    into every service call that needs authorization.
    """
    user_id: int
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    def require_admin(self) -> None:
        if not self.is_admin:
            raise Forbidden("Admin access required")

    def require_role(self, role: str) -> None:
        if self.role != role:
            raise Forbidden(f"Only {role}s can perform this action")

    def can_modify(self, owner_id: Optional[int]) -> bool:
        """Admins and the owner of a row may change or delete it."""
        return self.is_admin or self.user_id == owner_id
