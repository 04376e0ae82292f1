"""
Registration with email one-time codes.

A registration first lands in ``pending_users``. Confirming the emailed
code moves it to ``users`` and deletes the pending row in one commit.
"""

from datetime import datetime, timedelta
from typing import Tuple
import logging
import math

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from skillportal.core.config import settings
from skillportal.core.database import upsert
from skillportal.core.errors import Conflict, NotFound, TooManyRequests, ValidationError
from skillportal.core.security import generate_otp, get_password_hash, otp_matches
from skillportal.models.user import PendingUser, User, UserRole
from skillportal.services.metrics import as_utc


logger = logging.getLogger(__name__)


def _pending(db: Session, email: str) -> PendingUser:
    pending = db.query(PendingUser).populate_existing().filter(
        PendingUser.email == email
    ).first()
    if not pending:
        raise NotFound("No pending registration for this email")
    return pending


def start_registration(db: Session, name: str, email: str, password: str) -> Tuple[PendingUser, str]:
    """
    Create or refresh the pending registration for ``email``.

    Returns:
        The pending row and the plain code to deliver.
    """
    if db.query(User.id).filter(User.email == email).first():
        raise Conflict("User already exists")

    code = generate_otp()
    values = {
        "email": email,
        "name": name,
        "hashed_password": get_password_hash(password),
        "otp_code": code,
        "otp_expires_at": datetime.utcnow() + timedelta(minutes=settings.OTP_EXPIRE_MINUTES),
    }
    upsert(
        db,
        PendingUser,
        values,
        conflict_columns=["email"],
        update_columns=["name", "hashed_password", "otp_code", "otp_expires_at"]
    )
    db.commit()

    logger.info(f"Registration code issued for {email}")
    return _pending(db, email), code


def verify_registration(db: Session, email: str, code: str) -> User:
    """Promote a pending registration to a verified student account."""
    pending = _pending(db, email)

    if as_utc(pending.otp_expires_at) < datetime.utcnow():
        raise ValidationError("OTP has expired, request a new one")

    if not otp_matches(pending.otp_code, code):
        raise ValidationError("Invalid OTP")

    user = User(
        name=pending.name,
        email=pending.email,
        hashed_password=pending.hashed_password,
        role=UserRole.STUDENT.value,
        is_active=True
    )
    db.add(user)
    db.delete(pending)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict("User already exists")

    db.refresh(user)
    logger.info(f"Registration verified for {email} (user {user.id})")
    return user


def resend_otp(db: Session, email: str) -> Tuple[PendingUser, str]:
    """
    Issue a new code once the previous one has expired.

    Raises:
        TooManyRequests: the current code is still valid
    """
    pending = _pending(db, email)

    now = datetime.utcnow()
    expires_at = as_utc(pending.otp_expires_at)
    if expires_at > now:
        seconds = math.ceil((expires_at - now).total_seconds())
        raise TooManyRequests(
            f"OTP already sent, please check your email or wait {seconds} seconds before resending OTP"
        )

    code = generate_otp()
    pending.otp_code = code
    pending.otp_expires_at = now + timedelta(minutes=settings.OTP_RESEND_EXPIRE_MINUTES)
    db.commit()

    logger.info(f"Registration code re-issued for {email}")
    return pending, code
