"""
Authentication router for the Skill Portal.

Handles OTP registration, login and the bearer-token dependencies used by
every other router.
"""

from datetime import datetime, timedelta
from typing import Optional, Dict, Any
from fastapi import APIRouter, Depends, HTTPException, status, BackgroundTasks
from fastapi.security import OAuth2PasswordBearer, OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from skillportal.core.config import settings
from skillportal.core.database import get_db
from skillportal.core.email import send_otp_email
from skillportal.core.errors import Unauthorized
from skillportal.core.security import (
    Principal,
    create_access_token,
    verify_password,
    verify_token
)
from skillportal.models.user import User
from skillportal.schemas.auth import (
    OtpResend,
    OtpVerification,
    RegistrationResponse,
    Token,
    UserRegister,
    UserResponse
)
from skillportal.services import registration


router = APIRouter()

# OAuth2 scheme for token authentication
oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_V1_STR}/auth/login")
optional_oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl=f"{settings.API_V1_STR}/auth/login",
    auto_error=False
)


def _user_from_token(token: str, db: Session) -> Optional[User]:
    payload = verify_token(token)
    if payload is None:
        return None
    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        return None
    return db.query(User).filter(User.id == user_id).first()


# Dependencies
def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db)
) -> User:
    """
    Get current authenticated user from JWT token.
    """
    user = _user_from_token(token, db)
    if user is None:
        raise Unauthorized()

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Inactive user"
        )

    return user


def get_current_principal(
    current_user: User = Depends(get_current_user)
) -> Principal:
    """
    The caller's identity as passed to the service layer.
    """
    return Principal(user_id=current_user.id, role=current_user.role)


def get_optional_principal(
    token: Optional[str] = Depends(optional_oauth2_scheme),
    db: Session = Depends(get_db)
) -> Optional[Principal]:
    """
    Principal for public endpoints that show more to signed-in callers.
    """
    if not token:
        return None
    user = _user_from_token(token, db)
    if user is None or not user.is_active:
        return None
    return Principal(user_id=user.id, role=user.role)


# Endpoints
@router.post("/register", response_model=RegistrationResponse)
async def register(
    user_data: UserRegister,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db)
) -> Dict[str, Any]:
    """
    Start a registration and email the verification code.
    """
    pending, code = registration.start_registration(
        db, user_data.name, user_data.email, user_data.password
    )
    background_tasks.add_task(send_otp_email, pending.email, code, settings.OTP_EXPIRE_MINUTES)

    return {"message": "OTP sent to your email", "success": True}


@router.post("/verify-otp", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def verify_otp(
    verification: OtpVerification,
    db: Session = Depends(get_db)
) -> User:
    """
    Confirm the emailed code and create the account.
    """
    return registration.verify_registration(db, verification.email, verification.otp)


@router.post("/resend-otp", response_model=RegistrationResponse)
async def resend_otp(
    request_data: OtpResend,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db)
) -> Dict[str, Any]:
    """
    Send a fresh code once the previous one has expired.
    """
    pending, code = registration.resend_otp(db, request_data.email)
    background_tasks.add_task(send_otp_email, pending.email, code, settings.OTP_RESEND_EXPIRE_MINUTES)

    return {"message": "OTP resent to your email", "success": True}


@router.post("/login", response_model=Token)
async def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db)
) -> Dict[str, Any]:
    """
    OAuth2 compatible login endpoint; the username field carries the email.
    """
    user = db.query(User).filter(User.email == form_data.username).first()

    if not user or not verify_password(form_data.password, user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is deactivated"
        )

    access_token = create_access_token(
        subject=str(user.id),
        expires_delta=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
        additional_claims={
            "role": user.role,
            "email": user.email
        }
    )

    user.last_login_at = datetime.utcnow()
    db.commit()
    db.refresh(user)

    return {
        "access_token": access_token,
        "token_type": "bearer",
        "user": user
    }


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    current_user: User = Depends(get_current_user)
) -> User:
    """
    Get current user information.
    """
    return current_user
