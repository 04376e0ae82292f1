"""
Authentication and profile schemas.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class UserRegister(BaseModel):
    """Registration request; starts the one-time code flow."""
    name: str = Field(..., min_length=1, max_length=255, description="Display name")
    email: EmailStr = Field(..., description="Unique email address")
    password: str = Field(..., min_length=6, max_length=72, description="Plain password")


class OtpVerification(BaseModel):
    email: EmailStr
    otp: str = Field(..., min_length=1, max_length=12, description="Code received by email")


class OtpResend(BaseModel):
    email: EmailStr


class RegistrationResponse(BaseModel):
    message: str
    success: bool = True


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    role: str
    university: Optional[str] = None
    degree: Optional[str] = None
    branch: Optional[str] = None
    image_url: Optional[str] = None
    is_active: bool
    created_at: datetime
    last_login_at: Optional[datetime] = None


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse


class ProfileUpdate(BaseModel):
    """Fields a user may change on their own profile."""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    university: Optional[str] = Field(None, max_length=255)
    degree: Optional[str] = Field(None, max_length=255)
    branch: Optional[str] = Field(None, max_length=255)
    image_url: Optional[str] = Field(None, max_length=500)

    @field_validator("name")
    @classmethod
    def not_null(cls, value):
        if value is None:
            raise ValueError("may be omitted but not null")
        return value


class UserAdminUpdate(BaseModel):
    """Fields an admin may change on any account."""
    role: Optional[str] = Field(None, pattern="^(student|instructor|admin)$")
    is_active: Optional[bool] = None

    @field_validator("role", "is_active")
    @classmethod
    def not_null(cls, value):
        if value is None:
            raise ValueError("may be omitted but not null")
        return value
