"""
Enrollment and certificate schemas.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field

from skillportal.models.enrollment import EnrollmentStatus


class EnrollmentCreate(BaseModel):
    course_id: int


class EnrollmentUpdate(BaseModel):
    """Admin change of status and/or progress."""
    status: Optional[EnrollmentStatus] = None
    progress: Optional[int] = Field(None, description="Percentage, 0 to 100")


class EnrollmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    course_id: int
    status: str
    progress: int
    enrolled_at: datetime
    completed_at: Optional[datetime] = None


class CertificateResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    course_id: int
    title: str
    url: str
    issued_at: datetime
