"""
Enrollments router for the Skill Portal.
"""

from typing import List, Dict, Any
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from skillportal.core.database import get_db
from skillportal.core.security import Principal
from skillportal.routers.auth import get_current_principal
from skillportal.schemas.enrollment import EnrollmentCreate, EnrollmentResponse
from skillportal.services import enrollment as enrollment_service


router = APIRouter()


@router.get("/")
async def list_my_enrollments(
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
) -> List[Dict[str, Any]]:
    """
    The caller's enrollments, most recent first, with course titles.
    """
    return [
        {
            **EnrollmentResponse.model_validate(enrollment).model_dump(),
            "course_title": enrollment.course.title
        }
        for enrollment in enrollment_service.list_user_enrollments(db, principal)
    ]


@router.post("/", response_model=EnrollmentResponse, status_code=status.HTTP_201_CREATED)
async def create_enrollment(
    enrollment_data: EnrollmentCreate,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    return enrollment_service.enroll(db, principal, enrollment_data.course_id)
