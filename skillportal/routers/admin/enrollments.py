"""
Admin enrollments router for the Skill Portal.
"""

from typing import Optional, Dict, Any
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from skillportal.core.database import get_db
from skillportal.core.security import Principal
from skillportal.models.admin import AdminAction
from skillportal.routers.admin.audit import log_admin_action
from skillportal.routers.auth import get_current_principal
from skillportal.schemas.enrollment import EnrollmentResponse, EnrollmentUpdate
from skillportal.services import enrollment as enrollment_service


router = APIRouter()


@router.get("/")
async def list_enrollments(
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    status_filter: Optional[str] = None,
    course_id: Optional[int] = None,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
) -> Dict[str, Any]:
    """
    Enrollments with per-status counts and the average progress.
    """
    result = enrollment_service.list_enrollments(
        db, principal, status=status_filter, course_id=course_id, skip=skip, limit=limit
    )
    result["enrollments"] = [
        {
            **EnrollmentResponse.model_validate(enrollment).model_dump(),
            "student_name": enrollment.user.name,
            "student_email": enrollment.user.email,
            "course_title": enrollment.course.title
        }
        for enrollment in result["enrollments"]
    ]
    return result


@router.patch("/{enrollment_id}", response_model=EnrollmentResponse)
async def update_enrollment(
    enrollment_id: int,
    enrollment_update: EnrollmentUpdate,
    request: Request,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    """
    Change status and/or progress. Completing issues the course certificate.
    """
    new_status = enrollment_update.status.value if enrollment_update.status else None
    enrollment = enrollment_service.set_status(
        db, principal, enrollment_id, status=new_status, progress=enrollment_update.progress
    )
    log_admin_action(
        db, request, principal, AdminAction.STATUS_CHANGE, "enrollment", enrollment_id,
        {"status": enrollment.status, "progress": enrollment.progress}
    )
    return enrollment


@router.delete("/{enrollment_id}")
async def delete_enrollment(
    enrollment_id: int,
    request: Request,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
) -> Dict[str, str]:
    enrollment_service.delete_enrollment(db, principal, enrollment_id)
    log_admin_action(db, request, principal, AdminAction.DELETE, "enrollment", enrollment_id)
    return {"message": "Enrollment deleted successfully"}
