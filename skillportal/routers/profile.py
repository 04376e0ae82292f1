"""
Profile router for the Skill Portal.

The caller's own account details, certificates and learning dashboard.
"""

from typing import List, Dict, Any
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from skillportal.core.database import get_db
from skillportal.core.security import Principal
from skillportal.routers.auth import get_current_principal
from skillportal.schemas.auth import ProfileUpdate, UserResponse
from skillportal.schemas.enrollment import CertificateResponse
from skillportal.services import analytics, catalog
from skillportal.services import enrollment as enrollment_service


router = APIRouter()


@router.get("/", response_model=UserResponse)
async def get_profile(
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    return catalog.get_user(db, principal.user_id)


@router.patch("/", response_model=UserResponse)
async def update_profile(
    profile_data: ProfileUpdate,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    """
    Update name, education details or avatar. Omitted fields are unchanged.
    """
    return catalog.update_profile(db, principal, profile_data.model_dump(exclude_unset=True))


@router.get("/certificates")
async def list_my_certificates(
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
) -> List[Dict[str, Any]]:
    return [
        {
            **CertificateResponse.model_validate(certificate).model_dump(),
            "course_title": certificate.course.title
        }
        for certificate in enrollment_service.list_certificates(db, principal)
    ]


@router.get("/dashboard")
async def get_student_dashboard(
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
) -> Dict[str, Any]:
    """
    Course counts, average progress and the three latest enrollments.
    """
    return analytics.student_dashboard(db, principal)
