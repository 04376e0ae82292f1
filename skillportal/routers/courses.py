"""
Courses router for the Skill Portal.

Public catalog browsing plus the per-course views of a signed-in user:
assignments, own enrollment and discussions.
"""

from typing import List, Optional, Dict, Any
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from skillportal.core.database import get_db
from skillportal.core.security import Principal
from skillportal.routers.auth import get_current_principal, get_optional_principal
from skillportal.routers.assignments import assignment_item
from skillportal.routers.discussions import thread_summary
from skillportal.schemas.catalog import CourseResponse, SkillResponse
from skillportal.schemas.enrollment import EnrollmentResponse
from skillportal.services import catalog, discussion, grading
from skillportal.services import enrollment as enrollment_service


router = APIRouter()


def course_item(course, enrolled_count: int = 0) -> Dict[str, Any]:
    return {
        **CourseResponse.model_validate(course).model_dump(),
        "skill": SkillResponse.model_validate(course.skill).model_dump() if course.skill else None,
        "enrolled_count": enrolled_count,
    }


@router.get("/")
async def list_courses(
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    skill_id: Optional[int] = None,
    search: Optional[str] = None,
    db: Session = Depends(get_db)
) -> Dict[str, Any]:
    """
    List published courses, newest first.
    """
    result = catalog.list_courses(db, skill_id=skill_id, search=search, skip=skip, limit=limit)
    counts = catalog.enrollment_counts(db, [course.id for course in result["courses"]])
    result["courses"] = [course_item(course, counts.get(course.id, 0)) for course in result["courses"]]
    return result


@router.get("/{course_id}")
async def get_course(
    course_id: int,
    principal: Optional[Principal] = Depends(get_optional_principal),
    db: Session = Depends(get_db)
) -> Dict[str, Any]:
    """
    Course details. Drafts are only visible to admins.
    """
    course = catalog.get_course(db, course_id, principal)
    counts = catalog.enrollment_counts(db, [course.id])
    return {
        **course_item(course, counts.get(course.id, 0)),
        "instructor": course.created_by.name if course.created_by else None,
        "assignment_count": len(course.assignments),
    }


@router.get("/{course_id}/assignments")
async def list_course_assignments(
    course_id: int,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
) -> List[Dict[str, Any]]:
    """
    Assignments of one course, as visible to the caller.
    """
    catalog.get_course(db, course_id, principal)
    return [assignment_item(item) for item in grading.list_assignments(db, principal, course_id)]


@router.get("/{course_id}/enrollment")
async def get_own_enrollment(
    course_id: int,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
) -> Dict[str, Any]:
    """
    Whether the caller is enrolled in the course, with the enrollment if so.
    """
    enrollment = enrollment_service.get_enrollment(db, principal.user_id, course_id)
    return {
        "enrolled": enrollment is not None,
        "enrollment": EnrollmentResponse.model_validate(enrollment).model_dump() if enrollment else None
    }


@router.post("/{course_id}/enrollment", response_model=EnrollmentResponse, status_code=status.HTTP_201_CREATED)
async def enroll(
    course_id: int,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    """
    Enroll the caller in a published course.
    """
    return enrollment_service.enroll(db, principal, course_id)


@router.delete("/{course_id}/enrollment", status_code=status.HTTP_204_NO_CONTENT)
async def unenroll(
    course_id: int,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
) -> None:
    """
    Leave a course. The course certificate goes with the enrollment.
    """
    enrollment_service.unenroll(db, principal, course_id)


@router.get("/{course_id}/discussions")
async def list_course_discussions(
    course_id: int,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
) -> List[Dict[str, Any]]:
    """
    Discussion threads attached to a course.
    """
    catalog.get_course(db, course_id, principal)
    return [thread_summary(item) for item in discussion.list_threads(db, course_id)]
