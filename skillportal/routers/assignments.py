"""
Assignments router for the Skill Portal.

Students read the assignments of their courses, submit work and read
their grades.
"""

from typing import List, Optional, Dict, Any
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from skillportal.core.database import get_db
from skillportal.core.security import Principal
from skillportal.routers.auth import get_current_principal
from skillportal.schemas.assignment import (
    AssignmentResponse,
    GradeResponse,
    SubmissionCreate,
    SubmissionResponse
)
from skillportal.services import grading


router = APIRouter()


def assignment_item(item: Dict[str, Any]) -> Dict[str, Any]:
    """Flatten a listing entry into the assignment's fields plus its extras."""
    result = AssignmentResponse.model_validate(item["assignment"]).model_dump()
    for key, value in item.items():
        if key == "assignment":
            continue
        if key == "submission":
            value = SubmissionResponse.model_validate(value).model_dump() if value else None
        elif key == "grade":
            value = GradeResponse.model_validate(value).model_dump() if value else None
        result[key] = value
    return result


@router.get("/")
async def list_assignments(
    course_id: Optional[int] = None,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
) -> List[Dict[str, Any]]:
    """
    Assignments of the caller's courses with their own submission and grade.
    """
    return [assignment_item(item) for item in grading.list_assignments(db, principal, course_id)]


@router.get("/{assignment_id}", response_model=AssignmentResponse)
async def get_assignment(
    assignment_id: int,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    return grading.get_visible_assignment(db, principal, assignment_id)


@router.get("/{assignment_id}/submission", response_model=SubmissionResponse)
async def get_own_submission(
    assignment_id: int,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    grading.get_visible_assignment(db, principal, assignment_id)
    submission = grading.get_submission(db, assignment_id, principal.user_id)
    if not submission:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Submission not found"
        )
    return submission


@router.post("/{assignment_id}/submission", response_model=SubmissionResponse)
async def submit_assignment(
    assignment_id: int,
    submission_data: SubmissionCreate,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    """
    Submit or resubmit work. A resubmission replaces the previous one.
    """
    return grading.submit(
        db,
        principal,
        assignment_id,
        submission_data.content,
        submission_data.file_url
    )


@router.get("/{assignment_id}/grade", response_model=GradeResponse)
async def get_own_grade(
    assignment_id: int,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    grade = grading.get_own_grade(db, principal, assignment_id)
    if not grade:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Not graded yet"
        )
    return grade
