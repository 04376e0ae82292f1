"""
Admin assignments router for the Skill Portal.

Assignment management, submission review and grading.
"""

from typing import List, Optional, Dict, Any
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from skillportal.core.database import get_db
from skillportal.core.security import Principal
from skillportal.models.admin import AdminAction
from skillportal.routers.admin.audit import log_admin_action
from skillportal.routers.assignments import assignment_item
from skillportal.routers.auth import get_current_principal
from skillportal.schemas.assignment import (
    AssignmentCreate,
    AssignmentResponse,
    AssignmentUpdate,
    BulkGradeRequest,
    GradeCreate,
    GradeResponse,
    SubmissionResponse
)
from skillportal.services import grading


router = APIRouter()
grades_router = APIRouter()


@router.get("/")
async def list_assignments(
    course_id: Optional[int] = None,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
) -> List[Dict[str, Any]]:
    """
    Every assignment with submission and grading counts.
    """
    return [assignment_item(item) for item in grading.list_assignments(db, principal, course_id)]


@router.post("/", response_model=AssignmentResponse, status_code=status.HTTP_201_CREATED)
async def create_assignment(
    assignment_data: AssignmentCreate,
    request: Request,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    assignment = grading.create_assignment(db, principal, assignment_data.model_dump())
    log_admin_action(
        db, request, principal, AdminAction.CREATE, "assignment", assignment.id,
        {"title": assignment.title, "course_id": assignment.course_id}
    )
    return assignment


@router.get("/{assignment_id}")
async def get_assignment(
    assignment_id: int,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
) -> Dict[str, Any]:
    """
    An assignment with its submission and grading statistics.
    """
    assignment = grading.get_assignment(db, assignment_id)
    return {
        **AssignmentResponse.model_validate(assignment).model_dump(),
        "course_title": assignment.course.title,
        **grading.assignment_stats(db, assignment)
    }


@router.put("/{assignment_id}", response_model=AssignmentResponse)
async def update_assignment(
    assignment_id: int,
    assignment_update: AssignmentUpdate,
    request: Request,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    update_data = assignment_update.model_dump(exclude_unset=True)
    assignment = grading.update_assignment(db, principal, assignment_id, update_data)
    if update_data:
        log_admin_action(
            db, request, principal, AdminAction.UPDATE, "assignment", assignment_id,
            {"fields": sorted(update_data)}
        )
    return assignment


@router.delete("/{assignment_id}")
async def delete_assignment(
    assignment_id: int,
    request: Request,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
) -> Dict[str, str]:
    """
    Delete an assignment with its submissions and grades.
    """
    grading.delete_assignment(db, principal, assignment_id)
    log_admin_action(db, request, principal, AdminAction.DELETE, "assignment", assignment_id)
    return {"message": "Assignment deleted successfully"}


@router.get("/{assignment_id}/submissions")
async def list_submissions(
    assignment_id: int,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
) -> List[Dict[str, Any]]:
    """
    Submissions of an assignment with the student and the current grade.
    """
    return [
        {
            **SubmissionResponse.model_validate(item["submission"]).model_dump(),
            "student_name": item["submission"].user.name,
            "student_email": item["submission"].user.email,
            "grade": GradeResponse.model_validate(item["grade"]).model_dump() if item["grade"] else None
        }
        for item in grading.list_submissions(db, principal, assignment_id)
    ]


@grades_router.post("/", response_model=GradeResponse)
async def grade_submission(
    grade_data: GradeCreate,
    request: Request,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    """
    Create or replace the grade of one submission.
    """
    grade = grading.grade(
        db,
        principal,
        grade_data.assignment_id,
        grade_data.user_id,
        grade_data.points,
        grade_data.feedback
    )
    log_admin_action(
        db, request, principal, AdminAction.GRADE, "grade", grade.id,
        {"assignment_id": grade.assignment_id, "user_id": grade.user_id, "points": grade.points}
    )
    return grade


@grades_router.post("/bulk", response_model=List[GradeResponse])
async def bulk_grade(
    bulk_data: BulkGradeRequest,
    request: Request,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    """
    Grade several submissions at once. One invalid entry rejects the batch.
    """
    grades = grading.bulk_grade(db, principal, [entry.model_dump() for entry in bulk_data.grades])
    log_admin_action(
        db, request, principal, AdminAction.BULK_GRADE, "grade", None,
        {"count": len(grades), "grade_ids": [grade.id for grade in grades]}
    )
    return grades
