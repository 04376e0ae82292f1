"""
Assignment, submission and grading pipeline.

Every submission path enforces the same rules: students only, enrolled
in the course, before the due date. Every grading path, single or bulk,
requires a submission and points within ``[0, max_points]``. Submissions
and grades are written with one upsert keyed by (assignment, user).
"""

from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional
import logging

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from skillportal.core.config import settings
from skillportal.core.database import upsert
from skillportal.core.errors import Forbidden, NotFound, PastDue, ValidationError
from skillportal.core.security import Principal
from skillportal.models.assignment import Assignment, Grade, Submission
from skillportal.models.catalog import Course
from skillportal.models.enrollment import Enrollment
from skillportal.models.user import UserRole
from skillportal.services import enrollment as enrollment_service
from skillportal.services.metrics import as_utc, percentage, rounded_mean


logger = logging.getLogger(__name__)


# Assignments

def get_assignment(db: Session, assignment_id: int) -> Assignment:
    assignment = db.query(Assignment).filter(Assignment.id == assignment_id).first()
    if not assignment:
        raise NotFound("Assignment not found")
    return assignment


def get_visible_assignment(db: Session, actor: Principal, assignment_id: int) -> Assignment:
    """An assignment the caller may read: admins see all, others their courses'."""
    assignment = get_assignment(db, assignment_id)
    if not actor.is_admin and not enrollment_service.get_enrollment(
        db, actor.user_id, assignment.course_id
    ):
        raise Forbidden("You are not enrolled in this course")
    return assignment


def _refresh_course_progress(db: Session, course_id: int) -> None:
    for enrollment in db.query(Enrollment).filter(Enrollment.course_id == course_id).all():
        enrollment.progress = enrollment_service.compute_progress(db, enrollment.user_id, course_id)


def create_assignment(db: Session, actor: Principal, data: Dict[str, Any]) -> Assignment:
    actor.require_admin()
    if not db.query(Course.id).filter(Course.id == data["course_id"]).first():
        raise NotFound("Course not found")

    assignment = Assignment(
        course_id=data["course_id"],
        title=data["title"],
        description=data.get("description"),
        due_date=as_utc(data["due_date"]),
        max_points=data.get("max_points") or settings.DEFAULT_MAX_POINTS,
        created_by_id=actor.user_id
    )
    db.add(assignment)
    db.flush()
    _refresh_course_progress(db, assignment.course_id)
    db.commit()
    db.refresh(assignment)
    logger.info(f"Assignment {assignment.id} created in course {assignment.course_id}")
    return assignment


def update_assignment(db: Session, actor: Principal, assignment_id: int, data: Dict[str, Any]) -> Assignment:
    actor.require_admin()
    assignment = get_assignment(db, assignment_id)
    if data.get("due_date") is not None:
        data["due_date"] = as_utc(data["due_date"])
    if data.get("max_points") is not None:
        highest = db.query(func.max(Grade.points)).filter(
            Grade.assignment_id == assignment.id
        ).scalar()
        if highest is not None and highest > data["max_points"]:
            raise ValidationError(
                f"max_points cannot be lower than an existing grade of {highest}"
            )
    for field, value in data.items():
        setattr(assignment, field, value)
    db.commit()
    db.refresh(assignment)
    return assignment


def delete_assignment(db: Session, actor: Principal, assignment_id: int) -> None:
    """Delete an assignment with its submissions and grades, then refresh progress."""
    actor.require_admin()
    assignment = get_assignment(db, assignment_id)
    course_id = assignment.course_id
    db.delete(assignment)
    db.flush()
    _refresh_course_progress(db, course_id)
    db.commit()


def assignment_stats(db: Session, assignment: Assignment) -> Dict[str, Any]:
    """Submission, grading and score aggregates for one assignment."""
    enrolled = db.query(func.count(Enrollment.id)).filter(
        Enrollment.course_id == assignment.course_id
    ).scalar() or 0
    submissions = db.query(func.count(Submission.id)).filter(
        Submission.assignment_id == assignment.id
    ).scalar() or 0
    points = [
        row[0] for row in db.query(Grade.points).filter(Grade.assignment_id == assignment.id).all()
    ]
    return {
        "enrolled_students": enrolled,
        "submissions": submissions,
        "graded": len(points),
        "submission_rate": percentage(submissions, enrolled),
        "grading_progress": percentage(len(points), submissions),
        "average_score": rounded_mean(points),
    }


def list_assignments(db: Session, actor: Principal, course_id: Optional[int] = None) -> List[Dict[str, Any]]:
    """
    Assignments filtered by role.

    Admins get every assignment with its counts; everybody else gets the
    assignments of the courses they are enrolled in, each with their own
    submission and grade.
    """
    query = db.query(Assignment).options(joinedload(Assignment.course))
    if course_id is not None:
        query = query.filter(Assignment.course_id == course_id)

    if actor.is_admin:
        assignments = query.order_by(Assignment.created_at.desc(), Assignment.id.desc()).all()
        return [
            {"assignment": assignment, "course_title": assignment.course.title, **assignment_stats(db, assignment)}
            for assignment in assignments
        ]

    assignments = query.join(
        Enrollment, Enrollment.course_id == Assignment.course_id
    ).filter(
        Enrollment.user_id == actor.user_id
    ).order_by(Assignment.due_date.asc(), Assignment.id.asc()).all()

    ids = [assignment.id for assignment in assignments]
    submissions = {
        s.assignment_id: s for s in db.query(Submission).filter(
            Submission.user_id == actor.user_id, Submission.assignment_id.in_(ids)
        ).all()
    } if ids else {}
    grades = {
        g.assignment_id: g for g in db.query(Grade).filter(
            Grade.user_id == actor.user_id, Grade.assignment_id.in_(ids)
        ).all()
    } if ids else {}

    return [
        {
            "assignment": assignment,
            "course_title": assignment.course.title,
            "submission": submissions.get(assignment.id),
            "grade": grades.get(assignment.id),
        }
        for assignment in assignments
    ]


# Submissions

def get_submission(db: Session, assignment_id: int, user_id: int) -> Optional[Submission]:
    return db.query(Submission).populate_existing().filter(
        Submission.assignment_id == assignment_id,
        Submission.user_id == user_id
    ).first()


def submit(
    db: Session,
    actor: Principal,
    assignment_id: int,
    content: str,
    file_url: Optional[str] = None
) -> Submission:
    """
    Create or overwrite the caller's submission and refresh their progress.

    Raises:
        Forbidden: caller is not a student or not enrolled in the course
        ValidationError: blank content
        NotFound: the assignment does not exist
        PastDue: the due date has passed
    """
    actor.require_role(UserRole.STUDENT.value)

    if not content or not content.strip():
        raise ValidationError("Content is required")

    assignment = get_assignment(db, assignment_id)

    if not enrollment_service.get_enrollment(db, actor.user_id, assignment.course_id):
        raise Forbidden("You are not enrolled in this course")

    now = datetime.utcnow()
    if now > as_utc(assignment.due_date):
        raise PastDue()

    upsert(
        db,
        Submission,
        {
            "assignment_id": assignment_id,
            "user_id": actor.user_id,
            "content": content,
            "file_url": file_url or None,
            "submitted_at": now,
        },
        conflict_columns=["assignment_id", "user_id"],
        update_columns=["content", "file_url", "submitted_at"]
    )
    progress = enrollment_service.recompute_progress(db, actor.user_id, assignment.course_id)
    db.commit()

    logger.info(
        f"User {actor.user_id} submitted assignment {assignment_id}, "
        f"course progress {progress}%"
    )
    return get_submission(db, assignment_id, actor.user_id)


def list_submissions(db: Session, actor: Principal, assignment_id: int) -> List[Dict[str, Any]]:
    """Every submission of an assignment with its grade, newest first."""
    actor.require_admin()
    get_assignment(db, assignment_id)

    submissions = db.query(Submission).options(
        joinedload(Submission.user)
    ).filter(
        Submission.assignment_id == assignment_id
    ).order_by(Submission.submitted_at.desc(), Submission.id.desc()).all()
    grades = {
        g.user_id: g for g in db.query(Grade).filter(Grade.assignment_id == assignment_id).all()
    }
    return [
        {"submission": submission, "grade": grades.get(submission.user_id)}
        for submission in submissions
    ]


# Grades

def get_grade(db: Session, assignment_id: int, user_id: int) -> Optional[Grade]:
    return db.query(Grade).populate_existing().filter(
        Grade.assignment_id == assignment_id,
        Grade.user_id == user_id
    ).first()


def _validate_grade(db: Session, assignment_id: int, user_id: int, points: int) -> Assignment:
    assignment = get_assignment(db, assignment_id)
    if not isinstance(points, int) or points < 0 or points > assignment.max_points:
        raise ValidationError(f"Points must be between 0 and {assignment.max_points}")
    if get_submission(db, assignment_id, user_id) is None:
        raise NotFound("Submission not found")
    return assignment


def _write_grade(
    db: Session,
    actor: Principal,
    assignment_id: int,
    user_id: int,
    points: int,
    feedback: Optional[str]
) -> None:
    upsert(
        db,
        Grade,
        {
            "assignment_id": assignment_id,
            "user_id": user_id,
            "points": points,
            "feedback": feedback or None,
            "graded_by_id": actor.user_id,
            "graded_at": datetime.utcnow(),
        },
        conflict_columns=["assignment_id", "user_id"],
        update_columns=["points", "feedback", "graded_by_id", "graded_at"]
    )


def grade(
    db: Session,
    actor: Principal,
    assignment_id: int,
    user_id: int,
    points: int,
    feedback: Optional[str] = None
) -> Grade:
    """
    Create or overwrite the grade of one submission.

    Validation runs before any write, so a rejected grade leaves an
    existing one untouched.
    """
    actor.require_admin()
    _validate_grade(db, assignment_id, user_id, points)
    _write_grade(db, actor, assignment_id, user_id, points, feedback)
    db.commit()

    logger.info(f"User {actor.user_id} graded assignment {assignment_id} for user {user_id}: {points}")
    return get_grade(db, assignment_id, user_id)


def bulk_grade(db: Session, actor: Principal, entries: Iterable[Dict[str, Any]]) -> List[Grade]:
    """
    Grade several submissions in one transaction.

    Each entry is checked like a single grade; the first invalid entry
    rolls the whole batch back.
    """
    actor.require_admin()
    entries = list(entries)
    if not entries:
        raise ValidationError("No grades provided")

    try:
        for entry in entries:
            _validate_grade(db, entry["assignment_id"], entry["user_id"], entry["points"])
            _write_grade(
                db, actor,
                entry["assignment_id"], entry["user_id"],
                entry["points"], entry.get("feedback")
            )
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(f"User {actor.user_id} recorded {len(entries)} grades")
    return [get_grade(db, entry["assignment_id"], entry["user_id"]) for entry in entries]


def get_own_grade(db: Session, actor: Principal, assignment_id: int) -> Optional[Grade]:
    get_visible_assignment(db, actor, assignment_id)
    return get_grade(db, assignment_id, actor.user_id)
