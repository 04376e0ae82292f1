"""
Enrollment engine.

Creates enrollments, keeps their progress in step with submissions and
issues the completion certificate. Uniqueness of (user, course) for both
enrollments and certificates is left to the unique constraints: creation is
a single insert, never a lookup followed by a write.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
import logging

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from skillportal.core.config import settings
from skillportal.core.database import upsert
from skillportal.core.errors import Conflict, NotFound, ValidationError
from skillportal.core.security import Principal
from skillportal.models.assignment import Assignment, Submission
from skillportal.models.catalog import Course
from skillportal.models.enrollment import Certificate, Enrollment, EnrollmentStatus
from skillportal.services.metrics import percentage, round_half_up


logger = logging.getLogger(__name__)


def enroll(db: Session, actor: Principal, course_id: int) -> Enrollment:
    """
    Enroll the caller in a published course.

    Raises:
        NotFound: the course does not exist
        ValidationError: the course is a draft
        Conflict: the caller is already enrolled
    """
    course = db.query(Course).filter(Course.id == course_id).first()
    if not course:
        raise NotFound("Course not found")
    if not course.is_published:
        raise ValidationError("Course is not published")

    enrollment = Enrollment(
        user_id=actor.user_id,
        course_id=course_id,
        status=EnrollmentStatus.ENROLLED.value,
        progress=0
    )
    db.add(enrollment)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict("Already enrolled in this course")

    db.refresh(enrollment)
    logger.info(f"User {actor.user_id} enrolled in course {course_id}")
    return enrollment


def get_enrollment(db: Session, user_id: int, course_id: int) -> Optional[Enrollment]:
    return db.query(Enrollment).filter(
        Enrollment.user_id == user_id,
        Enrollment.course_id == course_id
    ).first()


def get_enrollment_by_id(db: Session, enrollment_id: int) -> Enrollment:
    enrollment = db.query(Enrollment).filter(Enrollment.id == enrollment_id).first()
    if not enrollment:
        raise NotFound("Enrollment not found")
    return enrollment


def list_user_enrollments(db: Session, actor: Principal) -> List[Enrollment]:
    return db.query(Enrollment).options(
        joinedload(Enrollment.course)
    ).filter(
        Enrollment.user_id == actor.user_id
    ).order_by(Enrollment.enrolled_at.desc(), Enrollment.id.desc()).all()


def compute_progress(db: Session, user_id: int, course_id: int) -> int:
    """Submitted assignments of the course as a rounded percentage of all of them."""
    total_assignments = db.query(func.count(Assignment.id)).filter(
        Assignment.course_id == course_id
    ).scalar() or 0

    submitted = db.query(func.count(Submission.id)).join(
        Assignment, Submission.assignment_id == Assignment.id
    ).filter(
        Submission.user_id == user_id,
        Assignment.course_id == course_id
    ).scalar() or 0

    return percentage(submitted, total_assignments)


def recompute_progress(db: Session, user_id: int, course_id: int) -> int:
    """
    Write the current progress back to the enrollment.

    Does not commit; the caller commits together with the change that
    triggered the recompute. Calling it again without new submissions
    yields the same value.
    """
    progress = compute_progress(db, user_id, course_id)
    enrollment = get_enrollment(db, user_id, course_id)
    if enrollment is not None:
        enrollment.progress = progress
    return progress


def issue_certificate(db: Session, enrollment: Enrollment) -> Certificate:
    """
    Issue the completion certificate for the enrollment's (user, course).

    ``INSERT ... ON CONFLICT DO NOTHING`` keeps it at exactly one per pair,
    whatever the number of completions. Does not commit.
    """
    course = enrollment.course
    upsert(
        db,
        Certificate,
        {
            "user_id": enrollment.user_id,
            "course_id": enrollment.course_id,
            "title": f"Certificate of Completion - {course.title}",
            "url": f"{settings.CERTIFICATE_BASE_URL}/{enrollment.user_id}/{enrollment.course_id}",
            "issued_at": datetime.utcnow(),
        },
        conflict_columns=["user_id", "course_id"]
    )
    return db.query(Certificate).filter(
        Certificate.user_id == enrollment.user_id,
        Certificate.course_id == enrollment.course_id
    ).one()


def set_status(
    db: Session,
    actor: Principal,
    enrollment_id: int,
    status: Optional[str] = None,
    progress: Optional[int] = None
) -> Enrollment:
    """
    Admin change of an enrollment's status and/or progress.

    Completing an enrollment stamps ``completed_at`` and issues its
    certificate; leaving ``completed`` clears the stamp.
    """
    actor.require_admin()
    enrollment = get_enrollment_by_id(db, enrollment_id)

    if status is not None:
        try:
            status = EnrollmentStatus(status).value
        except ValueError:
            raise ValidationError(f"Unknown enrollment status: {status}")
    if progress is not None and not 0 <= progress <= 100:
        raise ValidationError("Progress must be between 0 and 100")

    if progress is not None:
        enrollment.progress = progress

    if status is not None:
        enrollment.status = status
        if status == EnrollmentStatus.COMPLETED.value:
            if enrollment.completed_at is None:
                enrollment.completed_at = datetime.utcnow()
            certificate = issue_certificate(db, enrollment)
            logger.info(
                f"Certificate {certificate.id} for user {enrollment.user_id} "
                f"in course {enrollment.course_id}"
            )
        else:
            enrollment.completed_at = None

    db.commit()
    db.refresh(enrollment)
    return enrollment


def _delete(db: Session, enrollment: Enrollment) -> None:
    db.query(Certificate).filter(
        Certificate.user_id == enrollment.user_id,
        Certificate.course_id == enrollment.course_id
    ).delete(synchronize_session=False)
    db.delete(enrollment)
    db.commit()


def unenroll(db: Session, actor: Principal, course_id: int) -> None:
    """Remove the caller's enrollment and its certificate."""
    enrollment = get_enrollment(db, actor.user_id, course_id)
    if not enrollment:
        raise NotFound("Enrollment not found")
    _delete(db, enrollment)
    logger.info(f"User {actor.user_id} left course {course_id}")


def delete_enrollment(db: Session, actor: Principal, enrollment_id: int) -> None:
    actor.require_admin()
    enrollment = get_enrollment_by_id(db, enrollment_id)
    _delete(db, enrollment)
    logger.info(f"Enrollment {enrollment_id} deleted by user {actor.user_id}")


def list_enrollments(
    db: Session,
    actor: Principal,
    status: Optional[str] = None,
    course_id: Optional[int] = None,
    skip: int = 0,
    limit: int = 50
) -> Dict[str, Any]:
    """Admin listing with per-status counts and the average progress."""
    actor.require_admin()

    query = db.query(Enrollment)
    if status:
        query = query.filter(Enrollment.status == status)
    if course_id is not None:
        query = query.filter(Enrollment.course_id == course_id)

    total = query.count()
    enrollments = query.options(
        joinedload(Enrollment.user),
        joinedload(Enrollment.course)
    ).order_by(
        Enrollment.enrolled_at.desc(), Enrollment.id.desc()
    ).offset(skip).limit(limit).all()

    stats = {"total": total}
    for value in EnrollmentStatus:
        stats[value.value] = query.filter(Enrollment.status == value.value).count()
    avg_progress = query.with_entities(func.avg(Enrollment.progress)).scalar()
    stats["avg_progress"] = round_half_up(avg_progress or 0)

    return {
        "enrollments": enrollments,
        "stats": stats,
        "total": total,
        "skip": skip,
        "limit": limit
    }


def list_certificates(db: Session, actor: Principal) -> List[Certificate]:
    return db.query(Certificate).options(
        joinedload(Certificate.course)
    ).filter(
        Certificate.user_id == actor.user_id
    ).order_by(Certificate.issued_at.desc(), Certificate.id.desc()).all()
