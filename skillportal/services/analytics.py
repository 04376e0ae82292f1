"""
Dashboards and analytics.

Counting and averaging over the other entities; nothing here writes.
"""

from datetime import datetime, timedelta
from typing import Any, Dict, List
import logging

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from skillportal.core.security import Principal
from skillportal.models.assignment import Assignment, Grade, Submission
from skillportal.models.catalog import Course, Skill, UserSkill
from skillportal.models.enrollment import Certificate, Enrollment, EnrollmentStatus
from skillportal.models.user import User, UserRole
from skillportal.services.grading import assignment_stats
from skillportal.services.metrics import as_utc, percentage, round_half_up


logger = logging.getLogger(__name__)


GROWTH_WINDOW_DAYS = 30
RECENT_ACTIVITY_DAYS = 7
RECENT_ACTIVITY_LIMIT = 20
TOP_COURSES_LIMIT = 10
MONTHLY_GROWTH_MONTHS = 6


def _count(db: Session, column, *criteria) -> int:
    return db.query(func.count(column)).filter(*criteria).scalar() or 0


def growth(current: int, previous: int) -> int:
    """Percentage change against an earlier count; 0 without a baseline."""
    if previous <= 0:
        return 0
    return round_half_up((current - previous) / previous * 100)


def admin_dashboard(db: Session, actor: Principal) -> Dict[str, Any]:
    actor.require_admin()

    total_courses = _count(db, Course.id)
    published_courses = _count(db, Course.id, Course.published_at.isnot(None))
    total_enrollments = _count(db, Enrollment.id)
    completed = _count(db, Enrollment.id, Enrollment.status == EnrollmentStatus.COMPLETED.value)

    users_by_role = dict(db.query(User.role, func.count(User.id)).group_by(User.role).all())

    return {
        "users": {
            "total": sum(users_by_role.values()),
            "students": users_by_role.get(UserRole.STUDENT.value, 0),
            "instructors": users_by_role.get(UserRole.INSTRUCTOR.value, 0),
            "admins": users_by_role.get(UserRole.ADMIN.value, 0),
        },
        "courses": {
            "total": total_courses,
            "published": published_courses,
            "draft": total_courses - published_courses,
        },
        "skills": _count(db, Skill.id),
        "enrollments": {
            "total": total_enrollments,
            "completed": completed,
            "completion_rate": percentage(completed, total_enrollments),
        },
        "assignments": _count(db, Assignment.id),
        "submissions": _count(db, Submission.id),
        "grades": _count(db, Grade.id),
        "certificates": _count(db, Certificate.id),
    }


def _popular_courses(db: Session) -> List[Dict[str, Any]]:
    enrollment_count = func.count(Enrollment.id)
    rows = db.query(Course, enrollment_count).outerjoin(
        Enrollment, Enrollment.course_id == Course.id
    ).filter(
        Course.published_at.isnot(None)
    ).group_by(Course.id).order_by(
        enrollment_count.desc(), Course.id.asc()
    ).limit(TOP_COURSES_LIMIT).all()

    certificates = dict(
        db.query(Certificate.course_id, func.count(Certificate.id)).group_by(Certificate.course_id).all()
    )
    return [
        {
            "id": course.id,
            "title": course.title,
            "skill": course.skill.name if course.skill else "General",
            "instructor": course.created_by.name if course.created_by else None,
            "enrollments": enrollments,
            "completions": certificates.get(course.id, 0),
            "completion_rate": percentage(certificates.get(course.id, 0), enrollments),
        }
        for course, enrollments in rows
    ]


def _skills_breakdown(db: Session, total_users: int) -> List[Dict[str, Any]]:
    user_counts = dict(
        db.query(UserSkill.skill_id, func.count(UserSkill.id)).group_by(UserSkill.skill_id).all()
    )
    course_counts = dict(
        db.query(Course.skill_id, func.count(Course.id)).group_by(Course.skill_id).all()
    )
    skills = sorted(
        db.query(Skill).all(),
        key=lambda skill: (-user_counts.get(skill.id, 0), skill.name)
    )
    return [
        {
            "name": skill.name,
            "category": skill.category,
            "user_count": user_counts.get(skill.id, 0),
            "course_count": course_counts.get(skill.id, 0),
            "percentage": percentage(user_counts.get(skill.id, 0), total_users),
        }
        for skill in skills[:10]
    ]


def _month_start(now: datetime, months_back: int) -> datetime:
    month_index = now.year * 12 + now.month - 1 - months_back
    return datetime(month_index // 12, month_index % 12 + 1, 1)


def _monthly_user_growth(db: Session, now: datetime) -> List[Dict[str, Any]]:
    """New users per calendar month, oldest first, the current month last."""
    series = []
    for months_back in range(MONTHLY_GROWTH_MONTHS - 1, -1, -1):
        start = _month_start(now, months_back)
        end = _month_start(now, months_back - 1)
        series.append({
            "month": start.strftime("%b %Y"),
            "users": _count(db, User.id, User.created_at >= start, User.created_at < end),
        })
    return series


def _recent_activity(db: Session, since: datetime) -> List[Dict[str, Any]]:
    activity = []

    for user in db.query(User).filter(User.created_at >= since).order_by(User.created_at.desc()).limit(5):
        activity.append({
            "type": "user_registered",
            "description": f"{user.name} joined the platform",
            "time": user.created_at,
        })

    for enrollment in db.query(Enrollment).options(
        joinedload(Enrollment.user), joinedload(Enrollment.course)
    ).filter(Enrollment.enrolled_at >= since).order_by(Enrollment.enrolled_at.desc()).limit(5):
        activity.append({
            "type": "enrollment",
            "description": f"{enrollment.user.name} enrolled in {enrollment.course.title}",
            "time": enrollment.enrolled_at,
        })

    for submission in db.query(Submission).options(
        joinedload(Submission.user), joinedload(Submission.assignment)
    ).filter(Submission.submitted_at >= since).order_by(Submission.submitted_at.desc()).limit(5):
        activity.append({
            "type": "submission",
            "description": f"{submission.user.name} submitted {submission.assignment.title}",
            "time": submission.submitted_at,
        })

    for certificate in db.query(Certificate).options(
        joinedload(Certificate.user), joinedload(Certificate.course)
    ).filter(Certificate.issued_at >= since).order_by(Certificate.issued_at.desc()).limit(5):
        activity.append({
            "type": "certificate",
            "description": f"{certificate.user.name} completed {certificate.course.title}",
            "time": certificate.issued_at,
        })

    activity.sort(key=lambda item: as_utc(item["time"]), reverse=True)
    return activity[:RECENT_ACTIVITY_LIMIT]


def admin_analytics(db: Session, actor: Principal) -> Dict[str, Any]:
    """Platform-wide metrics for the admin analytics page."""
    actor.require_admin()

    now = datetime.utcnow()
    window_start = now - timedelta(days=GROWTH_WINDOW_DAYS)

    total_users = _count(db, User.id)
    users_before = _count(db, User.id, User.created_at < window_start)
    active_courses = _count(db, Course.id, Course.published_at.isnot(None))
    courses_before = _count(db, Course.id, Course.published_at.isnot(None), Course.published_at < window_start)
    total_enrollments = _count(db, Enrollment.id)
    completed = _count(db, Enrollment.id, Enrollment.status == EnrollmentStatus.COMPLETED.value)
    total_assignments = _count(db, Assignment.id)
    total_submissions = _count(db, Submission.id)

    role_rows = db.query(User.role, func.count(User.id)).group_by(User.role).order_by(User.role).all()

    assignments = db.query(Assignment).options(
        joinedload(Assignment.course)
    ).order_by(Assignment.created_at.desc(), Assignment.id.desc()).limit(10).all()

    return {
        "total_users": total_users,
        "active_courses": active_courses,
        "completions": completed,
        "engagement_rate": percentage(total_enrollments, total_users),
        "user_growth": growth(total_users, users_before),
        "course_growth": growth(active_courses, courses_before),
        "total_enrollments": total_enrollments,
        "total_assignments": total_assignments,
        "total_submissions": total_submissions,
        "total_grades": _count(db, Grade.id),
        "total_certificates": _count(db, Certificate.id),
        "completion_rate": percentage(completed, total_enrollments),
        "submission_rate": percentage(total_submissions, total_assignments),
        "popular_courses": _popular_courses(db),
        "skills_breakdown": _skills_breakdown(db, total_users),
        "role_distribution": [
            {"role": role, "count": count, "percentage": percentage(count, total_users)}
            for role, count in role_rows
        ],
        "monthly_user_growth": _monthly_user_growth(db, now),
        "recent_activity": _recent_activity(db, now - timedelta(days=RECENT_ACTIVITY_DAYS)),
        "assignment_analytics": [
            {
                "id": assignment.id,
                "title": assignment.title,
                "course": assignment.course.title,
                **assignment_stats(db, assignment),
            }
            for assignment in assignments
        ],
    }


def student_dashboard(db: Session, actor: Principal) -> Dict[str, Any]:
    """Summary of the caller's own learning."""
    enrollments = db.query(Enrollment).options(
        joinedload(Enrollment.course)
    ).filter(
        Enrollment.user_id == actor.user_id
    ).order_by(Enrollment.enrolled_at.desc(), Enrollment.id.desc()).all()

    progress_values = [enrollment.progress or 0 for enrollment in enrollments]

    return {
        "stats": {
            "enrolled_courses": len(enrollments),
            "completed_courses": len([e for e in enrollments if e.status == EnrollmentStatus.COMPLETED.value]),
            "in_progress_courses": len([e for e in enrollments if e.status == EnrollmentStatus.ENROLLED.value]),
            "total_skills": _count(db, UserSkill.id, UserSkill.user_id == actor.user_id),
            "certificates": _count(db, Certificate.id, Certificate.user_id == actor.user_id),
            "avg_progress": round_half_up(sum(progress_values) / len(progress_values)) if progress_values else 0,
        },
        "recent_courses": [
            {
                "enrollment_id": enrollment.id,
                "course_id": enrollment.course_id,
                "title": enrollment.course.title,
                "status": enrollment.status,
                "progress": enrollment.progress,
                "enrolled_at": enrollment.enrolled_at,
            }
            for enrollment in enrollments[:3]
        ],
    }
