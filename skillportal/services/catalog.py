"""
Catalog service: skills, courses, self-reported user skills and accounts.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
import logging

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from skillportal.core.errors import Conflict, Forbidden, NotFound, ValidationError
from skillportal.core.security import Principal
from skillportal.models.catalog import (
    Course, Skill, UserSkill, USER_SKILL_MAX_LEVEL, USER_SKILL_MIN_LEVEL
)
from skillportal.models.enrollment import Enrollment
from skillportal.models.user import User


logger = logging.getLogger(__name__)


# Skills

def list_skills(db: Session) -> List[Skill]:
    return db.query(Skill).order_by(Skill.name.asc()).all()


def list_skills_with_counts(db: Session) -> List[Dict[str, Any]]:
    """Skills with the number of users tracking them and courses teaching them."""
    user_counts = dict(
        db.query(UserSkill.skill_id, func.count(UserSkill.id)).group_by(UserSkill.skill_id).all()
    )
    course_counts = dict(
        db.query(Course.skill_id, func.count(Course.id)).group_by(Course.skill_id).all()
    )
    return [
        {
            "id": skill.id,
            "name": skill.name,
            "description": skill.description,
            "category": skill.category,
            "created_at": skill.created_at,
            "user_count": user_counts.get(skill.id, 0),
            "course_count": course_counts.get(skill.id, 0),
        }
        for skill in list_skills(db)
    ]


def get_skill(db: Session, skill_id: int) -> Skill:
    skill = db.query(Skill).filter(Skill.id == skill_id).first()
    if not skill:
        raise NotFound("Skill not found")
    return skill


def create_skill(db: Session, actor: Principal, data: Dict[str, Any]) -> Skill:
    actor.require_admin()
    skill = Skill(**data)
    db.add(skill)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict("Skill with this name already exists")
    db.refresh(skill)
    return skill


def update_skill(db: Session, actor: Principal, skill_id: int, data: Dict[str, Any]) -> Skill:
    actor.require_admin()
    skill = get_skill(db, skill_id)
    for field, value in data.items():
        setattr(skill, field, value)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict("Skill with this name already exists")
    db.refresh(skill)
    return skill


def delete_skill(db: Session, actor: Principal, skill_id: int) -> None:
    actor.require_admin()
    skill = get_skill(db, skill_id)
    db.delete(skill)
    db.commit()


# Courses

def list_courses(
    db: Session,
    include_drafts: bool = False,
    published: Optional[bool] = None,
    skill_id: Optional[int] = None,
    search: Optional[str] = None,
    skip: int = 0,
    limit: int = 20
) -> Dict[str, Any]:
    """A page of courses, newest first; drafts only when asked for."""
    query = db.query(Course)
    if not include_drafts or published:
        query = query.filter(Course.published_at.isnot(None))
    elif published is False:
        query = query.filter(Course.published_at.is_(None))
    if skill_id is not None:
        query = query.filter(Course.skill_id == skill_id)
    if search:
        search_term = f"%{search}%"
        query = query.filter(
            or_(
                Course.title.ilike(search_term),
                Course.description.ilike(search_term)
            )
        )
    total = query.count()
    courses = query.options(
        joinedload(Course.skill)
    ).order_by(
        Course.created_at.desc(), Course.id.desc()
    ).offset(skip).limit(limit).all()
    return {"courses": courses, "total": total, "skip": skip, "limit": limit}


def enrollment_counts(db: Session, course_ids: List[int]) -> Dict[int, int]:
    if not course_ids:
        return {}
    return dict(
        db.query(Enrollment.course_id, func.count(Enrollment.id))
        .filter(Enrollment.course_id.in_(course_ids))
        .group_by(Enrollment.course_id)
        .all()
    )


def get_course(db: Session, course_id: int, actor: Optional[Principal] = None) -> Course:
    """A course by id. Drafts are visible to admins only."""
    course = db.query(Course).filter(Course.id == course_id).first()
    if not course or (not course.is_published and not (actor and actor.is_admin)):
        raise NotFound("Course not found")
    return course


def create_course(db: Session, actor: Principal, data: Dict[str, Any]) -> Course:
    actor.require_admin()
    publish = data.pop("publish", True)
    if data.get("skill_id") is not None:
        get_skill(db, data["skill_id"])

    course = Course(
        **data,
        created_by_id=actor.user_id,
        published_at=datetime.utcnow() if publish else None
    )
    db.add(course)
    db.commit()
    db.refresh(course)
    logger.info(f"Course {course.id} created by user {actor.user_id}")
    return course


def update_course(db: Session, actor: Principal, course_id: int, data: Dict[str, Any]) -> Course:
    actor.require_admin()
    course = get_course(db, course_id, actor)
    if data.get("skill_id") is not None:
        get_skill(db, data["skill_id"])
    for field, value in data.items():
        setattr(course, field, value)
    db.commit()
    db.refresh(course)
    return course


def set_published(db: Session, actor: Principal, course_id: int, published: bool) -> Course:
    """Publish a draft or take a course back to draft."""
    actor.require_admin()
    course = get_course(db, course_id, actor)
    if published and course.published_at is None:
        course.published_at = datetime.utcnow()
    elif not published:
        course.published_at = None
    db.commit()
    db.refresh(course)
    return course


def delete_course(db: Session, actor: Principal, course_id: int) -> None:
    """Delete a course with its assignments, enrollments, certificates and threads."""
    actor.require_admin()
    course = get_course(db, course_id, actor)
    db.delete(course)
    db.commit()
    logger.info(f"Course {course_id} deleted by user {actor.user_id}")


# User skills

def _check_level(level: int) -> None:
    if not isinstance(level, int) or not USER_SKILL_MIN_LEVEL <= level <= USER_SKILL_MAX_LEVEL:
        raise ValidationError(
            f"Level must be between {USER_SKILL_MIN_LEVEL} and {USER_SKILL_MAX_LEVEL}"
        )


def list_user_skills(db: Session, actor: Principal) -> List[UserSkill]:
    return db.query(UserSkill).options(
        joinedload(UserSkill.skill)
    ).filter(
        UserSkill.user_id == actor.user_id
    ).order_by(UserSkill.added_at.desc(), UserSkill.id.desc()).all()


def add_user_skill(db: Session, actor: Principal, skill_id: int, level: int) -> UserSkill:
    _check_level(level)
    get_skill(db, skill_id)
    user_skill = UserSkill(user_id=actor.user_id, skill_id=skill_id, level=level)
    db.add(user_skill)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict("Skill already added")
    db.refresh(user_skill)
    return user_skill


def _own_user_skill(db: Session, actor: Principal, user_skill_id: int) -> UserSkill:
    user_skill = db.query(UserSkill).filter(UserSkill.id == user_skill_id).first()
    if not user_skill or user_skill.user_id != actor.user_id:
        raise NotFound("User skill not found")
    return user_skill


def update_user_skill(db: Session, actor: Principal, user_skill_id: int, level: int) -> UserSkill:
    _check_level(level)
    user_skill = _own_user_skill(db, actor, user_skill_id)
    user_skill.level = level
    db.commit()
    db.refresh(user_skill)
    return user_skill


def remove_user_skill(db: Session, actor: Principal, user_skill_id: int) -> None:
    user_skill = _own_user_skill(db, actor, user_skill_id)
    db.delete(user_skill)
    db.commit()


# Accounts

def get_user(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFound("User not found")
    return user


def update_profile(db: Session, actor: Principal, data: Dict[str, Any]) -> User:
    user = get_user(db, actor.user_id)
    for field, value in data.items():
        setattr(user, field, value)
    db.commit()
    db.refresh(user)
    return user


def list_users(
    db: Session,
    actor: Principal,
    role: Optional[str] = None,
    search: Optional[str] = None,
    skip: int = 0,
    limit: int = 50
) -> Dict[str, Any]:
    actor.require_admin()
    query = db.query(User)
    if role:
        query = query.filter(User.role == role)
    if search:
        search_term = f"%{search}%"
        query = query.filter(or_(User.name.ilike(search_term), User.email.ilike(search_term)))
    total = query.count()
    users = query.order_by(User.created_at.desc(), User.id.desc()).offset(skip).limit(limit).all()
    return {"users": users, "total": total, "skip": skip, "limit": limit}


def update_user(db: Session, actor: Principal, user_id: int, data: Dict[str, Any]) -> User:
    actor.require_admin()
    user = get_user(db, user_id)
    if user.id == actor.user_id and data.get("role") not in (None, "admin"):
        raise Forbidden("Admins cannot remove their own admin role")
    if user.id == actor.user_id and data.get("is_active") is False:
        raise Forbidden("Admins cannot deactivate their own account")
    for field, value in data.items():
        setattr(user, field, value)
    db.commit()
    db.refresh(user)
    return user


def delete_user(db: Session, actor: Principal, user_id: int) -> None:
    actor.require_admin()
    if user_id == actor.user_id:
        raise Forbidden("Admins cannot delete their own account")
    user = get_user(db, user_id)
    db.delete(user)
    db.commit()
    logger.info(f"User {user_id} deleted by user {actor.user_id}")
