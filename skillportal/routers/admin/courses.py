"""
Admin courses router for the Skill Portal.

Handles course management including drafts, publishing and deletion.
"""

from typing import Optional, Dict, Any
from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from skillportal.core.database import get_db
from skillportal.core.security import Principal
from skillportal.models.admin import AdminAction
from skillportal.routers.admin.audit import log_admin_action
from skillportal.routers.auth import get_current_principal
from skillportal.routers.courses import course_item
from skillportal.schemas.catalog import CourseCreate, CourseResponse, CourseUpdate
from skillportal.services import catalog


router = APIRouter()


@router.get("/")
async def list_courses(
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    published: Optional[bool] = None,
    skill_id: Optional[int] = None,
    search: Optional[str] = None,
    db: Session = Depends(get_db)
) -> Dict[str, Any]:
    """
    List all courses, drafts included, with enrollment counts.
    """
    result = catalog.list_courses(
        db,
        include_drafts=True,
        published=published,
        skill_id=skill_id,
        search=search,
        skip=skip,
        limit=limit
    )
    counts = catalog.enrollment_counts(db, [course.id for course in result["courses"]])
    result["courses"] = [course_item(course, counts.get(course.id, 0)) for course in result["courses"]]
    return result


@router.post("/", response_model=CourseResponse, status_code=status.HTTP_201_CREATED)
async def create_course(
    course_data: CourseCreate,
    request: Request,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    """
    Create a course, published unless ``publish`` is false.
    """
    course = catalog.create_course(db, principal, course_data.model_dump())
    log_admin_action(
        db, request, principal, AdminAction.CREATE, "course", course.id,
        {"course_title": course.title, "published": course.is_published}
    )
    return course


@router.get("/{course_id}", response_model=CourseResponse)
async def get_course(
    course_id: int,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    return catalog.get_course(db, course_id, principal)


@router.put("/{course_id}", response_model=CourseResponse)
async def update_course(
    course_id: int,
    course_update: CourseUpdate,
    request: Request,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    update_data = course_update.model_dump(exclude_unset=True)
    course = catalog.update_course(db, principal, course_id, update_data)
    if update_data:
        log_admin_action(
            db, request, principal, AdminAction.UPDATE, "course", course_id,
            {"fields": sorted(update_data)}
        )
    return course


@router.post("/{course_id}/publish", response_model=CourseResponse)
async def publish_course(
    course_id: int,
    request: Request,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    """
    Publish a course, making it available to students.
    """
    course = catalog.set_published(db, principal, course_id, True)
    log_admin_action(db, request, principal, AdminAction.PUBLISH, "course", course_id)
    return course


@router.post("/{course_id}/unpublish", response_model=CourseResponse)
async def unpublish_course(
    course_id: int,
    request: Request,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    """
    Take a course back to draft. Existing enrollments are kept.
    """
    course = catalog.set_published(db, principal, course_id, False)
    log_admin_action(db, request, principal, AdminAction.UNPUBLISH, "course", course_id)
    return course


@router.delete("/{course_id}")
async def delete_course(
    course_id: int,
    request: Request,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
) -> Dict[str, str]:
    """
    Delete a course with its assignments, enrollments, certificates and threads.
    """
    title = catalog.get_course(db, course_id, principal).title
    catalog.delete_course(db, principal, course_id)
    log_admin_action(
        db, request, principal, AdminAction.DELETE, "course", course_id,
        {"course_title": title}
    )
    return {"message": "Course deleted successfully"}
