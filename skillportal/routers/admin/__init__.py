"""
Admin routers for the Skill Portal.

This module contains all admin-specific API endpoints:
- courses: course management, drafts and publishing
- skills: skill catalog management
- assignments: assignments, submission review and grading
- enrollments: enrollment status, progress and certificates
- users: role and account management
"""

from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from skillportal.core.database import get_db
from skillportal.core.security import Principal
from skillportal.models.admin import AdminLog
from skillportal.models.user import User
from skillportal.routers.auth import get_current_principal, get_current_user
from skillportal.services import analytics

# Import admin sub-routers
from .courses import router as courses_router
from .skills import router as skills_router
from .assignments import router as assignments_router, grades_router
from .enrollments import router as enrollments_router
from .users import router as users_router


# Dependency to verify admin access
async def get_current_admin_user(
    current_user: User = Depends(get_current_user)
) -> User:
    """
    Verify that the current user has admin privileges.
    """
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required"
        )
    return current_user


# Create admin router
admin_router = APIRouter(dependencies=[Depends(get_current_admin_user)])

# Include all admin sub-routers
admin_router.include_router(courses_router, prefix="/courses", tags=["admin-courses"])
admin_router.include_router(skills_router, prefix="/skills", tags=["admin-skills"])
admin_router.include_router(assignments_router, prefix="/assignments", tags=["admin-assignments"])
admin_router.include_router(grades_router, prefix="/grades", tags=["admin-grades"])
admin_router.include_router(enrollments_router, prefix="/enrollments", tags=["admin-enrollments"])
admin_router.include_router(users_router, prefix="/users", tags=["admin-users"])


# Admin dashboard endpoint
@admin_router.get("/dashboard")
async def get_admin_dashboard(
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
) -> dict:
    """
    Get admin dashboard overview with statistics.
    """
    return analytics.admin_dashboard(db, principal)


@admin_router.get("/analytics")
async def get_admin_analytics(
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
) -> dict:
    """
    Growth, engagement, popular courses, skills and recent activity.
    """
    return analytics.admin_analytics(db, principal)


# Admin logs endpoint
@admin_router.get("/logs")
async def get_admin_logs(
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    action: Optional[str] = None,
    entity_type: Optional[str] = None,
    db: Session = Depends(get_db)
) -> dict:
    """
    Get admin action logs with filtering.
    """
    query = db.query(AdminLog)

    # Apply filters
    if action:
        query = query.filter(AdminLog.action == action)
    if entity_type:
        query = query.filter(AdminLog.entity_type == entity_type)

    total = query.count()

    logs = query.order_by(
        AdminLog.created_at.desc(), AdminLog.id.desc()
    ).offset(skip).limit(limit).all()

    return {
        "total": total,
        "skip": skip,
        "limit": limit,
        "logs": [
            {
                "id": log.id,
                "user_id": log.user_id,
                "action": log.action,
                "entity_type": log.entity_type,
                "entity_id": log.entity_id,
                "details": log.details,
                "ip_address": log.ip_address,
                "created_at": log.created_at.isoformat()
            }
            for log in logs
        ]
    }


# Export all routers
__all__ = ["admin_router", "get_current_admin_user"]
