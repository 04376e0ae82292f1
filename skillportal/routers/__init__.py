"""
API routers for the Skill Portal.

This module contains all API endpoint routers:
- auth: OTP registration, login and the current user
- courses: public catalog and per-course views
- enrollments, assignments, discussions: the learning workflow
- skills, profile: skill levels, profile, certificates and dashboard
- admin: administrative endpoints
"""

from fastapi import APIRouter

# Import individual routers
from .auth import router as auth_router
from .courses import router as courses_router
from .enrollments import router as enrollments_router
from .assignments import router as assignments_router
from .discussions import router as discussions_router
from .skills import router as skills_router, user_skills_router
from .profile import router as profile_router

# Import admin sub-routers
from .admin import admin_router

# Create main API router
api_router = APIRouter()

# Include all routers with their prefixes
api_router.include_router(auth_router, prefix="/auth", tags=["authentication"])
api_router.include_router(courses_router, prefix="/courses", tags=["courses"])
api_router.include_router(enrollments_router, prefix="/enrollments", tags=["enrollments"])
api_router.include_router(assignments_router, prefix="/assignments", tags=["assignments"])
api_router.include_router(discussions_router, prefix="/discussions", tags=["discussions"])
api_router.include_router(skills_router, prefix="/skills", tags=["skills"])
api_router.include_router(user_skills_router, prefix="/user-skills", tags=["skills"])
api_router.include_router(profile_router, prefix="/profile", tags=["profile"])
api_router.include_router(admin_router, prefix="/admin", tags=["admin"])

# Export all routers
__all__ = [
    "api_router",
    "auth_router",
    "courses_router",
    "enrollments_router",
    "assignments_router",
    "discussions_router",
    "skills_router",
    "user_skills_router",
    "profile_router",
    "admin_router"
]
