"""
Database models for the Skill Portal.

This module contains all SQLAlchemy models for the application:
- User models for authentication, profiles and pending registrations
- Catalog models for skills, courses and self-reported skill levels
- Enrollment models for course registration and certificates
- Assignment models for submissions and grades
- Discussion models for forum threads and replies
- Admin models for the audit trail
"""

from skillportal.core.database import Base

# Import all models to ensure they're registered with SQLAlchemy
from .user import User, UserRole, PendingUser
from .catalog import Skill, Course, UserSkill
from .enrollment import Enrollment, EnrollmentStatus, Certificate
from .assignment import Assignment, Submission, Grade
from .discussion import DiscussionThread, DiscussionReply
from .admin import AdminLog, AdminAction

# Export all models
__all__ = [
    "Base",
    "User",
    "UserRole",
    "PendingUser",
    "Skill",
    "Course",
    "UserSkill",
    "Enrollment",
    "EnrollmentStatus",
    "Certificate",
    "Assignment",
    "Submission",
    "Grade",
    "DiscussionThread",
    "DiscussionReply",
    "AdminLog",
    "AdminAction"
]
