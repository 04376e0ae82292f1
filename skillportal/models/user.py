"""
User models for the Skill Portal.

Defines the verified User table with authentication and profile fields,
and the PendingUser table holding unverified registrations.
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from sqlalchemy import (
    Boolean, Integer, String, DateTime, Index, CheckConstraint
)
from sqlalchemy.orm import relationship, Mapped, mapped_column
from sqlalchemy.sql import func

from skillportal.core.database import Base


class UserRole(str, Enum):
    """Roles a user can hold."""
    STUDENT = "student"
    INSTRUCTOR = "instructor"
    ADMIN = "admin"


class User(Base):
    """
    User model for authentication and profile management.
    """
    __tablename__ = "users"

    # Primary key
    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)

    # Authentication fields
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=False
    )
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(
        String(20),
        default=UserRole.STUDENT.value,
        nullable=False
    )

    # Profile fields
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    university: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    degree: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    branch: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    image_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    # Status fields
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False
    )
    last_login_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # Relationships owned by the user
    user_skills = relationship("UserSkill", back_populates="user", cascade="all, delete-orphan")
    enrollments = relationship("Enrollment", back_populates="user", cascade="all, delete-orphan")
    submissions = relationship("Submission", back_populates="user", cascade="all, delete-orphan")
    grades = relationship(
        "Grade",
        foreign_keys="Grade.user_id",
        back_populates="user",
        cascade="all, delete-orphan"
    )
    certificates = relationship("Certificate", back_populates="user", cascade="all, delete-orphan")
    threads = relationship("DiscussionThread", back_populates="author", cascade="all, delete-orphan")
    replies = relationship("DiscussionReply", back_populates="author", cascade="all, delete-orphan")
    admin_logs = relationship("AdminLog", back_populates="user", cascade="all, delete-orphan")

    # Authored content survives the author
    created_courses = relationship("Course", back_populates="created_by")
    created_assignments = relationship("Assignment", back_populates="created_by")
    graded_grades = relationship("Grade", foreign_keys="Grade.graded_by_id", back_populates="graded_by")

    # Table constraints
    __table_args__ = (
        CheckConstraint("role IN ('student', 'instructor', 'admin')", name="check_user_role"),
        Index("idx_user_email_active", "email", "is_active"),
        Index("idx_user_role", "role"),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value


class PendingUser(Base):
    """
    Registration waiting for its one-time code to be confirmed.
    """
    __tablename__ = "pending_users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)

    otp_code: Mapped[str] = mapped_column(String(12), nullable=False)
    otp_expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )

    def __repr__(self) -> str:
        return f"<PendingUser(email='{self.email}', expires={self.otp_expires_at})>"
