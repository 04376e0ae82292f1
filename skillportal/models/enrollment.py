"""
Enrollment models for the Skill Portal.

Defines Enrollment, the record of a user taking a course with its status
and progress, and Certificate, issued once per completed (user, course).
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from sqlalchemy import (
    Integer, String, DateTime, ForeignKey,
    UniqueConstraint, Index, CheckConstraint
)
from sqlalchemy.orm import relationship, Mapped, mapped_column
from sqlalchemy.sql import func

from skillportal.core.database import Base


class EnrollmentStatus(str, Enum):
    """Status of an enrollment."""
    ENROLLED = "enrolled"
    COMPLETED = "completed"
    DROPPED = "dropped"


class Enrollment(Base):
    """
    A user's registration in a course.
    """
    __tablename__ = "enrollments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)

    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False
    )
    course_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("courses.id", ondelete="CASCADE"),
        nullable=False
    )

    status: Mapped[str] = mapped_column(
        String(20),
        default=EnrollmentStatus.ENROLLED.value,
        nullable=False
    )
    progress: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    enrolled_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # Relationships
    user = relationship("User", back_populates="enrollments")
    course = relationship("Course", back_populates="enrollments")

    __table_args__ = (
        UniqueConstraint("user_id", "course_id", name="uq_enrollment_user_course"),
        CheckConstraint("progress >= 0 AND progress <= 100", name="check_enrollment_progress"),
        CheckConstraint(
            "status IN ('enrolled', 'completed', 'dropped')",
            name="check_enrollment_status"
        ),
        Index("idx_enrollment_course_status", "course_id", "status"),
    )

    def __repr__(self) -> str:
        return f"<Enrollment(user_id={self.user_id}, course_id={self.course_id}, status='{self.status}', progress={self.progress}%)>"


class Certificate(Base):
    """
    Certificate of completion, at most one per (user, course).
    """
    __tablename__ = "certificates"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)

    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False
    )
    course_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("courses.id", ondelete="CASCADE"),
        nullable=False
    )

    title: Mapped[str] = mapped_column(String(500), nullable=False)
    url: Mapped[str] = mapped_column(String(500), nullable=False)

    issued_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )

    user = relationship("User", back_populates="certificates")
    course = relationship("Course", back_populates="certificates")

    __table_args__ = (
        UniqueConstraint("user_id", "course_id", name="uq_certificate_user_course"),
        Index("idx_certificate_issued", "issued_at"),
    )

    def __repr__(self) -> str:
        return f"<Certificate(user_id={self.user_id}, course_id={self.course_id})>"
