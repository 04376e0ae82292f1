"""
Assignment models for the Skill Portal.

Defines Assignment, Submission and Grade. Submissions and grades are keyed
by (assignment, user) and overwritten in place; no history is kept.
"""

from datetime import datetime
from typing import Optional
from sqlalchemy import (
    Integer, String, DateTime, Text, ForeignKey,
    UniqueConstraint, Index, CheckConstraint
)
from sqlalchemy.orm import relationship, Mapped, mapped_column
from sqlalchemy.sql import func

from skillportal.core.database import Base


class Assignment(Base):
    """
    Work set for the students of a course.
    """
    __tablename__ = "assignments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)

    course_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("courses.id", ondelete="CASCADE"),
        nullable=False
    )

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    due_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    max_points: Mapped[int] = mapped_column(Integer, default=100, nullable=False)

    created_by_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True
    )

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

    # Relationships
    course = relationship("Course", back_populates="assignments")
    created_by = relationship("User", back_populates="created_assignments")
    submissions = relationship("Submission", back_populates="assignment", cascade="all, delete-orphan")
    grades = relationship("Grade", back_populates="assignment", cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint("max_points > 0", name="check_max_points_positive"),
        Index("idx_assignment_course_due", "course_id", "due_date"),
    )

    def __repr__(self) -> str:
        return f"<Assignment(id={self.id}, title='{self.title}', due={self.due_date})>"


class Submission(Base):
    """
    A student's answer to an assignment.
    """
    __tablename__ = "submissions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)

    assignment_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("assignments.id", ondelete="CASCADE"),
        nullable=False
    )
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False
    )

    content: Mapped[str] = mapped_column(Text, nullable=False)
    file_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    submitted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )

    assignment = relationship("Assignment", back_populates="submissions")
    user = relationship("User", back_populates="submissions")

    __table_args__ = (
        UniqueConstraint("assignment_id", "user_id", name="uq_submission_assignment_user"),
        Index("idx_submission_submitted", "submitted_at"),
    )

    def __repr__(self) -> str:
        return f"<Submission(assignment_id={self.assignment_id}, user_id={self.user_id})>"


class Grade(Base):
    """
    Points awarded for a submission.
    """
    __tablename__ = "grades"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)

    assignment_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("assignments.id", ondelete="CASCADE"),
        nullable=False
    )
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False
    )

    points: Mapped[int] = mapped_column(Integer, nullable=False)
    feedback: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    graded_by_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True
    )
    graded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )

    assignment = relationship("Assignment", back_populates="grades")
    user = relationship("User", foreign_keys=[user_id], back_populates="grades")
    graded_by = relationship("User", foreign_keys=[graded_by_id], back_populates="graded_grades")

    __table_args__ = (
        UniqueConstraint("assignment_id", "user_id", name="uq_grade_assignment_user"),
        CheckConstraint("points >= 0", name="check_grade_points_positive"),
    )

    def __repr__(self) -> str:
        return f"<Grade(assignment_id={self.assignment_id}, user_id={self.user_id}, points={self.points})>"
