"""
Catalog models for the Skill Portal.

Defines Skill, Course and UserSkill: what can be learned, the courses
teaching it, and the skill levels students report for themselves.
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


USER_SKILL_MIN_LEVEL = 1
USER_SKILL_MAX_LEVEL = 10


class Skill(Base):
    """
    A skill taught by courses and tracked by users.
    """
    __tablename__ = "skills"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    category: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, index=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )

    # Relationships
    courses = relationship("Course", back_populates="skill")
    user_skills = relationship("UserSkill", back_populates="skill", cascade="all, delete-orphan")

    def __repr__(self) -> str:
        return f"<Skill(id={self.id}, name='{self.name}')>"


class Course(Base):
    """
    Course model. A null ``published_at`` marks a draft.
    """
    __tablename__ = "courses"

    # Primary key
    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)

    # Basic information
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    skill_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("skills.id", ondelete="SET NULL"),
        nullable=True
    )
    created_by_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True
    )

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
    published_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # Relationships
    skill = relationship("Skill", back_populates="courses")
    created_by = relationship("User", back_populates="created_courses")
    assignments = relationship("Assignment", back_populates="course", cascade="all, delete-orphan")
    enrollments = relationship("Enrollment", back_populates="course", cascade="all, delete-orphan")
    certificates = relationship("Certificate", back_populates="course", cascade="all, delete-orphan")
    threads = relationship("DiscussionThread", back_populates="course", cascade="all, delete-orphan")

    __table_args__ = (
        Index("idx_course_published", "published_at"),
        Index("idx_course_skill", "skill_id"),
    )

    def __repr__(self) -> str:
        return f"<Course(id={self.id}, title='{self.title}')>"

    @property
    def is_published(self) -> bool:
        return self.published_at is not None


class UserSkill(Base):
    """
    Self-reported level of a user in a skill.
    """
    __tablename__ = "user_skills"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False
    )
    skill_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("skills.id", ondelete="CASCADE"),
        nullable=False
    )
    level: Mapped[int] = mapped_column(Integer, default=USER_SKILL_MIN_LEVEL, nullable=False)

    added_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )

    user = relationship("User", back_populates="user_skills")
    skill = relationship("Skill", back_populates="user_skills")

    __table_args__ = (
        UniqueConstraint("user_id", "skill_id", name="uq_user_skill"),
        CheckConstraint(
            f"level >= {USER_SKILL_MIN_LEVEL} AND level <= {USER_SKILL_MAX_LEVEL}",
            name="check_user_skill_level"
        ),
    )

    def __repr__(self) -> str:
        return f"<UserSkill(user_id={self.user_id}, skill_id={self.skill_id}, level={self.level})>"
