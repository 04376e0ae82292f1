"""
Discussion forum models for the Skill Portal.
"""

from datetime import datetime
from typing import Optional
from sqlalchemy import Integer, String, DateTime, Text, ForeignKey, Index
from sqlalchemy.orm import relationship, Mapped, mapped_column
from sqlalchemy.sql import func

from skillportal.core.database import Base


class DiscussionThread(Base):
    """
    A discussion topic, optionally scoped to a course.
    """
    __tablename__ = "discussion_threads"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)

    course_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("courses.id", ondelete="CASCADE"),
        nullable=True
    )
    author_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False
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

    course = relationship("Course", back_populates="threads")
    author = relationship("User", back_populates="threads")
    replies = relationship(
        "DiscussionReply",
        back_populates="thread",
        cascade="all, delete-orphan",
        order_by="DiscussionReply.created_at"
    )

    __table_args__ = (
        Index("idx_thread_course_created", "course_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<DiscussionThread(id={self.id}, title='{self.title}')>"


class DiscussionReply(Base):
    """
    A reply posted to a thread.
    """
    __tablename__ = "discussion_replies"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)

    thread_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("discussion_threads.id", ondelete="CASCADE"),
        nullable=False
    )
    author_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )

    thread = relationship("DiscussionThread", back_populates="replies")
    author = relationship("User", back_populates="replies")

    __table_args__ = (
        Index("idx_reply_thread_created", "thread_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<DiscussionReply(id={self.id}, thread_id={self.thread_id})>"
