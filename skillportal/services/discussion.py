"""
Discussion forum service.

Any authenticated user may post. Only admins and the original author may
delete, and deleting a thread takes its replies with it.
"""

from typing import Any, Dict, List, Optional
import logging

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from skillportal.core.errors import Forbidden, NotFound, ValidationError
from skillportal.core.security import Principal
from skillportal.models.catalog import Course
from skillportal.models.discussion import DiscussionReply, DiscussionThread


logger = logging.getLogger(__name__)


def _required(value: Optional[str], field: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field} is required")
    return value


def list_threads(db: Session, course_id: Optional[int] = None) -> List[Dict[str, Any]]:
    """Threads newest first, each with its reply count."""
    reply_count = db.query(
        DiscussionReply.thread_id,
        func.count(DiscussionReply.id).label("reply_count")
    ).group_by(DiscussionReply.thread_id).subquery()

    query = db.query(
        DiscussionThread,
        func.coalesce(reply_count.c.reply_count, 0)
    ).outerjoin(
        reply_count, reply_count.c.thread_id == DiscussionThread.id
    ).options(
        joinedload(DiscussionThread.author),
        joinedload(DiscussionThread.course)
    )
    if course_id is not None:
        query = query.filter(DiscussionThread.course_id == course_id)

    rows = query.order_by(DiscussionThread.created_at.desc(), DiscussionThread.id.desc()).all()
    return [{"thread": thread, "reply_count": count} for thread, count in rows]


def get_thread(db: Session, thread_id: int) -> DiscussionThread:
    thread = db.query(DiscussionThread).filter(DiscussionThread.id == thread_id).first()
    if not thread:
        raise NotFound("Discussion not found")
    return thread


def create_thread(
    db: Session,
    actor: Principal,
    title: str,
    content: str,
    course_id: Optional[int] = None
) -> DiscussionThread:
    _required(title, "Title")
    _required(content, "Content")
    if course_id is not None and not db.query(Course.id).filter(Course.id == course_id).first():
        raise NotFound("Course not found")

    thread = DiscussionThread(
        title=title,
        content=content,
        course_id=course_id,
        author_id=actor.user_id
    )
    db.add(thread)
    db.commit()
    db.refresh(thread)
    return thread


def delete_thread(db: Session, actor: Principal, thread_id: int) -> None:
    """Delete a thread and its replies in one transaction."""
    thread = get_thread(db, thread_id)
    if not actor.can_modify(thread.author_id):
        raise Forbidden()
    db.delete(thread)
    db.commit()
    logger.info(f"Thread {thread_id} deleted by user {actor.user_id}")


def list_replies(db: Session, thread_id: int) -> List[DiscussionReply]:
    get_thread(db, thread_id)
    return db.query(DiscussionReply).options(
        joinedload(DiscussionReply.author)
    ).filter(
        DiscussionReply.thread_id == thread_id
    ).order_by(DiscussionReply.created_at.asc(), DiscussionReply.id.asc()).all()


def create_reply(db: Session, actor: Principal, thread_id: int, content: str) -> DiscussionReply:
    _required(content, "Content")
    get_thread(db, thread_id)
    reply = DiscussionReply(
        content=content,
        thread_id=thread_id,
        author_id=actor.user_id
    )
    db.add(reply)
    db.commit()
    db.refresh(reply)
    return reply


def delete_replies(db: Session, actor: Principal, thread_id: int) -> int:
    """Remove every reply of a thread; allowed to admins and the thread's author."""
    thread = get_thread(db, thread_id)
    if not actor.can_modify(thread.author_id):
        raise Forbidden()
    deleted = db.query(DiscussionReply).filter(
        DiscussionReply.thread_id == thread_id
    ).delete(synchronize_session=False)
    db.commit()
    return deleted


def delete_reply(db: Session, actor: Principal, thread_id: int, reply_id: int) -> None:
    reply = db.query(DiscussionReply).filter(
        DiscussionReply.id == reply_id,
        DiscussionReply.thread_id == thread_id
    ).first()
    if not reply:
        raise NotFound("Reply not found")
    if not actor.can_modify(reply.author_id):
        raise Forbidden()
    db.delete(reply)
    db.commit()
