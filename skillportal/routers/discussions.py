"""
Discussions router for the Skill Portal.

Threads and replies. Deletes are limited to admins and the author.
"""

from typing import List, Optional, Dict, Any
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from skillportal.core.database import get_db
from skillportal.core.security import Principal
from skillportal.routers.auth import get_current_principal
from skillportal.schemas.discussion import (
    ReplyCreate,
    ReplyResponse,
    ThreadCreate,
    ThreadDetail,
    ThreadResponse,
    ThreadSummary
)
from skillportal.services import discussion


router = APIRouter()


def thread_summary(item: Dict[str, Any]) -> Dict[str, Any]:
    thread = item["thread"]
    return ThreadSummary(
        **ThreadResponse.model_validate(thread).model_dump(),
        author_name=thread.author.name if thread.author else None,
        course_title=thread.course.title if thread.course else None,
        reply_count=item["reply_count"]
    ).model_dump()


@router.get("/")
async def list_threads(
    course_id: Optional[int] = None,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
) -> List[Dict[str, Any]]:
    """
    Threads newest first, optionally for one course.
    """
    return [thread_summary(item) for item in discussion.list_threads(db, course_id)]


@router.post("/", response_model=ThreadResponse, status_code=status.HTTP_201_CREATED)
async def create_thread(
    thread_data: ThreadCreate,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    return discussion.create_thread(
        db,
        principal,
        thread_data.title,
        thread_data.content,
        thread_data.course_id
    )


@router.get("/{thread_id}", response_model=ThreadDetail)
async def get_thread(
    thread_id: int,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
) -> Dict[str, Any]:
    """
    A thread with its replies, oldest reply first.
    """
    thread = discussion.get_thread(db, thread_id)
    return {
        **ThreadResponse.model_validate(thread).model_dump(),
        "author_name": thread.author.name if thread.author else None,
        "replies": [
            ReplyResponse.model_validate(reply).model_dump()
            for reply in discussion.list_replies(db, thread_id)
        ]
    }


@router.delete("/{thread_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_thread(
    thread_id: int,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
) -> None:
    discussion.delete_thread(db, principal, thread_id)


@router.get("/{thread_id}/replies", response_model=List[ReplyResponse])
async def list_replies(
    thread_id: int,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    return discussion.list_replies(db, thread_id)


@router.post("/{thread_id}/replies", response_model=ReplyResponse, status_code=status.HTTP_201_CREATED)
async def create_reply(
    thread_id: int,
    reply_data: ReplyCreate,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    return discussion.create_reply(db, principal, thread_id, reply_data.content)


@router.delete("/{thread_id}/replies")
async def delete_replies(
    thread_id: int,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
) -> Dict[str, Any]:
    """
    Remove every reply of a thread.
    """
    deleted = discussion.delete_replies(db, principal, thread_id)
    return {"message": "Replies deleted", "deleted": deleted}


@router.delete("/{thread_id}/replies/{reply_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_reply(
    thread_id: int,
    reply_id: int,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
) -> None:
    discussion.delete_reply(db, principal, thread_id, reply_id)
