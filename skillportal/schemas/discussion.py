"""
Discussion forum schemas.
"""

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict


class ThreadCreate(BaseModel):
    title: str
    content: str
    course_id: Optional[int] = None


class ReplyCreate(BaseModel):
    content: str


class ThreadResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    content: str
    course_id: Optional[int] = None
    author_id: int
    created_at: datetime


class ReplyResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    thread_id: int
    author_id: int
    content: str
    created_at: datetime


class ThreadSummary(ThreadResponse):
    author_name: Optional[str] = None
    course_title: Optional[str] = None
    reply_count: int = 0


class ThreadDetail(ThreadResponse):
    author_name: Optional[str] = None
    replies: List[ReplyResponse] = []
