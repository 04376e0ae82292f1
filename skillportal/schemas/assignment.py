"""
Assignment, submission and grade schemas.
"""

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


class AssignmentCreate(BaseModel):
    course_id: int
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    due_date: datetime
    max_points: Optional[int] = Field(None, gt=0, description="Defaults to the configured maximum")


class AssignmentUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    due_date: Optional[datetime] = None
    max_points: Optional[int] = Field(None, gt=0)

    @field_validator("title", "due_date", "max_points")
    @classmethod
    def not_null(cls, value):
        if value is None:
            raise ValueError("may be omitted but not null")
        return value


class AssignmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    course_id: int
    title: str
    description: Optional[str] = None
    due_date: datetime
    max_points: int
    created_by_id: Optional[int] = None
    created_at: datetime


class SubmissionCreate(BaseModel):
    content: str
    file_url: Optional[str] = Field(None, max_length=500)


class SubmissionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    assignment_id: int
    user_id: int
    content: str
    file_url: Optional[str] = None
    submitted_at: datetime


class GradeCreate(BaseModel):
    assignment_id: int
    user_id: int
    points: int
    feedback: Optional[str] = None


class BulkGradeRequest(BaseModel):
    grades: List[GradeCreate]


class GradeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    assignment_id: int
    user_id: int
    points: int
    feedback: Optional[str] = None
    graded_by_id: Optional[int] = None
    graded_at: datetime
