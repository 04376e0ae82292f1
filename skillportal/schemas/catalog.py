"""
Skill, course and user skill schemas.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


class SkillCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    category: Optional[str] = Field(None, max_length=100)


class SkillUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    category: Optional[str] = Field(None, max_length=100)

    @field_validator("name")
    @classmethod
    def not_null(cls, value):
        if value is None:
            raise ValueError("may be omitted but not null")
        return value


class SkillResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str] = None
    category: Optional[str] = None
    created_at: datetime


class CourseCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    skill_id: Optional[int] = None
    publish: bool = Field(True, description="Publish immediately instead of saving a draft")


class CourseUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    skill_id: Optional[int] = None

    @field_validator("title")
    @classmethod
    def not_null(cls, value):
        if value is None:
            raise ValueError("may be omitted but not null")
        return value


class CourseResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: Optional[str] = None
    skill_id: Optional[int] = None
    created_by_id: Optional[int] = None
    published_at: Optional[datetime] = None
    is_published: bool
    created_at: datetime
    updated_at: datetime


class UserSkillCreate(BaseModel):
    skill_id: int
    level: int = Field(..., description="Self-reported level, 1 to 10")


class UserSkillUpdate(BaseModel):
    level: int = Field(..., description="Self-reported level, 1 to 10")


class UserSkillResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    skill_id: int
    level: int
    added_at: datetime
    skill: SkillResponse
