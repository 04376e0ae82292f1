"""
Skills router for the Skill Portal: the public skill list and the caller's
own self-reported skill levels.
"""

from typing import List
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from skillportal.core.database import get_db
from skillportal.core.security import Principal
from skillportal.routers.auth import get_current_principal
from skillportal.schemas.catalog import (
    SkillResponse,
    UserSkillCreate,
    UserSkillResponse,
    UserSkillUpdate
)
from skillportal.services import catalog


router = APIRouter()
user_skills_router = APIRouter()


@router.get("/", response_model=List[SkillResponse])
async def list_skills(db: Session = Depends(get_db)):
    return catalog.list_skills(db)


@user_skills_router.get("/", response_model=List[UserSkillResponse])
async def list_my_skills(
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    return catalog.list_user_skills(db, principal)


@user_skills_router.post("/", response_model=UserSkillResponse, status_code=status.HTTP_201_CREATED)
async def add_my_skill(
    skill_data: UserSkillCreate,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    """
    Track a skill with a self-reported level from 1 to 10.
    """
    return catalog.add_user_skill(db, principal, skill_data.skill_id, skill_data.level)


@user_skills_router.patch("/{user_skill_id}", response_model=UserSkillResponse)
async def update_my_skill(
    user_skill_id: int,
    skill_data: UserSkillUpdate,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    return catalog.update_user_skill(db, principal, user_skill_id, skill_data.level)


@user_skills_router.delete("/{user_skill_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_my_skill(
    user_skill_id: int,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
) -> None:
    catalog.remove_user_skill(db, principal, user_skill_id)
