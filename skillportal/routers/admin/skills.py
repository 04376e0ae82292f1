"""
Admin skills router for the Skill Portal.
"""

from typing import List, Dict, Any
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from skillportal.core.database import get_db
from skillportal.core.security import Principal
from skillportal.models.admin import AdminAction
from skillportal.routers.admin.audit import log_admin_action
from skillportal.routers.auth import get_current_principal
from skillportal.schemas.catalog import SkillCreate, SkillResponse, SkillUpdate
from skillportal.services import catalog


router = APIRouter()


@router.get("/")
async def list_skills(db: Session = Depends(get_db)) -> List[Dict[str, Any]]:
    """
    Skills with the number of users and courses attached to each.
    """
    return catalog.list_skills_with_counts(db)


@router.post("/", response_model=SkillResponse, status_code=status.HTTP_201_CREATED)
async def create_skill(
    skill_data: SkillCreate,
    request: Request,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    skill = catalog.create_skill(db, principal, skill_data.model_dump())
    log_admin_action(
        db, request, principal, AdminAction.CREATE, "skill", skill.id,
        {"skill_name": skill.name}
    )
    return skill


@router.put("/{skill_id}", response_model=SkillResponse)
async def update_skill(
    skill_id: int,
    skill_update: SkillUpdate,
    request: Request,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    update_data = skill_update.model_dump(exclude_unset=True)
    skill = catalog.update_skill(db, principal, skill_id, update_data)
    if update_data:
        log_admin_action(
            db, request, principal, AdminAction.UPDATE, "skill", skill_id,
            {"fields": sorted(update_data)}
        )
    return skill


@router.delete("/{skill_id}")
async def delete_skill(
    skill_id: int,
    request: Request,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
) -> Dict[str, str]:
    """
    Delete a skill. Courses teaching it keep existing without a skill.
    """
    catalog.delete_skill(db, principal, skill_id)
    log_admin_action(db, request, principal, AdminAction.DELETE, "skill", skill_id)
    return {"message": "Skill deleted successfully"}
