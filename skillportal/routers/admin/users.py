"""
Admin users router for the Skill Portal.
"""

from typing import Optional, Dict, Any
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from skillportal.core.database import get_db
from skillportal.core.security import Principal
from skillportal.models.admin import AdminAction
from skillportal.routers.admin.audit import log_admin_action
from skillportal.routers.auth import get_current_principal
from skillportal.schemas.auth import UserAdminUpdate, UserResponse
from skillportal.services import catalog


router = APIRouter()


@router.get("/")
async def list_users(
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    role: Optional[str] = None,
    search: Optional[str] = None,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
) -> Dict[str, Any]:
    result = catalog.list_users(db, principal, role=role, search=search, skip=skip, limit=limit)
    result["users"] = [UserResponse.model_validate(user).model_dump() for user in result["users"]]
    return result


@router.patch("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: int,
    user_update: UserAdminUpdate,
    request: Request,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    """
    Change a user's role or deactivate the account.
    """
    update_data = user_update.model_dump(exclude_unset=True)
    user = catalog.update_user(db, principal, user_id, update_data)
    log_admin_action(
        db, request, principal, AdminAction.USER_MANAGEMENT, "user", user_id, update_data
    )
    return user


@router.delete("/{user_id}")
async def delete_user(
    user_id: int,
    request: Request,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
) -> Dict[str, str]:
    catalog.delete_user(db, principal, user_id)
    log_admin_action(db, request, principal, AdminAction.DELETE, "user", user_id)
    return {"message": "User deleted successfully"}
