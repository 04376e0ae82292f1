"""
Audit trail helper for admin endpoints.
"""

from typing import Optional, Dict, Any
from fastapi import Request
from sqlalchemy.orm import Session

from skillportal.core.security import Principal
from skillportal.models.admin import AdminAction, AdminLog


def log_admin_action(
    db: Session,
    request: Request,
    principal: Principal,
    action: AdminAction,
    entity_type: str,
    entity_id: Optional[int] = None,
    details: Optional[Dict[str, Any]] = None
) -> AdminLog:
    """
    Record a completed admin mutation with the caller's address and agent.
    """
    admin_log = AdminLog.log_action(
        user_id=principal.user_id,
        action=action.value,
        entity_type=entity_type,
        entity_id=entity_id,
        details=details,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent")
    )
    db.add(admin_log)
    db.commit()
    return admin_log
