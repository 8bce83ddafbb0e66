"""Activity log API endpoints"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from ..models import User
from ..storage import Services
from .deps import get_current_user, get_services
from .schemas import LogEntryResponse, RotateResponse

router = APIRouter()


def require_admin(user: User = Depends(get_current_user)) -> User:
    if not user.is_admin:
        raise HTTPException(status_code=403, detail="Admin access required")
    return user


@router.get("", response_model=List[LogEntryResponse])
def list_logs(
    limit: int = Query(50, ge=1, le=1000, description="Maximum number of entries"),
    user_id: Optional[int] = Query(None, description="Filter by acting user"),
    action: Optional[str] = Query(None, description="Filter by action name"),
    project_id: Optional[int] = Query(None, description="Filter by project"),
    admin: User = Depends(require_admin),
    services: Services = Depends(get_services),
):
    """Stored audit entries, newest first (admin only)"""
    return services.audit.list_entries(limit=limit, user_id=user_id, action=action, project_id=project_id)


@router.get("/my-activities", response_model=List[LogEntryResponse])
def my_activities(
    limit: int = Query(50, ge=1, le=1000),
    user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    """The caller's own audit entries"""
    return services.audit.list_entries(limit=limit, user_id=user.id)


@router.post("/rotate", response_model=RotateResponse)
def rotate_logs(
    days_to_keep: int = Query(30, ge=1, description="Entries older than this are removed"),
    admin: User = Depends(require_admin),
    services: Services = Depends(get_services),
):
    removed = services.audit.rotate(days_to_keep=days_to_keep, actor=admin)
    return RotateResponse(removed=removed, days_kept=days_to_keep)
