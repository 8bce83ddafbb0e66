"""Users API endpoints"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException

from ..models import User
from ..storage import RequestMeta, Services
from .deps import get_current_user, get_services, request_meta
from .schemas import SuccessResponse, UserCreate, UserResponse, UserUpdate

router = APIRouter()


@router.get("", response_model=List[UserResponse])
def list_users(
    user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    return services.users.list_users()


@router.post("", response_model=UserResponse, status_code=201)
def create_user(
    user_data: UserCreate,
    user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
    meta: RequestMeta = Depends(request_meta),
):
    """Create a user (admin only)"""
    return services.users.create_user(
        username=user_data.username,
        email=user_data.email,
        full_name=user_data.full_name,
        role=user_data.role,
        avatar_url=user_data.avatar_url,
        actor=user,
        request=meta,
    )


@router.get("/me", response_model=UserResponse)
def get_me(user: User = Depends(get_current_user)):
    """The calling user"""
    return user


@router.get("/{user_id}", response_model=UserResponse)
def get_user(
    user_id: int,
    user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    found = services.users.get_user(user_id)
    if found is None:
        raise HTTPException(status_code=404, detail=f"User {user_id} not found")
    return found


@router.put("/{user_id}", response_model=UserResponse)
def update_user(
    user_id: int,
    user_data: UserUpdate,
    user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
    meta: RequestMeta = Depends(request_meta),
):
    updates = user_data.model_dump(exclude_unset=True)
    return services.users.update_user(user, user_id, updates, request=meta)


@router.delete("/{user_id}", response_model=SuccessResponse)
def delete_user(
    user_id: int,
    user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
    meta: RequestMeta = Depends(request_meta),
):
    """Delete a user and unassign their issues (admin only)"""
    services.users.delete_user(user, user_id, request=meta)
    return SuccessResponse(message=f"User {user_id} deleted successfully", id=user_id)
