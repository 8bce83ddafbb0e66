"""Projects API endpoints"""

from typing import List

from fastapi import APIRouter, Depends

from ..models import User
from ..storage import RequestMeta, Services
from .deps import get_current_user, get_services, request_meta
from .schemas import (
    MemberCreate,
    MemberResponse,
    ProjectCreate,
    ProjectResponse,
    ProjectUpdate,
    StatsResponse,
    StatusResponse,
    SuccessResponse,
)

router = APIRouter()


@router.get("", response_model=List[ProjectResponse])
def list_projects(
    user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    """Projects visible to the caller"""
    return services.projects.list_projects(user)


@router.post("", response_model=ProjectResponse, status_code=201)
def create_project(
    project_data: ProjectCreate,
    user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
    meta: RequestMeta = Depends(request_meta),
):
    """Create a project owned by the caller"""
    return services.projects.create_project(
        user,
        name=project_data.name,
        key=project_data.key,
        description=project_data.description,
        request=meta,
    )


@router.get("/{project_id}", response_model=ProjectResponse)
def get_project(
    project_id: int,
    user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    return services.projects.get_project(user, project_id)


@router.put("/{project_id}", response_model=ProjectResponse)
def update_project(
    project_id: int,
    project_data: ProjectUpdate,
    user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
    meta: RequestMeta = Depends(request_meta),
):
    updates = project_data.model_dump(exclude_unset=True)
    return services.projects.update_project(user, project_id, updates, request=meta)


@router.delete("/{project_id}", response_model=SuccessResponse)
def delete_project(
    project_id: int,
    user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
    meta: RequestMeta = Depends(request_meta),
):
    """Delete a project and everything in it"""
    services.projects.delete_project(user, project_id, request=meta)
    return SuccessResponse(message="Project deleted successfully", id=project_id)


@router.get("/{project_id}/members", response_model=List[MemberResponse])
def list_members(
    project_id: int,
    user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    return services.projects.list_members(user, project_id)


@router.post("/{project_id}/members", response_model=MemberResponse, status_code=201)
def add_member(
    project_id: int,
    member_data: MemberCreate,
    user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
    meta: RequestMeta = Depends(request_meta),
):
    """Add a member, or change the role of an existing one"""
    return services.projects.add_member(
        user, project_id, member_data.user_id, role=member_data.role, request=meta
    )


@router.delete("/{project_id}/members/{user_id}", response_model=SuccessResponse)
def remove_member(
    project_id: int,
    user_id: int,
    user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
    meta: RequestMeta = Depends(request_meta),
):
    services.projects.remove_member(user, project_id, user_id, request=meta)
    return SuccessResponse(message="Member removed successfully", id=user_id)


@router.get("/{project_id}/statuses", response_model=List[StatusResponse])
def list_statuses(
    project_id: int,
    user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    """Statuses in column order"""
    return services.projects.list_statuses(user, project_id)


@router.get("/{project_id}/stats", response_model=StatsResponse)
def project_stats(
    project_id: int,
    user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    return services.boards.project_stats(user, project_id).to_dict()
