"""Sprints API endpoints"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException

from ..models import User
from ..storage import RequestMeta, Services
from .deps import get_current_user, get_services, request_meta
from .schemas import (
    IssueResponse,
    SprintCreate,
    SprintResponse,
    SprintUpdate,
    StatsResponse,
    SuccessResponse,
)

router = APIRouter()


@router.post("", response_model=SprintResponse, status_code=201)
def create_sprint(
    sprint_data: SprintCreate,
    user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
    meta: RequestMeta = Depends(request_meta),
):
    """Create a planned sprint"""
    return services.sprints.create_sprint(
        user,
        project_id=sprint_data.project_id,
        name=sprint_data.name,
        goal=sprint_data.goal,
        start_date=sprint_data.start_date,
        end_date=sprint_data.end_date,
        request=meta,
    )


@router.get("/project/{project_id}", response_model=List[SprintResponse])
def list_project_sprints(
    project_id: int,
    user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    return services.sprints.list_sprints(user, project_id)


@router.get("/project/{project_id}/active", response_model=Optional[SprintResponse])
def get_active_sprint(
    project_id: int,
    user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    """The project's active sprint, or null"""
    return services.sprints.get_active_sprint(user, project_id)


@router.get("/{sprint_id}", response_model=SprintResponse)
def get_sprint(
    sprint_id: int,
    user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    return services.sprints.get_sprint(user, sprint_id)


@router.put("/{sprint_id}", response_model=SprintResponse)
def update_sprint(
    sprint_id: int,
    sprint_data: SprintUpdate,
    user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
    meta: RequestMeta = Depends(request_meta),
):
    updates = sprint_data.model_dump(exclude_unset=True)
    return services.sprints.update_sprint(user, sprint_id, updates, request=meta)


@router.post("/{sprint_id}/start", response_model=SprintResponse)
def start_sprint(
    sprint_id: int,
    user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
    meta: RequestMeta = Depends(request_meta),
):
    """Activate a sprint; any other active sprint of the project is completed"""
    return services.sprints.start_sprint(user, sprint_id, request=meta)


@router.post("/{sprint_id}/complete", response_model=SprintResponse)
def complete_sprint(
    sprint_id: int,
    user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
    meta: RequestMeta = Depends(request_meta),
):
    return services.sprints.complete_sprint(user, sprint_id, request=meta)


@router.get("/{sprint_id}/issues", response_model=List[IssueResponse])
def list_sprint_issues(
    sprint_id: int,
    user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    return services.sprints.list_sprint_issues(user, sprint_id)


@router.get("/{sprint_id}/stats", response_model=StatsResponse)
def sprint_stats(
    sprint_id: int,
    user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    return services.boards.sprint_stats(user, sprint_id).to_dict()


@router.delete("/{sprint_id}", response_model=SuccessResponse)
def delete_sprint(
    sprint_id: int,
    user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
    meta: RequestMeta = Depends(request_meta),
):
    """Delete a sprint; its issues go back to the backlog"""
    if not services.sprints.delete_sprint(user, sprint_id, request=meta):
        raise HTTPException(status_code=404, detail=f"Sprint {sprint_id} not found")
    return SuccessResponse(message=f"Sprint {sprint_id} deleted successfully", id=sprint_id)
