"""Issues API endpoints, including the Kanban and backlog views"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from ..models import User
from ..storage import BACKLOG, IssueChanges, RequestMeta, Services
from ..storage.issue_service import SprintFilter
from .deps import get_current_user, get_services, request_meta
from .schemas import (
    BacklogResponse,
    IssueCreate,
    IssueResponse,
    IssueSprintUpdate,
    IssueStatusUpdate,
    IssueUpdate,
    KanbanColumnResponse,
    SuccessResponse,
)

router = APIRouter()


def parse_sprint_filter(sprint: Optional[str]) -> SprintFilter:
    """``None`` for all issues, ``"none"`` for the backlog, else a sprint id"""
    if sprint is None or sprint == "":
        return None
    if sprint.lower() == BACKLOG:
        return BACKLOG
    try:
        return int(sprint)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid sprint filter: {sprint}")


@router.post("", response_model=IssueResponse, status_code=201)
def create_issue(
    issue_data: IssueCreate,
    user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
    meta: RequestMeta = Depends(request_meta),
):
    """Create a new issue"""
    return services.issues.create_issue(
        user,
        project_id=issue_data.project_id,
        title=issue_data.title,
        status_id=issue_data.status_id,
        issue_type=issue_data.type,
        priority=issue_data.priority,
        description=issue_data.description,
        assignee_id=issue_data.assignee_id,
        sprint_id=issue_data.sprint_id,
        story_points=issue_data.story_points,
        start_date=issue_data.start_date,
        before_image=issue_data.before_image,
        after_image=issue_data.after_image,
        request=meta,
    )


@router.get("/project/{project_id}", response_model=List[IssueResponse])
def list_project_issues(
    project_id: int,
    sprint: Optional[str] = Query(None, description='Sprint id, or "none" for backlog issues'),
    user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    """List a project's issues, newest first"""
    return services.issues.list_project_issues(user, project_id, parse_sprint_filter(sprint))


@router.get("/project/{project_id}/kanban", response_model=List[KanbanColumnResponse])
def kanban_board(
    project_id: int,
    sprint: Optional[str] = Query(None, description='Sprint id, or "none" for backlog issues'),
    user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    """One column per project status, in position order"""
    return services.boards.kanban_board(user, project_id, parse_sprint_filter(sprint))


@router.get("/project/{project_id}/backlog", response_model=BacklogResponse)
def backlog(
    project_id: int,
    user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    """Backlog issues plus each sprint with its issues"""
    return services.boards.backlog(user, project_id)


@router.get("/user/{user_id}", response_model=List[IssueResponse])
def list_user_issues(
    user_id: int,
    user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    """Issues assigned to a user"""
    return services.issues.list_user_issues(user, user_id)


@router.get("/{issue_id}", response_model=IssueResponse)
def get_issue(
    issue_id: int,
    user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    """Get issue by ID"""
    return services.issues.get_issue(user, issue_id)


@router.put("/{issue_id}", response_model=IssueResponse)
def update_issue(
    issue_id: int,
    issue_data: IssueUpdate,
    user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
    meta: RequestMeta = Depends(request_meta),
):
    """Update only the fields present in the request body"""
    changes = IssueChanges.from_dict(issue_data.model_dump(exclude_unset=True))
    return services.issues.update_issue(user, issue_id, changes, request=meta)


@router.patch("/{issue_id}/status", response_model=IssueResponse)
def update_issue_status(
    issue_id: int,
    status_data: IssueStatusUpdate,
    user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
    meta: RequestMeta = Depends(request_meta),
):
    """Move an issue to another Kanban column"""
    return services.issues.update_status(user, issue_id, status_data.status_id, request=meta)


@router.patch("/{issue_id}/sprint", response_model=IssueResponse)
def update_issue_sprint(
    issue_id: int,
    sprint_data: IssueSprintUpdate,
    user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
    meta: RequestMeta = Depends(request_meta),
):
    """Move an issue into a sprint, or back to the backlog with null"""
    if sprint_data.sprint_id is None:
        return services.issues.remove_from_sprint(user, issue_id, request=meta)
    return services.issues.assign_to_sprint(user, issue_id, sprint_data.sprint_id, request=meta)


@router.delete("/{issue_id}", response_model=SuccessResponse)
def delete_issue(
    issue_id: int,
    user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
    meta: RequestMeta = Depends(request_meta),
):
    """Delete an issue and its comments"""
    if not services.issues.delete_issue(user, issue_id, request=meta):
        raise HTTPException(status_code=404, detail=f"Issue {issue_id} not found")
    return SuccessResponse(message=f"Issue {issue_id} deleted successfully", id=issue_id)
