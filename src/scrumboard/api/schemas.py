"""Pydantic schemas for API requests and responses"""

from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..models import (
    IssuePriority,
    IssueType,
    MemberRole,
    SprintStatus,
    StatusCategory,
    UserRole,
)


class ORMModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# User schemas
class UserCreate(BaseModel):
    """Schema for creating a user"""
    username: str = Field(..., min_length=1, max_length=50)
    email: str = Field(..., min_length=3, max_length=100)
    full_name: Optional[str] = Field(None, max_length=100)
    role: UserRole = Field(UserRole.DEVELOPER, description="Global role")
    avatar_url: Optional[str] = Field(None, max_length=255)


class UserUpdate(BaseModel):
    """Schema for updating a user; only supplied fields change"""
    username: Optional[str] = Field(None, min_length=1, max_length=50)
    email: Optional[str] = Field(None, min_length=3, max_length=100)
    full_name: Optional[str] = Field(None, max_length=100)
    role: Optional[UserRole] = None
    avatar_url: Optional[str] = Field(None, max_length=255)


class UserResponse(ORMModel):
    id: int
    username: str
    email: str
    full_name: Optional[str] = None
    role: UserRole
    avatar_url: Optional[str] = None
    created_at: datetime
    updated_at: datetime


# Project schemas
class ProjectCreate(BaseModel):
    """Schema for creating a project"""
    name: str = Field(..., min_length=1, max_length=100)
    key: str = Field(..., min_length=1, max_length=10, description="Short unique key, stored upper-case")
    description: Optional[str] = None


class ProjectUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    key: Optional[str] = Field(None, min_length=1, max_length=10)
    description: Optional[str] = None


class ProjectResponse(ORMModel):
    id: int
    name: str
    description: Optional[str] = None
    key: str
    owner_id: int
    owner_name: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class MemberCreate(BaseModel):
    """Schema for adding a member (or changing an existing member's role)"""
    user_id: int
    role: MemberRole = MemberRole.MEMBER


class MemberResponse(ORMModel):
    id: int
    project_id: int
    user_id: int
    role: MemberRole
    joined_at: datetime
    user: UserResponse


class StatusResponse(ORMModel):
    id: int
    name: str
    category: StatusCategory
    color: str
    position: int
    project_id: int


# Sprint schemas
class SprintCreate(BaseModel):
    """Schema for creating a sprint"""
    project_id: int
    name: str = Field(..., min_length=1, max_length=100)
    goal: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class SprintUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    goal: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class SprintResponse(ORMModel):
    id: int
    name: str
    goal: Optional[str] = None
    project_id: int
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: SprintStatus
    created_at: datetime
    updated_at: datetime


# Issue schemas
class IssueCreate(BaseModel):
    """Schema for creating an issue"""
    project_id: int
    title: str = Field(..., min_length=1, max_length=255, description="Issue title")
    description: Optional[str] = None
    type: IssueType = Field(IssueType.TASK, description="Issue type")
    priority: IssuePriority = Field(IssuePriority.MEDIUM, description="Issue priority")
    status_id: int = Field(..., description="Status of the same project")
    assignee_id: Optional[int] = None
    sprint_id: Optional[int] = Field(None, description="Sprint of the same project; omit for backlog")
    story_points: Optional[int] = Field(None, ge=0)
    start_date: Optional[date] = None
    before_image: Optional[str] = Field(None, max_length=255)
    after_image: Optional[str] = Field(None, max_length=255)


class IssueUpdate(BaseModel):
    """Schema for updating an issue.

    Omitted fields are left alone; fields sent as null are cleared.
    """
    title: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    type: Optional[IssueType] = None
    priority: Optional[IssuePriority] = None
    status_id: Optional[int] = None
    assignee_id: Optional[int] = None
    sprint_id: Optional[int] = None
    story_points: Optional[int] = Field(None, ge=0)
    start_date: Optional[date] = None
    before_image: Optional[str] = Field(None, max_length=255)
    after_image: Optional[str] = Field(None, max_length=255)


class IssueStatusUpdate(BaseModel):
    """Schema for a Kanban column move"""
    status_id: int


class IssueSprintUpdate(BaseModel):
    """Schema for moving an issue between backlog and sprints; null means backlog"""
    sprint_id: Optional[int] = None


class IssueResponse(ORMModel):
    """Schema for issue responses"""
    id: int
    title: str
    description: Optional[str] = None
    type: IssueType
    priority: IssuePriority
    status_id: int
    assignee_id: Optional[int] = None
    reporter_id: int
    project_id: int
    sprint_id: Optional[int] = None
    story_points: Optional[int] = None
    start_date: Optional[date] = None
    before_image: Optional[str] = None
    after_image: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    # Display fields
    status_name: Optional[str] = None
    status_category: Optional[StatusCategory] = None
    status_color: Optional[str] = None
    assignee_name: Optional[str] = None
    reporter_name: Optional[str] = None


# Board schemas
class KanbanColumnResponse(ORMModel):
    """One Kanban column: a status and the issues in it"""
    id: int
    name: str
    category: StatusCategory
    color: str
    position: int
    issues: List[IssueResponse]


class SprintIssuesResponse(ORMModel):
    sprint: SprintResponse
    issues: List[IssueResponse]


class BacklogResponse(ORMModel):
    backlog: List[IssueResponse]
    sprints: List[SprintIssuesResponse]


class StatsResponse(BaseModel):
    """Issue counts per status category and story point totals"""
    totalIssues: int
    todoIssues: int
    inProgressIssues: int
    completedIssues: int
    totalStoryPoints: int
    completedStoryPoints: int


# Comment schemas
class CommentCreate(BaseModel):
    """Schema for creating comments"""
    content: str = Field(..., min_length=1, description="Comment text")


class CommentUpdate(BaseModel):
    content: str = Field(..., min_length=1)


class CommentResponse(ORMModel):
    id: int
    content: str
    issue_id: int
    author_id: int
    author_name: Optional[str] = None
    created_at: datetime
    updated_at: datetime


# Log schemas
class LogEntryResponse(ORMModel):
    id: int
    timestamp: str
    level: str
    action: str
    user_id: Optional[int] = None
    user_name: Optional[str] = None
    details: Dict[str, Any] = Field(default_factory=dict, validation_alias="details_dict")
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    created_at: datetime


class RotateResponse(BaseModel):
    removed: int
    days_kept: int


# Common response schemas
class SuccessResponse(BaseModel):
    """Schema for success responses"""
    message: str
    id: Optional[int] = None
