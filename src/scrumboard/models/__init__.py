"""ScrumBoard models package"""

from .base import (
    Base,
    UserRole,
    MemberRole,
    StatusCategory,
    SprintStatus,
    IssueType,
    IssuePriority,
    LogLevel,
    utcnow,
)
from .user import User
from .project import Project, ProjectMember, IssueStatus, DEFAULT_STATUSES
from .sprint import Sprint
from .issue import Issue
from .comment import Comment
from .action_log import ActionLog

__all__ = [
    "Base",
    "UserRole",
    "MemberRole",
    "StatusCategory",
    "SprintStatus",
    "IssueType",
    "IssuePriority",
    "LogLevel",
    "utcnow",
    "User",
    "Project",
    "ProjectMember",
    "IssueStatus",
    "DEFAULT_STATUSES",
    "Sprint",
    "Issue",
    "Comment",
    "ActionLog",
]
