"""Base SQLAlchemy declarative class and shared enumerations"""

import enum
from datetime import datetime, timezone

from sqlalchemy import Enum
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def utcnow() -> datetime:
    """Naive UTC timestamp, the format every DateTime column stores"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def enum_column_type(enum_cls) -> Enum:
    """Store enum *values* ("in_progress") rather than member names"""
    return Enum(
        enum_cls,
        values_callable=lambda members: [m.value for m in members],
        native_enum=False,
        length=20,
        validate_strings=True,
    )


class UserRole(enum.Enum):
    """Global user role"""
    ADMIN = "admin"
    DEVELOPER = "developer"
    SCRUM_MASTER = "scrum_master"


class MemberRole(enum.Enum):
    """Role of a user inside one project"""
    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"


class StatusCategory(enum.Enum):
    """Coarse bucket of an issue status, used for statistics"""
    TODO = "todo"
    IN_PROGRESS = "inprogress"
    DONE = "done"


class SprintStatus(enum.Enum):
    """Sprint lifecycle state"""
    PLANNED = "planned"
    ACTIVE = "active"
    COMPLETED = "completed"


class IssueType(enum.Enum):
    """Issue type enumeration"""
    TASK = "task"
    STORY = "story"
    BUG = "bug"
    EPIC = "epic"


class IssuePriority(enum.Enum):
    """Issue priority enumeration"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class LogLevel(enum.Enum):
    """Severity of an action log entry"""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"
