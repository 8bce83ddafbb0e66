"""Storage layer: database access, services and migrations"""

from dataclasses import dataclass

from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from ..config import DatabaseSettings
from .access import AccessControl
from .audit import AuditLog, RequestMeta
from .board_service import BoardService
from .comment_service import CommentService
from .database import create_db_engine, create_session_factory, session_scope
from .issue_service import BACKLOG, IssueChanges, IssueService, UNSET
from .project_service import ProjectService
from .sprint_service import SprintService
from .user_service import UserService


@dataclass
class Services:
    """Everything a request handler needs, built once per process"""
    engine: Engine
    session_factory: sessionmaker
    audit: AuditLog
    access: AccessControl
    users: UserService
    projects: ProjectService
    issues: IssueService
    sprints: SprintService
    boards: BoardService
    comments: CommentService

    def dispose(self) -> None:
        self.engine.dispose()


def build_services(settings: DatabaseSettings, engine: Engine = None) -> Services:
    """Wire engine, session factory, audit log and services together"""
    engine = engine or create_db_engine(settings)
    session_factory = create_session_factory(engine)
    audit = AuditLog(session_factory)
    access = AccessControl(session_factory, audit)
    collaborators = (session_factory, audit, access)
    return Services(
        engine=engine,
        session_factory=session_factory,
        audit=audit,
        access=access,
        users=UserService(*collaborators),
        projects=ProjectService(*collaborators),
        issues=IssueService(*collaborators),
        sprints=SprintService(*collaborators),
        boards=BoardService(*collaborators),
        comments=CommentService(*collaborators),
    )


__all__ = [
    "Services",
    "build_services",
    "AccessControl",
    "AuditLog",
    "RequestMeta",
    "BoardService",
    "CommentService",
    "IssueService",
    "IssueChanges",
    "ProjectService",
    "SprintService",
    "UserService",
    "BACKLOG",
    "UNSET",
    "create_db_engine",
    "create_session_factory",
    "session_scope",
]
