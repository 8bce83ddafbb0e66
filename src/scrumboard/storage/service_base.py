"""Shared plumbing for the service classes"""

from typing import Type, TypeVar

from sqlalchemy.orm import Session, sessionmaker

from ..errors import ConflictError, NotFoundError, ValidationError
from ..models import IssueStatus, Project, Sprint, SprintStatus
from .access import AccessControl, get_membership
from .audit import AuditLog
from .database import session_scope

T = TypeVar("T")


class BaseService:
    """Holds the collaborators every service needs.

    Each public method opens exactly one session through ``_session()`` so a
    multi-step operation commits or rolls back as a whole.
    """

    def __init__(self, session_factory: sessionmaker, audit: AuditLog, access: AccessControl):
        self.session_factory = session_factory
        self.audit = audit
        self.access = access

    def _session(self):
        return session_scope(self.session_factory)

    @staticmethod
    def _detach(session: Session, obj: T) -> T:
        """Flush, reload (with display joins) and hand the object out of the session"""
        session.flush()
        session.refresh(obj)
        session.expunge(obj)
        return obj

    @staticmethod
    def _detach_all(session: Session, objs):
        for obj in objs:
            session.expunge(obj)
        return objs


def get_or_404(session: Session, model: Type[T], entity_id: int, entity: str) -> T:
    obj = session.get(model, entity_id)
    if obj is None:
        raise NotFoundError(entity, entity_id)
    return obj


def load_project(session: Session, project_id: int) -> Project:
    return get_or_404(session, Project, project_id, "Project")


def require_status_in_project(session: Session, status_id: int, project_id: int) -> IssueStatus:
    status = session.get(IssueStatus, status_id)
    if status is None or status.project_id != project_id:
        raise ValidationError(
            f"Status {status_id} does not belong to project {project_id}",
            {"status_id": status_id, "project_id": project_id},
        )
    return status


def require_open_sprint_in_project(session: Session, sprint_id: int, project_id: int) -> Sprint:
    """Sprint must exist in the same project and must not be completed"""
    sprint = session.get(Sprint, sprint_id)
    if sprint is None or sprint.project_id != project_id:
        raise ValidationError(
            f"Sprint {sprint_id} does not belong to project {project_id}",
            {"sprint_id": sprint_id, "project_id": project_id},
        )
    if sprint.status == SprintStatus.COMPLETED:
        raise ConflictError(
            f"Sprint {sprint_id} is completed; issues cannot be moved into it",
            {"sprint_id": sprint_id},
        )
    return sprint


def require_project_member(session: Session, user_id: int, project_id: int) -> None:
    if get_membership(session, user_id, project_id) is None:
        raise ValidationError(
            "Assignee must be a member of the project",
            {"assignee_id": user_id, "project_id": project_id},
        )
