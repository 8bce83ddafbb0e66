"""Project access gate applied before every project-scoped operation"""

from typing import Optional

from sqlalchemy.orm import Session, sessionmaker

from ..errors import ForbiddenError
from ..models import MemberRole, Project, ProjectMember, User
from .audit import AuditLog, RequestMeta
from .database import session_scope

MANAGER_ROLES = (MemberRole.OWNER, MemberRole.ADMIN)


class AccessControl:
    """Decides whether a user may read or mutate a project's entities.

    Admins always pass. Everyone else must be a member of the project. For
    non-admins the membership check runs before any existence check, so a
    missing project and a foreign project look the same (403).
    """

    def __init__(self, session_factory: sessionmaker, audit: AuditLog):
        self.session_factory = session_factory
        self.audit = audit

    def can_access_project(self, user: User, project_id: int) -> bool:
        """True if ``user`` may read or write entities of ``project_id``"""
        with session_scope(self.session_factory) as session:
            return self.check(session, user, project_id)

    def check(self, session: Session, user: User, project_id: int) -> bool:
        if user.is_admin:
            return True
        return get_membership(session, user.id, project_id) is not None

    def can_manage(self, session: Session, user: User, project_id: int) -> bool:
        """Global admin, or project owner/admin"""
        if user.is_admin:
            return True
        membership = get_membership(session, user.id, project_id)
        return membership is not None and membership.role in MANAGER_ROLES

    def require_project_access(
        self,
        session: Session,
        user: User,
        project_id: int,
        action: str,
        request: Optional[RequestMeta] = None,
    ) -> None:
        """Raise ForbiddenError (and audit it) unless the user may access the project"""
        if not self.check(session, user, project_id):
            self.deny(user, project_id, action, request)

    def require_project_manager(
        self,
        session: Session,
        user: User,
        project_id: int,
        action: str,
        request: Optional[RequestMeta] = None,
    ) -> None:
        if not self.can_manage(session, user, project_id):
            self.deny(user, project_id, action, request)

    def require_project_owner(
        self,
        session: Session,
        user: User,
        project: Project,
        action: str,
        request: Optional[RequestMeta] = None,
    ) -> None:
        if not (user.is_admin or project.owner_id == user.id):
            self.deny(user, project.id, action, request)

    def deny(self, user: User, project_id: int, action: str, request: Optional[RequestMeta] = None):
        self.audit.record(
            "ACCESS_DENIED",
            {"project_id": project_id, "attempted_action": action},
            actor=user,
            request=request,
            level="WARN",
        )
        raise ForbiddenError(f"Access denied to project {project_id}", {"project_id": project_id})


def get_membership(session: Session, user_id: int, project_id: int) -> Optional[ProjectMember]:
    return (
        session.query(ProjectMember)
        .filter(ProjectMember.project_id == project_id, ProjectMember.user_id == user_id)
        .first()
    )
