"""Project service: projects, memberships and per-project statuses"""

from typing import Any, Dict, List, Optional

from sqlalchemy import desc, select
from sqlalchemy.exc import IntegrityError

from ..errors import ConflictError, NotFoundError, ValidationError
from ..logging import get_logger
from ..models import (
    DEFAULT_STATUSES,
    Comment,
    Issue,
    IssueStatus,
    MemberRole,
    Project,
    ProjectMember,
    Sprint,
    User,
    utcnow,
)
from .access import get_membership
from .audit import RequestMeta
from .board_service import query_statuses
from .service_base import BaseService, get_or_404, load_project

logger = get_logger(__name__)

UPDATABLE_FIELDS = ("name", "description", "key")
MAX_KEY_LENGTH = 10


def normalize_key(key: str) -> str:
    key = (key or "").strip().upper()
    if not key:
        raise ValidationError("Project key is required")
    if len(key) > MAX_KEY_LENGTH:
        raise ValidationError(f"Project key cannot be longer than {MAX_KEY_LENGTH} characters")
    return key


def _duplicate_key(key: str) -> ConflictError:
    return ConflictError(
        "Project key already exists. Please choose a different key.",
        {"key": key},
    )


def _as_member_role(value) -> MemberRole:
    try:
        return value if isinstance(value, MemberRole) else MemberRole(value)
    except ValueError:
        raise ValidationError(f"Invalid member role: {value}")


class ProjectService(BaseService):
    """Service class for project operations"""

    def create_project(
        self,
        actor,
        name: str,
        key: str,
        description: Optional[str] = None,
        request: Optional[RequestMeta] = None,
    ) -> Project:
        """Create a project owned by ``actor`` with the default statuses"""
        if not name or not name.strip():
            raise ValidationError("Project name is required")
        key = normalize_key(key)

        try:
            with self._session() as session:
                if session.query(Project.id).filter(Project.key == key).first():
                    raise _duplicate_key(key)

                project = Project(name=name.strip(), description=description, key=key, owner_id=actor.id)
                session.add(project)
                session.flush()

                session.add(ProjectMember(project_id=project.id, user_id=actor.id, role=MemberRole.OWNER))
                for status_name, category, color, position in DEFAULT_STATUSES:
                    session.add(IssueStatus(
                        name=status_name,
                        category=category,
                        color=color,
                        position=position,
                        project_id=project.id,
                    ))

                project = self._detach(session, project)
        except IntegrityError as e:
            # Lost a race with a concurrent create of the same key
            raise _duplicate_key(key) from e

        self.audit.record(
            "PROJECT_CREATE",
            {"project_id": project.id, "key": project.key, "name": project.name},
            actor=actor,
            request=request,
        )
        return project

    def get_project(self, actor, project_id: int) -> Project:
        with self._session() as session:
            self.access.require_project_access(session, actor, project_id, "PROJECT_READ")
            project = load_project(session, project_id)
            session.expunge(project)
            return project

    def list_projects(self, actor) -> List[Project]:
        """All projects for admins, member projects for everyone else"""
        with self._session() as session:
            query = session.query(Project)
            if not actor.is_admin:
                query = query.join(ProjectMember, ProjectMember.project_id == Project.id).filter(
                    ProjectMember.user_id == actor.id
                )
            projects = query.order_by(desc(Project.created_at), desc(Project.id)).all()
            return self._detach_all(session, projects)

    def update_project(
        self,
        actor,
        project_id: int,
        updates: Dict[str, Any],
        request: Optional[RequestMeta] = None,
    ) -> Project:
        """Update name, description or key (owner, project admin or global admin)"""
        unknown = set(updates) - set(UPDATABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Cannot update project fields: {', '.join(sorted(unknown))}")
        if "name" in updates and (not updates["name"] or not updates["name"].strip()):
            raise ValidationError("Project name is required")
        if "key" in updates:
            updates = dict(updates, key=normalize_key(updates["key"]))

        try:
            with self._session() as session:
                self.access.require_project_access(session, actor, project_id, "PROJECT_UPDATE", request)
                project = load_project(session, project_id)
                self.access.require_project_manager(session, actor, project_id, "PROJECT_UPDATE", request)

                new_key = updates.get("key")
                if new_key and new_key != project.key:
                    if session.query(Project.id).filter(Project.key == new_key).first():
                        raise _duplicate_key(new_key)

                for field, value in updates.items():
                    setattr(project, field, value.strip() if field == "name" else value)
                project.updated_at = utcnow()

                project = self._detach(session, project)
        except IntegrityError as e:
            raise _duplicate_key(updates.get("key", "")) from e

        self.audit.record(
            "PROJECT_UPDATE",
            {"project_id": project_id, "changed": sorted(updates)},
            actor=actor,
            request=request,
        )
        return project

    def delete_project(self, actor, project_id: int, request: Optional[RequestMeta] = None) -> bool:
        """Delete a project with its statuses, sprints, issues, comments and members"""
        with self._session() as session:
            self.access.require_project_access(session, actor, project_id, "PROJECT_DELETE", request)
            project = load_project(session, project_id)
            self.access.require_project_owner(session, actor, project, "PROJECT_DELETE", request)

            key = project.key
            project_issues = select(Issue.id).where(Issue.project_id == project_id)
            session.query(Comment).filter(Comment.issue_id.in_(project_issues)).delete(
                synchronize_session=False
            )
            session.query(Issue).filter(Issue.project_id == project_id).delete(synchronize_session=False)
            session.query(Sprint).filter(Sprint.project_id == project_id).delete(synchronize_session=False)
            session.query(IssueStatus).filter(IssueStatus.project_id == project_id).delete(
                synchronize_session=False
            )
            session.query(ProjectMember).filter(ProjectMember.project_id == project_id).delete(
                synchronize_session=False
            )
            session.delete(project)

        self.audit.record(
            "PROJECT_DELETE",
            {"project_id": project_id, "key": key},
            actor=actor,
            request=request,
        )
        return True

    def list_members(self, actor, project_id: int) -> List[ProjectMember]:
        with self._session() as session:
            self.access.require_project_access(session, actor, project_id, "PROJECT_MEMBERS")
            load_project(session, project_id)
            members = (
                session.query(ProjectMember)
                .filter(ProjectMember.project_id == project_id)
                .order_by(ProjectMember.joined_at, ProjectMember.id)
                .all()
            )
            return self._detach_all(session, members)

    def add_member(
        self,
        actor,
        project_id: int,
        user_id: int,
        role=MemberRole.MEMBER,
        request: Optional[RequestMeta] = None,
    ) -> ProjectMember:
        """Add a user to the project, or change the role of an existing member"""
        role = _as_member_role(role)
        if role == MemberRole.OWNER:
            raise ValidationError("A project has exactly one owner; ownership cannot be granted")

        with self._session() as session:
            self.access.require_project_access(session, actor, project_id, "PROJECT_MEMBER_ADD", request)
            project = load_project(session, project_id)
            self.access.require_project_manager(session, actor, project_id, "PROJECT_MEMBER_ADD", request)
            get_or_404(session, User, user_id, "User")

            membership = get_membership(session, user_id, project_id)
            if membership is None:
                membership = ProjectMember(project_id=project_id, user_id=user_id, role=role)
                session.add(membership)
            elif user_id == project.owner_id:
                raise ValidationError("The project owner's role cannot be changed")
            else:
                membership.role = role

            membership = self._detach(session, membership)

        self.audit.record(
            "PROJECT_MEMBER_ADD",
            {"project_id": project_id, "member_id": user_id, "role": role.value},
            actor=actor,
            request=request,
        )
        return membership

    def remove_member(
        self,
        actor,
        project_id: int,
        user_id: int,
        request: Optional[RequestMeta] = None,
    ) -> bool:
        with self._session() as session:
            self.access.require_project_access(session, actor, project_id, "PROJECT_MEMBER_REMOVE", request)
            project = load_project(session, project_id)
            self.access.require_project_manager(session, actor, project_id, "PROJECT_MEMBER_REMOVE", request)

            if user_id == project.owner_id:
                raise ValidationError("The project owner cannot be removed")
            membership = get_membership(session, user_id, project_id)
            if membership is None:
                raise NotFoundError("Project member", user_id)
            session.delete(membership)

        self.audit.record(
            "PROJECT_MEMBER_REMOVE",
            {"project_id": project_id, "member_id": user_id},
            actor=actor,
            request=request,
        )
        return True

    def list_statuses(self, actor, project_id: int) -> List[IssueStatus]:
        """Statuses in Kanban column order"""
        with self._session() as session:
            self.access.require_project_access(session, actor, project_id, "PROJECT_STATUSES")
            load_project(session, project_id)
            return self._detach_all(session, query_statuses(session, project_id).all())
