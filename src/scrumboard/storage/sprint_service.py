"""Sprint lifecycle: planned -> active -> completed"""

from datetime import date
from typing import Any, Dict, List, Optional

from sqlalchemy import desc
from sqlalchemy.orm import Session

from ..errors import ConflictError, ValidationError
from ..logging import get_logger
from ..models import Issue, Project, Sprint, SprintStatus, utcnow
from .audit import RequestMeta
from .service_base import BaseService, get_or_404, load_project

logger = get_logger(__name__)

VALID_TRANSITIONS: Dict[SprintStatus, set] = {
    SprintStatus.PLANNED: {SprintStatus.ACTIVE, SprintStatus.COMPLETED},
    SprintStatus.ACTIVE: {SprintStatus.COMPLETED},
    SprintStatus.COMPLETED: set(),  # terminal
}

UPDATABLE_FIELDS = ("name", "goal", "start_date", "end_date")


def validate_transition(current: SprintStatus, target: SprintStatus) -> bool:
    return target in VALID_TRANSITIONS.get(current, set())


def _check_dates(start_date: Optional[date], end_date: Optional[date]) -> None:
    if start_date and end_date and end_date < start_date:
        raise ValidationError("Sprint end date cannot be before its start date")


class SprintService(BaseService):
    """Service class for sprint operations"""

    def create_sprint(
        self,
        actor,
        project_id: int,
        name: str,
        goal: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        request: Optional[RequestMeta] = None,
    ) -> Sprint:
        """Create a sprint in the planned state"""
        if not name or not name.strip():
            raise ValidationError("Sprint name is required")
        _check_dates(start_date, end_date)

        with self._session() as session:
            self.access.require_project_access(session, actor, project_id, "SPRINT_CREATE", request)
            load_project(session, project_id)

            sprint = Sprint(
                name=name.strip(),
                goal=goal,
                project_id=project_id,
                start_date=start_date,
                end_date=end_date,
                status=SprintStatus.PLANNED,
            )
            session.add(sprint)
            sprint = self._detach(session, sprint)

        self.audit.record(
            "SPRINT_CREATE",
            {"sprint_id": sprint.id, "project_id": project_id, "name": sprint.name},
            actor=actor,
            request=request,
        )
        return sprint

    def get_sprint(self, actor, sprint_id: int) -> Sprint:
        with self._session() as session:
            sprint = get_or_404(session, Sprint, sprint_id, "Sprint")
            self.access.require_project_access(session, actor, sprint.project_id, "SPRINT_READ")
            session.expunge(sprint)
            return sprint

    def list_sprints(self, actor, project_id: int) -> List[Sprint]:
        """Sprints of a project, newest first"""
        with self._session() as session:
            self.access.require_project_access(session, actor, project_id, "SPRINT_LIST")
            load_project(session, project_id)
            sprints = query_project_sprints(session, project_id).all()
            return self._detach_all(session, sprints)

    def get_active_sprint(self, actor, project_id: int) -> Optional[Sprint]:
        """The project's active sprint, or None"""
        with self._session() as session:
            self.access.require_project_access(session, actor, project_id, "SPRINT_LIST")
            load_project(session, project_id)
            sprint = (
                session.query(Sprint)
                .filter(Sprint.project_id == project_id, Sprint.status == SprintStatus.ACTIVE)
                .first()
            )
            if sprint is not None:
                session.expunge(sprint)
            return sprint

    def list_sprint_issues(self, actor, sprint_id: int) -> List[Issue]:
        with self._session() as session:
            sprint = get_or_404(session, Sprint, sprint_id, "Sprint")
            self.access.require_project_access(session, actor, sprint.project_id, "SPRINT_READ")
            issues = (
                session.query(Issue)
                .filter(Issue.sprint_id == sprint_id)
                .order_by(desc(Issue.created_at), desc(Issue.id))
                .all()
            )
            return self._detach_all(session, issues)

    def update_sprint(
        self,
        actor,
        sprint_id: int,
        updates: Dict[str, Any],
        request: Optional[RequestMeta] = None,
    ) -> Sprint:
        """Update name, goal or dates; status only moves through start/complete"""
        unknown = set(updates) - set(UPDATABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Cannot update sprint fields: {', '.join(sorted(unknown))}")
        if "name" in updates and (not updates["name"] or not updates["name"].strip()):
            raise ValidationError("Sprint name is required")

        with self._session() as session:
            sprint = get_or_404(session, Sprint, sprint_id, "Sprint")
            project_id = sprint.project_id
            self.access.require_project_access(session, actor, project_id, "SPRINT_UPDATE", request)

            _check_dates(
                updates.get("start_date", sprint.start_date),
                updates.get("end_date", sprint.end_date),
            )
            for field, value in updates.items():
                setattr(sprint, field, value.strip() if field == "name" else value)
            sprint.updated_at = utcnow()

            sprint = self._detach(session, sprint)

        self.audit.record(
            "SPRINT_UPDATE",
            {"sprint_id": sprint_id, "project_id": project_id, "changed": sorted(updates)},
            actor=actor,
            request=request,
        )
        return sprint

    def start_sprint(self, actor, sprint_id: int, request: Optional[RequestMeta] = None) -> Sprint:
        """Make ``sprint_id`` the project's only active sprint.

        Demotion of the previously active sprint and promotion of this one
        happen in the same transaction, under a lock on the project row.
        """
        with self._session() as session:
            sprint = get_or_404(session, Sprint, sprint_id, "Sprint")
            project_id = sprint.project_id
            self.access.require_project_access(session, actor, project_id, "SPRINT_START", request)

            # Serializes concurrent starts within a project (no-op on SQLite,
            # which already serializes writers)
            session.query(Project.id).filter(Project.id == project_id).with_for_update().one()
            session.refresh(sprint)

            if sprint.status == SprintStatus.ACTIVE:
                session.expunge(sprint)
                return sprint
            if not validate_transition(sprint.status, SprintStatus.ACTIVE):
                raise ConflictError(
                    f"Sprint {sprint_id} is {sprint.status.value} and cannot be started",
                    {"sprint_id": sprint_id, "status": sprint.status.value},
                )

            now = utcnow()
            others_active = session.query(Sprint).filter(
                Sprint.project_id == project_id,
                Sprint.status == SprintStatus.ACTIVE,
                Sprint.id != sprint_id,
            )
            # Ids are read only for the audit payload; the project lock keeps them stable
            demoted = [s.id for s in others_active.with_entities(Sprint.id)]
            others_active.update(
                {Sprint.status: SprintStatus.COMPLETED, Sprint.updated_at: now},
                synchronize_session=False,
            )

            sprint.status = SprintStatus.ACTIVE
            sprint.updated_at = now
            sprint = self._detach(session, sprint)

        logger.info("sprint_started", sprint_id=sprint_id, project_id=project_id, demoted=demoted)
        self.audit.record(
            "SPRINT_START",
            {"sprint_id": sprint_id, "project_id": project_id, "completed_sprints": demoted},
            actor=actor,
            request=request,
        )
        return sprint

    def complete_sprint(self, actor, sprint_id: int, request: Optional[RequestMeta] = None) -> Sprint:
        """Mark a sprint completed, whatever its current state"""
        with self._session() as session:
            sprint = get_or_404(session, Sprint, sprint_id, "Sprint")
            project_id = sprint.project_id
            self.access.require_project_access(session, actor, project_id, "SPRINT_COMPLETE", request)

            previous = sprint.status
            if previous != SprintStatus.COMPLETED:
                sprint.status = SprintStatus.COMPLETED
                sprint.updated_at = utcnow()
            sprint = self._detach(session, sprint)

        self.audit.record(
            "SPRINT_COMPLETE",
            {"sprint_id": sprint_id, "project_id": project_id, "previous_status": previous.value},
            actor=actor,
            request=request,
        )
        return sprint

    def delete_sprint(self, actor, sprint_id: int, request: Optional[RequestMeta] = None) -> bool:
        """Send the sprint's issues back to the backlog, then delete the sprint.

        Returns False if the sprint does not exist.
        """
        with self._session() as session:
            sprint = session.get(Sprint, sprint_id)
            if sprint is None:
                return False

            project_id = sprint.project_id
            self.access.require_project_access(session, actor, project_id, "SPRINT_DELETE", request)

            detached = (
                session.query(Issue)
                .filter(Issue.sprint_id == sprint_id)
                .update({Issue.sprint_id: None, Issue.updated_at: utcnow()}, synchronize_session=False)
            )
            session.delete(sprint)

        self.audit.record(
            "SPRINT_DELETE",
            {"sprint_id": sprint_id, "project_id": project_id, "detached_issues": detached},
            actor=actor,
            request=request,
        )
        return True


def query_project_sprints(session: Session, project_id: int):
    return (
        session.query(Sprint)
        .filter(Sprint.project_id == project_id)
        .order_by(desc(Sprint.created_at), desc(Sprint.id))
    )
