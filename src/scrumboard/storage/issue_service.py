"""Issue lifecycle: creation, partial updates, Kanban and backlog moves"""

from dataclasses import dataclass, fields
from datetime import date
from typing import Any, Dict, List, Optional, Union

from sqlalchemy import desc
from sqlalchemy.orm import Session

from ..errors import ForbiddenError, ValidationError
from ..logging import get_logger
from ..models import Comment, Issue, IssuePriority, IssueType, utcnow
from .audit import RequestMeta
from .service_base import (
    BaseService,
    get_or_404,
    load_project,
    require_open_sprint_in_project,
    require_project_member,
    require_status_in_project,
)

logger = get_logger(__name__)

# Sprint filter value selecting issues that are in no sprint
BACKLOG = "none"

SprintFilter = Union[None, int, str]


class _Unset:
    """Marker for "field not supplied" in a partial update"""

    def __repr__(self):
        return "UNSET"

    def __bool__(self):
        return False


UNSET: Any = _Unset()


@dataclass
class IssueChanges:
    """Partial update of an issue.

    A field left at ``UNSET`` is not touched; a field set to ``None`` is
    cleared (only allowed for nullable fields).
    """

    title: Any = UNSET
    description: Any = UNSET
    type: Any = UNSET
    priority: Any = UNSET
    status_id: Any = UNSET
    assignee_id: Any = UNSET
    sprint_id: Any = UNSET
    story_points: Any = UNSET
    start_date: Any = UNSET
    before_image: Any = UNSET
    after_image: Any = UNSET

    REQUIRED = ("title", "type", "priority", "status_id")

    def provided(self) -> Dict[str, Any]:
        """Fields that were explicitly supplied"""
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not UNSET
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "IssueChanges":
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValidationError(f"Unknown issue fields: {', '.join(sorted(unknown))}")
        return cls(**data)


def query_project_issues(session: Session, project_id: int, sprint_filter: SprintFilter = None):
    """Issues of a project, optionally narrowed to one sprint or to the backlog"""
    query = session.query(Issue).filter(Issue.project_id == project_id)
    if sprint_filter == BACKLOG:
        query = query.filter(Issue.sprint_id.is_(None))
    elif sprint_filter is not None:
        query = query.filter(Issue.sprint_id == int(sprint_filter))
    return query.order_by(desc(Issue.created_at), desc(Issue.id))


def _as_issue_type(value) -> IssueType:
    try:
        return value if isinstance(value, IssueType) else IssueType(value)
    except ValueError:
        raise ValidationError(f"Invalid issue type: {value}")


def _as_priority(value) -> IssuePriority:
    try:
        return value if isinstance(value, IssuePriority) else IssuePriority(value)
    except ValueError:
        raise ValidationError(f"Invalid priority: {value}")


def _check_story_points(points: Optional[int]) -> None:
    if points is not None and points < 0:
        raise ValidationError("Story points cannot be negative")


class IssueService(BaseService):
    """Service class for issue operations"""

    def create_issue(
        self,
        actor,
        project_id: int,
        title: str,
        status_id: int,
        issue_type: IssueType = IssueType.TASK,
        priority: IssuePriority = IssuePriority.MEDIUM,
        description: Optional[str] = None,
        assignee_id: Optional[int] = None,
        sprint_id: Optional[int] = None,
        story_points: Optional[int] = None,
        start_date: Optional[date] = None,
        before_image: Optional[str] = None,
        after_image: Optional[str] = None,
        request: Optional[RequestMeta] = None,
    ) -> Issue:
        """Create a new issue reported by ``actor``"""
        if not title or not title.strip():
            raise ValidationError("Title is required")
        _check_story_points(story_points)

        with self._session() as session:
            self.access.require_project_access(session, actor, project_id, "ISSUE_CREATE", request)
            load_project(session, project_id)

            require_status_in_project(session, status_id, project_id)
            if sprint_id is not None:
                require_open_sprint_in_project(session, sprint_id, project_id)
            if assignee_id is not None:
                require_project_member(session, assignee_id, project_id)

            issue = Issue(
                title=title.strip(),
                description=description,
                type=_as_issue_type(issue_type),
                priority=_as_priority(priority),
                status_id=status_id,
                assignee_id=assignee_id,
                reporter_id=actor.id,
                project_id=project_id,
                sprint_id=sprint_id,
                story_points=story_points,
                start_date=start_date,
                before_image=before_image,
                after_image=after_image,
            )
            session.add(issue)
            issue = self._detach(session, issue)

        self.audit.record(
            "ISSUE_CREATE",
            {"issue_id": issue.id, "project_id": project_id, "title": issue.title},
            actor=actor,
            request=request,
        )
        return issue

    def get_issue(self, actor, issue_id: int) -> Issue:
        """Get issue by ID"""
        with self._session() as session:
            issue = get_or_404(session, Issue, issue_id, "Issue")
            self.access.require_project_access(session, actor, issue.project_id, "ISSUE_READ")
            session.expunge(issue)
            return issue

    def list_project_issues(self, actor, project_id: int, sprint_filter: SprintFilter = None) -> List[Issue]:
        """List a project's issues, newest first"""
        with self._session() as session:
            self.access.require_project_access(session, actor, project_id, "ISSUE_LIST")
            load_project(session, project_id)
            issues = query_project_issues(session, project_id, sprint_filter).all()
            return self._detach_all(session, issues)

    def list_user_issues(self, actor, user_id: int) -> List[Issue]:
        """Issues assigned to ``user_id``; a user may only list their own unless admin"""
        if not actor.is_admin and actor.id != user_id:
            raise ForbiddenError("Users can only list their own issues")

        with self._session() as session:
            issues = (
                session.query(Issue)
                .filter(Issue.assignee_id == user_id)
                .order_by(desc(Issue.created_at), desc(Issue.id))
                .all()
            )
            return self._detach_all(session, issues)

    def update_issue(
        self,
        actor,
        issue_id: int,
        changes: IssueChanges,
        request: Optional[RequestMeta] = None,
    ) -> Issue:
        """Apply only the fields present in ``changes``"""
        updates = changes.provided()
        for field in IssueChanges.REQUIRED:
            if field in updates and updates[field] is None:
                raise ValidationError(f"{field} cannot be cleared")
        if "title" in updates:
            if not updates["title"].strip():
                raise ValidationError("Title is required")
            updates["title"] = updates["title"].strip()
        if "type" in updates:
            updates["type"] = _as_issue_type(updates["type"])
        if "priority" in updates:
            updates["priority"] = _as_priority(updates["priority"])
        if "story_points" in updates:
            _check_story_points(updates["story_points"])

        with self._session() as session:
            issue = get_or_404(session, Issue, issue_id, "Issue")
            project_id = issue.project_id
            self.access.require_project_access(session, actor, project_id, "ISSUE_UPDATE", request)

            if "status_id" in updates:
                require_status_in_project(session, updates["status_id"], project_id)
            if updates.get("sprint_id") is not None and updates["sprint_id"] != issue.sprint_id:
                require_open_sprint_in_project(session, updates["sprint_id"], project_id)
            if updates.get("assignee_id") is not None and updates["assignee_id"] != issue.assignee_id:
                require_project_member(session, updates["assignee_id"], project_id)

            old_values = {field: getattr(issue, field) for field in updates}
            for field, value in updates.items():
                setattr(issue, field, value)
            issue.updated_at = utcnow()

            issue = self._detach(session, issue)

        self.audit.record(
            "ISSUE_UPDATE",
            {
                "issue_id": issue_id,
                "project_id": project_id,
                "changed": sorted(updates),
                "old": old_values,
            },
            actor=actor,
            request=request,
        )
        if "assignee_id" in updates and old_values["assignee_id"] != updates["assignee_id"]:
            logger.info("issue_assignee_changed", issue_id=issue_id, assignee_id=updates["assignee_id"])
        return issue

    def update_status(
        self,
        actor,
        issue_id: int,
        status_id: int,
        request: Optional[RequestMeta] = None,
    ) -> Issue:
        """Move an issue to another Kanban column of its own project"""
        with self._session() as session:
            issue = get_or_404(session, Issue, issue_id, "Issue")
            project_id = issue.project_id
            self.access.require_project_access(session, actor, project_id, "ISSUE_STATUS_CHANGE", request)
            require_status_in_project(session, status_id, project_id)

            old_status_id = issue.status_id
            issue.status_id = status_id
            issue.updated_at = utcnow()

            issue = self._detach(session, issue)

        self.audit.record(
            "ISSUE_STATUS_CHANGE",
            {
                "issue_id": issue_id,
                "project_id": project_id,
                "old_status_id": old_status_id,
                "new_status_id": status_id,
            },
            actor=actor,
            request=request,
        )
        return issue

    def assign_to_sprint(
        self,
        actor,
        issue_id: int,
        sprint_id: int,
        request: Optional[RequestMeta] = None,
    ) -> Issue:
        """Move an issue from the backlog (or another sprint) into ``sprint_id``"""
        return self._move(actor, issue_id, sprint_id, request)

    def remove_from_sprint(self, actor, issue_id: int, request: Optional[RequestMeta] = None) -> Issue:
        """Send an issue back to the backlog"""
        return self._move(actor, issue_id, None, request)

    def _move(self, actor, issue_id: int, sprint_id: Optional[int], request: Optional[RequestMeta]) -> Issue:
        with self._session() as session:
            issue = get_or_404(session, Issue, issue_id, "Issue")
            project_id = issue.project_id
            self.access.require_project_access(session, actor, project_id, "ISSUE_SPRINT_CHANGE", request)
            if sprint_id is not None and sprint_id != issue.sprint_id:
                require_open_sprint_in_project(session, sprint_id, project_id)

            old_sprint_id = issue.sprint_id
            issue.sprint_id = sprint_id
            issue.updated_at = utcnow()

            issue = self._detach(session, issue)

        self.audit.record(
            "ISSUE_SPRINT_CHANGE",
            {
                "issue_id": issue_id,
                "project_id": project_id,
                "old_sprint_id": old_sprint_id,
                "new_sprint_id": sprint_id,
            },
            actor=actor,
            request=request,
        )
        return issue

    def delete_issue(self, actor, issue_id: int, request: Optional[RequestMeta] = None) -> bool:
        """Delete an issue and its comments.

        Returns False if the issue does not exist.
        """
        with self._session() as session:
            issue = session.get(Issue, issue_id)
            if issue is None:
                return False

            project_id = issue.project_id
            self.access.require_project_access(session, actor, project_id, "ISSUE_DELETE", request)

            title = issue.title
            session.query(Comment).filter(Comment.issue_id == issue_id).delete(synchronize_session=False)
            session.delete(issue)

        self.audit.record(
            "ISSUE_DELETE",
            {"issue_id": issue_id, "project_id": project_id, "title": title},
            actor=actor,
            request=request,
        )
        return True
