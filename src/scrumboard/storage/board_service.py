"""Read-side projections: Kanban board, backlog partition and statistics.

Nothing here is cached or persisted; every call recomputes from the
current issue rows.
"""

from dataclasses import dataclass, field
from typing import Iterable, List

from ..errors import ValidationError
from ..models import Issue, IssueStatus, Sprint, StatusCategory
from .issue_service import BACKLOG, SprintFilter, query_project_issues
from .service_base import BaseService, get_or_404, load_project
from .sprint_service import query_project_sprints


@dataclass
class KanbanColumn:
    """One status column and the issues currently in it"""
    id: int
    name: str
    category: StatusCategory
    color: str
    position: int
    issues: List[Issue] = field(default_factory=list)


@dataclass
class SprintIssues:
    sprint: Sprint
    issues: List[Issue] = field(default_factory=list)


@dataclass
class BacklogView:
    """Every issue of a project, either in ``backlog`` or under exactly one sprint"""
    backlog: List[Issue] = field(default_factory=list)
    sprints: List[SprintIssues] = field(default_factory=list)


@dataclass
class IssueStats:
    total_issues: int = 0
    todo_issues: int = 0
    in_progress_issues: int = 0
    completed_issues: int = 0
    total_story_points: int = 0
    completed_story_points: int = 0

    def to_dict(self) -> dict:
        return {
            "totalIssues": self.total_issues,
            "todoIssues": self.todo_issues,
            "inProgressIssues": self.in_progress_issues,
            "completedIssues": self.completed_issues,
            "totalStoryPoints": self.total_story_points,
            "completedStoryPoints": self.completed_story_points,
        }


def compute_stats(issues: Iterable[Issue]) -> IssueStats:
    """Count issues per status category and sum story points (missing = 0)"""
    stats = IssueStats()
    for issue in issues:
        points = issue.story_points or 0
        category = issue.status.category
        stats.total_issues += 1
        stats.total_story_points += points
        if category == StatusCategory.DONE:
            stats.completed_issues += 1
            stats.completed_story_points += points
        elif category == StatusCategory.IN_PROGRESS:
            stats.in_progress_issues += 1
        else:
            stats.todo_issues += 1
    return stats


def build_columns(statuses: Iterable[IssueStatus], issues: Iterable[Issue]) -> List[KanbanColumn]:
    """Group issues under their status, keeping the statuses' order"""
    columns = [
        KanbanColumn(id=s.id, name=s.name, category=s.category, color=s.color, position=s.position)
        for s in statuses
    ]
    by_status = {column.id: column for column in columns}
    for issue in issues:
        column = by_status.get(issue.status_id)
        if column is not None:
            column.issues.append(issue)
    return columns


class BoardService(BaseService):
    """Kanban, backlog and statistics views"""

    def kanban_board(self, actor, project_id: int, sprint_filter: SprintFilter = None) -> List[KanbanColumn]:
        """One column per project status in position order.

        ``sprint_filter``: None for every issue, ``"none"`` for backlog
        issues only, or a sprint id of this project.
        """
        with self._session() as session:
            self.access.require_project_access(session, actor, project_id, "BOARD_ACCESS")
            load_project(session, project_id)

            if sprint_filter is not None and sprint_filter != BACKLOG:
                sprint = session.get(Sprint, int(sprint_filter))
                if sprint is None or sprint.project_id != project_id:
                    raise ValidationError(
                        f"Sprint {sprint_filter} does not belong to project {project_id}",
                        {"sprint_id": sprint_filter, "project_id": project_id},
                    )

            statuses = query_statuses(session, project_id).all()
            issues = query_project_issues(session, project_id, sprint_filter).all()
            self._detach_all(session, issues)
            return build_columns(statuses, issues)

    def backlog(self, actor, project_id: int) -> BacklogView:
        """Partition the project's issues into backlog and per-sprint lists"""
        with self._session() as session:
            self.access.require_project_access(session, actor, project_id, "BACKLOG_ACCESS")
            load_project(session, project_id)

            # Issues first: any sprint they reference existed when they were read
            issues = query_project_issues(session, project_id).all()
            sprints = query_project_sprints(session, project_id).all()
            self._detach_all(session, sprints)
            self._detach_all(session, issues)

        view = BacklogView(sprints=[SprintIssues(sprint=s) for s in sprints])
        by_sprint = {entry.sprint.id: entry for entry in view.sprints}
        for issue in issues:
            entry = by_sprint.get(issue.sprint_id) if issue.sprint_id is not None else None
            if entry is None:
                # Backlog, or a sprint deleted since the issues were read
                view.backlog.append(issue)
            else:
                entry.issues.append(issue)
        return view

    def project_stats(self, actor, project_id: int) -> IssueStats:
        with self._session() as session:
            self.access.require_project_access(session, actor, project_id, "PROJECT_STATS")
            load_project(session, project_id)
            return compute_stats(query_project_issues(session, project_id).all())

    def sprint_stats(self, actor, sprint_id: int) -> IssueStats:
        with self._session() as session:
            sprint = get_or_404(session, Sprint, sprint_id, "Sprint")
            self.access.require_project_access(session, actor, sprint.project_id, "SPRINT_STATS")
            issues = session.query(Issue).filter(Issue.sprint_id == sprint_id).all()
            return compute_stats(issues)


def query_statuses(session, project_id: int):
    return (
        session.query(IssueStatus)
        .filter(IssueStatus.project_id == project_id)
        .order_by(IssueStatus.position, IssueStatus.id)
    )
