"""Comments on issues"""

from typing import List, Optional

from ..errors import ForbiddenError, ValidationError
from ..models import Comment, Issue, utcnow
from .audit import RequestMeta
from .service_base import BaseService, get_or_404


def _check_content(content: str) -> str:
    if not content or not content.strip():
        raise ValidationError("Comment content is required")
    return content.strip()


class CommentService(BaseService):
    """Service class for comment operations"""

    def list_comments(self, actor, issue_id: int) -> List[Comment]:
        """Comments of an issue, oldest first"""
        with self._session() as session:
            issue = get_or_404(session, Issue, issue_id, "Issue")
            self.access.require_project_access(session, actor, issue.project_id, "COMMENT_LIST")
            comments = (
                session.query(Comment)
                .filter(Comment.issue_id == issue_id)
                .order_by(Comment.created_at, Comment.id)
                .all()
            )
            return self._detach_all(session, comments)

    def create_comment(
        self,
        actor,
        issue_id: int,
        content: str,
        request: Optional[RequestMeta] = None,
    ) -> Comment:
        content = _check_content(content)

        with self._session() as session:
            issue = get_or_404(session, Issue, issue_id, "Issue")
            project_id = issue.project_id
            self.access.require_project_access(session, actor, project_id, "COMMENT_CREATE", request)

            comment = Comment(content=content, issue_id=issue_id, author_id=actor.id)
            session.add(comment)
            comment = self._detach(session, comment)

        self.audit.record(
            "COMMENT_CREATE",
            {"comment_id": comment.id, "issue_id": issue_id, "project_id": project_id},
            actor=actor,
            request=request,
        )
        return comment

    def update_comment(
        self,
        actor,
        comment_id: int,
        content: str,
        request: Optional[RequestMeta] = None,
    ) -> Comment:
        """Replace the content; only the author or an admin may edit"""
        content = _check_content(content)

        with self._session() as session:
            comment, project_id = self._load_own_comment(session, actor, comment_id, "COMMENT_UPDATE", request)
            comment.content = content
            comment.updated_at = utcnow()
            comment = self._detach(session, comment)

        self.audit.record(
            "COMMENT_UPDATE",
            {"comment_id": comment_id, "issue_id": comment.issue_id, "project_id": project_id},
            actor=actor,
            request=request,
        )
        return comment

    def delete_comment(self, actor, comment_id: int, request: Optional[RequestMeta] = None) -> bool:
        with self._session() as session:
            comment, project_id = self._load_own_comment(session, actor, comment_id, "COMMENT_DELETE", request)
            issue_id = comment.issue_id
            session.delete(comment)

        self.audit.record(
            "COMMENT_DELETE",
            {"comment_id": comment_id, "issue_id": issue_id, "project_id": project_id},
            actor=actor,
            request=request,
        )
        return True

    def _load_own_comment(self, session, actor, comment_id: int, action: str, request):
        comment = get_or_404(session, Comment, comment_id, "Comment")
        issue = get_or_404(session, Issue, comment.issue_id, "Issue")
        self.access.require_project_access(session, actor, issue.project_id, action, request)
        if not actor.is_admin and comment.author_id != actor.id:
            raise ForbiddenError("Only the author or an admin can change this comment")
        return comment, issue.project_id
