"""User administration"""

from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError

from ..errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from ..logging import get_logger
from ..models import Comment, Issue, Project, ProjectMember, User, UserRole, utcnow
from .audit import RequestMeta
from .service_base import BaseService, get_or_404

logger = get_logger(__name__)

UPDATABLE_FIELDS = ("username", "email", "full_name", "role", "avatar_url")


def _as_role(value) -> UserRole:
    try:
        return value if isinstance(value, UserRole) else UserRole(value)
    except ValueError:
        raise ValidationError(f"Invalid role: {value}")


class UserService(BaseService):
    """Service class for user operations"""

    def create_user(
        self,
        username: str,
        email: str,
        full_name: Optional[str] = None,
        role=UserRole.DEVELOPER,
        avatar_url: Optional[str] = None,
        actor: Optional[User] = None,
        request: Optional[RequestMeta] = None,
    ) -> User:
        """Create a user; ``actor`` is None only for CLI bootstrap"""
        if actor is not None and not actor.is_admin:
            raise ForbiddenError("Admin access required")
        if not username or not username.strip():
            raise ValidationError("Username is required")
        if not email or not email.strip():
            raise ValidationError("Email is required")

        try:
            with self._session() as session:
                self._check_unique(session, username=username.strip(), email=email.strip())
                user = User(
                    username=username.strip(),
                    email=email.strip().lower(),
                    full_name=full_name,
                    role=_as_role(role),
                    avatar_url=avatar_url,
                )
                session.add(user)
                user = self._detach(session, user)
        except IntegrityError as e:
            raise ConflictError("Username or email already taken") from e

        self.audit.record(
            "USER_CREATE",
            {"created_user_id": user.id, "username": user.username, "role": user.role.value},
            actor=actor,
            request=request,
        )
        return user

    def get_user(self, user_id: int) -> Optional[User]:
        """Get user by ID, None if missing"""
        with self._session() as session:
            user = session.get(User, user_id)
            if user is not None:
                session.expunge(user)
            return user

    def list_users(self) -> List[User]:
        with self._session() as session:
            users = session.query(User).order_by(User.id).all()
            return self._detach_all(session, users)

    def update_user(
        self,
        actor: User,
        user_id: int,
        updates: Dict[str, Any],
        request: Optional[RequestMeta] = None,
    ) -> User:
        """Update a user; users may edit themselves, admins anyone, only admins change roles"""
        unknown = set(updates) - set(UPDATABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Cannot update user fields: {', '.join(sorted(unknown))}")
        if not updates:
            raise ValidationError("No fields to update")
        if not actor.is_admin:
            if actor.id != user_id:
                raise ForbiddenError("Admin access required")
            if "role" in updates:
                raise ForbiddenError("Only admins can change roles")
        if "role" in updates:
            updates = dict(updates, role=_as_role(updates["role"]))
        if "email" in updates and updates["email"]:
            updates = dict(updates, email=updates["email"].strip().lower())

        try:
            with self._session() as session:
                user = get_or_404(session, User, user_id, "User")
                self._check_unique(
                    session,
                    username=updates.get("username"),
                    email=updates.get("email"),
                    exclude_id=user_id,
                )
                for field, value in updates.items():
                    setattr(user, field, value)
                user.updated_at = utcnow()
                user = self._detach(session, user)
        except IntegrityError as e:
            raise ConflictError("Username or email already taken") from e

        self.audit.record(
            "USER_UPDATE",
            {"updated_user_id": user_id, "changed": sorted(updates)},
            actor=actor,
            request=request,
        )
        return user

    def delete_user(self, actor: User, user_id: int, request: Optional[RequestMeta] = None) -> bool:
        """Delete a user, unassigning their issues in the same transaction"""
        if not actor.is_admin:
            raise ForbiddenError("Admin access required")
        if actor.id == user_id:
            raise ValidationError("Cannot delete your own account")

        with self._session() as session:
            user = session.get(User, user_id)
            if user is None:
                raise NotFoundError("User", user_id)

            still_referenced = []
            if session.query(Project.id).filter(Project.owner_id == user_id).first():
                still_referenced.append("project owner")
            if session.query(Issue.id).filter(Issue.reporter_id == user_id).first():
                still_referenced.append("issue reporter")
            if session.query(Comment.id).filter(Comment.author_id == user_id).first():
                still_referenced.append("comment author")
            if still_referenced:
                raise ConflictError(
                    f"User {user_id} is still referenced as {', '.join(still_referenced)}",
                    {"user_id": user_id, "references": still_referenced},
                )

            unassigned = (
                session.query(Issue)
                .filter(Issue.assignee_id == user_id)
                .update({Issue.assignee_id: None, Issue.updated_at: utcnow()}, synchronize_session=False)
            )
            session.query(ProjectMember).filter(ProjectMember.user_id == user_id).delete(
                synchronize_session=False
            )
            username = user.username
            session.delete(user)

        logger.info("user_deleted", user_id=user_id, unassigned_issues=unassigned)
        self.audit.record(
            "USER_DELETE",
            {"deleted_user_id": user_id, "username": username, "unassigned_issues": unassigned},
            actor=actor,
            request=request,
        )
        return True

    @staticmethod
    def _check_unique(session, username=None, email=None, exclude_id=None):
        if username:
            query = session.query(User.id).filter(User.username == username)
            if exclude_id is not None:
                query = query.filter(User.id != exclude_id)
            if query.first():
                raise ConflictError("Username already taken", {"username": username})
        if email:
            query = session.query(User.id).filter(User.email == email.lower())
            if exclude_id is not None:
                query = query.filter(User.id != exclude_id)
            if query.first():
                raise ConflictError("Email already taken", {"email": email})
