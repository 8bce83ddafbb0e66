"""Audit trail: structured log events plus persisted action log rows"""

import enum
import json
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy import desc
from sqlalchemy.orm import sessionmaker

from ..logging import get_logger
from ..models import ActionLog, User, utcnow
from .database import session_scope

logger = get_logger(__name__)

# Actions persisted to action_logs; everything else only goes to the log stream
CRITICAL_ACTIONS = frozenset({
    "USER_LOGIN", "USER_LOGOUT", "USER_CREATE", "USER_UPDATE", "USER_DELETE",
    "PROJECT_CREATE", "PROJECT_UPDATE", "PROJECT_DELETE",
    "PROJECT_MEMBER_ADD", "PROJECT_MEMBER_REMOVE",
    "ISSUE_CREATE", "ISSUE_UPDATE", "ISSUE_DELETE",
    "ISSUE_STATUS_CHANGE", "ISSUE_SPRINT_CHANGE",
    "SPRINT_CREATE", "SPRINT_UPDATE", "SPRINT_DELETE", "SPRINT_START", "SPRINT_COMPLETE",
    "COMMENT_CREATE", "COMMENT_UPDATE", "COMMENT_DELETE",
    "ACCESS_DENIED", "LOG_ROTATION",
})


def _json_default(value):
    if isinstance(value, enum.Enum):
        return value.value
    return str(value)


_LEVEL_METHODS = {"DEBUG": "debug", "INFO": "info", "WARN": "warning", "ERROR": "error"}


@dataclass(frozen=True)
class RequestMeta:
    """Client details attached to an audit entry"""
    ip: Optional[str] = None
    user_agent: Optional[str] = None


class AuditLog:
    """Fire-and-forget recorder for critical actions.

    Rows are written in a session of their own, so an entry survives even
    when the business transaction that triggered it rolls back (e.g. an
    ``ACCESS_DENIED`` raised half-way through a request). Failures to write
    are logged and never reach the caller.
    """

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def record(
        self,
        action: str,
        details: Optional[Dict[str, Any]] = None,
        actor: Optional[User] = None,
        request: Optional[RequestMeta] = None,
        level: str = "INFO",
    ) -> None:
        """Record an action; never raises"""
        details = details or {}
        try:
            log_method = getattr(logger, _LEVEL_METHODS.get(level, "info"))
            log_method(
                "audit_action",
                action=action,
                user_id=actor.id if actor else None,
                details=details,
            )

            if action not in CRITICAL_ACTIONS:
                return

            with session_scope(self.session_factory) as session:
                session.add(ActionLog(
                    timestamp=utcnow().isoformat() + "Z",
                    level=level,
                    action=action,
                    user_id=actor.id if actor else None,
                    user_name=actor.username if actor else None,
                    details=json.dumps(details, default=_json_default),
                    ip_address=request.ip if request else None,
                    user_agent=request.user_agent if request else None,
                ))
        except Exception as e:
            logger.warning("audit_write_failed", action=action, error=str(e))

    def list_entries(
        self,
        limit: Optional[int] = 50,
        user_id: Optional[int] = None,
        action: Optional[str] = None,
        project_id: Optional[int] = None,
    ) -> List[ActionLog]:
        """Stored entries, newest first"""
        with session_scope(self.session_factory) as session:
            query = session.query(ActionLog)
            if user_id is not None:
                query = query.filter(ActionLog.user_id == user_id)
            if action:
                query = query.filter(ActionLog.action == action)
            query = query.order_by(desc(ActionLog.created_at), desc(ActionLog.id))

            # project_id lives inside the JSON payload; filter after loading
            if project_id is None and limit:
                query = query.limit(limit)
            entries = query.all()

            if project_id is not None:
                entries = [e for e in entries if e.details_dict.get("project_id") == project_id]
                if limit:
                    entries = entries[:limit]

            for entry in entries:
                session.expunge(entry)
            return entries

    def rotate(self, days_to_keep: int = 30, actor: Optional[User] = None) -> int:
        """Delete stored entries older than ``days_to_keep`` days"""
        cutoff = utcnow() - timedelta(days=days_to_keep)
        with session_scope(self.session_factory) as session:
            removed = (
                session.query(ActionLog)
                .filter(ActionLog.created_at < cutoff)
                .delete(synchronize_session=False)
            )

        self.record("LOG_ROTATION", {"removed": removed, "days_kept": days_to_keep}, actor=actor)
        return removed
