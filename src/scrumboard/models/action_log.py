"""Action log model for the audit trail"""

import json

from sqlalchemy import Column, Integer, String, DateTime, Text

from .base import Base, utcnow


class ActionLog(Base):
    """Append-only record of a critical action"""

    __tablename__ = "action_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    timestamp = Column(String(40), nullable=False)  # ISO-8601, as emitted
    level = Column(String(10), nullable=False)
    action = Column(String(50), nullable=False, index=True)

    # No foreign key: entries outlive the users they mention
    user_id = Column(Integer, nullable=True, index=True)
    user_name = Column(String(100), nullable=True)

    details = Column(Text, nullable=True)  # JSON object
    ip_address = Column(String(64), nullable=True)
    user_agent = Column(String(255), nullable=True)

    created_at = Column(DateTime, nullable=False, default=utcnow)

    @property
    def details_dict(self) -> dict:
        if not self.details:
            return {}
        try:
            return json.loads(self.details)
        except ValueError:
            return {"raw": self.details}

    def __repr__(self):
        return f"<ActionLog(id={self.id}, action='{self.action}', user={self.user_id})>"
