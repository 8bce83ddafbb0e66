"""Issue model"""

from sqlalchemy import Column, Integer, String, Date, DateTime, Text, ForeignKey, Index
from sqlalchemy.orm import relationship

from .base import Base, IssueType, IssuePriority, enum_column_type, utcnow


class Issue(Base):
    """Issue; ``sprint_id`` NULL means the issue sits in the backlog"""

    __tablename__ = "issues"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    type = Column(enum_column_type(IssueType), nullable=False, default=IssueType.TASK)
    priority = Column(enum_column_type(IssuePriority), nullable=False, default=IssuePriority.MEDIUM)

    status_id = Column(Integer, ForeignKey("issue_statuses.id"), nullable=False)
    assignee_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    reporter_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    sprint_id = Column(Integer, ForeignKey("sprints.id"), nullable=True)

    story_points = Column(Integer, nullable=True)
    start_date = Column(Date, nullable=True)
    before_image = Column(String(255), nullable=True)
    after_image = Column(String(255), nullable=True)

    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    # Display joins; loaded with the row so detached issues stay readable
    status = relationship("IssueStatus", lazy="joined")
    assignee = relationship("User", foreign_keys=[assignee_id], lazy="joined")
    reporter = relationship("User", foreign_keys=[reporter_id], lazy="joined")

    __table_args__ = (
        Index("ix_issues_project_sprint", "project_id", "sprint_id"),
        Index("ix_issues_assignee_id", "assignee_id"),
    )

    @property
    def status_name(self):
        return self.status.name if self.status else None

    @property
    def status_category(self):
        return self.status.category if self.status else None

    @property
    def status_color(self):
        return self.status.color if self.status else None

    @property
    def assignee_name(self):
        return self.assignee.display_name if self.assignee else None

    @property
    def reporter_name(self):
        return self.reporter.display_name if self.reporter else None

    def __repr__(self):
        return f"<Issue(id={self.id}, title='{self.title[:50]}', status_id={self.status_id})>"
