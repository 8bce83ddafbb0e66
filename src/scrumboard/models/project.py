"""Project, membership and issue status models"""

from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from .base import Base, MemberRole, StatusCategory, enum_column_type, utcnow


class Project(Base):
    """Project identified by a short unique key (e.g. "WEB")"""

    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    key = Column(String(10), nullable=False, unique=True)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    owner = relationship("User", lazy="joined")

    @property
    def owner_name(self):
        return self.owner.display_name if self.owner else None

    def __repr__(self):
        return f"<Project(id={self.id}, key='{self.key}')>"


class ProjectMember(Base):
    """Membership of a user in a project"""

    __tablename__ = "project_members"

    id = Column(Integer, primary_key=True, autoincrement=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    role = Column(enum_column_type(MemberRole), nullable=False, default=MemberRole.MEMBER)
    joined_at = Column(DateTime, nullable=False, default=utcnow)

    user = relationship("User", lazy="joined")

    __table_args__ = (
        UniqueConstraint("project_id", "user_id", name="unique_project_member"),
    )

    def __repr__(self):
        return f"<ProjectMember(project={self.project_id}, user={self.user_id}, role='{self.role.value}')>"


class IssueStatus(Base):
    """Kanban column of a project; ``position`` fixes the column order"""

    __tablename__ = "issue_statuses"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(50), nullable=False)
    category = Column(enum_column_type(StatusCategory), nullable=False)
    color = Column(String(20), nullable=False, default="#gray")
    position = Column(Integer, nullable=False, default=0)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)

    def __repr__(self):
        return f"<IssueStatus(id={self.id}, name='{self.name}', position={self.position})>"


# (name, category, color, position) created with every project
DEFAULT_STATUSES = [
    ("To Do", StatusCategory.TODO, "#gray", 1),
    ("In Progress", StatusCategory.IN_PROGRESS, "#blue", 2),
    ("Done", StatusCategory.DONE, "#green", 3),
]
