"""Sprint model"""

from sqlalchemy import Column, Integer, String, Date, DateTime, Text, ForeignKey, Index, text

from .base import Base, SprintStatus, enum_column_type, utcnow


class Sprint(Base):
    """Time-boxed container of issues; at most one active sprint per project"""

    __tablename__ = "sprints"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    goal = Column(Text, nullable=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    status = Column(enum_column_type(SprintStatus), nullable=False, default=SprintStatus.PLANNED)

    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        # Backstop for the single-active-sprint rule when two starts race
        Index(
            "uq_sprints_one_active_per_project",
            "project_id",
            unique=True,
            sqlite_where=text("status = 'active'"),
            postgresql_where=text("status = 'active'"),
        ),
    )

    def __repr__(self):
        return f"<Sprint(id={self.id}, name='{self.name}', status='{self.status.value}')>"
