"""Comment model"""

from sqlalchemy import Column, Integer, DateTime, Text, ForeignKey, Index
from sqlalchemy.orm import relationship

from .base import Base, utcnow


class Comment(Base):
    """Comment on an issue; issue and author never change after creation"""

    __tablename__ = "comments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    content = Column(Text, nullable=False)
    issue_id = Column(Integer, ForeignKey("issues.id", ondelete="CASCADE"), nullable=False)
    author_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    author = relationship("User", lazy="joined")

    __table_args__ = (
        Index("ix_comments_issue_id", "issue_id"),
    )

    @property
    def author_name(self):
        return self.author.display_name if self.author else None

    def __repr__(self):
        return f"<Comment(id={self.id}, issue={self.issue_id}, author={self.author_id})>"
