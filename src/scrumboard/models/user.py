"""User model"""

from sqlalchemy import Column, Integer, String, DateTime

from .base import Base, UserRole, enum_column_type, utcnow


class User(Base):
    """Application user; referenced by issues as reporter and assignee"""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(50), nullable=False, unique=True)
    email = Column(String(100), nullable=False, unique=True)
    full_name = Column(String(100), nullable=True)
    role = Column(enum_column_type(UserRole), nullable=False, default=UserRole.DEVELOPER)
    avatar_url = Column(String(255), nullable=True)

    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def display_name(self) -> str:
        return self.full_name or self.username

    def __repr__(self):
        return f"<User(id={self.id}, username='{self.username}', role='{self.role.value}')>"
