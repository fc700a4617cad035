"""
User model, auto-provisioned from the identity provider's subject.
"""

import enum

from sqlalchemy import Column, Integer, String, CheckConstraint

from ticket_manager.db.base import Base, TimestampMixin


class UserRole(str, enum.Enum):
    MEMBER = "member"
    ADMIN = "admin"


class User(Base, TimestampMixin):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    auth_sub = Column(String(255), unique=True, index=True, nullable=False)
    email = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False)
    role = Column(String(16), nullable=False, default=UserRole.MEMBER.value)

    __table_args__ = (
        CheckConstraint("role IN ('member', 'admin')", name="check_user_role"),
    )

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"
