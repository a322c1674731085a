"""
User model.

Users are global: a user can be a member of several organizations and
carries no tenant_id. Authentication sessions and memberships hang off it.
"""

from sqlalchemy import Boolean, Column, String
from sqlalchemy.orm import relationship

from greenfleet.db_base import Base
from greenfleet.models.base import TimestampMixin, generate_id


class User(Base, TimestampMixin):
    __tablename__ = "users"

    id = Column(String(255), primary_key=True, default=generate_id)
    email = Column(String(255), nullable=False, unique=True, index=True)
    name = Column(String(255), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    memberships = relationship(
        "Member",
        back_populates="user",
        cascade="all, delete-orphan",
        lazy="select",
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email})>"
