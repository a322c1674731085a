"""
Organization model: the tenant.

Organization.id IS the tenant_id used across all tenant-scoped models for
data isolation. Organizations are global themselves; access to them is
governed through Member rows.

An inactive organization is never resolved into a usable tenant context.
"""

from sqlalchemy import JSON, Boolean, Column, Index, String
from sqlalchemy.orm import relationship

from greenfleet.db_base import Base
from greenfleet.models.base import TimestampMixin, generate_id


class Organization(Base, TimestampMixin):
    """A customer company whose fleet data is isolated from every other."""

    __tablename__ = "organizations"

    # Primary Key - THIS IS THE tenant_id USED EVERYWHERE
    id = Column(
        String(255),
        primary_key=True,
        default=generate_id,
        comment="Primary key - this IS the tenant_id used across all models"
    )

    name = Column(String(255), nullable=False, comment="Company display name")

    slug = Column(
        String(100),
        nullable=False,
        unique=True,
        index=True,
        comment="URL-friendly identifier (e.g., 'acme-fleet')"
    )

    is_active = Column(
        Boolean,
        nullable=False,
        default=True,
        comment="Deactivated organizations cannot be used as tenant context"
    )

    is_demo = Column(
        Boolean,
        nullable=False,
        default=False,
        comment="Demo organizations cannot be deactivated"
    )

    settings = Column(JSON, nullable=True, comment="Free-form organization metadata")

    members = relationship(
        "Member",
        back_populates="organization",
        cascade="all, delete-orphan",
        lazy="dynamic",
    )

    __table_args__ = (
        Index("ix_organizations_active", "is_active"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "is_active": self.is_active,
            "is_demo": self.is_demo,
            "metadata": self.settings,
            "created_at": self.created_at,
        }

    def __repr__(self) -> str:
        return f"<Organization(id={self.id}, slug={self.slug}, is_active={self.is_active})>"

    @property
    def member_count(self) -> int:
        return self.members.count()
