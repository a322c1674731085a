"""
Member model: a user's role inside one organization.

Roles come from greenfleet.auth.permissions.Role:
- owner: platform administrator (cross-tenant)
- admin: fleet manager of the organization
- member: driver, read-only plus own fuel and odometer data

Memberships decide authorization outcomes; the authorization layer only
reads them.
"""

from sqlalchemy import Column, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import relationship

from greenfleet.db_base import Base
from greenfleet.models.base import TimestampMixin, generate_id


class Member(Base, TimestampMixin):
    __tablename__ = "members"

    id = Column(String(255), primary_key=True, default=generate_id)

    user_id = Column(
        String(255),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    organization_id = Column(
        String(255),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    role = Column(String(50), nullable=False, default="member", comment="owner | admin | member")

    user = relationship("User", back_populates="memberships")
    organization = relationship("Organization", back_populates="members")

    __table_args__ = (
        # One membership per (user, organization)
        UniqueConstraint("user_id", "organization_id", name="uq_member_user_org"),
        Index("ix_members_user_role", "user_id", "role"),
    )

    def __repr__(self) -> str:
        return (
            f"<Member(user_id={self.user_id}, organization_id={self.organization_id}, "
            f"role={self.role})>"
        )
