"""
Authentication session model.

A row per logged-in browser or API client. Only the SHA-256 hash of the
session token is stored. active_organization_id selects the tenant the
session is working in and may be null (no tenant selected yet).
"""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, String

from greenfleet.db_base import Base
from greenfleet.models.base import TimestampMixin, generate_id


class AuthSession(Base, TimestampMixin):
    __tablename__ = "auth_sessions"

    id = Column(String(255), primary_key=True, default=generate_id)

    user_id = Column(
        String(255),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    token_hash = Column(String(64), nullable=False, unique=True, index=True)

    active_organization_id = Column(
        String(255),
        nullable=True,
        index=True,
        comment="Tenant selected for this session; not a FK so stale ids surface as TENANT_NOT_FOUND",
    )

    expires_at = Column(DateTime(timezone=True), nullable=False)

    def is_expired(self, now: datetime = None) -> bool:
        now = now or datetime.now(timezone.utc)
        expires_at = self.expires_at
        # SQLite drops tzinfo on round-trip
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        return expires_at <= now

    def __repr__(self) -> str:
        return f"<AuthSession(id={self.id}, user_id={self.user_id})>"
