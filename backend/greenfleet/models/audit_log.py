"""
AuditLog model (tenant-scoped, append-only).

One row per mutating action, written in the same tenant transaction as the
change it records.
"""

from sqlalchemy import JSON, BigInteger, Column, Integer, String

from greenfleet.db_base import Base
from greenfleet.models.base import TenantScopedMixin, TimestampMixin


class AuditLog(Base, TimestampMixin, TenantScopedMixin):
    __tablename__ = "audit_logs"

    id = Column(
        BigInteger().with_variant(Integer, "sqlite"),
        primary_key=True,
        autoincrement=True,
    )

    user_id = Column(String(255), nullable=False, index=True)
    action = Column(String(100), nullable=False, comment="e.g. employee.created")
    entity_type = Column(String(100), nullable=False)
    entity_id = Column(String(255), nullable=False)
    data = Column(JSON, nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "user_id": self.user_id,
            "action": self.action,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "data": self.data,
            "created_at": self.created_at,
        }

    def __repr__(self) -> str:
        return f"<AuditLog(action={self.action}, entity={self.entity_type}:{self.entity_id})>"
