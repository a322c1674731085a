"""
TenantFeature model: per-organization feature switches.

Global model read by the feature guard with an explicit tenant_id filter;
administrators toggle features across tenants.
"""

from sqlalchemy import Boolean, Column, ForeignKey, Integer, String, UniqueConstraint

from greenfleet.db_base import Base
from greenfleet.models.base import TimestampMixin


class TenantFeature(Base, TimestampMixin):
    __tablename__ = "tenant_features"

    id = Column(Integer, primary_key=True, autoincrement=True)

    tenant_id = Column(
        String(255),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    feature_key = Column(String(50), nullable=False)
    enabled = Column(Boolean, nullable=False, default=False)

    __table_args__ = (
        UniqueConstraint("tenant_id", "feature_key", name="uq_tenant_feature"),
    )

    def __repr__(self) -> str:
        return f"<TenantFeature(tenant_id={self.tenant_id}, key={self.feature_key}, enabled={self.enabled})>"
