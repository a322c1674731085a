"""
FuelTypeMapping model: global catalogue mapping vehicle fuel-type codes
(e.g. BENZINA, IBRIDO_DIESEL) to their display label and emission scope.

Shared by all tenants; only platform administrators write it.
"""

from sqlalchemy import Column, Integer, String, UniqueConstraint

from greenfleet.db_base import Base
from greenfleet.models.base import TimestampMixin


class FuelTypeMapping(Base, TimestampMixin):
    __tablename__ = "fuel_type_mappings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    vehicle_fuel_type = Column(String(100), nullable=False, index=True)
    label = Column(String(100), nullable=False)
    scope = Column(Integer, nullable=False, comment="GHG emission scope: 1 or 2")
    description = Column(String(100), nullable=False, default="")

    __table_args__ = (
        UniqueConstraint("vehicle_fuel_type", "scope", name="uq_fuel_type_scope"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "vehicle_fuel_type": self.vehicle_fuel_type,
            "label": self.label,
            "scope": self.scope,
            "description": self.description,
        }

    def __repr__(self) -> str:
        return f"<FuelTypeMapping(code={self.vehicle_fuel_type}, scope={self.scope})>"
