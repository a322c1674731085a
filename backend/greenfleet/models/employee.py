"""
Employee model (tenant-scoped).

Employees are the drivers of a company's fleet. Rows are only ever read
and written through a TenantScopedSession for their organization.
"""

from sqlalchemy import BigInteger, Boolean, Column, Integer, Numeric, String, UniqueConstraint

from greenfleet.db_base import Base
from greenfleet.models.base import TenantScopedMixin, TimestampMixin


class Employee(Base, TimestampMixin, TenantScopedMixin):
    __tablename__ = "employees"

    # BIGINT identity in production; SQLite only autoincrements INTEGER
    id = Column(
        BigInteger().with_variant(Integer, "sqlite"),
        primary_key=True,
        autoincrement=True,
    )

    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=True)
    fiscal_code = Column(String(16), nullable=True)
    matricola = Column(String(50), nullable=True, comment="Company badge number")
    avg_monthly_km = Column(Numeric(10, 0), nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)

    __table_args__ = (
        # Fiscal code is unique inside a tenant, not globally
        UniqueConstraint("tenant_id", "fiscal_code", name="uq_employee_tenant_fiscal_code"),
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "email": self.email,
            "phone": self.phone,
            "fiscal_code": self.fiscal_code,
            "matricola": self.matricola,
            "avg_monthly_km": self.avg_monthly_km,
            "is_active": self.is_active,
            "created_at": self.created_at,
        }

    def __repr__(self) -> str:
        return f"<Employee(id={self.id}, tenant_id={self.tenant_id}, is_active={self.is_active})>"
