"""
Database models.

Tenant-scoped models inherit from TenantScopedMixin and are filtered by
TenantScopedSession; everything else is global.
"""

from greenfleet.models.base import TimestampMixin, TenantScopedMixin
# Identity and tenancy (global)
from greenfleet.models.user import User
from greenfleet.models.organization import Organization
from greenfleet.models.member import Member
from greenfleet.models.auth_session import AuthSession
from greenfleet.models.tenant_feature import TenantFeature
from greenfleet.models.fuel_type_mapping import FuelTypeMapping
# Fleet data (tenant-scoped)
from greenfleet.models.employee import Employee
from greenfleet.models.audit_log import AuditLog

__all__ = [
    "TimestampMixin",
    "TenantScopedMixin",
    "User",
    "Organization",
    "Member",
    "AuthSession",
    "TenantFeature",
    "FuelTypeMapping",
    "Employee",
    "AuditLog",
]
