"""
Tenant context resolution.

Turns the authenticated session into the tenant the request works in and a
database handle confined to that tenant.

TenantContext is one of two shapes, discriminated by `has_tenant`:
- ActiveTenant(tenant_id, db): db is a TenantScopedSession for tenant_id
- NoTenant(): session has no active organization; tenant_id and db are None

FAULTS: resolution assumes authentication was established upstream and
that the session points at a real, active organization. Violations are
raised, not returned as ActionResult, because they mean the session and
tenant store disagree:
- NotAuthenticatedError: no session at all
- TenantNotFoundError: session points at an organization that does not exist
- TenantDeactivatedError: organization exists but is deactivated
"""

import logging
from dataclasses import dataclass
from typing import Literal, Mapping, Optional, Union

from sqlalchemy.orm import Session

from greenfleet.auth.session_provider import get_current_session
from greenfleet.database.tenant_scope import TenantScopedSession, get_session_for_tenant
from greenfleet.models.organization import Organization

logger = logging.getLogger(__name__)


class TenantResolutionError(Exception):
    """Base class for faults raised while resolving the tenant context."""

    def __init__(self, message: str, tenant_id: Optional[str] = None):
        super().__init__(message)
        self.tenant_id = tenant_id


class NotAuthenticatedError(TenantResolutionError):
    """Raised when tenant resolution is attempted without a session."""
    pass


class TenantNotFoundError(TenantResolutionError):
    """Raised when the session's organization does not exist."""
    pass


class TenantDeactivatedError(TenantResolutionError):
    """Raised when the session's organization is deactivated."""
    pass


@dataclass(frozen=True)
class ActiveTenant:
    tenant_id: str
    db: TenantScopedSession
    has_tenant: Literal[True] = True


@dataclass(frozen=True)
class NoTenant:
    has_tenant: Literal[False] = False
    tenant_id: None = None
    db: None = None


TenantContext = Union[ActiveTenant, NoTenant]


def get_tenant_context(db: Session, headers: Mapping[str, str]) -> TenantContext:
    """
    Resolve the tenant context for the current request.

    Args:
        db: Untenanted session used for the session and organization lookup
        headers: Request headers carrying the session token

    Returns:
        NoTenant() when the session has no active organization, otherwise
        ActiveTenant with a handle the caller must close.

    Raises:
        NotAuthenticatedError, TenantNotFoundError, TenantDeactivatedError
    """
    auth_session = get_current_session(db, headers)
    if auth_session is None:
        raise NotAuthenticatedError("Not authenticated")

    tenant_id = auth_session.active_organization_id
    if not isinstance(tenant_id, str) or not tenant_id:
        return NoTenant()

    is_active = db.query(Organization.is_active).filter(
        Organization.id == tenant_id
    ).scalar()

    if is_active is None:
        logger.warning(
            "Session references unknown organization",
            extra={"tenant_id": tenant_id, "user_id": auth_session.user_id},
        )
        raise TenantNotFoundError("TENANT_NOT_FOUND", tenant_id=tenant_id)

    if not is_active:
        logger.warning(
            "Session references deactivated organization",
            extra={"tenant_id": tenant_id, "user_id": auth_session.user_id},
        )
        raise TenantDeactivatedError("TENANT_DEACTIVATED", tenant_id=tenant_id)

    return ActiveTenant(tenant_id=tenant_id, db=get_session_for_tenant(tenant_id))
