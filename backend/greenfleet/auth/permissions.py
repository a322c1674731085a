"""
Authorization gate for server operations.

Role mapping:
- owner  = Platform admin (cross-tenant administration)
- admin  = Fleet manager (administers one organization)
- member = Driver (read-only plus own fuel/odometer data)

ORDERING: every gate checks authentication strictly before any tenant or
role check, so an anonymous caller always gets UNAUTHORIZED and never
FORBIDDEN.

Gate failures are Failure results; callers return them unchanged.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, Mapping, Optional

from sqlalchemy.orm import Session

from greenfleet.auth.session_provider import get_current_session
from greenfleet.models.member import Member
from greenfleet.models.organization import Organization
from greenfleet.platform.action_result import ActionResult, ErrorCode, Failure, fail, ok

logger = logging.getLogger(__name__)


class Role(str, Enum):
    """Membership roles inside an organization."""
    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"


ELEVATED_ROLES: FrozenSet[str] = frozenset({Role.OWNER.value, Role.ADMIN.value})


def _parse_role(value: Optional[str]) -> Optional[Role]:
    if value is None:
        return None
    try:
        return Role(value)
    except ValueError:
        logger.warning("Unknown membership role", extra={"role": value})
        return None


@dataclass(frozen=True)
class SessionContext:
    """
    Who is calling and in which organization.

    role is the caller's membership role in organization_id. A platform admin
    without a membership there gets a virtual OWNER role; anyone else without
    one gets None, as does a session with no organization at all.
    """
    user_id: str
    role: Optional[Role]
    organization_id: Optional[str]


def get_session_context(db: Session, headers: Mapping[str, str]) -> Optional[SessionContext]:
    """
    Build the SessionContext for the current request, or None if unauthenticated.

    Without an active organization on the session, the user's first
    membership in an active organization supplies organization and role.
    """
    auth_session = get_current_session(db, headers)
    if auth_session is None:
        return None

    user_id = auth_session.user_id
    organization_id = auth_session.active_organization_id
    if not isinstance(organization_id, str) or not organization_id:
        organization_id = None

    role: Optional[Role] = None

    if organization_id:
        membership = db.query(Member).filter(
            Member.user_id == user_id,
            Member.organization_id == organization_id,
        ).first()
        role = _parse_role(membership.role) if membership else None
        if role is None and is_global_admin(db, user_id):
            role = Role.OWNER
    else:
        membership = db.query(Member).join(
            Organization, Organization.id == Member.organization_id
        ).filter(
            Member.user_id == user_id,
            Organization.is_active == True,  # noqa: E712
        ).order_by(Member.created_at, Member.id).first()
        if membership:
            organization_id = membership.organization_id
            role = _parse_role(membership.role)

    return SessionContext(user_id=user_id, role=role, organization_id=organization_id)


def is_global_admin(db: Session, user_id: str) -> bool:
    """Platform admin: owner membership in any organization."""
    return db.query(Member.id).filter(
        Member.user_id == user_id,
        Member.role == Role.OWNER.value,
    ).first() is not None


def has_elevated_membership(db: Session, user_id: str) -> bool:
    """admin or owner membership in any organization."""
    return db.query(Member.id).filter(
        Member.user_id == user_id,
        Member.role.in_(ELEVATED_ROLES),
    ).first() is not None


def has_role(ctx: SessionContext, role: Role) -> bool:
    return ctx.role == role


def is_tenant_admin(db: Session, ctx: SessionContext, tenant_id: str) -> bool:
    """
    True iff ctx.user_id holds an elevated role (admin or owner) in tenant_id.

    Only the membership in exactly this tenant counts; roles held in other
    organizations are ignored.
    """
    if not tenant_id:
        return False
    membership = db.query(Member.role).filter(
        Member.user_id == ctx.user_id,
        Member.organization_id == tenant_id,
    ).first()
    return membership is not None and membership.role in ELEVATED_ROLES


def require_auth(db: Session, headers: Mapping[str, str]) -> ActionResult[SessionContext]:
    """Success(SessionContext) or UNAUTHORIZED."""
    ctx = get_session_context(db, headers)
    if ctx is None:
        return fail(ErrorCode.UNAUTHORIZED, "Not authenticated")
    return ok(ctx)


def require_active_tenant(ctx: SessionContext) -> ActionResult[str]:
    """Success(tenant_id) or FORBIDDEN when the session has no organization."""
    if not ctx.organization_id:
        return fail(ErrorCode.FORBIDDEN, "No active organization in session")
    return ok(ctx.organization_id)


def require_active_organization(db: Session, ctx: SessionContext) -> ActionResult[str]:
    """
    require_active_tenant, plus the organization must still exist and be active.

    Operations that open a tenant-scoped handle from the SessionContext use
    this instead of the bare check.
    """
    tenant = require_active_tenant(ctx)
    if isinstance(tenant, Failure):
        return tenant

    is_active = db.query(Organization.is_active).filter(
        Organization.id == tenant.data
    ).scalar()
    if is_active is None:
        return fail(ErrorCode.NOT_FOUND, "Organization not found")
    if not is_active:
        logger.info(
            "Operation on deactivated organization denied",
            extra={"user_id": ctx.user_id, "tenant_id": tenant.data},
        )
        return fail(ErrorCode.FORBIDDEN, "Organization is deactivated")
    return tenant


def require_tenant_admin(
    db: Session,
    headers: Mapping[str, str],
    tenant_id: str,
) -> ActionResult[SessionContext]:
    """Authenticated admin/owner of tenant_id, else UNAUTHORIZED or FORBIDDEN."""
    auth = require_auth(db, headers)
    if isinstance(auth, Failure):
        return auth

    if not is_tenant_admin(db, auth.data, tenant_id):
        logger.info(
            "Tenant admin check denied",
            extra={"user_id": auth.data.user_id, "tenant_id": tenant_id},
        )
        return fail(ErrorCode.FORBIDDEN, "Insufficient permissions for this organization")

    return auth


def require_admin(db: Session, headers: Mapping[str, str]) -> ActionResult[str]:
    """
    Gate for cross-tenant administration.

    Success(user_id) when the caller holds admin or owner in any
    organization; UNAUTHORIZED without a session; FORBIDDEN otherwise.
    """
    auth_session = get_current_session(db, headers)
    if auth_session is None:
        return fail(ErrorCode.UNAUTHORIZED, "Not authenticated")

    if not has_elevated_membership(db, auth_session.user_id):
        logger.info(
            "Admin check denied",
            extra={"user_id": auth_session.user_id},
        )
        return fail(ErrorCode.FORBIDDEN, "Administrator role required")

    return ok(auth_session.user_id)
