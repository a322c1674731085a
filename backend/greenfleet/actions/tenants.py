"""
Organization administration operations.

Cross-tenant surfaces, so they run on the global (untenanted) session:
- list/create/update/deactivate/reactivate: require_admin (admin or owner
  in any organization)
- list_organizations/switch_organization: platform admin only (owner in
  any organization)
"""

import logging
from typing import Any, Dict, List, Mapping

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from greenfleet.auth.permissions import is_global_admin, require_admin, require_auth
from greenfleet.auth.session_provider import get_current_session
from greenfleet.models.organization import Organization
from greenfleet.platform.action_result import ActionResult, ErrorCode, Failure, fail, internal_error, ok
from greenfleet.schemas.tenant import CreateTenantInput, DeactivateTenantInput, UpdateTenantInput
from greenfleet.schemas.validation import validate_input
from greenfleet.services.tenant_service import SlugExistsError, TenantNotFoundError, TenantService

logger = logging.getLogger(__name__)

SLUG_EXISTS_MESSAGE = "An organization with this slug already exists"
TENANT_NOT_FOUND_MESSAGE = "Organization not found"


def list_tenants_action(db: Session, headers: Mapping[str, str]) -> ActionResult[List[Dict[str, Any]]]:
    admin = require_admin(db, headers)
    if isinstance(admin, Failure):
        return admin

    try:
        return ok(TenantService(db).list_tenants())
    except SQLAlchemyError as e:
        return internal_error("list tenants", e, user_id=admin.data)


def create_tenant_action(db: Session, headers: Mapping[str, str], payload: Any) -> ActionResult[Dict[str, Any]]:
    admin = require_admin(db, headers)
    if isinstance(admin, Failure):
        return admin

    parsed = validate_input(CreateTenantInput, payload)
    if isinstance(parsed, Failure):
        return parsed

    try:
        org = TenantService(db).create_tenant(parsed.data)
        return ok(org.to_dict())
    except SlugExistsError:
        return fail(ErrorCode.CONFLICT, SLUG_EXISTS_MESSAGE)
    except SQLAlchemyError as e:
        db.rollback()
        return internal_error("create tenant", e, user_id=admin.data, slug=parsed.data.slug)


def update_tenant_action(db: Session, headers: Mapping[str, str], payload: Any) -> ActionResult[Dict[str, Any]]:
    admin = require_admin(db, headers)
    if isinstance(admin, Failure):
        return admin

    parsed = validate_input(UpdateTenantInput, payload)
    if isinstance(parsed, Failure):
        return parsed

    try:
        org = TenantService(db).update_tenant(parsed.data)
        return ok(org.to_dict())
    except TenantNotFoundError:
        return fail(ErrorCode.NOT_FOUND, TENANT_NOT_FOUND_MESSAGE)
    except SlugExistsError:
        return fail(ErrorCode.CONFLICT, SLUG_EXISTS_MESSAGE)
    except SQLAlchemyError as e:
        db.rollback()
        return internal_error("update tenant", e, user_id=admin.data, tenant_id=parsed.data.id)


def deactivate_tenant_action(db: Session, headers: Mapping[str, str], payload: Any) -> ActionResult[Dict[str, str]]:
    """Deactivate an organization; demo organizations are FORBIDDEN."""
    admin = require_admin(db, headers)
    if isinstance(admin, Failure):
        return admin

    parsed = validate_input(DeactivateTenantInput, payload)
    if isinstance(parsed, Failure):
        return parsed
    tenant_id = parsed.data.id

    service = TenantService(db)
    try:
        tenant = service.get_tenant(tenant_id)
        if tenant is not None and tenant.is_demo:
            return fail(ErrorCode.FORBIDDEN, "The demo organization cannot be deactivated")

        service.deactivate_tenant(tenant_id, parsed.data.reason)
        return ok({"id": tenant_id})
    except TenantNotFoundError:
        return fail(ErrorCode.NOT_FOUND, TENANT_NOT_FOUND_MESSAGE)
    except SQLAlchemyError as e:
        db.rollback()
        return internal_error("deactivate tenant", e, user_id=admin.data, tenant_id=tenant_id)


def reactivate_tenant_action(db: Session, headers: Mapping[str, str], tenant_id: Any) -> ActionResult[Dict[str, str]]:
    admin = require_admin(db, headers)
    if isinstance(admin, Failure):
        return admin

    if not isinstance(tenant_id, str) or not tenant_id.strip():
        return fail(ErrorCode.VALIDATION, "Organization id is required")

    try:
        service = TenantService(db)
        service.reactivate_tenant(tenant_id)
        # Features added to the catalogue while the tenant was inactive
        service.initialize_tenant_features(tenant_id)
        return ok({"id": tenant_id})
    except TenantNotFoundError:
        return fail(ErrorCode.NOT_FOUND, TENANT_NOT_FOUND_MESSAGE)
    except SQLAlchemyError as e:
        db.rollback()
        return internal_error("reactivate tenant", e, user_id=admin.data, tenant_id=tenant_id)


def _require_platform_admin(db: Session, headers: Mapping[str, str]) -> ActionResult[str]:
    auth = require_auth(db, headers)
    if isinstance(auth, Failure):
        return auth
    if not is_global_admin(db, auth.data.user_id):
        return fail(ErrorCode.FORBIDDEN, "Not authorized")
    return ok(auth.data.user_id)


def list_organizations_action(db: Session, headers: Mapping[str, str]) -> ActionResult[List[Dict[str, str]]]:
    """Active organizations a platform admin can switch into."""
    admin = _require_platform_admin(db, headers)
    if isinstance(admin, Failure):
        return admin

    try:
        return ok(TenantService(db).list_active_organizations())
    except SQLAlchemyError as e:
        return internal_error("list organizations", e, user_id=admin.data)


def switch_organization_action(
    db: Session, headers: Mapping[str, str], organization_id: Any
) -> ActionResult[None]:
    """
    Point the caller's session at another organization.

    Platform admins only; no membership in the target is required.
    """
    admin = _require_platform_admin(db, headers)
    if isinstance(admin, Failure):
        return admin
    user_id = admin.data

    if not isinstance(organization_id, str) or not organization_id:
        return fail(ErrorCode.VALIDATION, "Organization id is required")

    try:
        is_active = db.query(Organization.is_active).filter(
            Organization.id == organization_id
        ).scalar()
        if is_active is None:
            return fail(ErrorCode.NOT_FOUND, TENANT_NOT_FOUND_MESSAGE)
        if not is_active:
            return fail(ErrorCode.FORBIDDEN, "Organization is deactivated")

        auth_session = get_current_session(db, headers)
        if auth_session is None:
            return fail(ErrorCode.UNAUTHORIZED, "Invalid session")

        auth_session.active_organization_id = organization_id
        db.commit()
        logger.info(
            "Active organization switched",
            extra={"user_id": user_id, "tenant_id": organization_id},
        )
        return ok(None)
    except SQLAlchemyError as e:
        db.rollback()
        return internal_error(
            "switch organization", e, user_id=user_id, target_organization_id=organization_id
        )
