"""
Audit trail reads.

Fleet managers of the active organization only, and only while the
organization has the AUDIT_LOG feature enabled. Entries are read through
the organization's tenant-scoped session.
"""

import logging
from typing import Any, Dict, Mapping

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from greenfleet.auth.permissions import is_tenant_admin, require_active_organization, require_auth
from greenfleet.database.tenant_scope import get_session_for_tenant
from greenfleet.platform.action_result import ActionResult, ErrorCode, Failure, fail, internal_error, ok
from greenfleet.platform.normalize import numberify
from greenfleet.schemas.audit_log import AuditLogFilterInput
from greenfleet.schemas.validation import validate_input
from greenfleet.services.audit_service import list_audit_entries
from greenfleet.services.feature_guard import FeatureKey, require_feature

logger = logging.getLogger(__name__)


def list_audit_log_action(
    db: Session, headers: Mapping[str, str], filters: Any = None
) -> ActionResult[Dict[str, Any]]:
    auth = require_auth(db, headers)
    if isinstance(auth, Failure):
        return auth
    ctx = auth.data

    tenant = require_active_organization(db, ctx)
    if isinstance(tenant, Failure):
        return tenant
    tenant_id = tenant.data

    if not is_tenant_admin(db, ctx, tenant_id):
        return fail(ErrorCode.FORBIDDEN, "Insufficient permissions to read the audit log")

    disabled = require_feature(db, tenant_id, FeatureKey.AUDIT_LOG)
    if disabled is not None:
        return disabled

    parsed = validate_input(AuditLogFilterInput, filters)
    if isinstance(parsed, Failure):
        return parsed

    try:
        with get_session_for_tenant(tenant_id) as tenant_db:
            return ok(numberify(list_audit_entries(tenant_db, parsed.data)))
    except SQLAlchemyError as e:
        return internal_error("list audit log", e, user_id=ctx.user_id, tenant_id=tenant_id)
