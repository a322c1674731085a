"""
Fuel type mapping operations.

The catalogue is global; writes are limited to platform administrators
(or the owner of the active organization) and always invalidate the
fuel type label cache.
"""

import logging
from typing import Any, Dict, Mapping

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from greenfleet.auth.permissions import Role, has_role, is_global_admin, require_auth
from greenfleet.database.tenant_scope import get_session_for_tenant
from greenfleet.platform.action_result import ActionResult, ErrorCode, Failure, fail, internal_error, ok
from greenfleet.schemas.fuel_type_mapping import CreateFuelTypeMappingInput
from greenfleet.schemas.validation import validate_input
from greenfleet.services.audit_service import record_audit
from greenfleet.services.fuel_type_labels import (
    create_fuel_type_mapping,
    get_fuel_type_labels,
    invalidate_fuel_type_label_cache,
    list_fuel_type_mappings,
)

logger = logging.getLogger(__name__)


def list_fuel_type_mappings_action(db: Session, headers: Mapping[str, str]) -> ActionResult[Dict[str, Any]]:
    """Every mapping plus the resolved label map. Any authenticated user."""
    auth = require_auth(db, headers)
    if isinstance(auth, Failure):
        return auth

    try:
        return ok({
            "mappings": [m.to_dict() for m in list_fuel_type_mappings(db)],
            "labels": dict(get_fuel_type_labels(db)),
        })
    except SQLAlchemyError as e:
        return internal_error("list fuel type mappings", e, user_id=auth.data.user_id)


def create_fuel_type_mapping_action(
    db: Session, headers: Mapping[str, str], payload: Any
) -> ActionResult[Dict[str, Any]]:
    auth = require_auth(db, headers)
    if isinstance(auth, Failure):
        return auth
    ctx = auth.data

    if not (has_role(ctx, Role.OWNER) or is_global_admin(db, ctx.user_id)):
        return fail(ErrorCode.FORBIDDEN, "Only administrators can manage fuel type mappings")

    parsed = validate_input(CreateFuelTypeMappingInput, payload)
    if isinstance(parsed, Failure):
        return parsed
    data = parsed.data

    try:
        mapping = create_fuel_type_mapping(db, data)
    except IntegrityError:
        db.rollback()
        return fail(ErrorCode.CONFLICT, "A mapping for this fuel type and scope already exists")
    except SQLAlchemyError as e:
        db.rollback()
        return internal_error(
            "create fuel type mapping", e, user_id=ctx.user_id, tenant_id=ctx.organization_id
        )

    invalidate_fuel_type_label_cache()
    result = mapping.to_dict()

    if ctx.organization_id:
        try:
            with get_session_for_tenant(ctx.organization_id) as tenant_db:
                record_audit(
                    tenant_db, ctx.user_id, "fuel_type_mapping.created", "FuelTypeMapping", mapping.id,
                    data={"vehicle_fuel_type": data.vehicle_fuel_type, "scope": data.scope},
                )
                tenant_db.commit()
        except SQLAlchemyError:
            # Mapping is already committed
            logger.exception(
                "Failed to record fuel type mapping audit entry",
                extra={"user_id": ctx.user_id, "tenant_id": ctx.organization_id, "mapping_id": mapping.id},
            )

    return ok(result)
