"""
Employee operations.

Gate order for every mutation:
1. require_auth            -> UNAUTHORIZED
2. active organization        -> FORBIDDEN (NOT_FOUND if it no longer exists)
3. is_tenant_admin         -> FORBIDDEN
4. input validation        -> VALIDATION
5. tenant-scoped data access

Gate failures are returned unchanged. Data access runs on a handle from
get_session_for_tenant, so an id belonging to another tenant is simply
NOT_FOUND.
"""

import logging
from typing import Any, Dict, Mapping, Tuple

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from greenfleet.auth.permissions import SessionContext, is_tenant_admin, require_active_organization, require_auth
from greenfleet.database.tenant_scope import get_session_for_tenant
from greenfleet.platform.action_result import ActionResult, ErrorCode, Failure, fail, internal_error, ok
from greenfleet.platform.normalize import numberify
from greenfleet.schemas.employee import (
    CreateEmployeeInput,
    EmployeeFilterInput,
    EmployeeIdInput,
    UpdateEmployeeInput,
)
from greenfleet.schemas.validation import validate_input
from greenfleet.services.audit_service import record_audit
from greenfleet.services.employee_service import (
    DuplicateFiscalCodeError,
    EmployeeNotFoundError,
    EmployeeService,
    EmployeeStateError,
)

logger = logging.getLogger(__name__)

DUPLICATE_FISCAL_CODE_MESSAGE = "An employee with this fiscal code already exists"
NOT_FOUND_MESSAGE = "Employee not found"


def _require_employee_manager(
    db: Session, headers: Mapping[str, str]
) -> ActionResult[Tuple[SessionContext, str]]:
    auth = require_auth(db, headers)
    if isinstance(auth, Failure):
        return auth
    ctx = auth.data

    tenant = require_active_organization(db, ctx)
    if isinstance(tenant, Failure):
        return tenant

    if not is_tenant_admin(db, ctx, tenant.data):
        return fail(ErrorCode.FORBIDDEN, "Insufficient permissions to manage employees")

    return ok((ctx, tenant.data))


def list_employees_action(
    db: Session, headers: Mapping[str, str], filters: Any = None
) -> ActionResult[Dict[str, Any]]:
    """Paginated employees of the caller's active organization."""
    auth = require_auth(db, headers)
    if isinstance(auth, Failure):
        return auth
    ctx = auth.data

    tenant = require_active_organization(db, ctx)
    if isinstance(tenant, Failure):
        return tenant
    tenant_id = tenant.data

    parsed = validate_input(EmployeeFilterInput, filters)
    if isinstance(parsed, Failure):
        return parsed

    try:
        with get_session_for_tenant(tenant_id) as tenant_db:
            return ok(numberify(EmployeeService(tenant_db).list_employees(parsed.data)))
    except SQLAlchemyError as e:
        return internal_error("list employees", e, user_id=ctx.user_id, tenant_id=tenant_id)


def create_employee_action(
    db: Session, headers: Mapping[str, str], payload: Any
) -> ActionResult[Dict[str, Any]]:
    gate = _require_employee_manager(db, headers)
    if isinstance(gate, Failure):
        return gate
    ctx, tenant_id = gate.data

    parsed = validate_input(CreateEmployeeInput, payload)
    if isinstance(parsed, Failure):
        return parsed
    data = parsed.data

    with get_session_for_tenant(tenant_id) as tenant_db:
        try:
            employee = EmployeeService(tenant_db).create_employee(data)
            record_audit(
                tenant_db, ctx.user_id, "employee.created", "Employee", employee.id,
                data={"name": employee.full_name},
            )
            tenant_db.commit()
            return ok(numberify(employee.to_dict()))
        except (DuplicateFiscalCodeError, IntegrityError):
            tenant_db.rollback()
            return fail(ErrorCode.CONFLICT, DUPLICATE_FISCAL_CODE_MESSAGE)
        except SQLAlchemyError as e:
            tenant_db.rollback()
            return internal_error("create employee", e, user_id=ctx.user_id, tenant_id=tenant_id)


def update_employee_action(
    db: Session, headers: Mapping[str, str], payload: Any
) -> ActionResult[Dict[str, Any]]:
    gate = _require_employee_manager(db, headers)
    if isinstance(gate, Failure):
        return gate
    ctx, tenant_id = gate.data

    parsed = validate_input(UpdateEmployeeInput, payload)
    if isinstance(parsed, Failure):
        return parsed
    data = parsed.data

    with get_session_for_tenant(tenant_id) as tenant_db:
        try:
            employee = EmployeeService(tenant_db).update_employee(data)
            record_audit(tenant_db, ctx.user_id, "employee.updated", "Employee", employee.id)
            tenant_db.commit()
            return ok(numberify(employee.to_dict()))
        except EmployeeNotFoundError:
            tenant_db.rollback()
            return fail(ErrorCode.NOT_FOUND, NOT_FOUND_MESSAGE)
        except (DuplicateFiscalCodeError, IntegrityError):
            tenant_db.rollback()
            return fail(ErrorCode.CONFLICT, DUPLICATE_FISCAL_CODE_MESSAGE)
        except SQLAlchemyError as e:
            tenant_db.rollback()
            return internal_error(
                "update employee", e, user_id=ctx.user_id, tenant_id=tenant_id, employee_id=data.id
            )


def _set_employee_active(
    db: Session,
    headers: Mapping[str, str],
    employee_id: Any,
    active: bool,
) -> ActionResult[Dict[str, Any]]:
    gate = _require_employee_manager(db, headers)
    if isinstance(gate, Failure):
        return gate
    ctx, tenant_id = gate.data

    parsed = validate_input(EmployeeIdInput, {"id": employee_id})
    if isinstance(parsed, Failure):
        return parsed
    target_id = parsed.data.id

    operation = "reactivate employee" if active else "deactivate employee"

    with get_session_for_tenant(tenant_id) as tenant_db:
        service = EmployeeService(tenant_db)
        try:
            if active:
                employee = service.reactivate_employee(target_id)
            else:
                employee = service.deactivate_employee(target_id)
            record_audit(
                tenant_db, ctx.user_id,
                "employee.reactivated" if active else "employee.deactivated",
                "Employee", employee.id,
            )
            tenant_db.commit()
            return ok(numberify(employee.to_dict()))
        except EmployeeNotFoundError:
            tenant_db.rollback()
            return fail(ErrorCode.NOT_FOUND, NOT_FOUND_MESSAGE)
        except EmployeeStateError as e:
            tenant_db.rollback()
            return fail(ErrorCode.VALIDATION, str(e))
        except SQLAlchemyError as e:
            tenant_db.rollback()
            return internal_error(
                operation, e, user_id=ctx.user_id, tenant_id=tenant_id, employee_id=target_id
            )


def deactivate_employee_action(
    db: Session, headers: Mapping[str, str], employee_id: Any
) -> ActionResult[Dict[str, Any]]:
    return _set_employee_active(db, headers, employee_id, active=False)


def reactivate_employee_action(
    db: Session, headers: Mapping[str, str], employee_id: Any
) -> ActionResult[Dict[str, Any]]:
    return _set_employee_active(db, headers, employee_id, active=True)
