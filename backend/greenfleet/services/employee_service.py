"""
Employee service.

Every method works through a TenantScopedSession: tenant filtering and
tenant_id stamping are done by the session, so nothing here mentions
tenant_id.
"""

import logging
from typing import Any, Dict, Optional

from sqlalchemy import func, or_

from greenfleet.database.tenant_scope import TenantScopedSession
from greenfleet.models.employee import Employee
from greenfleet.schemas.employee import CreateEmployeeInput, EmployeeFilterInput, UpdateEmployeeInput

logger = logging.getLogger(__name__)

_SORTABLE = {
    "first_name": Employee.first_name,
    "last_name": Employee.last_name,
    "email": Employee.email,
    "fiscal_code": Employee.fiscal_code,
    "created_at": Employee.created_at,
}


class EmployeeServiceError(Exception):
    """Base exception for employee service errors."""
    pass


class EmployeeNotFoundError(EmployeeServiceError):
    pass


class DuplicateFiscalCodeError(EmployeeServiceError):
    pass


class EmployeeStateError(EmployeeServiceError):
    """Raised for a state transition that does not apply (e.g. already inactive)."""
    pass


class EmployeeService:
    def __init__(self, session: TenantScopedSession):
        self.session = session

    def list_employees(self, filters: EmployeeFilterInput) -> Dict[str, Any]:
        """Paginated, filtered employees of the session's tenant."""
        query = self.session.query(Employee)

        if filters.is_active is not None:
            query = query.filter(Employee.is_active == filters.is_active)

        if filters.search and filters.search.strip():
            term = f"%{filters.search.strip()}%"
            query = query.filter(or_(
                Employee.first_name.ilike(term),
                Employee.last_name.ilike(term),
                Employee.email.ilike(term),
                Employee.fiscal_code.ilike(term),
            ))

        total_count = query.with_entities(func.count(Employee.id)).scalar() or 0

        column = _SORTABLE.get(filters.sort_by or "last_name")
        order = column.desc() if filters.sort_order == "desc" else column.asc()
        rows = (
            query.order_by(order, Employee.id)
            .offset((filters.page - 1) * filters.page_size)
            .limit(filters.page_size)
            .all()
        )

        return {
            "data": [e.to_dict() for e in rows],
            "pagination": {
                "page": filters.page,
                "page_size": filters.page_size,
                "total_count": total_count,
                "total_pages": -(-total_count // filters.page_size),
            },
        }

    def get_employee(self, employee_id: int) -> Optional[Employee]:
        return self.session.get(Employee, employee_id)

    def _require(self, employee_id: int) -> Employee:
        employee = self.get_employee(employee_id)
        if employee is None:
            raise EmployeeNotFoundError(f"Employee {employee_id} not found")
        return employee

    def _ensure_fiscal_code_free(self, fiscal_code: Optional[str], exclude_id: Optional[int] = None) -> None:
        if not fiscal_code:
            return
        query = self.session.query(Employee.id).filter(Employee.fiscal_code == fiscal_code)
        if exclude_id is not None:
            query = query.filter(Employee.id != exclude_id)
        if query.first() is not None:
            raise DuplicateFiscalCodeError(f"Fiscal code {fiscal_code} already registered")

    def create_employee(self, data: CreateEmployeeInput) -> Employee:
        """
        Stage a new employee (caller commits).

        Raises:
            DuplicateFiscalCodeError
        """
        self._ensure_fiscal_code_free(data.fiscal_code)
        employee = Employee(**data.model_dump(), is_active=True)
        self.session.add(employee)
        self.session.flush()
        return employee

    def update_employee(self, data: UpdateEmployeeInput) -> Employee:
        """
        Raises:
            EmployeeNotFoundError, DuplicateFiscalCodeError
        """
        employee = self._require(data.id)
        self._ensure_fiscal_code_free(data.fiscal_code, exclude_id=employee.id)
        for key, value in data.model_dump(exclude={"id"}).items():
            setattr(employee, key, value)
        self.session.flush()
        return employee

    def deactivate_employee(self, employee_id: int) -> Employee:
        """
        Raises:
            EmployeeNotFoundError, EmployeeStateError
        """
        employee = self._require(employee_id)
        if not employee.is_active:
            raise EmployeeStateError("Employee is already inactive")
        employee.is_active = False
        self.session.flush()
        return employee

    def reactivate_employee(self, employee_id: int) -> Employee:
        """
        Raises:
            EmployeeNotFoundError, EmployeeStateError
        """
        employee = self._require(employee_id)
        if employee.is_active:
            raise EmployeeStateError("Employee is already active")
        employee.is_active = True
        self.session.flush()
        return employee
