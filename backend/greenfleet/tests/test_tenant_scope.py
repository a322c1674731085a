"""
Tenant isolation tests for tenant-scoped sessions.

CRITICAL: These tests verify that a handle obtained for tenant A can never
read or write rows of tenant B.
"""

import pytest
from sqlalchemy import delete, insert, select, text, update

from greenfleet.database.tenant_scope import (
    TenantIsolationError,
    TenantScopedSession,
    _get_tenant_session_factory,
    get_session_for_tenant,
)
from greenfleet.models.audit_log import AuditLog
from greenfleet.models.employee import Employee
from greenfleet.models.organization import Organization


def _add_employee(tenant_id: str, first_name: str, fiscal_code: str = None) -> int:
    with get_session_for_tenant(tenant_id) as session:
        employee = Employee(
            first_name=first_name,
            last_name="Rossi",
            email=f"{first_name.lower()}@example.com",
            fiscal_code=fiscal_code,
            avg_monthly_km=1000,
        )
        session.add(employee)
        session.commit()
        return employee.id


@pytest.fixture
def two_tenants(make_org):
    tenant_a = make_org(name="Tenant A", slug="tenant-a")
    tenant_b = make_org(name="Tenant B", slug="tenant-b")
    a_ids = [_add_employee(tenant_a.id, "Anna"), _add_employee(tenant_a.id, "Alberto")]
    b_ids = [_add_employee(tenant_b.id, "Bruno")]
    return {"a": tenant_a.id, "b": tenant_b.id, "a_ids": a_ids, "b_ids": b_ids}


class TestHandleFactory:

    def test_empty_tenant_id_raises(self, db_engine):
        with pytest.raises(ValueError, match="tenant_id is required"):
            get_session_for_tenant("")

    def test_handle_is_bound_to_tenant(self, db_engine):
        with get_session_for_tenant("org_1") as session:
            assert isinstance(session, TenantScopedSession)
            assert session.tenant_id == "org_1"

    def test_factory_is_memoized_per_tenant(self, db_engine):
        assert _get_tenant_session_factory("org_1") is _get_tenant_session_factory("org_1")
        assert _get_tenant_session_factory("org_1") is not _get_tenant_session_factory("org_2")

    def test_each_call_returns_fresh_session(self, db_engine):
        first = get_session_for_tenant("org_1")
        second = get_session_for_tenant("org_1")
        try:
            assert first is not second
        finally:
            first.close()
            second.close()


@pytest.mark.security
class TestReadIsolation:

    def test_query_only_returns_own_rows(self, two_tenants):
        with get_session_for_tenant(two_tenants["a"]) as session:
            names = sorted(e.first_name for e in session.query(Employee).all())
        assert names == ["Alberto", "Anna"]

    def test_select_statement_is_scoped(self, two_tenants):
        with get_session_for_tenant(two_tenants["b"]) as session:
            rows = session.execute(select(Employee.id)).scalars().all()
        assert rows == two_tenants["b_ids"]

    def test_get_by_id_of_other_tenant_returns_none(self, two_tenants):
        with get_session_for_tenant(two_tenants["a"]) as session:
            assert session.get(Employee, two_tenants["b_ids"][0]) is None

    def test_explicit_filter_on_other_tenant_returns_nothing(self, two_tenants):
        with get_session_for_tenant(two_tenants["a"]) as session:
            rows = session.query(Employee).filter(Employee.tenant_id == two_tenants["b"]).all()
        assert rows == []

    def test_global_models_are_not_filtered(self, two_tenants):
        with get_session_for_tenant(two_tenants["a"]) as session:
            slugs = sorted(o.slug for o in session.query(Organization).all())
        assert slugs == ["tenant-a", "tenant-b"]

    @pytest.mark.parametrize("seed_a,seed_b", [
        (["Anna"], ["Bruno"]),
        (["Anna", "Alba", "Ada"], []),
        ([], ["Bruno", "Bice"]),
    ])
    def test_handles_never_cross(self, make_org, seed_a, seed_b):
        tenant_a = make_org(slug="iso-a")
        tenant_b = make_org(slug="iso-b")
        for name in seed_a:
            _add_employee(tenant_a.id, name)
        for name in seed_b:
            _add_employee(tenant_b.id, name)

        with get_session_for_tenant(tenant_a.id) as session:
            seen_a = session.query(Employee).all()
        with get_session_for_tenant(tenant_b.id) as session:
            seen_b = session.query(Employee).all()

        assert sorted(e.first_name for e in seen_a) == sorted(seed_a)
        assert sorted(e.first_name for e in seen_b) == sorted(seed_b)
        assert all(e.tenant_id == tenant_a.id for e in seen_a)
        assert all(e.tenant_id == tenant_b.id for e in seen_b)


@pytest.mark.security
class TestWriteIsolation:

    def test_new_rows_are_stamped_with_tenant(self, make_org):
        tenant = make_org()
        employee_id = _add_employee(tenant.id, "Carla")
        with get_session_for_tenant(tenant.id) as session:
            assert session.get(Employee, employee_id).tenant_id == tenant.id

    def test_insert_for_other_tenant_raises(self, two_tenants):
        with get_session_for_tenant(two_tenants["a"]) as session:
            session.add(Employee(
                tenant_id=two_tenants["b"],
                first_name="Mallory",
                last_name="X",
                email="m@example.com",
                avg_monthly_km=0,
            ))
            with pytest.raises(TenantIsolationError):
                session.commit()

    def test_reassigning_row_to_other_tenant_raises(self, two_tenants):
        with get_session_for_tenant(two_tenants["a"]) as session:
            employee = session.get(Employee, two_tenants["a_ids"][0])
            employee.tenant_id = two_tenants["b"]
            with pytest.raises(TenantIsolationError):
                session.commit()

    def test_bulk_update_is_scoped(self, two_tenants):
        with get_session_for_tenant(two_tenants["a"]) as session:
            session.execute(
                update(Employee).values(is_active=False).execution_options(synchronize_session=False)
            )
            session.commit()

        with get_session_for_tenant(two_tenants["b"]) as session:
            assert all(e.is_active for e in session.query(Employee).all())
        with get_session_for_tenant(two_tenants["a"]) as session:
            assert not any(e.is_active for e in session.query(Employee).all())

    def test_bulk_delete_is_scoped(self, two_tenants):
        with get_session_for_tenant(two_tenants["b"]) as session:
            session.query(Employee).delete(synchronize_session=False)
            session.commit()

        with get_session_for_tenant(two_tenants["a"]) as session:
            assert session.query(Employee).count() == 2
        with get_session_for_tenant(two_tenants["b"]) as session:
            assert session.query(Employee).count() == 0

    def test_delete_statement_cannot_reach_other_tenant(self, two_tenants):
        with get_session_for_tenant(two_tenants["a"]) as session:
            session.execute(
                delete(Employee)
                .where(Employee.id == two_tenants["b_ids"][0])
                .execution_options(synchronize_session=False)
            )
            session.commit()

        with get_session_for_tenant(two_tenants["b"]) as session:
            assert session.get(Employee, two_tenants["b_ids"][0]) is not None

    def test_orm_insert_with_wrong_tenant_raises(self, two_tenants):
        with get_session_for_tenant(two_tenants["a"]) as session:
            with pytest.raises(TenantIsolationError):
                session.execute(insert(AuditLog), [{
                    "tenant_id": two_tenants["b"],
                    "user_id": "u1",
                    "action": "x",
                    "entity_type": "Employee",
                    "entity_id": "1",
                }])

    def test_orm_insert_with_inline_values_raises(self, two_tenants):
        with get_session_for_tenant(two_tenants["a"]) as session:
            with pytest.raises(TenantIsolationError):
                session.execute(insert(AuditLog).values(
                    tenant_id=two_tenants["a"],
                    user_id="u1",
                    action="x",
                    entity_type="Employee",
                    entity_id="1",
                ))

    def test_raw_sql_is_rejected(self, two_tenants):
        with get_session_for_tenant(two_tenants["a"]) as session:
            with pytest.raises(TenantIsolationError, match="Raw SQL"):
                session.execute(text("SELECT * FROM employees"))

    def test_bulk_update_by_primary_key_is_rejected(self, two_tenants):
        with get_session_for_tenant(two_tenants["a"]) as session:
            with pytest.raises(TenantIsolationError, match="primary key"):
                session.execute(update(Employee), [
                    {"id": two_tenants["b_ids"][0], "first_name": "Mallory"},
                ])
            session.rollback()

        with get_session_for_tenant(two_tenants["b"]) as session:
            assert session.get(Employee, two_tenants["b_ids"][0]).first_name == "Bruno"

    def test_update_cannot_move_rows_to_other_tenant(self, two_tenants):
        with get_session_for_tenant(two_tenants["a"]) as session:
            with pytest.raises(TenantIsolationError, match="reassign"):
                session.execute(
                    update(Employee)
                    .values(tenant_id=two_tenants["b"])
                    .execution_options(synchronize_session=False)
                )
            session.rollback()

        with get_session_for_tenant(two_tenants["b"]) as session:
            assert [e.id for e in session.query(Employee).all()] == two_tenants["b_ids"]
        with get_session_for_tenant(two_tenants["a"]) as session:
            assert session.query(Employee).count() == 2

    def test_ordered_values_cannot_move_rows(self, two_tenants):
        with get_session_for_tenant(two_tenants["a"]) as session:
            with pytest.raises(TenantIsolationError, match="reassign"):
                session.execute(
                    update(Employee)
                    .ordered_values((Employee.tenant_id, two_tenants["b"]))
                    .execution_options(synchronize_session=False)
                )
