"""
Tests for audit trail reads.

Tests cover:
- Gate order: UNAUTHORIZED, FORBIDDEN for non-admins, FORBIDDEN while the
  AUDIT_LOG feature is disabled
- Entries come from the caller's tenant only, newest first
- Filters on entity type and action verb
"""

import pytest

from greenfleet.actions.audit_log import list_audit_log_action
from greenfleet.actions.employees import create_employee_action, deactivate_employee_action
from greenfleet.models.tenant_feature import TenantFeature
from greenfleet.platform.action_result import ErrorCode, Failure, Success
from greenfleet.services.feature_guard import FeatureKey


def _enable_audit_log(db_session, org):
    db_session.add(TenantFeature(tenant_id=org.id, feature_key=FeatureKey.AUDIT_LOG.value, enabled=True))
    db_session.commit()


def _create_employee(db_session, headers, first_name, email):
    result = create_employee_action(db_session, headers, {
        "first_name": first_name,
        "last_name": "Rossi",
        "email": email,
        "avg_monthly_km": 100,
    })
    assert isinstance(result, Success)
    return result.data


@pytest.fixture
def audited_manager(db_session, fleet_manager):
    _enable_audit_log(db_session, fleet_manager["org"])
    return fleet_manager


class TestGate:

    def test_unauthenticated(self, db_session):
        assert list_audit_log_action(db_session, {}).code == ErrorCode.UNAUTHORIZED

    def test_feature_disabled_is_forbidden(self, db_session, fleet_manager):
        result = list_audit_log_action(db_session, fleet_manager["headers"])

        assert isinstance(result, Failure)
        assert result.code == ErrorCode.FORBIDDEN
        assert "AUDIT_LOG" in result.error

    def test_driver_is_forbidden(self, db_session, audited_manager, make_user, make_member, login):
        driver = make_user()
        make_member(driver, audited_manager["org"], role="member")

        result = list_audit_log_action(
            db_session, login(driver, active_organization_id=audited_manager["org"].id)
        )

        assert result.code == ErrorCode.FORBIDDEN

    def test_invalid_filters(self, db_session, audited_manager):
        result = list_audit_log_action(db_session, audited_manager["headers"], {"page": "0"})
        assert result.code == ErrorCode.VALIDATION


class TestEntries:

    def test_newest_first(self, db_session, audited_manager):
        headers = audited_manager["headers"]
        employee = _create_employee(db_session, headers, "Anna", "anna@example.com")
        deactivate_employee_action(db_session, headers, employee["id"])

        result = list_audit_log_action(db_session, headers)

        assert [e["action"] for e in result.data["data"]] == ["employee.deactivated", "employee.created"]
        assert result.data["pagination"]["total_count"] == 2
        assert result.data["data"][1]["data"] == {"name": "Anna Rossi"}

    def test_filter_by_action_verb(self, db_session, audited_manager):
        headers = audited_manager["headers"]
        employee = _create_employee(db_session, headers, "Anna", "anna@example.com")
        deactivate_employee_action(db_session, headers, employee["id"])

        result = list_audit_log_action(db_session, headers, {"action_type": "created", "entity_type": "Employee"})

        assert [e["entity_id"] for e in result.data["data"]] == [str(employee["id"])]

    @pytest.mark.security
    def test_other_tenant_entries_are_invisible(
        self, db_session, audited_manager, make_user, make_org, make_member, login
    ):
        other = make_org()
        _enable_audit_log(db_session, other)
        other_admin = make_user()
        make_member(other_admin, other, role="admin")
        other_headers = login(other_admin, active_organization_id=other.id)
        _create_employee(db_session, other_headers, "Bruno", "bruno@example.com")

        mine = list_audit_log_action(db_session, audited_manager["headers"])
        theirs = list_audit_log_action(db_session, other_headers)

        assert mine.data["data"] == []
        assert [e["tenant_id"] for e in theirs.data["data"]] == [other.id]
