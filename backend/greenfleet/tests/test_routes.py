"""
HTTP surface tests.

Every route renders an ActionResult: 200 on success, otherwise the status
mapped from its error code. Tenant resolution faults are rendered by the
application exception handler.
"""

import pytest
from fastapi.testclient import TestClient

from greenfleet.database.session import get_db_session
from greenfleet.models.tenant_feature import TenantFeature
from greenfleet.services.feature_guard import FeatureKey
from main import app


@pytest.fixture
def client(db_session):
    def _override():
        yield db_session

    app.dependency_overrides[get_db_session] = _override
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


class TestHealth:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "database": "ok"}


class TestSessionTenant:

    def test_unauthenticated_is_401(self, client):
        response = client.get("/api/session/tenant")
        assert response.status_code == 401
        assert response.json()["code"] == "NotAuthenticatedError"

    def test_no_tenant(self, client, make_user, login):
        response = client.get("/api/session/tenant", headers=login(make_user()))
        assert response.status_code == 200
        assert response.json() == {"has_tenant": False, "tenant_id": None, "enabled_features": []}

    def test_deactivated_tenant_is_403(self, client, make_user, make_org, login):
        org = make_org(is_active=False)
        response = client.get("/api/session/tenant", headers=login(make_user(), active_organization_id=org.id))

        assert response.status_code == 403
        assert response.json() == {
            "success": False,
            "error": "TENANT_DEACTIVATED",
            "code": "TenantDeactivatedError",
        }

    def test_unknown_tenant_is_409(self, client, make_user, login):
        response = client.get(
            "/api/session/tenant", headers=login(make_user(), active_organization_id="org_gone")
        )
        assert response.status_code == 409
        assert response.json()["error"] == "TENANT_NOT_FOUND"

    def test_active_tenant(self, client, fleet_manager):
        response = client.get("/api/session/tenant", headers=fleet_manager["headers"])

        assert response.status_code == 200
        assert response.json()["has_tenant"] is True
        assert response.json()["tenant_id"] == fleet_manager["org"].id

    def test_cookie_session(self, client, fleet_manager):
        token = fleet_manager["headers"]["Authorization"].split(" ", 1)[1]

        response = client.get(
            "/api/session/tenant", headers={"Cookie": f"greenfleet.session_token={token}"}
        )

        assert response.json()["tenant_id"] == fleet_manager["org"].id


class TestEmployeeRoutes:

    PAYLOAD = {
        "first_name": "Giulia",
        "last_name": "Verdi",
        "email": "giulia@example.com",
        "avg_monthly_km": 800,
    }

    def test_create_and_list(self, client, fleet_manager):
        headers = fleet_manager["headers"]

        created = client.post("/api/employees", json=self.PAYLOAD, headers=headers)
        assert created.status_code == 200
        body = created.json()
        assert body["success"] is True
        assert body["data"]["avg_monthly_km"] == 800

        listed = client.get("/api/employees", params={"is_active": "true"}, headers=headers)
        assert listed.status_code == 200
        assert [e["first_name"] for e in listed.json()["data"]["data"]] == ["Giulia"]

    def test_unauthenticated_is_401(self, client):
        response = client.post("/api/employees", json=self.PAYLOAD)
        assert response.status_code == 401
        assert response.json() == {"success": False, "error": "Not authenticated", "code": "UNAUTHORIZED"}

    def test_validation_is_400(self, client, fleet_manager):
        response = client.post(
            "/api/employees", json={**self.PAYLOAD, "email": "nope"}, headers=fleet_manager["headers"]
        )
        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION"

    def test_update_unknown_is_404(self, client, fleet_manager):
        response = client.put("/api/employees/999", json=self.PAYLOAD, headers=fleet_manager["headers"])
        assert response.status_code == 404

    def test_deactivate_flow(self, client, fleet_manager):
        headers = fleet_manager["headers"]
        employee_id = client.post("/api/employees", json=self.PAYLOAD, headers=headers).json()["data"]["id"]

        first = client.post(f"/api/employees/{employee_id}/deactivate", headers=headers)
        second = client.post(f"/api/employees/{employee_id}/deactivate", headers=headers)
        reactivated = client.post(f"/api/employees/{employee_id}/reactivate", headers=headers)

        assert first.status_code == 200
        assert first.json()["data"]["is_active"] is False
        assert second.status_code == 400
        assert reactivated.json()["data"]["is_active"] is True


class TestAdminRoutes:

    @pytest.fixture
    def owner_headers(self, make_user, make_org, make_member, login):
        org = make_org(slug="hq")
        owner = make_user()
        make_member(owner, org, role="owner")
        return login(owner, active_organization_id=org.id)

    def test_tenant_lifecycle(self, client, owner_headers):
        created = client.post(
            "/api/admin/tenants", json={"name": "Delta Fleet", "slug": "delta-fleet"}, headers=owner_headers
        )
        assert created.status_code == 200
        tenant_id = created.json()["data"]["id"]

        conflict = client.post(
            "/api/admin/tenants", json={"name": "Delta Again", "slug": "delta-fleet"}, headers=owner_headers
        )
        assert conflict.status_code == 409

        renamed = client.patch(f"/api/admin/tenants/{tenant_id}", json={"name": "Delta Logistics"}, headers=owner_headers)
        assert renamed.json()["data"]["name"] == "Delta Logistics"

        deactivated = client.post(
            f"/api/admin/tenants/{tenant_id}/deactivate", json={"reason": "test"}, headers=owner_headers
        )
        assert deactivated.status_code == 200

        reactivated = client.post(f"/api/admin/tenants/{tenant_id}/reactivate", headers=owner_headers)
        assert reactivated.json() == {"success": True, "data": {"id": tenant_id}}

    def test_driver_is_403(self, client, make_user, make_org, make_member, login):
        driver = make_user()
        make_member(driver, make_org(), role="member")

        response = client.get("/api/admin/tenants", headers=login(driver))

        assert response.status_code == 403

    def test_switch_organization(self, client, owner_headers, make_org):
        target = make_org(name="Target Co", slug="target-co")

        listed = client.get("/api/admin/organizations", headers=owner_headers)
        switched = client.post(
            "/api/admin/organizations/switch", json={"organization_id": target.id}, headers=owner_headers
        )
        current = client.get("/api/session/tenant", headers=owner_headers)

        assert "Target Co" in [o["name"] for o in listed.json()["data"]]
        assert switched.json() == {"success": True, "data": None}
        assert current.json()["tenant_id"] == target.id

    def test_fuel_type_mapping(self, client, owner_headers):
        created = client.post(
            "/api/fuel-type-mappings",
            json={"vehicle_fuel_type": "BENZINA", "label": "Petrol", "scope": 1},
            headers=owner_headers,
        )
        listed = client.get("/api/fuel-type-mappings", headers=owner_headers)

        assert created.status_code == 200
        assert listed.json()["data"]["labels"] == {"BENZINA": "Petrol"}


class TestAuditLogRoutes:

    def test_disabled_feature_is_403(self, client, fleet_manager):
        response = client.get("/api/audit-log", headers=fleet_manager["headers"])
        assert response.status_code == 403

    def test_lists_entries(self, client, db_session, fleet_manager):
        db_session.add(TenantFeature(
            tenant_id=fleet_manager["org"].id, feature_key=FeatureKey.AUDIT_LOG.value, enabled=True
        ))
        db_session.commit()
        headers = fleet_manager["headers"]
        client.post("/api/employees", json=TestEmployeeRoutes.PAYLOAD, headers=headers)

        response = client.get("/api/audit-log", params={"entity_type": "Employee"}, headers=headers)

        assert response.status_code == 200
        assert [e["action"] for e in response.json()["data"]["data"]] == ["employee.created"]
