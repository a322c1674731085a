"""
Tests for tenant context resolution.

Tests cover:
- No session -> NotAuthenticatedError
- Session without active organization -> NoTenant, never raises
- Unknown / deactivated organization -> distinct faults
- Active organization -> ActiveTenant with a handle scoped to it
"""

import pytest

from greenfleet.database.tenant_scope import TenantScopedSession
from greenfleet.models.auth_session import AuthSession
from greenfleet.platform.tenant_context import (
    ActiveTenant,
    NoTenant,
    NotAuthenticatedError,
    TenantDeactivatedError,
    TenantNotFoundError,
    TenantResolutionError,
    get_tenant_context,
)


class TestNoSession:

    def test_missing_session_raises(self, db_session):
        with pytest.raises(NotAuthenticatedError):
            get_tenant_context(db_session, {})

    def test_unknown_token_raises(self, db_session):
        with pytest.raises(NotAuthenticatedError):
            get_tenant_context(db_session, {"Authorization": "Bearer not-a-real-token"})

    def test_expired_session_raises(self, db_session, make_user, login):
        headers = login(make_user(), ttl_hours=-1)
        with pytest.raises(NotAuthenticatedError):
            get_tenant_context(db_session, headers)


class TestNoTenant:

    def test_session_without_organization(self, db_session, make_user, login):
        context = get_tenant_context(db_session, login(make_user()))

        assert isinstance(context, NoTenant)
        assert context.has_tenant is False
        assert context.tenant_id is None
        assert context.db is None

    @pytest.mark.parametrize("stored_value", [None, ""])
    def test_blank_organization_is_no_tenant(self, db_session, make_user, login, stored_value):
        user = make_user()
        headers = login(user)
        auth_session = db_session.query(AuthSession).filter(AuthSession.user_id == user.id).one()
        auth_session.active_organization_id = stored_value
        db_session.commit()

        assert isinstance(get_tenant_context(db_session, headers), NoTenant)


class TestTenantFaults:

    def test_unknown_organization(self, db_session, make_user, login):
        headers = login(make_user(), active_organization_id="org_missing")

        with pytest.raises(TenantNotFoundError) as exc_info:
            get_tenant_context(db_session, headers)

        assert exc_info.value.tenant_id == "org_missing"
        assert str(exc_info.value) == "TENANT_NOT_FOUND"

    @pytest.mark.parametrize("role", ["owner", "admin", "member"])
    def test_deactivated_organization_regardless_of_role(
        self, db_session, make_user, make_org, make_member, login, role
    ):
        org = make_org(is_active=False)
        user = make_user()
        make_member(user, org, role=role)
        headers = login(user, active_organization_id=org.id)

        with pytest.raises(TenantDeactivatedError) as exc_info:
            get_tenant_context(db_session, headers)

        assert exc_info.value.tenant_id == org.id

    def test_faults_are_distinct(self):
        assert issubclass(TenantNotFoundError, TenantResolutionError)
        assert issubclass(TenantDeactivatedError, TenantResolutionError)
        assert not issubclass(TenantNotFoundError, TenantDeactivatedError)
        assert not issubclass(TenantDeactivatedError, TenantNotFoundError)


class TestActiveTenant:

    def test_active_organization(self, db_session, make_user, make_org, login):
        org = make_org(org_id="org_1", slug="org-1")
        context = get_tenant_context(db_session, login(make_user(), active_organization_id="org_1"))

        try:
            assert isinstance(context, ActiveTenant)
            assert context.has_tenant is True
            assert context.tenant_id == "org_1"
            assert isinstance(context.db, TenantScopedSession)
            assert context.db.tenant_id == org.id
        finally:
            context.db.close()

    def test_resolution_does_not_mutate_organization(self, db_session, make_user, make_org, login):
        org = make_org()
        headers = login(make_user(), active_organization_id=org.id)
        before = (org.name, org.is_active, org.updated_at)

        context = get_tenant_context(db_session, headers)
        context.db.close()

        db_session.expire_all()
        assert (org.name, org.is_active, org.updated_at) == before
