"""
Root test configuration and fixtures.

Every test gets a fresh SQLite in-memory database installed as the process
engine, so the untenanted sessions and the tenant-scoped sessions created
by the code under test all see the same data.

Factories:
- make_user / make_org / make_member: seed identity and tenancy rows
- login: create an AuthSession and return request headers carrying it
"""

import os
import tempfile
from pathlib import Path
from typing import Callable, Dict, Generator, Optional

import pytest
import yaml
from sqlalchemy import create_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

# Set test environment
os.environ.setdefault("ENV", "test")

from greenfleet.auth.session_provider import create_session
from greenfleet.config.features import reset_feature_config_loader
from greenfleet.database.session import get_session_factory, set_engine
from greenfleet.db_base import Base
from greenfleet.models import Member, Organization, User
from greenfleet.services.fuel_type_labels import invalidate_fuel_type_label_cache


@pytest.fixture(scope="function")
def db_engine():
    """SQLite in-memory engine shared by every session in the test."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    import greenfleet.models  # noqa: F401 - register all tables

    Base.metadata.create_all(bind=engine)
    set_engine(engine)

    yield engine

    set_engine(None)
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(db_engine) -> Generator[Session, None, None]:
    """Untenanted session, the same kind a request receives."""
    session = get_session_factory()()
    yield session
    session.close()


@pytest.fixture(autouse=True)
def _reset_process_state():
    """Process-wide caches must not leak between tests."""
    invalidate_fuel_type_label_cache()
    reset_feature_config_loader()
    yield
    invalidate_fuel_type_label_cache()
    reset_feature_config_loader()


# =============================================================================
# Factories
# =============================================================================


@pytest.fixture
def make_user(db_session) -> Callable[..., User]:
    counter = {"n": 0}

    def _make(email: Optional[str] = None, name: str = "Test User") -> User:
        counter["n"] += 1
        user = User(email=email or f"user{counter['n']}@example.com", name=name)
        db_session.add(user)
        db_session.commit()
        return user

    return _make


@pytest.fixture
def make_org(db_session) -> Callable[..., Organization]:
    counter = {"n": 0}

    def _make(
        name: Optional[str] = None,
        slug: Optional[str] = None,
        is_active: bool = True,
        is_demo: bool = False,
        org_id: Optional[str] = None,
    ) -> Organization:
        counter["n"] += 1
        org = Organization(
            name=name or f"Fleet {counter['n']}",
            slug=slug or f"fleet-{counter['n']}",
            is_active=is_active,
            is_demo=is_demo,
        )
        if org_id:
            org.id = org_id
        db_session.add(org)
        db_session.commit()
        return org

    return _make


@pytest.fixture
def make_member(db_session) -> Callable[..., Member]:
    def _make(user: User, org: Organization, role: str = "member") -> Member:
        member = Member(user_id=user.id, organization_id=org.id, role=role)
        db_session.add(member)
        db_session.commit()
        return member

    return _make


@pytest.fixture
def login(db_session) -> Callable[..., Dict[str, str]]:
    """
    Create a session for the user and return headers carrying its token.

    Usage:
        headers = login(user, active_organization_id=org.id)
    """
    def _login(
        user: User,
        active_organization_id: Optional[str] = None,
        ttl_hours: Optional[int] = None,
    ) -> Dict[str, str]:
        token, _ = create_session(
            db_session,
            user.id,
            active_organization_id=active_organization_id,
            ttl_hours=ttl_hours,
        )
        return {"Authorization": f"Bearer {token}"}

    return _login


@pytest.fixture
def fleet_manager(make_user, make_org, make_member, login):
    """An active organization with an admin member logged into it."""
    org = make_org(name="Acme Fleet", slug="acme-fleet")
    user = make_user(email="manager@acme.example")
    make_member(user, org, role="admin")
    return {"org": org, "user": user, "headers": login(user, active_organization_id=org.id)}


# =============================================================================
# Markers
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "security: mark test as security-focused")
    config.addinivalue_line("markers", "slow: mark test as slow-running")


# =============================================================================
# Shared Config Fixtures
# =============================================================================


@pytest.fixture
def temp_config_dir():
    """Create a temporary directory for YAML config files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def make_yaml_config(temp_config_dir):
    """
    Factory fixture that writes a YAML config file and returns its path.

    Usage:
        config_path = make_yaml_config("tenant_features.yml", {"features": {...}})
    """
    def _make(filename: str, config: dict) -> Path:
        config_path = temp_config_dir / filename
        with open(config_path, "w") as f:
            yaml.dump(config, f)
        return config_path
    return _make
