"""
Tenant (organization) administration service.

Cross-tenant by nature: operates on the global session and is only reached
from operations gated by require_admin.

This service handles:
- Listing and looking up organizations
- Creating organizations and seeding their feature switches
- Renaming / re-slugging organizations
- Deactivating (and invalidating every session pointing at it) and reactivating
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from greenfleet.config.features import get_feature_config_loader
from greenfleet.models.auth_session import AuthSession
from greenfleet.models.member import Member
from greenfleet.models.organization import Organization
from greenfleet.models.tenant_feature import TenantFeature
from greenfleet.schemas.tenant import CreateTenantInput, UpdateTenantInput

logger = logging.getLogger(__name__)


class TenantServiceError(Exception):
    """Base exception for tenant service errors."""
    pass


class TenantNotFoundError(TenantServiceError):
    """Raised when the organization does not exist."""
    pass


class SlugExistsError(TenantServiceError):
    """Raised when another organization already uses the slug."""
    pass


class TenantService:
    """Create, update, deactivate and reactivate organizations."""

    def __init__(self, session: Session):
        self.session = session

    def _get(self, tenant_id: str) -> Organization:
        org = self.session.query(Organization).filter(Organization.id == tenant_id).first()
        if org is None:
            raise TenantNotFoundError(f"Organization {tenant_id} not found")
        return org

    def _ensure_slug_free(self, slug: str, exclude_id: Optional[str] = None) -> None:
        existing = self.get_tenant_by_slug(slug)
        if existing is not None and existing.id != exclude_id:
            raise SlugExistsError(f"Slug {slug} already in use")

    def list_tenants(self) -> List[Dict[str, Any]]:
        """All organizations, newest first, with member counts."""
        member_counts = dict(
            self.session.query(Member.organization_id, func.count(Member.id))
            .group_by(Member.organization_id)
            .all()
        )
        orgs = self.session.query(Organization).order_by(
            Organization.created_at.desc(), Organization.name
        ).all()
        return [
            {
                "id": org.id,
                "name": org.name,
                "slug": org.slug,
                "is_active": org.is_active,
                "is_demo": org.is_demo,
                "member_count": member_counts.get(org.id, 0),
                "created_at": org.created_at,
            }
            for org in orgs
        ]

    def list_active_organizations(self) -> List[Dict[str, Any]]:
        """Active organizations by name: the targets of an organization switch."""
        rows = self.session.query(Organization.id, Organization.name, Organization.slug).filter(
            Organization.is_active == True  # noqa: E712
        ).order_by(Organization.name).all()
        return [{"id": r.id, "name": r.name, "slug": r.slug} for r in rows]

    def get_tenant(self, tenant_id: str) -> Optional[Organization]:
        return self.session.query(Organization).filter(Organization.id == tenant_id).first()

    def get_tenant_by_slug(self, slug: str) -> Optional[Organization]:
        return self.session.query(Organization).filter(Organization.slug == slug).first()

    def create_tenant(self, data: CreateTenantInput) -> Organization:
        """
        Create an active organization and seed its default features.

        Raises:
            SlugExistsError: If the slug is taken
        """
        self._ensure_slug_free(data.slug)

        org = Organization(
            name=data.name,
            slug=data.slug,
            settings=data.metadata,
            is_active=True,
        )
        self.session.add(org)
        try:
            self.session.flush()
            self._seed_features(org.id)
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            raise SlugExistsError(f"Slug {data.slug} already in use")

        self.session.refresh(org)
        logger.info("Tenant created", extra={"tenant_id": org.id, "slug": org.slug})
        return org

    def update_tenant(self, data: UpdateTenantInput) -> Organization:
        """
        Raises:
            TenantNotFoundError, SlugExistsError
        """
        org = self._get(data.id)

        if data.slug is not None and data.slug != org.slug:
            self._ensure_slug_free(data.slug, exclude_id=org.id)
            org.slug = data.slug
        if data.name is not None:
            org.name = data.name
        if data.metadata is not None:
            org.settings = data.metadata

        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            raise SlugExistsError(f"Slug {data.slug} already in use")

        self.session.refresh(org)
        logger.info("Tenant updated", extra={"tenant_id": org.id})
        return org

    def deactivate_tenant(self, tenant_id: str, reason: Optional[str] = None) -> Organization:
        """
        Deactivate the organization and delete every session working in it.

        Raises:
            TenantNotFoundError
        """
        org = self._get(tenant_id)
        org.is_active = False

        # Intentionally cross-tenant: sessions are global rows
        invalidated = self.session.query(AuthSession).filter(
            AuthSession.active_organization_id == tenant_id
        ).delete(synchronize_session=False)

        self.session.commit()
        self.session.refresh(org)

        logger.info(
            "Tenant deactivated, sessions invalidated",
            extra={"tenant_id": tenant_id, "reason": reason, "sessions_invalidated": invalidated},
        )
        return org

    def reactivate_tenant(self, tenant_id: str) -> Organization:
        """
        Raises:
            TenantNotFoundError
        """
        org = self._get(tenant_id)
        org.is_active = True
        self.session.commit()
        self.session.refresh(org)
        logger.info("Tenant reactivated", extra={"tenant_id": tenant_id})
        return org

    def _seed_features(self, tenant_id: str) -> None:
        loader = get_feature_config_loader()
        defaults = set(loader.default_features())
        existing = {
            key for (key,) in self.session.query(TenantFeature.feature_key).filter(
                TenantFeature.tenant_id == tenant_id
            )
        }
        for key in loader.feature_keys:
            if key in existing:
                continue
            self.session.add(TenantFeature(
                tenant_id=tenant_id,
                feature_key=key,
                enabled=key in defaults,
            ))

    def initialize_tenant_features(self, tenant_id: str) -> None:
        """Create any missing feature rows with their catalogue defaults."""
        self._get(tenant_id)
        self._seed_features(tenant_id)
        self.session.commit()
        logger.info("Tenant features initialized", extra={"tenant_id": tenant_id})
