"""
Per-tenant feature switches.

A feature is enabled for a tenant only when a TenantFeature row says so;
a missing row means disabled.
"""

import logging
from enum import Enum
from typing import List, Optional

from sqlalchemy.orm import Session

from greenfleet.models.tenant_feature import TenantFeature
from greenfleet.platform.action_result import ErrorCode, Failure, fail

logger = logging.getLogger(__name__)


class FeatureKey(str, Enum):
    VEHICLES = "VEHICLES"
    CONTRACTS = "CONTRACTS"
    FUEL_RECORDS = "FUEL_RECORDS"
    EMISSIONS = "EMISSIONS"
    DASHBOARD_FM = "DASHBOARD_FM"
    DASHBOARD_DRIVER = "DASHBOARD_DRIVER"
    IMPORT_EXPORT = "IMPORT_EXPORT"
    CARLIST = "CARLIST"
    ADVANCED_REPORTS = "ADVANCED_REPORTS"
    ALERTS = "ALERTS"
    ESG_EXPORT = "ESG_EXPORT"
    AUDIT_LOG = "AUDIT_LOG"


def is_feature_enabled(db: Session, tenant_id: str, feature_key: FeatureKey) -> bool:
    enabled = db.query(TenantFeature.enabled).filter(
        TenantFeature.tenant_id == tenant_id,
        TenantFeature.feature_key == FeatureKey(feature_key).value,
    ).scalar()
    return bool(enabled)


def require_feature(db: Session, tenant_id: str, feature_key: FeatureKey) -> Optional[Failure]:
    """None when enabled, otherwise a FORBIDDEN failure to return as-is."""
    if is_feature_enabled(db, tenant_id, feature_key):
        return None
    logger.info(
        "Feature disabled for tenant",
        extra={"tenant_id": tenant_id, "feature_key": FeatureKey(feature_key).value},
    )
    return fail(
        ErrorCode.FORBIDDEN,
        f'Feature "{FeatureKey(feature_key).value}" is not enabled for this organization',
    )


def get_enabled_features(db: Session, tenant_id: str) -> List[FeatureKey]:
    rows = db.query(TenantFeature.feature_key).filter(
        TenantFeature.tenant_id == tenant_id,
        TenantFeature.enabled == True,  # noqa: E712
    ).order_by(TenantFeature.feature_key).all()

    features = []
    for (key,) in rows:
        try:
            features.append(FeatureKey(key))
        except ValueError:
            logger.warning("Unknown feature key stored", extra={"tenant_id": tenant_id, "feature_key": key})
    return features
