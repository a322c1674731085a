"""
Session routes: which organization is the caller working in?

Tenant resolution faults (no session, unknown or deactivated organization)
are not caught here; the application's exception handler renders them.
"""

import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from greenfleet.database.session import get_db_session
from greenfleet.platform.tenant_context import ActiveTenant, get_tenant_context
from greenfleet.services.feature_guard import get_enabled_features

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/session", tags=["session"])


@router.get("/tenant")
async def get_session_tenant(request: Request, db: Session = Depends(get_db_session)):
    context = get_tenant_context(db, request.headers)

    if not isinstance(context, ActiveTenant):
        return {"has_tenant": False, "tenant_id": None, "enabled_features": []}

    try:
        features = get_enabled_features(db, context.tenant_id)
    finally:
        context.db.close()

    return {
        "has_tenant": True,
        "tenant_id": context.tenant_id,
        "enabled_features": [f.value for f in features],
    }
