"""
Audit trail for mutating operations.

Entries are added to the caller's tenant-scoped session so they commit (or
roll back) together with the change they describe.
"""

import logging
from typing import Any, Dict, Optional

from sqlalchemy import func

from greenfleet.database.tenant_scope import TenantScopedSession
from greenfleet.models.audit_log import AuditLog
from greenfleet.schemas.audit_log import AuditLogFilterInput

logger = logging.getLogger(__name__)


def record_audit(
    db: TenantScopedSession,
    user_id: str,
    action: str,
    entity_type: str,
    entity_id: Any,
    data: Optional[Dict[str, Any]] = None,
) -> AuditLog:
    entry = AuditLog(
        user_id=user_id,
        action=action,
        entity_type=entity_type,
        entity_id=str(entity_id),
        data=data,
    )
    db.add(entry)
    logger.debug(
        "Audit entry staged",
        extra={"tenant_id": db.tenant_id, "action": action, "entity_id": str(entity_id)},
    )
    return entry


def list_audit_entries(db: TenantScopedSession, filters: AuditLogFilterInput) -> Dict[str, Any]:
    """Newest first, paginated like the other list operations."""
    query = db.query(AuditLog)

    if filters.entity_type:
        query = query.filter(AuditLog.entity_type == filters.entity_type)
    if filters.user_id:
        query = query.filter(AuditLog.user_id == filters.user_id)
    if filters.action_type:
        query = query.filter(AuditLog.action.endswith(f".{filters.action_type}"))

    total_count = query.with_entities(func.count(AuditLog.id)).scalar() or 0
    rows = (
        query.order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
        .offset((filters.page - 1) * filters.page_size)
        .limit(filters.page_size)
        .all()
    )

    return {
        "data": [entry.to_dict() for entry in rows],
        "pagination": {
            "page": filters.page,
            "page_size": filters.page_size,
            "total_count": total_count,
            "total_pages": -(-total_count // filters.page_size),
        },
    }
