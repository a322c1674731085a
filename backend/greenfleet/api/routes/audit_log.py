"""Audit trail routes (fleet managers, AUDIT_LOG feature)."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from greenfleet.actions.audit_log import list_audit_log_action
from greenfleet.api.responses import render
from greenfleet.database.session import get_db_session

router = APIRouter(prefix="/api/audit-log", tags=["audit-log"])


@router.get("")
async def list_audit_log(request: Request, db: Session = Depends(get_db_session)):
    return render(list_audit_log_action(db, request.headers, dict(request.query_params)))
