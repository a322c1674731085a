"""
Organization administration routes.

SECURITY: every endpoint requires an admin or owner membership in at least
one organization (require_admin inside the actions).
"""

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, Request
from sqlalchemy.orm import Session

from greenfleet.actions.tenants import (
    create_tenant_action,
    deactivate_tenant_action,
    list_tenants_action,
    reactivate_tenant_action,
    update_tenant_action,
)
from greenfleet.api.responses import render
from greenfleet.database.session import get_db_session

router = APIRouter(prefix="/api/admin/tenants", tags=["admin-tenants"])


@router.get("")
async def list_tenants(request: Request, db: Session = Depends(get_db_session)):
    return render(list_tenants_action(db, request.headers))


@router.post("")
async def create_tenant(
    request: Request,
    payload: Dict[str, Any] = Body(default={}),
    db: Session = Depends(get_db_session),
):
    return render(create_tenant_action(db, request.headers, payload))


@router.patch("/{tenant_id}")
async def update_tenant(
    tenant_id: str,
    request: Request,
    payload: Dict[str, Any] = Body(default={}),
    db: Session = Depends(get_db_session),
):
    return render(update_tenant_action(db, request.headers, {**payload, "id": tenant_id}))


@router.post("/{tenant_id}/deactivate")
async def deactivate_tenant(
    tenant_id: str,
    request: Request,
    payload: Dict[str, Any] = Body(default={}),
    db: Session = Depends(get_db_session),
):
    return render(deactivate_tenant_action(
        db, request.headers, {"id": tenant_id, "reason": payload.get("reason")}
    ))


@router.post("/{tenant_id}/reactivate")
async def reactivate_tenant(tenant_id: str, request: Request, db: Session = Depends(get_db_session)):
    return render(reactivate_tenant_action(db, request.headers, tenant_id))
