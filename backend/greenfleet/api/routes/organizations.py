"""Platform-admin organization switcher."""

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, Request
from sqlalchemy.orm import Session

from greenfleet.actions.tenants import list_organizations_action, switch_organization_action
from greenfleet.api.responses import render
from greenfleet.database.session import get_db_session

router = APIRouter(prefix="/api/admin/organizations", tags=["organizations"])


@router.get("")
async def list_organizations(request: Request, db: Session = Depends(get_db_session)):
    return render(list_organizations_action(db, request.headers))


@router.post("/switch")
async def switch_organization(
    request: Request,
    payload: Dict[str, Any] = Body(default={}),
    db: Session = Depends(get_db_session),
):
    return render(switch_organization_action(db, request.headers, payload.get("organization_id")))
