"""Fuel type mapping catalogue routes."""

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, Request
from sqlalchemy.orm import Session

from greenfleet.actions.fuel_type_mappings import create_fuel_type_mapping_action, list_fuel_type_mappings_action
from greenfleet.api.responses import render
from greenfleet.database.session import get_db_session

router = APIRouter(prefix="/api/fuel-type-mappings", tags=["fuel-type-mappings"])


@router.get("")
async def list_fuel_type_mappings(request: Request, db: Session = Depends(get_db_session)):
    return render(list_fuel_type_mappings_action(db, request.headers))


@router.post("")
async def create_fuel_type_mapping(
    request: Request,
    payload: Dict[str, Any] = Body(default={}),
    db: Session = Depends(get_db_session),
):
    return render(create_fuel_type_mapping_action(db, request.headers, payload))
