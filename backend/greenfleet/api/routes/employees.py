"""
Employee routes.

Request bodies are passed to the actions untouched; validation happens
there so every rejection comes back in the ActionResult envelope.
"""

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, Request
from sqlalchemy.orm import Session

from greenfleet.actions.employees import (
    create_employee_action,
    deactivate_employee_action,
    list_employees_action,
    reactivate_employee_action,
    update_employee_action,
)
from greenfleet.api.responses import render
from greenfleet.database.session import get_db_session

router = APIRouter(prefix="/api/employees", tags=["employees"])


@router.get("")
async def list_employees(request: Request, db: Session = Depends(get_db_session)):
    # Query strings arrive as text; the filter model coerces them
    return render(list_employees_action(db, request.headers, dict(request.query_params)))


@router.post("")
async def create_employee(
    request: Request,
    payload: Dict[str, Any] = Body(default={}),
    db: Session = Depends(get_db_session),
):
    return render(create_employee_action(db, request.headers, payload))


@router.put("/{employee_id}")
async def update_employee(
    employee_id: str,
    request: Request,
    payload: Dict[str, Any] = Body(default={}),
    db: Session = Depends(get_db_session),
):
    return render(update_employee_action(db, request.headers, {**payload, "id": employee_id}))


@router.post("/{employee_id}/deactivate")
async def deactivate_employee(employee_id: str, request: Request, db: Session = Depends(get_db_session)):
    return render(deactivate_employee_action(db, request.headers, employee_id))


@router.post("/{employee_id}/reactivate")
async def reactivate_employee(employee_id: str, request: Request, db: Session = Depends(get_db_session)):
    return render(reactivate_employee_action(db, request.headers, employee_id))
