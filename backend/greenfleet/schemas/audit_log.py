"""Audit log query models."""

from typing import Optional

from pydantic import BaseModel, Field

from greenfleet.schemas.employee import DEFAULT_PAGE_SIZE


class AuditLogFilterInput(BaseModel):
    entity_type: Optional[str] = Field(None, max_length=100)
    user_id: Optional[str] = Field(None, max_length=255)
    # Matches the verb after the dot: "employee.created" -> "created"
    action_type: Optional[str] = Field(None, max_length=50)
    page: int = Field(1, ge=1)
    page_size: int = Field(DEFAULT_PAGE_SIZE, ge=1, le=100)
