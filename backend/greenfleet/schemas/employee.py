"""
Employee input models.

fiscal_code is the Italian codice fiscale: trimmed and upper-cased before
the format check; an empty string means "not provided".
"""

import re
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_PAGE_SIZE = 20

ITALIAN_CF_REGEX = re.compile(r"^[A-Z]{6}[0-9]{2}[A-Z][0-9]{2}[A-Z][0-9]{3}[A-Z]$")
EMAIL_REGEX = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class CreateEmployeeInput(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    first_name: str = Field(..., max_length=100)
    last_name: str = Field(..., max_length=100)
    email: str = Field(..., max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    fiscal_code: Optional[str] = None
    matricola: Optional[str] = Field(None, max_length=50)
    avg_monthly_km: int = Field(..., ge=0)

    @field_validator("first_name")
    @classmethod
    def first_name_required(cls, v: str) -> str:
        if not v:
            raise ValueError("First name is required")
        return v

    @field_validator("last_name")
    @classmethod
    def last_name_required(cls, v: str) -> str:
        if not v:
            raise ValueError("Last name is required")
        return v

    @field_validator("email")
    @classmethod
    def valid_email(cls, v: str) -> str:
        if not v:
            raise ValueError("Email is required")
        if not EMAIL_REGEX.match(v):
            raise ValueError("Invalid email address")
        return v.lower()

    @field_validator("fiscal_code", mode="before")
    @classmethod
    def normalize_fiscal_code(cls, v):
        if v is None:
            return None
        v = str(v).strip().upper()
        return v or None

    @field_validator("fiscal_code")
    @classmethod
    def valid_fiscal_code(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not ITALIAN_CF_REGEX.match(v):
            raise ValueError("Invalid fiscal code (format: RSSMRA85M01H501Z)")
        return v

    @field_validator("matricola", "phone")
    @classmethod
    def empty_to_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None


class UpdateEmployeeInput(CreateEmployeeInput):
    id: int = Field(..., ge=1)


class EmployeeFilterInput(BaseModel):
    search: Optional[str] = None
    is_active: Optional[bool] = None
    page: int = Field(1, ge=1)
    page_size: int = Field(DEFAULT_PAGE_SIZE, ge=1, le=100)
    sort_by: Optional[Literal["first_name", "last_name", "email", "fiscal_code", "created_at"]] = None
    sort_order: Optional[Literal["asc", "desc"]] = None


class EmployeeIdInput(BaseModel):
    id: int = Field(..., ge=1)
