"""Organization (tenant) administration input models."""

import re
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

SLUG_REGEX = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")


def _check_slug(v: str) -> str:
    if not SLUG_REGEX.match(v):
        raise ValueError("Slug must be kebab-case (e.g. my-company)")
    return v


class CreateTenantInput(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=2, max_length=100)
    slug: str = Field(..., min_length=2, max_length=50)
    metadata: Optional[Dict[str, Any]] = None

    @field_validator("slug")
    @classmethod
    def valid_slug(cls, v: str) -> str:
        return _check_slug(v)


class UpdateTenantInput(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(..., min_length=1)
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    slug: Optional[str] = Field(None, min_length=2, max_length=50)
    metadata: Optional[Dict[str, Any]] = None

    @field_validator("slug")
    @classmethod
    def valid_slug(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return _check_slug(v)


class DeactivateTenantInput(BaseModel):
    id: str = Field(..., min_length=1)
    reason: Optional[str] = Field(None, max_length=500)
