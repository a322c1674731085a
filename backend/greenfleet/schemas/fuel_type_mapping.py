"""Fuel type mapping input models."""

from pydantic import BaseModel, ConfigDict, Field


class CreateFuelTypeMappingInput(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    vehicle_fuel_type: str = Field(..., min_length=1, max_length=100)
    label: str = Field(..., min_length=1, max_length=100)
    scope: int = Field(..., ge=1, le=2)
    description: str = Field("", max_length=100)
