"""
Control Schemas
===============

Request models for operator commands and watering settings.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from app.enums import PumpState, WateringMode


def _lower(v):
    if isinstance(v, str):
        return v.strip().lower()
    return v


class CommandRequest(BaseModel):
    """Pump and/or mode command. At least one of the two is required."""

    model_config = ConfigDict(extra="ignore")

    pump: Optional[PumpState] = None
    mode: Optional[WateringMode] = None

    @field_validator("pump", "mode", mode="before")
    @classmethod
    def normalize(cls, v):
        return _lower(v)

    @model_validator(mode="after")
    def require_one(self):
        if self.pump is None and self.mode is None:
            raise ValueError("Missing pump or mode command")
        return self


class SettingsUpdateRequest(BaseModel):
    """Partial settings update; omitted fields keep their stored value."""

    model_config = ConfigDict(
        extra="ignore",
        json_schema_extra={"example": {"humidity_threshold": 40, "watering_mode": "auto"}},
    )

    humidity_threshold: Optional[int] = Field(default=None, ge=0, le=100, description="Soil humidity threshold (%)")
    watering_mode: Optional[WateringMode] = None
    scheduled_interval: Optional[int] = Field(default=None, ge=1, description="Display interval (hours)")

    @field_validator("watering_mode", mode="before")
    @classmethod
    def normalize_mode(cls, v):
        return _lower(v)
