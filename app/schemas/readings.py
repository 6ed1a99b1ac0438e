"""
Reading Schemas
===============

Request models for the sensor node ingest endpoint and history queries.
Field names follow the node firmware payload (``soil``, ``temp``, ``hum``, ``pump``).
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.enums import PumpState


class SensorDataRequest(BaseModel):
    """One reading as posted by the sensor node."""

    model_config = ConfigDict(
        extra="ignore",
        json_schema_extra={"example": {"soil": 42.5, "temp": 21.3, "hum": 55.0, "pump": "off"}},
    )

    soil: float = Field(..., allow_inf_nan=False, description="Soil humidity (%)")
    temp: float = Field(..., allow_inf_nan=False, description="Temperature (C)")
    hum: float = Field(..., allow_inf_nan=False, description="Air humidity (%)")
    pump: PumpState = Field(..., description="Pump state reported by the node")
    timestamp: Optional[datetime] = Field(
        default=None,
        description="Capture time (ISO-8601). Server time is used when omitted.",
    )

    @field_validator("pump", mode="before")
    @classmethod
    def normalize_pump(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v


class HistoryQuery(BaseModel):
    """Query string for history and summary endpoints."""

    hours: float = Field(default=24, gt=0, allow_inf_nan=False, description="Window size in hours")
