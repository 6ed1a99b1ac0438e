"""Socket.IO event payloads pushed to dashboards."""

from typing import Literal, Optional

from pydantic import BaseModel, Field

PumpValue = Literal["on", "off"]
ModeValue = Literal["auto", "manual"]


class SystemStatusPayload(BaseModel):
    """Payload for ``system_status`` events (same shape as the REST status)."""

    schema_version: int = Field(default=1)

    isOnline: bool
    lastHeartbeat: str
    pumpStatus: PumpValue
    currentMode: ModeValue


class SensorReadingPayload(BaseModel):
    """Payload for ``sensor_reading`` events."""

    schema_version: int = Field(default=1)

    id: int
    soil_humidity: float
    temperature: float
    air_humidity: float
    pump_status: PumpValue
    timestamp: str
    source: Optional[str] = Field(default="sensor_node")
