"""
Sensor Readings
===============
One sample reported by the sensor node. Immutable once stored.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from app.enums import PumpState
from app.utils.time import coerce_datetime


@dataclass(frozen=True)
class SensorReading:
    """A stored sample of soil humidity, temperature, air humidity and pump state."""
    id: int
    soil_humidity: float
    temperature: float
    air_humidity: float
    pump_status: PumpState
    captured_at: datetime

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "SensorReading":
        captured_at = coerce_datetime(row["captured_at"])
        if captured_at is None:
            raise ValueError(f"Unparseable capture time: {row['captured_at']!r}")
        return cls(
            id=int(row["id"]),
            soil_humidity=float(row["soil_humidity"]),
            temperature=float(row["temperature"]),
            air_humidity=float(row["air_humidity"]),
            pump_status=PumpState(row["pump_status"]),
            captured_at=captured_at,
        )

    def to_history_dict(self) -> Dict[str, Any]:
        """Chart representation (no id)."""
        return {
            "soil_humidity": self.soil_humidity,
            "temperature": self.temperature,
            "air_humidity": self.air_humidity,
            "pump_status": self.pump_status.value,
            "timestamp": self.captured_at.isoformat(),
        }

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, **self.to_history_dict()}


@dataclass(frozen=True)
class MetricSummary:
    average: Optional[float]
    minimum: Optional[float]
    maximum: Optional[float]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "avg": round(self.average, 1) if self.average is not None else None,
            "min": self.minimum,
            "max": self.maximum,
        }


@dataclass(frozen=True)
class ReadingSummary:
    """Aggregate statistics over a history window."""
    hours: float
    count: int
    soil_humidity: MetricSummary
    temperature: MetricSummary
    air_humidity: MetricSummary

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hours": self.hours,
            "count": self.count,
            "soil_humidity": self.soil_humidity.to_dict(),
            "temperature": self.temperature.to_dict(),
            "air_humidity": self.air_humidity.to_dict(),
        }
