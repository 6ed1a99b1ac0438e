"""
Watering Settings
=================
Operator-configured policy. Exactly one logical record exists; the latest row wins.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from app.enums import WateringMode
from app.utils.time import coerce_datetime

DEFAULT_HUMIDITY_THRESHOLD = 30
DEFAULT_WATERING_MODE = WateringMode.AUTO
DEFAULT_SCHEDULED_INTERVAL = 12


@dataclass(frozen=True)
class WateringSettings:
    """
    Current watering policy.

    ``scheduled_interval`` (hours) is stored and displayed only; the decision
    tick runs on its own fixed cadence.
    """
    humidity_threshold: int
    watering_mode: WateringMode
    scheduled_interval: int
    last_updated: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "WateringSettings":
        return cls(
            humidity_threshold=int(row["humidity_threshold"]),
            watering_mode=WateringMode(row["watering_mode"]),
            scheduled_interval=int(row["scheduled_interval"]),
            last_updated=coerce_datetime(row.get("last_updated")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "humidity_threshold": self.humidity_threshold,
            "watering_mode": self.watering_mode.value,
            "scheduled_interval": self.scheduled_interval,
            "last_updated": self.last_updated.isoformat() if self.last_updated else None,
        }


DEFAULT_SETTINGS = WateringSettings(
    humidity_threshold=DEFAULT_HUMIDITY_THRESHOLD,
    watering_mode=DEFAULT_WATERING_MODE,
    scheduled_interval=DEFAULT_SCHEDULED_INTERVAL,
)
