"""
Watering Decisions
==================
Outcome of one decision engine evaluation. Not persisted.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from app.enums import DecisionReason, WateringMode


@dataclass(frozen=True)
class WateringDecision:
    evaluated_at: datetime
    mode: WateringMode
    fired: bool
    reason: DecisionReason
    soil_humidity: Optional[float] = None
    humidity_threshold: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "evaluated_at": self.evaluated_at.isoformat(),
            "mode": self.mode.value,
            "fired": self.fired,
            "reason": self.reason.value,
            "soil_humidity": self.soil_humidity,
            "humidity_threshold": self.humidity_threshold,
        }
