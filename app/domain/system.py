"""
System Status
=============
Live, non-persisted view of device connectivity and pump state.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict

from app.enums import PumpState, WateringMode


@dataclass
class SystemStatus:
    """
    Snapshot of the monitored device.

    ``pump_status`` is the last command issued, not a confirmed physical
    state; the node has no acknowledgment channel.
    """
    is_online: bool
    last_heartbeat: datetime
    pump_status: PumpState = PumpState.OFF
    current_mode: WateringMode = WateringMode.AUTO

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary (dashboard wire format)"""
        return {
            "isOnline": self.is_online,
            "lastHeartbeat": self.last_heartbeat.isoformat(),
            "pumpStatus": self.pump_status.value,
            "currentMode": self.current_mode.value,
        }
