from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta

from app.services.application.status_register import StatusRegister

logger = logging.getLogger(__name__)

DEFAULT_OFFLINE_TIMEOUT = timedelta(minutes=5)


@dataclass
class LivenessMonitor:
    """Marks the device offline once no reading has arrived within ``offline_timeout``."""

    status_register: StatusRegister
    offline_timeout: timedelta = DEFAULT_OFFLINE_TIMEOUT

    def check(self) -> bool:
        """Run one staleness check. Returns True if the device just went offline."""
        went_offline = self.status_register.mark_offline_if_stale(self.offline_timeout)
        if went_offline:
            last = self.status_register.snapshot().last_heartbeat
            logger.warning(
                "Sensor node offline: no reading since %s (timeout %ss)",
                last.isoformat(),
                int(self.offline_timeout.total_seconds()),
            )
        return went_offline
