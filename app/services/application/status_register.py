"""
Status Register
===============

Owns the live :class:`~app.domain.system.SystemStatus` of the monitored device.

One instance is created by the service container and handed to every
collaborator that reads or writes device state. All mutators are serialised
by a single lock and each one is a complete transition, so a snapshot never
observes a half-applied write.

Liveness rules:
    - ``is_online`` goes false only through :meth:`mark_offline_if_stale`
      (called by the liveness monitor).
    - ``is_online`` goes true only through :meth:`mark_heartbeat`
      (called when a reading is ingested).
"""

from __future__ import annotations

import logging
import threading
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Callable, Optional

from app.domain.system import SystemStatus
from app.enums import PumpState, WateringMode
from app.utils.concurrency import synchronized
from app.utils.time import utc_now

logger = logging.getLogger(__name__)

StatusListener = Callable[[SystemStatus], None]


class StatusRegister:
    """Lock-guarded holder of the device status snapshot."""

    def __init__(
        self,
        *,
        initial_mode: WateringMode = WateringMode.AUTO,
        clock: Callable[[], datetime] = utc_now,
        on_change: Optional[StatusListener] = None,
    ) -> None:
        self._lock = threading.Lock()
        self._clock = clock
        self._on_change = on_change
        # Optimistic default: the node is assumed online until the first staleness check.
        self._status = SystemStatus(
            is_online=True,
            last_heartbeat=clock(),
            pump_status=PumpState.OFF,
            current_mode=WateringMode(initial_mode),
        )

    # --- Mutators -------------------------------------------------------------

    def mark_heartbeat(self, pump_state: PumpState) -> SystemStatus:
        """Record that the node just reported, along with its pump state."""
        snapshot = self._apply(
            last_heartbeat=self._clock(),
            pump_status=PumpState(pump_state),
            is_online=True,
        )
        self._notify(snapshot)
        return snapshot

    def set_mode(self, mode: WateringMode) -> SystemStatus:
        snapshot = self._apply(current_mode=WateringMode(mode))
        self._notify(snapshot)
        return snapshot

    def set_pump(self, state: PumpState) -> SystemStatus:
        snapshot = self._apply(pump_status=PumpState(state))
        self._notify(snapshot)
        return snapshot

    def set_pump_if_mode(self, state: PumpState, mode: WateringMode) -> bool:
        """Set the pump only while the live mode is still ``mode``.

        The mode check and the write happen under one lock hold. Returns False,
        leaving the status untouched, when the mode has changed.
        """
        snapshot = self._apply_if_mode(WateringMode(mode), pump_status=PumpState(state))
        if snapshot is None:
            return False
        self._notify(snapshot)
        return True

    def mark_offline_if_stale(self, timeout: timedelta) -> bool:
        """Flip ``is_online`` to false when the last heartbeat is ``timeout`` old or older.

        Returns True only when a true -> false transition happened.
        """
        snapshot = self._expire(timeout)
        if snapshot is None:
            return False
        self._notify(snapshot)
        return True

    # --- Readers --------------------------------------------------------------

    @synchronized
    def snapshot(self) -> SystemStatus:
        """Return a copy of the current status."""
        return replace(self._status)

    # --- Internals ------------------------------------------------------------

    @synchronized
    def _apply(self, **changes) -> SystemStatus:
        self._status = replace(self._status, **changes)
        return replace(self._status)

    @synchronized
    def _apply_if_mode(self, mode: WateringMode, **changes) -> Optional[SystemStatus]:
        if self._status.current_mode != mode:
            return None
        self._status = replace(self._status, **changes)
        return replace(self._status)

    @synchronized
    def _expire(self, timeout: timedelta) -> Optional[SystemStatus]:
        if not self._status.is_online:
            return None
        if self._clock() - self._status.last_heartbeat < timeout:
            return None
        self._status = replace(self._status, is_online=False)
        return replace(self._status)

    def _notify(self, snapshot: SystemStatus) -> None:
        # Called outside the lock so listeners may read the register.
        listener = self._on_change
        if listener is None:
            return
        try:
            listener(snapshot)
        except Exception as exc:
            logger.warning("Status listener failed: %s", exc)
