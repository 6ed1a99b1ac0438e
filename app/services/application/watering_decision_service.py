"""
Watering Decision Service
=========================

Evaluates the latest reading against the current settings and, in automatic
mode, turns the pump on when the soil is drier than the threshold.

State machine (re-evaluated on every tick, nothing persisted between ticks)::

    manual                        -> no decision, operator has sole control
    auto  + no reading yet        -> no-op
    auto  + soil <  threshold     -> pump ON via the command gateway, unless the
                                     operator switched to manual meanwhile
    auto  + soil >= threshold     -> no action

Evaluation runs only on the scheduler's fixed cadence, never per reading, so
noisy samples cannot make the pump oscillate. ``scheduled_interval`` from the
settings does not drive this cadence.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional

from app.domain.decisions import WateringDecision
from app.domain.exceptions import PlantCareError
from app.enums import DecisionReason, PumpState, WateringMode
from app.services.application.command_gateway import CommandGateway
from app.services.application.reading_service import ReadingService
from app.services.application.settings_service import SettingsService
from app.services.application.status_register import StatusRegister
from app.utils.time import utc_now

logger = logging.getLogger(__name__)


@dataclass
class WateringDecisionService:
    status_register: StatusRegister
    settings_service: SettingsService
    reading_service: ReadingService
    command_gateway: CommandGateway
    clock: Callable[[], datetime] = field(default=utc_now)
    _last_decision: Optional[WateringDecision] = field(default=None, init=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    @property
    def last_decision(self) -> Optional[WateringDecision]:
        with self._lock:
            return self._last_decision

    def evaluate(self) -> WateringDecision:
        """Run one evaluation. Store errors propagate to the caller."""
        mode = self.status_register.snapshot().current_mode
        if mode == WateringMode.MANUAL:
            return self._record(mode, DecisionReason.MANUAL_MODE)

        settings = self.settings_service.current()
        reading = self.reading_service.latest()
        if reading is None:
            logger.debug("Auto watering skipped: no readings yet")
            return self._record(mode, DecisionReason.NO_READING, threshold=settings.humidity_threshold)

        if reading.soil_humidity < settings.humidity_threshold:
            logger.info(
                "Auto watering triggered - soil humidity %.1f%% below threshold %s%%",
                reading.soil_humidity,
                settings.humidity_threshold,
            )
            if not self.command_gateway.issue_automatic_pump(PumpState.ON):
                # operator switched to manual after the mode was read
                return self._record(
                    WateringMode.MANUAL,
                    DecisionReason.MANUAL_MODE,
                    soil=reading.soil_humidity,
                    threshold=settings.humidity_threshold,
                )
            return self._record(
                mode,
                DecisionReason.BELOW_THRESHOLD,
                fired=True,
                soil=reading.soil_humidity,
                threshold=settings.humidity_threshold,
            )

        return self._record(
            mode,
            DecisionReason.SATISFIED,
            soil=reading.soil_humidity,
            threshold=settings.humidity_threshold,
        )

    def run_scheduled_tick(self) -> Optional[WateringDecision]:
        """Scheduler entry point: a failed tick is logged and the next one still fires."""
        try:
            return self.evaluate()
        except PlantCareError as exc:
            logger.error("Watering decision tick failed: %s", exc, exc_info=True)
            return None

    def _record(
        self,
        mode: WateringMode,
        reason: DecisionReason,
        *,
        fired: bool = False,
        soil: Optional[float] = None,
        threshold: Optional[int] = None,
    ) -> WateringDecision:
        decision = WateringDecision(
            evaluated_at=self.clock(),
            mode=mode,
            fired=fired,
            reason=reason,
            soil_humidity=soil,
            humidity_threshold=threshold,
        )
        with self._lock:
            self._last_decision = decision
        return decision
