"""
Reading Service
===============

Ingestion and queries over the sensor reading log.

Ingestion persists the sample first and only then records the heartbeat, so a
failed write leaves the status register untouched. Watering decisions are not
made here; they run on the scheduler.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Callable, Optional

from app.domain.exceptions import ValidationError
from app.domain.readings import MetricSummary, ReadingSummary, SensorReading
from app.enums import PumpState
from app.services.application.status_register import StatusRegister
from app.utils.time import coerce_datetime, utc_now
from infrastructure.database.repositories.readings import ReadingRepository

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("soil_humidity", "temperature", "air_humidity", "pump_status")


@dataclass
class ReadingService:
    repository: ReadingRepository
    status_register: StatusRegister
    on_reading: Optional[Callable[[SensorReading], None]] = None
    clock: Callable[[], datetime] = field(default=utc_now)

    def ingest(
        self,
        *,
        soil_humidity: Optional[float],
        temperature: Optional[float],
        air_humidity: Optional[float],
        pump_status: Optional[PumpState | str],
        captured_at: Optional[datetime | str] = None,
    ) -> int:
        """Store one reading and mark the device as alive. Returns the new reading id."""
        values = {
            "soil_humidity": soil_humidity,
            "temperature": temperature,
            "air_humidity": air_humidity,
            "pump_status": pump_status,
        }
        missing = [name for name in REQUIRED_FIELDS if values[name] is None]
        if missing:
            raise ValidationError(
                f"Missing required fields: {', '.join(missing)}",
                detail={"missing": missing},
            )

        measurements = {name: self._as_number(name, values[name]) for name in REQUIRED_FIELDS[:3]}
        try:
            pump = PumpState(pump_status)
        except ValueError:
            raise ValidationError(f"pump must be 'on' or 'off', got {pump_status!r}") from None

        if captured_at is None:
            timestamp = self.clock()
        else:
            timestamp = coerce_datetime(captured_at)
            if timestamp is None:
                raise ValidationError(f"Invalid timestamp: {captured_at!r}")

        reading_id = self.repository.append(
            soil_humidity=measurements["soil_humidity"],
            temperature=measurements["temperature"],
            air_humidity=measurements["air_humidity"],
            pump_status=pump.value,
            captured_at=timestamp,
        )
        self.status_register.mark_heartbeat(pump)
        logger.debug("Stored reading %s (soil=%s pump=%s)", reading_id, measurements["soil_humidity"], pump.value)

        if self.on_reading:
            self.on_reading(
                SensorReading(
                    id=reading_id,
                    pump_status=pump,
                    captured_at=timestamp,
                    **measurements,
                )
            )
        return reading_id

    def latest(self) -> Optional[SensorReading]:
        return self.repository.latest()

    def range_since(self, hours_back: float) -> list[SensorReading]:
        """Readings captured in ``[now - hours_back, now]``, oldest first."""
        since, until = self._window(hours_back)
        return self.repository.between(since, until)

    def summarize(self, hours_back: float) -> ReadingSummary:
        since, until = self._window(hours_back)
        stats = self.repository.stats_between(since, until)
        return ReadingSummary(
            hours=float(hours_back),
            count=int(stats.get("count") or 0),
            soil_humidity=_metric(stats, "soil"),
            temperature=_metric(stats, "temp"),
            air_humidity=_metric(stats, "air"),
        )

    def _window(self, hours_back: float) -> tuple[datetime, datetime]:
        if isinstance(hours_back, bool) or not isinstance(hours_back, (int, float)):
            raise ValidationError("hours must be a number")
        if not math.isfinite(hours_back) or hours_back <= 0:
            raise ValidationError("hours must be a positive number")
        now = self.clock()
        return now - timedelta(hours=hours_back), now

    @staticmethod
    def _as_number(name: str, value: Any) -> float:
        if isinstance(value, bool):
            raise ValidationError(f"{name} must be a number")
        try:
            number = float(value)
        except (TypeError, ValueError):
            raise ValidationError(f"{name} must be a number") from None
        if not math.isfinite(number):
            raise ValidationError(f"{name} must be finite")
        return number


def _metric(stats: dict[str, Any], prefix: str) -> MetricSummary:
    return MetricSummary(
        average=stats.get(f"{prefix}_avg"),
        minimum=stats.get(f"{prefix}_min"),
        maximum=stats.get(f"{prefix}_max"),
    )
