from __future__ import annotations

from datetime import datetime
from typing import Any

from app.domain.readings import SensorReading
from app.utils.time import sqlite_timestamp
from infrastructure.database.ops.readings import ReadingOperations


class ReadingRepository:
    """Facade providing typed access to the append-only reading log."""

    def __init__(self, backend: ReadingOperations) -> None:
        self._backend = backend

    def append(
        self,
        *,
        soil_humidity: float,
        temperature: float,
        air_humidity: float,
        pump_status: str,
        captured_at: datetime,
    ) -> int:
        return self._backend.insert_reading(
            soil_humidity,
            temperature,
            air_humidity,
            pump_status,
            sqlite_timestamp(captured_at),
        )

    def latest(self) -> SensorReading | None:
        row = self._backend.get_latest_reading()
        return SensorReading.from_row(row) if row else None

    def between(self, since: datetime, until: datetime) -> list[SensorReading]:
        rows = self._backend.get_readings_since(sqlite_timestamp(since), sqlite_timestamp(until))
        return [SensorReading.from_row(row) for row in rows]

    def stats_between(self, since: datetime, until: datetime) -> dict[str, Any]:
        return self._backend.get_reading_stats_since(sqlite_timestamp(since), sqlite_timestamp(until))

    def count(self) -> int:
        return self._backend.count_readings()
