from __future__ import annotations

from datetime import datetime

from app.domain.settings import WateringSettings
from app.utils.time import sqlite_timestamp
from infrastructure.database.ops.settings import SettingsOperations


class SettingsRepository:
    """Facade providing typed access to the watering settings record."""

    def __init__(self, backend: SettingsOperations) -> None:
        self._backend = backend

    def get(self) -> WateringSettings | None:
        row = self._backend.load_watering_settings()
        return WateringSettings.from_row(row) if row else None

    def get_or_create(self, defaults: WateringSettings, *, now: datetime) -> WateringSettings:
        row = self._backend.ensure_watering_settings(
            defaults.humidity_threshold,
            defaults.watering_mode.value,
            defaults.scheduled_interval,
            sqlite_timestamp(now),
        )
        return WateringSettings.from_row(row)

    def update(
        self,
        *,
        humidity_threshold: int | None,
        watering_mode: str | None,
        scheduled_interval: int | None,
        now: datetime,
    ) -> WateringSettings | None:
        row = self._backend.update_watering_settings(
            humidity_threshold,
            watering_mode,
            scheduled_interval,
            sqlite_timestamp(now),
        )
        return WateringSettings.from_row(row) if row else None
