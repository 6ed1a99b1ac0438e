from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional

from app.domain.exceptions import PersistenceError, ValidationError
from app.domain.settings import DEFAULT_SETTINGS, WateringSettings
from app.enums import WateringMode
from app.utils.time import utc_now
from infrastructure.database.repositories.settings import SettingsRepository
from infrastructure.logging.audit import AuditLogger

logger = logging.getLogger(__name__)


@dataclass
class SettingsService:
    """
    Durable watering policy (threshold, mode, interval).

    Note: ``watering_mode`` here is the configured mode. The live mode used by
    the decision engine lives in the status register and is changed through
    the command gateway; callers that want a durable mode change write both.
    """

    repository: SettingsRepository
    audit_logger: Optional[AuditLogger] = None
    clock: Callable[[], datetime] = field(default=utc_now)

    def current(self) -> WateringSettings:
        """Return the current settings, persisting the defaults on first use."""
        settings = self.repository.get()
        if settings is not None:
            return settings
        return self.repository.get_or_create(DEFAULT_SETTINGS, now=self.clock())

    def update(
        self,
        *,
        humidity_threshold: Optional[int] = None,
        watering_mode: Optional[WateringMode | str] = None,
        scheduled_interval: Optional[int] = None,
        actor: str = "operator",
    ) -> WateringSettings:
        """Merge the given fields into the current record; omitted fields keep their value."""
        threshold = self._validate_threshold(humidity_threshold)
        mode = self._validate_mode(watering_mode)
        interval = self._validate_interval(scheduled_interval)

        # Seed first so the COALESCE update always has a row to merge into.
        self.current()
        updated = self.repository.update(
            humidity_threshold=threshold,
            watering_mode=mode.value if mode else None,
            scheduled_interval=interval,
            now=self.clock(),
        )
        if updated is None:
            raise PersistenceError("Settings record disappeared during update")

        logger.info(
            "Settings updated: threshold=%s mode=%s interval=%s",
            updated.humidity_threshold,
            updated.watering_mode.value,
            updated.scheduled_interval,
        )
        if self.audit_logger:
            self.audit_logger.log_event(
                actor,
                "update",
                "settings",
                "applied",
                **{
                    key: value
                    for key, value in (
                        ("humidity_threshold", threshold),
                        ("watering_mode", mode.value if mode else None),
                        ("scheduled_interval", interval),
                    )
                    if value is not None
                },
            )
        return updated

    # --- Validation --------------------------------------------------------------
    @staticmethod
    def _validate_threshold(value: Optional[int]) -> Optional[int]:
        if value is None:
            return None
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValidationError("humidity_threshold must be an integer")
        if not 0 <= value <= 100:
            raise ValidationError("humidity_threshold must be between 0 and 100")
        return value

    @staticmethod
    def _validate_mode(value: Optional[WateringMode | str]) -> Optional[WateringMode]:
        if value is None:
            return None
        try:
            return WateringMode(value)
        except ValueError:
            raise ValidationError(f"Unknown watering_mode: {value!r}") from None

    @staticmethod
    def _validate_interval(value: Optional[int]) -> Optional[int]:
        if value is None:
            return None
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValidationError("scheduled_interval must be an integer")
        if value < 1:
            raise ValidationError("scheduled_interval must be at least 1 hour")
        return value
