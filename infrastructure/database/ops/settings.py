from __future__ import annotations

import logging
import sqlite3
from typing import Any

from app.domain.exceptions import PersistenceError

logger = logging.getLogger(__name__)

_SETTINGS_COLUMNS = "id, humidity_threshold, watering_mode, scheduled_interval, last_updated"


class SettingsOperations:
    """Watering settings helpers shared across database handlers.

    The table keeps one logical record: the row with the highest id.
    """

    def _select_latest_settings(self, db: sqlite3.Connection) -> sqlite3.Row | None:
        return db.execute(
            f"SELECT {_SETTINGS_COLUMNS} FROM WateringSettings ORDER BY id DESC LIMIT 1"
        ).fetchone()

    def load_watering_settings(self) -> dict[str, Any] | None:
        try:
            with self.connection() as db:
                row = self._select_latest_settings(db)
        except sqlite3.Error as exc:
            logger.error("load_watering_settings failed: %s", exc)
            raise PersistenceError(f"Failed to load settings: {exc}") from exc
        return dict(row) if row else None

    def ensure_watering_settings(
        self,
        humidity_threshold: int,
        watering_mode: str,
        scheduled_interval: int,
        last_updated: str,
    ) -> dict[str, Any]:
        """Insert the given defaults unless a record already exists; return the current record."""
        try:
            with self.transaction() as db:
                row = self._select_latest_settings(db)
                if row is None:
                    db.execute(
                        """
                        INSERT INTO WateringSettings (humidity_threshold, watering_mode, scheduled_interval, last_updated)
                        VALUES (?, ?, ?, ?)
                        """,
                        (humidity_threshold, watering_mode, scheduled_interval, last_updated),
                    )
                    row = self._select_latest_settings(db)
                    logger.info("Seeded default watering settings")
                return dict(row)
        except sqlite3.Error as exc:
            logger.error("ensure_watering_settings failed: %s", exc)
            raise PersistenceError(f"Failed to seed settings: {exc}") from exc

    def update_watering_settings(
        self,
        humidity_threshold: int | None,
        watering_mode: str | None,
        scheduled_interval: int | None,
        last_updated: str,
    ) -> dict[str, Any] | None:
        """COALESCE-merge into the latest record in one statement; None means 'keep'."""
        try:
            with self.transaction() as db:
                cursor = db.execute(
                    """
                    UPDATE WateringSettings SET
                        humidity_threshold = COALESCE(?, humidity_threshold),
                        watering_mode = COALESCE(?, watering_mode),
                        scheduled_interval = COALESCE(?, scheduled_interval),
                        last_updated = ?
                    WHERE id = (SELECT id FROM WateringSettings ORDER BY id DESC LIMIT 1)
                    """,
                    (humidity_threshold, watering_mode, scheduled_interval, last_updated),
                )
                if cursor.rowcount == 0:
                    return None
                row = self._select_latest_settings(db)
                return dict(row)
        except sqlite3.Error as exc:
            logger.error("update_watering_settings failed: %s", exc)
            raise PersistenceError(f"Failed to update settings: {exc}") from exc
