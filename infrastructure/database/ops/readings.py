from __future__ import annotations

import logging
import sqlite3
from typing import Any

from app.domain.exceptions import PersistenceError

logger = logging.getLogger(__name__)

_READING_COLUMNS = "id, soil_humidity, temperature, air_humidity, pump_status, captured_at"


class ReadingOperations:
    """Append-only sensor reading helpers shared across database handlers."""

    def insert_reading(
        self,
        soil_humidity: float,
        temperature: float,
        air_humidity: float,
        pump_status: str,
        captured_at: str,
    ) -> int:
        try:
            with self.transaction() as db:
                cursor = db.execute(
                    """
                    INSERT INTO SensorData (soil_humidity, temperature, air_humidity, pump_status, captured_at)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (soil_humidity, temperature, air_humidity, pump_status, captured_at),
                )
                return int(cursor.lastrowid)
        except sqlite3.Error as exc:
            logger.error("insert_reading failed: %s", exc)
            raise PersistenceError(f"Failed to store sensor reading: {exc}") from exc

    def get_latest_reading(self) -> dict[str, Any] | None:
        try:
            with self.connection() as db:
                row = db.execute(
                    f"""
                    SELECT {_READING_COLUMNS}
                    FROM SensorData
                    ORDER BY captured_at DESC, id DESC
                    LIMIT 1
                    """
                ).fetchone()
        except sqlite3.Error as exc:
            logger.error("get_latest_reading failed: %s", exc)
            raise PersistenceError(f"Failed to load latest reading: {exc}") from exc
        return dict(row) if row else None

    def get_readings_since(self, since: str, until: str) -> list[dict[str, Any]]:
        try:
            with self.connection() as db:
                rows = db.execute(
                    f"""
                    SELECT {_READING_COLUMNS}
                    FROM SensorData
                    WHERE captured_at >= ? AND captured_at <= ?
                    ORDER BY captured_at ASC, id ASC
                    """,
                    (since, until),
                ).fetchall()
        except sqlite3.Error as exc:
            logger.error("get_readings_since failed: %s", exc)
            raise PersistenceError(f"Failed to load reading history: {exc}") from exc
        return [dict(row) for row in rows]

    def get_reading_stats_since(self, since: str, until: str) -> dict[str, Any]:
        try:
            with self.connection() as db:
                row = db.execute(
                    """
                    SELECT COUNT(*) AS count,
                           AVG(soil_humidity) AS soil_avg,
                           MIN(soil_humidity) AS soil_min,
                           MAX(soil_humidity) AS soil_max,
                           AVG(temperature) AS temp_avg,
                           MIN(temperature) AS temp_min,
                           MAX(temperature) AS temp_max,
                           AVG(air_humidity) AS air_avg,
                           MIN(air_humidity) AS air_min,
                           MAX(air_humidity) AS air_max
                    FROM SensorData
                    WHERE captured_at >= ? AND captured_at <= ?
                    """,
                    (since, until),
                ).fetchone()
        except sqlite3.Error as exc:
            logger.error("get_reading_stats_since failed: %s", exc)
            raise PersistenceError(f"Failed to summarise reading history: {exc}") from exc
        return dict(row)

    def count_readings(self) -> int:
        try:
            with self.connection() as db:
                return int(db.execute("SELECT COUNT(*) FROM SensorData").fetchone()[0])
        except sqlite3.Error as exc:
            raise PersistenceError(f"Failed to count readings: {exc}") from exc
