from __future__ import annotations

import logging
from typing import Any

from infrastructure.database.utils import row_to_dict

logger = logging.getLogger(__name__)


class SoilReadingOperations:
    """Soil reading time series and the single-row environment snapshot."""

    # --- Soil readings ----------------------------------------------------------
    def insert_soil_reading(self, moisture: float, raw_adc: int, pump_status: str, timestamp: int) -> int:
        with self.connection() as db:
            cursor = db.execute(
                """
                INSERT INTO SoilReadings (moisture, raw_adc, pump_status, timestamp)
                VALUES (?, ?, ?, ?)
                """,
                (moisture, raw_adc, pump_status, timestamp),
            )
            return int(cursor.lastrowid)

    def fetch_soil_readings_since(self, cutoff_ms: int, limit: int | None = None) -> list[dict[str, Any]]:
        """Rows with ``timestamp >= cutoff_ms`` ascending; with *limit*, the newest *limit* of them."""
        with self.connection() as db:
            if limit is None:
                rows = db.execute(
                    """
                    SELECT moisture, raw_adc, pump_status, timestamp FROM SoilReadings
                    WHERE timestamp >= ?
                    ORDER BY timestamp ASC, reading_id ASC
                    """,
                    (cutoff_ms,),
                ).fetchall()
            else:
                rows = db.execute(
                    """
                    SELECT * FROM (
                        SELECT reading_id, moisture, raw_adc, pump_status, timestamp FROM SoilReadings
                        WHERE timestamp >= ?
                        ORDER BY timestamp DESC, reading_id DESC
                        LIMIT ?
                    ) ORDER BY timestamp ASC, reading_id ASC
                    """,
                    (cutoff_ms, limit),
                ).fetchall()
        return [row_to_dict(row) for row in rows]

    def fetch_latest_soil_reading(self) -> dict[str, Any] | None:
        with self.connection() as db:
            row = db.execute(
                """
                SELECT moisture, raw_adc, pump_status, timestamp FROM SoilReadings
                ORDER BY timestamp DESC, reading_id DESC
                LIMIT 1
                """
            ).fetchone()
        return row_to_dict(row) if row else None

    def count_soil_readings(self) -> int:
        with self.connection() as db:
            return int(db.execute("SELECT COUNT(*) FROM SoilReadings").fetchone()[0])

    def trim_soil_readings(self, keep: int) -> int:
        """Delete everything but the newest *keep* rows; returns rows removed."""
        with self.connection() as db:
            cursor = db.execute(
                """
                DELETE FROM SoilReadings
                WHERE reading_id NOT IN (
                    SELECT reading_id FROM SoilReadings
                    ORDER BY timestamp DESC, reading_id DESC
                    LIMIT ?
                )
                """,
                (max(0, keep),),
            )
            removed = cursor.rowcount or 0
        if removed:
            logger.debug("Trimmed %d soil readings (keep=%d)", removed, keep)
        return removed

    # --- Environment snapshot ---------------------------------------------------
    def upsert_environment_snapshot(
        self,
        temperature: float,
        humidity: float,
        raining: bool,
        status: str,
        timestamp: int,
    ) -> None:
        with self.connection() as db:
            db.execute(
                """
                INSERT OR REPLACE INTO EnvironmentSnapshot (id, temperature, humidity, raining, status, timestamp)
                VALUES (1, ?, ?, ?, ?, ?)
                """,
                (temperature, humidity, int(bool(raining)), status, timestamp),
            )

    def fetch_environment_snapshot(self) -> dict[str, Any] | None:
        with self.connection() as db:
            row = db.execute(
                "SELECT temperature, humidity, raining, status, timestamp FROM EnvironmentSnapshot WHERE id = 1"
            ).fetchone()
        return row_to_dict(row) if row else None
