from __future__ import annotations

from typing import Any

from infrastructure.database.utils import row_to_dict


class AnalysisHistoryOperations:
    """Raw CRUD over the AnalysisHistory table (payload stored as JSON text)."""

    def insert_analysis(self, history_id: str, timestamp: str, time_range: str, source: str, payload: str) -> None:
        with self.connection() as db:
            db.execute(
                """
                INSERT INTO AnalysisHistory (history_id, timestamp, time_range, source, payload)
                VALUES (?, ?, ?, ?, ?)
                """,
                (history_id, timestamp, time_range, source, payload),
            )

    def fetch_all_analyses(self) -> list[dict[str, Any]]:
        # No ORDER BY: ordering is applied by the repository on each entry's own timestamp
        with self.connection() as db:
            rows = db.execute("SELECT history_id, timestamp, payload FROM AnalysisHistory").fetchall()
        return [row_to_dict(row) for row in rows]

    def fetch_analysis(self, history_id: str) -> dict[str, Any] | None:
        with self.connection() as db:
            row = db.execute(
                "SELECT history_id, timestamp, payload FROM AnalysisHistory WHERE history_id = ?",
                (history_id,),
            ).fetchone()
        return row_to_dict(row) if row else None

    def delete_analysis(self, history_id: str) -> bool:
        with self.connection() as db:
            cursor = db.execute("DELETE FROM AnalysisHistory WHERE history_id = ?", (history_id,))
            return (cursor.rowcount or 0) > 0

    def delete_all_analyses(self) -> int:
        with self.connection() as db:
            cursor = db.execute("DELETE FROM AnalysisHistory")
            return cursor.rowcount or 0
