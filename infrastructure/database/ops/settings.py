from __future__ import annotations

from infrastructure.database.utils import row_to_dict


class SettingsOperations:
    """Key/value settings shared across database handlers."""

    def load_setting(self, key: str) -> str | None:
        with self.connection() as db:
            row = db.execute("SELECT value FROM Settings WHERE key = ?", (key,)).fetchone()
        return row_to_dict(row).get("value") if row else None

    def save_setting(self, key: str, value: str) -> None:
        with self.connection() as db:
            db.execute(
                """
                INSERT INTO Settings (key, value, updated_at) VALUES (?, ?, CURRENT_TIMESTAMP)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = CURRENT_TIMESTAMP
                """,
                (key, value),
            )

    def delete_setting(self, key: str) -> bool:
        with self.connection() as db:
            cursor = db.execute("DELETE FROM Settings WHERE key = ?", (key,))
            return (cursor.rowcount or 0) > 0
