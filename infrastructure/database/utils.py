"""
Database Utilities
==================

Shared helpers for the SQLite operations mixins and repositories.
"""

from typing import Any


def row_to_dict(row) -> dict[str, Any]:
    """
    Convert a database row to a dictionary.

    Handles ``None`` (empty dict), plain dicts (returned as-is) and
    ``sqlite3.Row`` objects.

    Examples:
        >>> row = db.execute("SELECT * FROM Settings WHERE key = ?", ("x",)).fetchone()
        >>> row_to_dict(row)["value"]
    """
    if row is None:
        return {}
    if isinstance(row, dict):
        return row
    return {key: row[key] for key in row.keys()}
