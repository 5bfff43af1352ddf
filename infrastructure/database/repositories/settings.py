from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from infrastructure.database.ops.settings import SettingsOperations


class SettingsRepository:
    """Facade providing typed access to key/value settings."""

    def __init__(self, backend: "SettingsOperations") -> None:
        self._backend = backend

    def get_setting(self, key: str) -> str | None:
        return self._backend.load_setting(key)

    def set_setting(self, key: str, value: str) -> None:
        self._backend.save_setting(key, value)

    def delete_setting(self, key: str) -> bool:
        return self._backend.delete_setting(key)
