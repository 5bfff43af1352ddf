"""
Analysis History Repository
===========================
Append-only log of analysis results. Each entry is stored whole as JSON so
the dashboard can re-render it exactly as it was first returned.
"""

from __future__ import annotations

import json
import logging
import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from app.domain.analysis import AnalysisResult
from app.domain.exceptions import RepositoryError
from app.utils.time import coerce_datetime

if TYPE_CHECKING:
    from infrastructure.database.ops.analysis_history import AnalysisHistoryOperations

logger = logging.getLogger(__name__)

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _sort_key(result: AnalysisResult) -> datetime:
    return coerce_datetime(result.timestamp) or _EPOCH


class AnalysisHistoryRepository:
    """Facade over :class:`AnalysisHistoryOperations` returning domain results."""

    def __init__(self, backend: "AnalysisHistoryOperations") -> None:
        self._backend = backend

    def append(self, result: AnalysisResult) -> str:
        history_id = uuid.uuid4().hex
        payload = result.with_id(history_id).to_dict()
        try:
            self._backend.insert_analysis(
                history_id,
                result.timestamp,
                result.time_range,
                result.source.value,
                json.dumps(payload, ensure_ascii=False),
            )
        except Exception as exc:
            raise RepositoryError(f"Failed to store analysis history: {exc}") from exc
        return history_id

    def list_newest_first(self, limit: int) -> list[AnalysisResult]:
        if limit <= 0:
            return []
        results = [r for r in (self._decode(row) for row in self._backend.fetch_all_analyses()) if r is not None]
        results.sort(key=_sort_key, reverse=True)
        return results[:limit]

    def get(self, history_id: str) -> AnalysisResult | None:
        row = self._backend.fetch_analysis(history_id)
        return self._decode(row) if row else None

    def delete(self, history_id: str) -> bool:
        return self._backend.delete_analysis(history_id)

    def clear(self) -> int:
        return self._backend.delete_all_analyses()

    def _decode(self, row: dict[str, Any]) -> AnalysisResult | None:
        try:
            payload = json.loads(row.get("payload") or "{}")
            payload.setdefault("id", row.get("history_id"))
            return AnalysisResult.from_dict(payload)
        except (TypeError, ValueError, KeyError) as exc:
            logger.warning("Skipping unreadable analysis history entry %s: %s", row.get("history_id"), exc)
            return None
