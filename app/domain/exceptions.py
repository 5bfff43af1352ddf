"""Centralized exception hierarchy for KebunPintar.

All domain and service exceptions inherit from :class:`KebunError` so that
callers can catch a single base class when they need a broad safety net, yet
still match on specific subclasses where narrower handling is appropriate.

Blueprint-level error handling (see ``app/utils/http.safe_route``) maps these
to the correct HTTP status codes automatically.

Hierarchy
---------
::

    KebunError (base: maps to 500)
    ├── ValidationError              (400: bad input from caller)
    │   └── InsufficientDataError    (400: analysis window is empty)
    ├── NotFoundError                (404: entity does not exist)
    ├── AnalysisRateLimitError       (429: analysis requested too soon)
    ├── ServiceError                 (500: business-logic failure)
    │   ├── RepositoryError          (500: database / persistence)
    │   └── ExternalServiceError     (502: third-party / network)
    └── ConfigurationError           (500: missing / invalid config)
"""

from __future__ import annotations

import math


class KebunError(Exception):
    """Base exception for all KebunPintar application errors.

    Parameters
    ----------
    message:
        Human-readable description (logged server-side, **not** leaked to
        the HTTP client unless the exception class opts in).
    detail:
        Optional machine-readable context dict attached to the error for
        structured logging and error envelopes.
    """

    http_status: int = 500

    def __init__(self, message: str = "", *, detail: dict | None = None) -> None:
        super().__init__(message)
        self.detail = detail or {}


# ── Client errors (4xx) ──────────────────────────────────────────────


class ValidationError(KebunError):
    """Caller supplied invalid or incomplete input (HTTP 400)."""

    http_status: int = 400


class InsufficientDataError(ValidationError):
    """The resolved analysis window contains no readings (HTTP 400)."""

    def __init__(self, message: str = "Tidak cukup data untuk dianalisis", *, time_range: str | None = None) -> None:
        super().__init__(message, detail={"timeRange": time_range} if time_range else None)
        self.time_range = time_range


class NotFoundError(KebunError):
    """Requested entity does not exist (HTTP 404)."""

    http_status: int = 404


class AnalysisRateLimitError(KebunError):
    """An analysis reached the provider stage before the cooldown elapsed (HTTP 429).

    ``retry_after_seconds`` is the remaining wait, rounded up to whole seconds.
    """

    http_status: int = 429

    def __init__(self, remaining_seconds: float) -> None:
        self.retry_after_seconds = max(1, math.ceil(remaining_seconds))
        super().__init__(
            f"Mohon tunggu {self.retry_after_seconds} detik sebelum analisis berikutnya.",
            # "retryAfter" is whole seconds, rounded up; also sent as the Retry-After header
            detail={"retryAfter": self.retry_after_seconds},
        )


# ── Server errors (5xx) ──────────────────────────────────────────────


class ServiceError(KebunError):
    """Business-logic failure in a service method (HTTP 500)."""

    http_status: int = 500


class RepositoryError(ServiceError):
    """Database / persistence layer failure (HTTP 500)."""

    http_status: int = 500


class ExternalServiceError(ServiceError):
    """Third-party or network dependency failure (HTTP 502)."""

    http_status: int = 502


class ConfigurationError(KebunError):
    """Missing or invalid application configuration (HTTP 500)."""

    http_status: int = 500
