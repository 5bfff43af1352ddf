"""
Configuration for the KebunPintar dashboard backend
===================================================
Runtime settings read from environment variables, plus the logging setup
shared by the web server and the analysis scheduler.
"""

import logging
import os
import sys
from contextlib import suppress
from dataclasses import dataclass, field
from logging.handlers import RotatingFileHandler
from typing import Any

from app.constants import (
    ANALYSIS_CACHE_TTL_SECONDS,
    ANALYSIS_MAX_READINGS,
    ANALYSIS_MIN_INTERVAL_SECONDS,
    ANALYSIS_SAMPLE_SIZE,
    HISTORY_DEFAULT_LIMIT,
)

LOG_FILE_PATH = "logs/kebunpintar.log"
_CONSOLE_HANDLER = "kebun_console"
_FILE_HANDLER = "kebun_file"


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.lower() in {"1", "true", "t", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be an integer.") from None


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be a number.") from None


def _env_first(names: tuple[str, ...], default: str = "") -> str:
    for name in names:
        value = os.getenv(name)
        if value:
            return value
    return default


@dataclass
class AppConfig:
    """Runtime configuration loaded from environment variables."""

    environment: str = field(default_factory=lambda: os.getenv("KEBUN_ENV", "development"))
    secret_key: str = field(default_factory=lambda: os.getenv("KEBUN_SECRET_KEY", "KebunPintarDevSecretKey"))
    database_path: str = field(default_factory=lambda: os.getenv("KEBUN_DATABASE_PATH", "database/kebunpintar.db"))
    socketio_cors_origins: str = field(default_factory=lambda: os.getenv("KEBUN_SOCKETIO_CORS", "*"))

    DEBUG: bool = field(default_factory=lambda: _env_bool("KEBUN_DEBUG", False))
    log_level: str = field(default_factory=lambda: os.getenv("KEBUN_LOG_LEVEL", "INFO"))

    # Reading / history store: "sqlite" or "firebase"
    store_backend: str = field(default_factory=lambda: os.getenv("KEBUN_STORE_BACKEND", "sqlite"))
    firebase_credentials_path: str = field(default_factory=lambda: os.getenv("FIREBASE_CREDENTIALS_PATH", ""))
    firebase_database_url: str = field(default_factory=lambda: os.getenv("FIREBASE_DATABASE_URL", ""))

    eventbus_queue_size: int = field(default_factory=lambda: _env_int("KEBUN_EVENTBUS_QUEUE_SIZE", 256))
    eventbus_worker_count: int = field(default_factory=lambda: _env_int("KEBUN_EVENTBUS_WORKER_COUNT", 2))

    # LLM Configuration
    # Provider: "none" (rule-based report only), "openrouter", "openai", "anthropic"
    llm_provider: str = field(default_factory=lambda: os.getenv("LLM_PROVIDER", "openrouter"))
    llm_api_key: str = field(default_factory=lambda: _env_first(("LLM_API_KEY", "OPENROUTER_API_KEY")))
    llm_model: str = field(default_factory=lambda: os.getenv("LLM_MODEL", ""))
    llm_base_url: str = field(default_factory=lambda: os.getenv("LLM_BASE_URL", ""))
    llm_max_tokens: int = field(default_factory=lambda: _env_int("LLM_MAX_TOKENS", 2048))
    llm_temperature: float = field(default_factory=lambda: _env_float("LLM_TEMPERATURE", 0.7))
    llm_timeout: float = field(default_factory=lambda: _env_float("LLM_TIMEOUT", 45))

    # Analysis orchestrator
    analysis_cache_ttl_seconds: int = field(
        default_factory=lambda: _env_int("ANALYSIS_CACHE_TTL_MINUTES", ANALYSIS_CACHE_TTL_SECONDS // 60) * 60
    )
    analysis_min_interval_seconds: float = field(
        default_factory=lambda: _env_float("ANALYSIS_MIN_INTERVAL_SECONDS", ANALYSIS_MIN_INTERVAL_SECONDS)
    )
    analysis_sample_size: int = field(default_factory=lambda: _env_int("ANALYSIS_SAMPLE_SIZE", ANALYSIS_SAMPLE_SIZE))
    analysis_max_readings: int = field(
        default_factory=lambda: _env_int("ANALYSIS_MAX_READINGS", ANALYSIS_MAX_READINGS)
    )
    analysis_history_limit: int = field(
        default_factory=lambda: _env_int("ANALYSIS_HISTORY_LIMIT", HISTORY_DEFAULT_LIMIT)
    )
    analysis_scheduler_enabled: bool = field(default_factory=lambda: _env_bool("ANALYSIS_SCHEDULER_ENABLED", True))
    analysis_scheduler_tick_seconds: int = field(
        default_factory=lambda: _env_int("ANALYSIS_SCHEDULER_TICK_SECONDS", 60)
    )

    # Sensors
    sensor_retention_count: int = field(default_factory=lambda: _env_int("SENSOR_RETENTION_COUNT", 1000))

    # Weather
    openweather_api_key: str = field(
        default_factory=lambda: _env_first(("OPENWEATHER_API_KEY", "NEXT_PUBLIC_OPENWEATHER_API_KEY"))
    )
    weather_cache_ttl_seconds: int = field(default_factory=lambda: _env_int("WEATHER_CACHE_TTL", 600))
    weather_timeout_seconds: float = field(default_factory=lambda: _env_float("WEATHER_TIMEOUT", 10))

    # Default insecure secret key - used only for detection
    _DEFAULT_SECRET_KEY: str = field(default="KebunPintarDevSecretKey", init=False, repr=False)

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if self.environment == "production" and self.secret_key == self._DEFAULT_SECRET_KEY:
            raise RuntimeError(
                "SECURITY ERROR: Cannot use default secret key in production!\n"
                "Set KEBUN_SECRET_KEY environment variable to a secure random value.\n"
                'Generate one with: python -c "import secrets; print(secrets.token_hex(32))"'
            )
        if self.store_backend not in {"sqlite", "firebase"}:
            raise ValueError(f"KEBUN_STORE_BACKEND must be 'sqlite' or 'firebase', got {self.store_backend!r}")
        if self.analysis_min_interval_seconds < 0 or self.analysis_cache_ttl_seconds < 0:
            raise ValueError("Analysis cache TTL and minimum interval must not be negative.")

    def as_flask_config(self) -> dict[str, Any]:
        """Render configuration values for Flask application."""
        return {
            "ENV": self.environment,
            "SECRET_KEY": self.secret_key,
            "DATABASE_PATH": self.database_path,
            "SOCKETIO_CORS_ALLOWED_ORIGINS": self.socketio_cors_origins,
            "DEBUG": self.DEBUG,
            "JSON_AS_ASCII": False,
        }


def setup_logging(debug: bool = False, level: str | None = None, log_file: str | None = LOG_FILE_PATH) -> None:
    """Attach console and rotating file handlers to the root logger (idempotent)."""
    if debug:
        log_level = logging.DEBUG
    else:
        log_level = logging.getLevelName((level or "INFO").upper())
        if not isinstance(log_level, int):
            log_level = logging.INFO

    root = logging.getLogger()
    root.setLevel(log_level)

    # create_app may run several times per process (tests, reloader)
    has_console = any(getattr(h, "name", "") == _CONSOLE_HANDLER for h in root.handlers)
    has_file = any(getattr(h, "name", "") == _FILE_HANDLER for h in root.handlers)
    added_handler = False

    # Console handler (force UTF-8 so Indonesian text and symbols never raise)
    stream = sys.stdout
    with suppress(AttributeError, ValueError):
        stream.reconfigure(encoding="utf-8", errors="replace")
    formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    if not has_console:
        console_handler = logging.StreamHandler(stream=stream)
        console_handler.name = _CONSOLE_HANDLER
        console_handler.setFormatter(formatter)
        root.addHandler(console_handler)
        added_handler = True

    if log_file and not has_file:
        os.makedirs(os.path.dirname(log_file) or ".", exist_ok=True)
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.name = _FILE_HANDLER
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)
        added_handler = True

    for handler in root.handlers:
        if getattr(handler, "name", "") in {_CONSOLE_HANDLER, _FILE_HANDLER}:
            handler.setLevel(log_level)

    if added_handler:
        root.info("Logging initialized at level: %s", logging.getLevelName(log_level))

    if _env_bool("KEBUN_SILENCE_WERKZEUG", True):
        logging.getLogger("werkzeug").setLevel(logging.WARNING)

    # Socket.IO polling logs every few seconds per connected dashboard
    if _env_bool("KEBUN_SILENCE_SOCKETIO", True):
        logging.getLogger("socketio").setLevel(logging.WARNING)
        logging.getLogger("engineio").setLevel(logging.WARNING)

    # The Firebase and HTTP client libraries log every request at INFO
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


def load_config(**overrides: Any) -> AppConfig:
    """Helper for callers to load and validate configuration."""
    config = AppConfig(**overrides)
    if config.llm_provider.strip().lower() not in {"none", ""} and not config.llm_api_key:
        logging.getLogger("config_loader").warning(
            "LLM_PROVIDER=%s but no LLM_API_KEY / OPENROUTER_API_KEY is set; analyses will use the rule-based report",
            config.llm_provider,
        )
    return config
