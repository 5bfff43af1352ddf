import pytest

from app.config import AppConfig, load_config

_ENV_VARS = (
    "KEBUN_ENV",
    "KEBUN_SECRET_KEY",
    "KEBUN_STORE_BACKEND",
    "LLM_PROVIDER",
    "LLM_API_KEY",
    "OPENROUTER_API_KEY",
    "ANALYSIS_CACHE_TTL_MINUTES",
    "ANALYSIS_MIN_INTERVAL_SECONDS",
    "ANALYSIS_SCHEDULER_ENABLED",
    "OPENWEATHER_API_KEY",
    "NEXT_PUBLIC_OPENWEATHER_API_KEY",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    config = AppConfig()

    assert config.store_backend == "sqlite"
    assert config.llm_provider == "openrouter"
    assert config.analysis_cache_ttl_seconds == 30 * 60
    assert config.analysis_min_interval_seconds == 15
    assert config.analysis_history_limit == 20
    assert config.analysis_scheduler_enabled is True


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("ANALYSIS_CACHE_TTL_MINUTES", "10")
    monkeypatch.setenv("ANALYSIS_MIN_INTERVAL_SECONDS", "2.5")
    monkeypatch.setenv("ANALYSIS_SCHEDULER_ENABLED", "off")
    monkeypatch.setenv("KEBUN_STORE_BACKEND", "firebase")

    config = AppConfig()

    assert config.analysis_cache_ttl_seconds == 600
    assert config.analysis_min_interval_seconds == 2.5
    assert config.analysis_scheduler_enabled is False
    assert config.store_backend == "firebase"


def test_api_key_fallbacks(monkeypatch):
    monkeypatch.setenv("OPENROUTER_API_KEY", "sk-or-abc")
    monkeypatch.setenv("NEXT_PUBLIC_OPENWEATHER_API_KEY", "owm-123")

    config = AppConfig()

    assert config.llm_api_key == "sk-or-abc"
    assert config.openweather_api_key == "owm-123"


def test_invalid_integer_is_rejected(monkeypatch):
    monkeypatch.setenv("ANALYSIS_CACHE_TTL_MINUTES", "half an hour")
    with pytest.raises(ValueError, match="ANALYSIS_CACHE_TTL_MINUTES"):
        AppConfig()


def test_unknown_store_backend_is_rejected():
    with pytest.raises(ValueError):
        AppConfig(store_backend="mongodb")


def test_production_requires_secret_key():
    with pytest.raises(RuntimeError):
        AppConfig(environment="production")
    assert AppConfig(environment="production", secret_key="s3cret").environment == "production"


def test_load_config_warns_without_llm_key(caplog):
    config = load_config(llm_provider="anthropic")

    assert config.llm_api_key == ""
    assert "rule-based report" in caplog.text


def test_flask_config_keeps_unicode_json():
    flask_config = AppConfig(database_path=":memory:").as_flask_config()

    assert flask_config["DATABASE_PATH"] == ":memory:"
    assert flask_config["JSON_AS_ASCII"] is False
