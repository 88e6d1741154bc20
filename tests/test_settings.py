from __future__ import annotations

import logging

import pytest
from pydantic import ValidationError

from iot_measurements.core.config import Settings, load_settings
from iot_measurements.core.logging_config import ContextualFormatter, configure_logging


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("APP_DATABASE_URL", "APP_DATABASE_POOL_SIZE", "APP_LOG_LEVEL", "APP_CORS_ORIGINS"):
        monkeypatch.delenv(name, raising=False)
    settings = Settings(_env_file=None)
    assert settings.database_pool_size == 10
    assert settings.database_max_pending is None
    assert settings.retention_days == 30
    assert settings.database_url.startswith("sqlite+aiosqlite://")
    assert settings.is_production is False


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("APP_ENV", "production")
    monkeypatch.setenv("APP_DATABASE_URL", "mysql+aiomysql://user:pw@db:3306/biometria")
    monkeypatch.setenv("APP_DATABASE_POOL_SIZE", "4")
    monkeypatch.setenv("APP_DATABASE_MAX_PENDING", "100")
    monkeypatch.setenv("APP_LOG_LEVEL", " debug ")
    monkeypatch.setenv("APP_CORS_ORIGINS", '["https://dashboard.example"]')

    settings = load_settings()

    assert settings.is_production is True
    assert settings.database_url == "mysql+aiomysql://user:pw@db:3306/biometria"
    assert settings.database_pool_size == 4
    assert settings.database_max_pending == 100
    assert settings.log_level == "DEBUG"
    assert settings.cors_origins == ["https://dashboard.example"]


def test_cors_falls_back_to_any_origin(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("APP_CORS_ORIGINS", raising=False)
    monkeypatch.chdir("/")
    assert load_settings().cors_origins == ["*"]


def test_rejects_invalid_pool_size() -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, database_pool_size=0)


def test_contextual_formatter_appends_extras() -> None:
    formatter = ContextualFormatter(fmt="%(levelname)s %(message)s")
    record = logging.LogRecord("x", logging.INFO, __file__, 1, "Stored measurement", None, None)
    record.measurement_id = 7
    record.measurement_type = "gas"
    assert formatter.format(record) == "INFO Stored measurement | measurement_id=7 measurement_type=gas"


def test_contextual_formatter_without_extras() -> None:
    formatter = ContextualFormatter(fmt="%(message)s")
    record = logging.LogRecord("x", logging.INFO, __file__, 1, "plain", None, None)
    assert formatter.format(record) == "plain"


def test_configure_logging_only_installs_handlers_once() -> None:
    configure_logging("INFO")
    handlers = list(logging.getLogger().handlers)
    configure_logging("DEBUG")
    assert logging.getLogger().handlers == handlers
    assert any(isinstance(h.formatter, ContextualFormatter) for h in handlers)
