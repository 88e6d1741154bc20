from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from typing import Any

import pytest
from fastapi.testclient import TestClient

from iot_measurements.core.config import Settings
from iot_measurements.db.engine import create_engine_from_settings
from iot_measurements.factory import create_app
from iot_measurements.repositories.sql import SqlMeasurementRepository

FIXED_NOW = datetime(2026, 10, 16, 12, 0, 0, tzinfo=timezone.utc)


def _make_settings(database_url: str, **overrides: Any) -> Settings:
    values: dict[str, Any] = dict(
        _env_file=None,
        env="test",
        debug=True,
        docs_enabled=False,
        log_level="DEBUG",
        cors_origins=["http://localhost"],
        trusted_hosts=["testserver", "localhost"],
        database_url=database_url,
        database_pool_size=10,
        database_pool_timeout_seconds=5.0,
        database_create_schema=True,
        retention_days=30,
        recent_default_limit=50,
    )
    values.update(overrides)
    return Settings(**values)


@pytest.fixture()
def database_url(tmp_path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'measurements.db'}"


@pytest.fixture()
def settings_factory(database_url: str) -> Callable[..., Settings]:
    def factory(**overrides: Any) -> Settings:
        overrides.setdefault("database_url", database_url)
        return _make_settings(**overrides)

    return factory


@pytest.fixture()
def settings(settings_factory: Callable[..., Settings]) -> Settings:
    return settings_factory()


@pytest.fixture()
def run_with_repository(
    settings: Settings,
) -> Callable[..., Any]:
    """Run ``scenario(repo)`` on a fresh repository inside one event loop."""

    def runner(
        scenario: Callable[[SqlMeasurementRepository], Awaitable[Any]],
        *,
        settings_override: Settings | None = None,
        max_pending: int | None = None,
    ) -> Any:
        active = settings_override or settings

        async def main() -> Any:
            repo = SqlMeasurementRepository(
                engine=create_engine_from_settings(active),
                pool_size=active.database_pool_size,
                max_pending=max_pending,
            )
            await repo.create_schema()
            try:
                return await scenario(repo)
            finally:
                await repo.close()

        return asyncio.run(main())

    return runner


@pytest.fixture()
def client(settings: Settings) -> TestClient:
    app = create_app(settings)
    with TestClient(app) as client:
        yield client


@pytest.fixture()
def now() -> datetime:
    return FIXED_NOW
