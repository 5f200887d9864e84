"""Unit tests for the pulseboard.runtime module."""

from __future__ import annotations

import typing as typ
from http import HTTPStatus
from unittest import mock

import falcon.asgi
import falcon.testing
import pytest

from pulseboard.db import init_storage

if typ.TYPE_CHECKING:
    from pathlib import Path

    from sqlalchemy.ext.asyncio import AsyncEngine


@pytest.fixture
def client(monkeypatch: pytest.MonkeyPatch) -> falcon.testing.TestClient:
    """Create a test client for the health-only runtime app."""
    from pulseboard.runtime import create_app

    monkeypatch.delenv("PULSEBOARD_DATABASE_URL", raising=False)
    return falcon.testing.TestClient(create_app())


class TestHealthOnlyRuntime:
    """Runtime without a database URL."""

    def test_health_returns_json_status_ok(
        self, client: falcon.testing.TestClient
    ) -> None:
        """GET /health returns JSON with status ok."""
        result = client.simulate_get("/health")
        assert result.status_code == HTTPStatus.OK
        assert result.json == {"status": "ok"}

    def test_ready_content_type_is_json(
        self, client: falcon.testing.TestClient
    ) -> None:
        """GET /ready has application/json content type."""
        result = client.simulate_get("/ready")
        content_type = result.headers.get("content-type", "")
        assert content_type.startswith("application/json")

    def test_report_endpoint_is_absent(
        self, client: falcon.testing.TestClient
    ) -> None:
        """The report endpoint needs a database."""
        result = client.simulate_get("/api/e2e_run_report")
        assert result.status_code == HTTPStatus.NOT_FOUND


class TestDatabaseRuntime:
    """Runtime with ``PULSEBOARD_DATABASE_URL`` set."""

    @pytest.mark.asyncio
    async def test_registers_report_route_and_database_ping(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        """The full app serves reports and pings the database on /ready."""
        import sqlalchemy.ext.asyncio as sa_asyncio

        from pulseboard.channel.redis_pubsub import RedisChannel
        from pulseboard.runtime import create_app

        url = f"sqlite+aiosqlite:///{tmp_path / 'runtime.db'}"
        setup_engine = sa_asyncio.create_async_engine(url)
        await init_storage(setup_engine)
        await setup_engine.dispose()
        engines: list[AsyncEngine] = []
        real_create_engine = sa_asyncio.create_async_engine

        def _create_engine(*args: typ.Any, **kwargs: typ.Any) -> AsyncEngine:  # noqa: ANN401
            engine = real_create_engine(*args, **kwargs)
            engines.append(engine)
            return engine

        monkeypatch.setattr(sa_asyncio, "create_async_engine", _create_engine)
        channel_aclose = mock.AsyncMock()
        monkeypatch.setattr(RedisChannel, "aclose", channel_aclose)
        monkeypatch.setenv("PULSEBOARD_DATABASE_URL", url)
        monkeypatch.setenv("PULSEBOARD_REDIS_URL", "redis://localhost:6379/15")

        app = create_app()

        assert isinstance(app, falcon.asgi.App), "expected Falcon ASGI App"
        try:
            async with falcon.testing.ASGIConductor(app) as conductor:
                ready = await conductor.simulate_get("/ready")
                invalid = await conductor.simulate_get(
                    "/api/e2e_run_report", params={"date": "not-a-date"}
                )
        finally:
            for engine in engines:
                await engine.dispose()
        assert ready.status_code == HTTPStatus.OK, "sqlite ping should succeed"
        assert invalid.status_code == HTTPStatus.BAD_REQUEST, (
            "report route should be registered and validate input"
        )
        channel_aclose.assert_awaited_once_with()


class TestParsePort:
    """Tests for ``_parse_port``."""

    def test_accepts_valid_port(self) -> None:
        """Ports inside the TCP range are returned as integers."""
        from pulseboard.runtime import _parse_port

        assert _parse_port("8080") == 8080

    @pytest.mark.parametrize("raw", ["http", "0", "65536"])
    def test_rejects_invalid_port(self, raw: str) -> None:
        """Invalid ports exit with status 1."""
        from pulseboard.runtime import _parse_port

        with pytest.raises(SystemExit) as excinfo:
            _parse_port(raw)
        assert excinfo.value.code == 1


class TestRuntimeSettings:
    """Tests for ``RuntimeSettings.from_env``."""

    def test_defaults_without_environment(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Unset variables fall back to the documented defaults."""
        from pulseboard.runtime import RuntimeSettings

        for name in (
            "PULSEBOARD_HOST",
            "PULSEBOARD_PORT",
            "PULSEBOARD_LOG_LEVEL",
            "PULSEBOARD_DATABASE_URL",
        ):
            monkeypatch.delenv(name, raising=False)

        assert RuntimeSettings.from_env() == RuntimeSettings(), (
            "defaults should match the dataclass fields"
        )

    def test_reads_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Each variable overrides its field."""
        from pulseboard.runtime import RuntimeSettings

        monkeypatch.setenv("PULSEBOARD_HOST", "127.0.0.1")
        monkeypatch.setenv("PULSEBOARD_PORT", "9000")
        monkeypatch.setenv("PULSEBOARD_LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("PULSEBOARD_DATABASE_URL", "sqlite+aiosqlite://")

        settings = RuntimeSettings.from_env()

        assert settings == RuntimeSettings(
            host="127.0.0.1",
            port=9000,
            log_level="DEBUG",
            database_url="sqlite+aiosqlite://",
        ), "environment values should be used"

    def test_invalid_port_exits(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """A malformed port stops start-up."""
        from pulseboard.runtime import RuntimeSettings

        monkeypatch.setenv("PULSEBOARD_PORT", "-1")

        with pytest.raises(SystemExit):
            RuntimeSettings.from_env()


class TestConnectionCloser:
    """Tests for the lifespan shutdown middleware."""

    @pytest.mark.asyncio
    async def test_shutdown_closes_channel_and_engine(self) -> None:
        """Both resources are released on shutdown."""
        from pulseboard.runtime import ConnectionCloser

        channel = mock.AsyncMock()
        engine = mock.AsyncMock()

        await ConnectionCloser(channel, engine).process_shutdown({}, {})

        channel.aclose.assert_awaited_once_with()
        engine.dispose.assert_awaited_once_with()

    @pytest.mark.asyncio
    async def test_engine_is_disposed_when_channel_close_fails(self) -> None:
        """A failing channel close still releases the connection pool."""
        from pulseboard.runtime import ConnectionCloser

        channel = mock.AsyncMock()
        channel.aclose.side_effect = ConnectionError("redis gone")
        engine = mock.AsyncMock()

        with pytest.raises(ConnectionError, match="redis gone"):
            await ConnectionCloser(channel, engine).process_shutdown({}, {})

        engine.dispose.assert_awaited_once_with()
