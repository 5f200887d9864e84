"""Process entrypoint serving the Pulseboard API under Granian.

Granian imports ``pulseboard.runtime:create_app`` as an app factory.  Without
``PULSEBOARD_DATABASE_URL`` the app only answers ``/health`` and ``/ready``;
with it the report endpoint is wired to the database and to the Redis channel
named by ``PULSEBOARD_REDIS_URL``.  Both are closed on ASGI lifespan shutdown.

Environment
-----------
``PULSEBOARD_HOST``
    Bind address, ``0.0.0.0`` by default.
``PULSEBOARD_PORT``
    Listen port, ``8080`` by default.
``PULSEBOARD_LOG_LEVEL``
    femtologging level, ``INFO`` by default.
``PULSEBOARD_DATABASE_URL``
    SQLAlchemy async URL; enables ``/api/e2e_run_report``.
``PULSEBOARD_REDIS_URL``
    Channel used to publish generation requests.
"""

from __future__ import annotations

import dataclasses as dc
import os
import typing as typ

from pulseboard.logging import (
    configure_logging,
    get_logger,
    log_error,
    log_info,
    log_warning,
)

if typ.TYPE_CHECKING:
    import falcon.asgi
    from sqlalchemy.ext.asyncio import AsyncEngine

    from pulseboard.api.health.resources import ReadinessCheck
    from pulseboard.channel.redis_pubsub import RedisChannel

__all__ = ["ConnectionCloser", "RuntimeSettings", "create_app", "main"]

logger = get_logger(__name__)

_PORT_RANGE = range(1, 65536)


def _parse_port(raw: str) -> int:
    """Return ``raw`` as a TCP port, exiting with status 1 when invalid."""
    port = int(raw) if raw.isdigit() else None
    if port is None or port not in _PORT_RANGE:
        log_error(
            logger, "PULSEBOARD_PORT must be an integer in 1-65535, got %r", raw
        )
        raise SystemExit(1)
    return port


@dc.dataclass(frozen=True, slots=True)
class RuntimeSettings:
    """Server settings read from ``PULSEBOARD_*`` variables."""

    host: str = "0.0.0.0"  # noqa: S104
    port: int = 8080
    log_level: str = "INFO"
    database_url: str | None = None

    @classmethod
    def from_env(cls) -> RuntimeSettings:
        """Read the settings, exiting on an invalid port."""
        return cls(
            host=os.environ.get("PULSEBOARD_HOST", cls.host),
            port=_parse_port(os.environ.get("PULSEBOARD_PORT", str(cls.port))),
            log_level=os.environ.get("PULSEBOARD_LOG_LEVEL", cls.log_level),
            database_url=os.environ.get("PULSEBOARD_DATABASE_URL") or None,
        )


class ConnectionCloser:
    """Falcon middleware closing the channel and engine on lifespan shutdown."""

    def __init__(self, channel: RedisChannel, engine: AsyncEngine) -> None:
        """Remember the resources owned by the app."""
        self._channel = channel
        self._engine = engine

    async def process_shutdown(
        self, scope: dict[str, typ.Any], event: dict[str, typ.Any]
    ) -> None:
        """Close the Redis channel, then dispose of the connection pool."""
        del scope, event
        try:
            await self._channel.aclose()
        finally:
            await self._engine.dispose()
        log_info(logger, "Closed report channel and database engine")


def _database_ping(engine: AsyncEngine) -> ReadinessCheck:
    from sqlalchemy import text

    async def ping() -> None:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    return ping


def create_app() -> falcon.asgi.App:
    """Build the ASGI app for the current environment."""
    from pulseboard.api.app import create_app as _create_api_app

    database_url = os.environ.get("PULSEBOARD_DATABASE_URL")
    if not database_url:
        return _create_api_app()

    from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

    from pulseboard.api.app import AppDependencies
    from pulseboard.api.factory import build_report_query_service
    from pulseboard.channel.config import ChannelConfig
    from pulseboard.channel.redis_pubsub import RedisChannel

    engine = create_async_engine(database_url)
    channel = RedisChannel.from_config(ChannelConfig.from_env())
    service = build_report_query_service(
        async_sessionmaker(engine, expire_on_commit=False), channel
    )
    app = _create_api_app(
        AppDependencies(
            report_query_service=service, readiness_check=_database_ping(engine)
        )
    )
    app.add_middleware(ConnectionCloser(channel, engine))
    return app


def main() -> None:
    """Configure logging and serve ``create_app`` with Granian."""
    from granian import Granian
    from granian.constants import Interfaces

    settings = RuntimeSettings.from_env()
    level, substituted = configure_logging(settings.log_level)
    if substituted:
        log_warning(
            logger,
            "Unknown PULSEBOARD_LOG_LEVEL %r; using %s",
            settings.log_level,
            level,
        )
    log_info(
        logger,
        "Serving Pulseboard on %s:%d (reports %s)",
        settings.host,
        settings.port,
        "enabled" if settings.database_url else "disabled",
    )
    Granian(
        "pulseboard.runtime:create_app",
        address=settings.host,
        port=settings.port,
        interface=Interfaces.ASGI,
        factory=True,
    ).serve()


if __name__ == "__main__":
    main()
