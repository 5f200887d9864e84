"""Health check resources for liveness and readiness checks.

``HealthResource`` is stateless.  ``ReadyResource`` optionally runs a
readiness check, such as a database ping, and answers 503 when it fails.

Usage
-----
Register health endpoints on the Falcon app::

    from pulseboard.api.health.resources import HealthResource, ReadyResource

    app.add_route("/health", HealthResource())
    app.add_route("/ready", ReadyResource(check=ping_database))

"""

from __future__ import annotations

import typing as typ
from http import HTTPStatus

from pulseboard.logging import get_logger, log_warning

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from falcon.asgi import Request, Response

__all__ = ["HealthResource", "ReadinessCheck", "ReadyResource"]

logger = get_logger(__name__)

ReadinessCheck: typ.TypeAlias = "cabc.Callable[[], cabc.Awaitable[None]]"


class HealthResource:
    """Liveness resource returning ``{"status": "ok"}``."""

    async def on_get(self, _req: Request, resp: Response) -> None:
        """Handle GET /health requests."""
        resp.media = {"status": "ok"}
        resp.status = HTTPStatus.OK


class ReadyResource:
    """Readiness resource returning ``{"status": "ready"}``.

    Parameters
    ----------
    check
        Optional coroutine function raising when a dependency is not
        reachable.  Without one the resource always reports ready.

    """

    def __init__(self, check: ReadinessCheck | None = None) -> None:
        """Store the optional readiness check."""
        self._check = check

    async def on_get(self, _req: Request, resp: Response) -> None:
        """Handle GET /ready requests.

        Parameters
        ----------
        _req
            Falcon request (unused).
        resp
            Falcon response populated with readiness status.

        """
        if self._check is not None:
            try:
                await self._check()
            except Exception as exc:  # noqa: BLE001 - any failure means not ready
                log_warning(logger, "Readiness check failed: %s", exc)
                resp.media = {"status": "unavailable"}
                resp.status = HTTPStatus.SERVICE_UNAVAILABLE
                return
        resp.media = {"status": "ready"}
        resp.status = HTTPStatus.OK
