"""Falcon error handlers for the API layer.

Each handler translates a domain exception into a JSON response with a
``title`` and ``description``.

Usage
-----
Register error handlers on the Falcon app::

    from pulseboard.api.errors import (
        handle_invalid_report_query,
        handle_report_store_error,
    )

    app.add_error_handler(InvalidReportQueryError, handle_invalid_report_query)
    app.add_error_handler(ReportStoreError, handle_report_store_error)

"""

from __future__ import annotations

import typing as typ

import falcon

from pulseboard.logging import get_logger, log_exception

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

    from pulseboard.channel.errors import ChannelError
    from pulseboard.reports.errors import InvalidReportQueryError, ReportStoreError

__all__ = [
    "handle_channel_error",
    "handle_invalid_report_query",
    "handle_report_store_error",
]

logger = get_logger(__name__)


async def handle_invalid_report_query(
    _req: Request,
    resp: Response,
    ex: InvalidReportQueryError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``InvalidReportQueryError`` to an HTTP 400 JSON response.

    Parameters
    ----------
    _req
        Falcon request (unused).
    resp
        Falcon response whose status and media are set.
    ex
        The validation exception containing reason and field.
    _params
        URI template parameters (unused).

    """
    resp.status = falcon.HTTP_400
    resp.media = {
        "title": "Invalid input",
        "description": ex.reason,
        "field": ex.field,
    }


async def handle_report_store_error(
    _req: Request,
    resp: Response,
    ex: ReportStoreError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``ReportStoreError`` to an HTTP 500 JSON response."""
    log_exception(logger, "Report store failure", ex)
    resp.status = falcon.HTTP_500
    resp.media = {
        "title": "Report store unavailable",
        "description": str(ex),
    }


async def handle_channel_error(
    _req: Request,
    resp: Response,
    ex: ChannelError,
    _params: dict[str, typ.Any],
) -> None:
    """Map a failed generation publish to an HTTP 503 JSON response."""
    log_exception(logger, "Message channel failure", ex)
    resp.status = falcon.HTTP_503
    resp.media = {
        "title": "Report generation unavailable",
        "description": str(ex),
    }
