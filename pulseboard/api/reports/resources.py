"""API resource serving daily E2E reports.

``GET /api/e2e_run_report`` accepts ``date`` (``YYYY-MM-DD``), ``enrichments``
(a JSON object of flags) and ``force`` query parameters.  It answers 200 with
a ready report or 202 with a pending placeholder while generation runs in the
background.

Usage
-----
Register the resource on the Falcon app::

    app.add_route("/api/e2e_run_report", E2EReportResource(service))

"""

from __future__ import annotations

import typing as typ

import falcon
import msgspec

from pulseboard.reports.query import parse_report_query

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

    from pulseboard.reports.service import ReportQueryService

__all__ = ["E2EReportResource"]


class E2EReportResource:
    """Resource for report queries backed by ``ReportQueryService``."""

    def __init__(self, service: ReportQueryService) -> None:
        """Configure the resource with the query service."""
        self._service = service

    async def on_get(self, req: Request, resp: Response) -> None:
        """Handle GET request for a daily report.

        Validation failures raise ``InvalidReportQueryError`` before the
        service is called, which the app maps to HTTP 400.

        Parameters
        ----------
        req
            Falcon request carrying the query parameters.
        resp
            Falcon response populated with the report payload.

        """
        query = parse_report_query(
            date=req.get_param("date"),
            enrichments=req.get_param("enrichments"),
            force=req.get_param("force"),
        )
        payload = await self._service.get_report(
            query.date, query.enrichments, force=query.force
        )
        resp.media = msgspec.to_builtins(payload)
        resp.status = falcon.HTTP_202 if payload.is_pending else falcon.HTTP_200
