"""Application factory for the Pulseboard Falcon ASGI application.

This module provides ``create_app()`` which builds the Falcon ASGI
application with health endpoints and, when a report query service is
available, the report query endpoint.

Usage
-----
Create a health-only app (no database)::

    app = create_app()

Create a full app with the report endpoint::

    from pulseboard.api.app import AppDependencies, create_app

    deps = AppDependencies(report_query_service=service)
    app = create_app(deps)

"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

import falcon.asgi

from pulseboard.api.errors import (
    handle_channel_error,
    handle_invalid_report_query,
    handle_report_store_error,
)
from pulseboard.api.health.resources import HealthResource, ReadyResource
from pulseboard.channel.errors import ChannelError
from pulseboard.reports.errors import InvalidReportQueryError, ReportStoreError

if typ.TYPE_CHECKING:
    from pulseboard.api.health.resources import ReadinessCheck
    from pulseboard.reports.service import ReportQueryService

__all__ = ["AppDependencies", "create_app"]

REPORT_ROUTE = "/api/e2e_run_report"


@dc.dataclass(frozen=True, slots=True)
class AppDependencies:
    """Dependencies for the Falcon ASGI application.

    Attributes
    ----------
    report_query_service
        Service answering report queries.  When ``None`` only health
        endpoints are registered.
    readiness_check
        Optional coroutine function used by ``/ready``.

    """

    report_query_service: ReportQueryService | None = None
    readiness_check: ReadinessCheck | None = None


def create_app(
    dependencies: AppDependencies | None = None,
) -> falcon.asgi.App:
    """Create and configure the Falcon ASGI application.

    Parameters
    ----------
    dependencies
        Optional application dependencies.  When ``None``, only health
        endpoints are available.

    Returns
    -------
    falcon.asgi.App
        Configured Falcon ASGI application.

    """
    deps = dependencies or AppDependencies()
    app = falcon.asgi.App()

    # Health endpoints are always available
    app.add_route("/health", HealthResource())
    app.add_route("/ready", ReadyResource(deps.readiness_check))

    if deps.report_query_service is not None:
        from pulseboard.api.reports.resources import E2EReportResource

        app.add_route(REPORT_ROUTE, E2EReportResource(deps.report_query_service))

    app.add_error_handler(InvalidReportQueryError, handle_invalid_report_query)
    app.add_error_handler(ReportStoreError, handle_report_store_error)
    app.add_error_handler(ChannelError, handle_channel_error)

    return app
