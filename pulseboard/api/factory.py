"""Factory for building a ReportQueryService from its collaborators.

Usage
-----
Build a service for the API layer::

    from pulseboard.api.factory import build_report_query_service

    service = build_report_query_service(session_factory, channel)

"""

from __future__ import annotations

import typing as typ

from pulseboard.apps.directory import ApplicationDirectory
from pulseboard.reports.config import ReportingConfig
from pulseboard.reports.dispatcher import GenerationDispatcher
from pulseboard.reports.observability import ReportingEventLogger
from pulseboard.reports.service import ReportQueryDependencies, ReportQueryService
from pulseboard.reports.store import ReportStatusStore

if typ.TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from pulseboard.channel.protocol import MessageChannel

__all__ = ["build_report_query_service"]


def build_report_query_service(
    session_factory: async_sessionmaker[AsyncSession],
    channel: MessageChannel,
    config: ReportingConfig | None = None,
) -> ReportQueryService:
    """Assemble a ``ReportQueryService``.

    Parameters
    ----------
    session_factory
        Async session factory for the status store and application lookups.
    channel
        Channel the dispatcher publishes generation requests on.
    config
        Reporting configuration; read from the environment when omitted.

    Returns
    -------
    ReportQueryService
        Configured service ready to answer report queries.

    """
    dependencies = ReportQueryDependencies(
        store=ReportStatusStore(session_factory),
        dispatcher=GenerationDispatcher(channel),
        directory=ApplicationDirectory(session_factory),
    )
    return ReportQueryService(
        dependencies,
        config=config or ReportingConfig.from_env(),
        event_logger=ReportingEventLogger(),
    )
