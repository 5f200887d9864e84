"""Daily E2E report pipeline: query, dispatch, generation and polling.

Public API
----------
ReportQueryService
    Serves stored reports and dispatches generation for missing dates.
GenerationDispatcher
    Publishes ``e2e:report:generate`` requests.
ReportGeneratorConsumer
    Processor that computes a report and marks it ready.
ReportStatusStore
    Data access for summaries, details and dispatch claims.
ReportPoller
    Client-side poller that re-fetches a pending report.

"""

from __future__ import annotations

from .config import ReportingConfig
from .consumer import ReportGeneratorConsumer
from .dispatcher import GenerationDispatcher
from .errors import (
    InvalidReportQueryError,
    ReportGenerationError,
    ReportingError,
    ReportStoreError,
)
from .models import (
    PENDING_MESSAGE,
    AppRunStats,
    ReportEnrichments,
    ReportPayload,
)
from .poller import PollerConfig, ReportPoller
from .query import ReportQuery, parse_report_query
from .service import ReportQueryDependencies, ReportQueryService
from .sources import (
    FixtureRunStatsSource,
    RunStatsSource,
    StaticRunStatsSource,
    create_run_stats_source,
)
from .storage import ReportDetail, ReportStatus, ReportSummary, RunStatus
from .store import ReportStatusStore

__all__ = [
    "PENDING_MESSAGE",
    "AppRunStats",
    "FixtureRunStatsSource",
    "GenerationDispatcher",
    "InvalidReportQueryError",
    "PollerConfig",
    "ReportDetail",
    "ReportEnrichments",
    "ReportGenerationError",
    "ReportGeneratorConsumer",
    "ReportPayload",
    "ReportPoller",
    "ReportQuery",
    "ReportQueryDependencies",
    "ReportQueryService",
    "ReportStatus",
    "ReportStatusStore",
    "ReportStoreError",
    "ReportSummary",
    "ReportingConfig",
    "ReportingError",
    "RunStatsSource",
    "RunStatus",
    "StaticRunStatsSource",
    "create_run_stats_source",
    "parse_report_query",
]
