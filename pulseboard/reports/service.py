"""Serve daily E2E reports, triggering background generation when needed.

``ReportQueryService.get_report`` never computes a report.  It returns what
the status store holds and, when nothing is stored for the date, publishes a
generation request and answers with a pending placeholder.  Callers poll
until the summary turns ``ready``.

Usage
-----
Wire the service and query a date::

    deps = ReportQueryDependencies(
        store=ReportStatusStore(session_factory),
        dispatcher=GenerationDispatcher(channel),
        directory=ApplicationDirectory(session_factory),
    )
    service = ReportQueryService(deps)
    payload = await service.get_report("2024-06-01")
    if payload.is_pending:
        ...  # poll again later

"""

from __future__ import annotations

import asyncio
import contextlib
import dataclasses as dc
import typing as typ
import uuid

import msgspec
from sqlalchemy.exc import SQLAlchemyError

from pulseboard.common.time import utc_day_bounds, utcnow
from pulseboard.logging import get_logger, log_warning
from pulseboard.reports.config import ReportingConfig
from pulseboard.reports.errors import ReportStoreError
from pulseboard.reports.models import (
    PENDING_MESSAGE,
    AppView,
    DetailView,
    ManualRunView,
    ReportEnrichments,
    ReportPayload,
    SummaryView,
)
from pulseboard.reports.observability import ReportingEventLogger
from pulseboard.reports.query import parse_enrichments, parse_report_date
from pulseboard.reports.storage import ReportStatus

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    import datetime as dt

    from pulseboard.apps.directory import ApplicationDirectory
    from pulseboard.apps.storage import Application, ManualRun
    from pulseboard.reports.dispatcher import GenerationDispatcher
    from pulseboard.reports.storage import ReportDetail, ReportSummary
    from pulseboard.reports.store import ReportStatusStore

logger = get_logger(__name__)


@dc.dataclass(slots=True)
class _DateLock:
    """Lock for one date plus the number of callers holding or awaiting it."""

    lock: asyncio.Lock = dc.field(default_factory=asyncio.Lock)
    users: int = 0


@dc.dataclass(frozen=True, slots=True)
class ReportQueryDependencies:
    """Collaborators required by ``ReportQueryService``.

    Attributes
    ----------
    store
        Status store holding summaries, details and dispatch claims.
    dispatcher
        Publisher for generation requests.
    directory
        Application lookups used for enrichment.

    """

    store: ReportStatusStore
    dispatcher: GenerationDispatcher
    directory: ApplicationDirectory


class ReportQueryService:
    """Answer report queries from the status store.

    Concurrent queries for the same date are serialised in-process, and the
    store's dispatch claim extends that to other processes, so a burst of
    readers for a missing report publishes one generation request.

    Parameters
    ----------
    dependencies
        Store, dispatcher and application directory.
    config
        Claim TTL and pending timeout; defaults to ``ReportingConfig()``.
    event_logger
        Structured event logger; a default instance is created when omitted.
    clock
        Returns the current aware UTC time.
    request_id_factory
        Produces correlation ids for dispatched requests.

    """

    def __init__(  # noqa: PLR0913
        self,
        dependencies: ReportQueryDependencies,
        *,
        config: ReportingConfig | None = None,
        event_logger: ReportingEventLogger | None = None,
        clock: cabc.Callable[[], dt.datetime] = utcnow,
        request_id_factory: cabc.Callable[[], str] | None = None,
    ) -> None:
        """Store collaborators and initialise per-date locks."""
        self._store = dependencies.store
        self._dispatcher = dependencies.dispatcher
        self._directory = dependencies.directory
        self._config = config or ReportingConfig()
        self._events = event_logger or ReportingEventLogger()
        self._clock = clock
        self._new_request_id = request_id_factory or (lambda: str(uuid.uuid4()))
        self._date_locks: dict[dt.date, _DateLock] = {}

    async def get_report(
        self,
        date: dt.date | str | None = None,
        enrichments: ReportEnrichments | str | None = None,
        *,
        force: bool = False,
    ) -> ReportPayload:
        """Return the report for ``date``, dispatching generation if absent.

        Parameters
        ----------
        date
            Calendar date or ``YYYY-MM-DD`` string; defaults to today (UTC).
        enrichments
            Flags or a JSON object of flags selecting optional data.
        force
            Delete any stored report for the date and dispatch a new
            generation request.

        Returns
        -------
        ReportPayload
            The stored report, or a pending placeholder.

        Raises
        ------
        InvalidReportQueryError
            If ``date`` or ``enrichments`` fail validation.  Nothing has been
            read, written or published when this is raised.
        ReportStoreError
            If the status store fails.
        Exception
            Any error raised by the channel while publishing propagates
            unchanged.

        """
        day = (
            parse_report_date(date) if date is None or isinstance(date, str) else date
        )
        flags = (
            enrichments
            if isinstance(enrichments, ReportEnrichments)
            else parse_enrichments(enrichments)
        )

        async with self._locked(day):
            if force:
                deleted = await self._store.delete_report(day)
                self._events.log_report_forced(date=day, deleted=deleted)
                await self._dispatch(day, force=True)
                return ReportPayload.pending_placeholder(day)

            summary = await self._store.get_summary(day)
            if summary is None:
                await self._dispatch(day, force=False)
                return ReportPayload.pending_placeholder(day)

        if summary.status == ReportStatus.PENDING:
            self._check_stale(summary)
            payload = ReportPayload(
                summary=_summary_view(summary), details=[], message=PENDING_MESSAGE
            )
        else:
            payload = await self._ready_payload(summary, flags)
        self._events.log_report_served(
            date=day,
            status=summary.status,
            detail_count=(
                0 if payload.details is msgspec.UNSET else len(payload.details)
            ),
        )
        return payload

    @contextlib.asynccontextmanager
    async def _locked(self, day: dt.date) -> cabc.AsyncIterator[None]:
        """Hold the lock for ``day``; the entry is dropped once unused."""
        entry = self._date_locks.get(day)
        if entry is None:
            entry = self._date_locks[day] = _DateLock()
        entry.users += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.users -= 1
            if entry.users == 0:
                del self._date_locks[day]

    async def _dispatch(self, day: dt.date, *, force: bool) -> None:
        """Claim ``day`` and publish one generation request.

        Without ``force`` a fresh claim held by an earlier dispatch suppresses
        the publish.  A failed publish releases the claim and re-raises.
        """
        request_id = self._new_request_id()
        claimed = await self._store.claim_dispatch(
            day,
            request_id,
            now=self._clock(),
            ttl=self._config.dispatch_claim_ttl,
        )
        if not claimed and not force:
            self._events.log_dispatch_suppressed(date=day)
            return
        try:
            await self._dispatcher.publish_generation_request(day, request_id)
        except Exception:
            if claimed:
                await self._release_claim(day, request_id)
            raise
        self._events.log_generation_dispatched(date=day, request_id=request_id)

    async def _release_claim(self, day: dt.date, request_id: str) -> None:
        try:
            await self._store.release_dispatch_claim(day, request_id)
        except ReportStoreError as exc:
            log_warning(
                logger,
                "Could not release dispatch claim for %s: %s",
                day.isoformat(),
                exc,
            )

    def _check_stale(self, summary: ReportSummary) -> None:
        pending_for = self._clock() - summary.updated_at
        if pending_for > self._config.pending_timeout:
            self._events.log_report_stale(date=summary.date, pending_for=pending_for)

    async def _ready_payload(
        self, summary: ReportSummary, flags: ReportEnrichments
    ) -> ReportPayload:
        summary_view = _summary_view(summary)
        if not flags.include_details:
            return ReportPayload(summary=summary_view)

        details = await self._store.get_details(summary.id)
        if not flags.include_app_info:
            return ReportPayload(
                summary=summary_view,
                details=[_detail_view(detail) for detail in details],
            )

        apps, runs = await self._load_enrichment(summary.date, details, flags)
        views: list[DetailView] = []
        for detail in details:
            app = apps.get(detail.app_id)
            if app is None:
                continue
            manual_runs = (
                runs.get(app.id, []) if flags.include_manual_runs else None
            )
            views.append(_detail_view(detail, _app_view(app, manual_runs)))
        return ReportPayload(summary=summary_view, details=views)

    async def _load_enrichment(
        self,
        day: dt.date,
        details: cabc.Sequence[ReportDetail],
        flags: ReportEnrichments,
    ) -> tuple[dict[int, Application], dict[int, list[ManualRun]]]:
        app_ids = {detail.app_id for detail in details}
        try:
            apps = await self._directory.get_applications(app_ids)
            runs: dict[int, list[ManualRun]] = {}
            if flags.include_manual_runs and apps:
                start, end = utc_day_bounds(day)
                runs = await self._directory.list_manual_runs(apps.keys(), start, end)
        except SQLAlchemyError as exc:
            raise ReportStoreError("read applications") from exc
        return apps, runs


def _summary_view(summary: ReportSummary) -> SummaryView:
    return SummaryView(
        id=summary.id,
        date=summary.date,
        status=ReportStatus(summary.status),
        total_runs=summary.total_runs,
        passed_runs=summary.passed_runs,
        failed_runs=summary.failed_runs,
        success_rate=summary.success_rate,
        created_at=summary.created_at,
        updated_at=summary.updated_at,
    )


def _app_view(app: Application, manual_runs: list[ManualRun] | None) -> AppView:
    return AppView(
        id=app.id,
        name=app.name,
        code=app.code,
        pipeline_url=app.pipeline_url,
        watching=app.watching,
        manual_runs=(
            msgspec.UNSET
            if manual_runs is None
            else [
                ManualRunView(
                    id=run.id,
                    app_id=run.app_id,
                    pipeline_id=run.pipeline_id,
                    created_at=run.created_at,
                )
                for run in manual_runs
            ]
        ),
    )


def _detail_view(detail: ReportDetail, app: AppView | None = None) -> DetailView:
    return DetailView(
        id=detail.id,
        report_summary_id=detail.report_summary_id,
        app_id=detail.app_id,
        total_runs=detail.total_runs,
        passed_runs=detail.passed_runs,
        failed_runs=detail.failed_runs,
        success_rate=detail.success_rate,
        last_run_status=detail.last_run_status,
        last_failed_run_at=detail.last_failed_run_at,
        last_run_at=detail.last_run_at,
        app=msgspec.UNSET if app is None else app,
    )
