"""Data access for report summaries, details and dispatch claims.

Every method opens its own session and commits before returning, so callers
never hold a transaction across a channel publish.  Database failures surface
as :class:`~pulseboard.reports.errors.ReportStoreError`.
"""

from __future__ import annotations

import contextlib
import typing as typ

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from pulseboard.reports.errors import ReportStoreError
from pulseboard.reports.storage import (
    ReportDetail,
    ReportDispatchClaim,
    ReportStatus,
    ReportSummary,
)

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    import datetime as dt

    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from pulseboard.reports.models import AppRunStats


@contextlib.contextmanager
def _store_operation(operation: str) -> cabc.Iterator[None]:
    """Translate SQLAlchemy failures into ``ReportStoreError``."""
    try:
        yield
    except SQLAlchemyError as exc:
        raise ReportStoreError(operation) from exc


class ReportStatusStore:
    """Persistence operations used by the query service and the consumer."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        """Store the session factory used for every operation."""
        self._session_factory = session_factory

    async def get_summary(self, date: dt.date) -> ReportSummary | None:
        """Return the summary for ``date``, or ``None`` when none exists."""
        with _store_operation("read summary"):
            async with self._session_factory() as session:
                return await session.scalar(
                    select(ReportSummary).where(ReportSummary.date == date)
                )

    async def get_details(self, summary_id: int) -> list[ReportDetail]:
        """Return the detail rows of a summary ordered by application id."""
        with _store_operation("read details"):
            async with self._session_factory() as session:
                rows = await session.scalars(
                    select(ReportDetail)
                    .where(ReportDetail.report_summary_id == summary_id)
                    .order_by(ReportDetail.app_id)
                )
                return list(rows)

    async def delete_report(self, date: dt.date) -> bool:
        """Delete the summary for ``date`` with its details and dispatch claim.

        Returns
        -------
        bool
            ``True`` when a summary was deleted.

        """
        summary_ids = select(ReportSummary.id).where(ReportSummary.date == date)
        with _store_operation("delete report"):
            async with self._session_factory() as session, session.begin():
                await session.execute(
                    delete(ReportDetail)
                    .where(ReportDetail.report_summary_id.in_(summary_ids))
                    .execution_options(synchronize_session=False)
                )
                result = await session.execute(
                    delete(ReportSummary)
                    .where(ReportSummary.date == date)
                    .execution_options(synchronize_session=False)
                )
                await session.execute(
                    delete(ReportDispatchClaim)
                    .where(ReportDispatchClaim.date == date)
                    .execution_options(synchronize_session=False)
                )
                return bool(result.rowcount)

    async def claim_dispatch(
        self,
        date: dt.date,
        request_id: str,
        *,
        now: dt.datetime,
        ttl: dt.timedelta,
    ) -> bool:
        """Record a dispatch for ``date`` unless a fresh claim already exists.

        The claim is taken either by refreshing a claim older than ``ttl`` or
        by inserting the first claim for the date.  The unique constraint on
        ``date`` makes the insert race-safe across processes.

        Returns
        -------
        bool
            ``True`` when the caller now holds the claim and should dispatch.

        """
        try:
            async with self._session_factory() as session, session.begin():
                refreshed = await session.execute(
                    update(ReportDispatchClaim)
                    .where(
                        ReportDispatchClaim.date == date,
                        ReportDispatchClaim.claimed_at < now - ttl,
                    )
                    .values(request_id=request_id, claimed_at=now)
                    .execution_options(synchronize_session=False)
                )
                if refreshed.rowcount:
                    return True
                session.add(
                    ReportDispatchClaim(date=date, request_id=request_id, claimed_at=now)
                )
        except IntegrityError:
            return False
        except SQLAlchemyError as exc:
            raise ReportStoreError("claim dispatch") from exc
        return True

    async def release_dispatch_claim(self, date: dt.date, request_id: str) -> None:
        """Drop the claim for ``date`` if ``request_id`` still holds it."""
        with _store_operation("release dispatch claim"):
            async with self._session_factory() as session, session.begin():
                await session.execute(
                    delete(ReportDispatchClaim)
                    .where(
                        ReportDispatchClaim.date == date,
                        ReportDispatchClaim.request_id == request_id,
                    )
                    .execution_options(synchronize_session=False)
                )

    async def create_pending_summary(
        self, date: dt.date
    ) -> tuple[ReportSummary, bool]:
        """Insert a pending summary for ``date``.

        Returns
        -------
        tuple[ReportSummary, bool]
            The summary for the date and whether this call created it.  When
            another writer inserted first, the existing row is returned.

        """
        try:
            async with self._session_factory() as session, session.begin():
                summary = ReportSummary(date=date, status=ReportStatus.PENDING)
                session.add(summary)
        except IntegrityError:
            existing = await self.get_summary(date)
            if existing is None:
                raise ReportStoreError("create pending summary") from None
            return existing, False
        except SQLAlchemyError as exc:
            raise ReportStoreError("create pending summary") from exc
        return summary, True

    async def complete_summary(
        self, summary_id: int, stats: cabc.Sequence[AppRunStats]
    ) -> ReportSummary | None:
        """Replace a summary's details with ``stats`` and mark it ready.

        Totals are summed across ``stats``; the success rate is
        ``passed / total`` or 0 when no runs were recorded.

        Returns
        -------
        ReportSummary | None
            The updated summary, or ``None`` when it was deleted meanwhile.

        """
        with _store_operation("complete summary"):
            async with self._session_factory() as session, session.begin():
                summary = await session.get(ReportSummary, summary_id)
                if summary is None:
                    return None
                await session.execute(
                    delete(ReportDetail)
                    .where(ReportDetail.report_summary_id == summary_id)
                    .execution_options(synchronize_session=False)
                )
                session.add_all(
                    ReportDetail(
                        report_summary_id=summary_id,
                        app_id=item.app_id,
                        total_runs=item.total_runs,
                        passed_runs=item.passed_runs,
                        failed_runs=item.failed_runs,
                        success_rate=item.success_rate,
                        last_run_status=item.last_run_status,
                        last_failed_run_at=item.last_failed_run_at,
                        last_run_at=item.last_run_at,
                    )
                    for item in stats
                )
                total = sum(item.total_runs for item in stats)
                passed = sum(item.passed_runs for item in stats)
                summary.total_runs = total
                summary.passed_runs = passed
                summary.failed_runs = sum(item.failed_runs for item in stats)
                summary.success_rate = passed / total if total else 0.0
                summary.status = ReportStatus.READY
                return summary
