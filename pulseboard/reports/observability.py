"""Structured log events for the report query and generation lifecycle.

Usage
-----
>>> event_logger = ReportingEventLogger()
>>> event_logger.log_generation_dispatched(date=day, request_id="req-1")

"""

from __future__ import annotations

import enum
import typing as typ

from pulseboard.logging import get_logger, log_error, log_info, log_warning

if typ.TYPE_CHECKING:
    import datetime as dt

logger = get_logger(__name__)


class ReportingEventType(enum.StrEnum):
    """Structured log event types for the report pipeline."""

    GENERATION_DISPATCHED = "reports.generation.dispatched"
    DISPATCH_SUPPRESSED = "reports.generation.dispatch_suppressed"
    REPORT_FORCED = "reports.report.forced"
    REPORT_SERVED = "reports.report.served"
    REPORT_STALE = "reports.report.stale"
    GENERATION_STARTED = "reports.generation.started"
    GENERATION_SKIPPED = "reports.generation.skipped"
    GENERATION_COMPLETED = "reports.generation.completed"
    GENERATION_FAILED = "reports.generation.failed"


class ReportingEventLogger:
    """Emit report pipeline events via femtologging."""

    def log_generation_dispatched(
        self, *, date: dt.date, request_id: str | None
    ) -> None:
        """Log that a generation request was published for ``date``."""
        log_info(
            logger,
            "[%s] date=%s request_id=%s",
            ReportingEventType.GENERATION_DISPATCHED,
            date.isoformat(),
            request_id,
        )

    def log_dispatch_suppressed(self, *, date: dt.date) -> None:
        """Log that a recent dispatch for ``date`` made a new one unnecessary."""
        log_info(
            logger,
            "[%s] date=%s",
            ReportingEventType.DISPATCH_SUPPRESSED,
            date.isoformat(),
        )

    def log_report_forced(self, *, date: dt.date, deleted: bool) -> None:
        """Log a forced regeneration and whether a summary was deleted."""
        log_info(
            logger,
            "[%s] date=%s deleted=%s",
            ReportingEventType.REPORT_FORCED,
            date.isoformat(),
            deleted,
        )

    def log_report_served(
        self, *, date: dt.date, status: str, detail_count: int
    ) -> None:
        """Log a stored summary returned to a reader."""
        log_info(
            logger,
            "[%s] date=%s status=%s details=%d",
            ReportingEventType.REPORT_SERVED,
            date.isoformat(),
            status,
            detail_count,
        )

    def log_report_stale(self, *, date: dt.date, pending_for: dt.timedelta) -> None:
        """Log a pending summary that has outlived the pending timeout."""
        log_warning(
            logger,
            "[%s] date=%s pending_seconds=%.0f",
            ReportingEventType.REPORT_STALE,
            date.isoformat(),
            pending_for.total_seconds(),
        )

    def log_generation_started(
        self, *, date: dt.date, request_id: str | None
    ) -> None:
        """Log the start of report computation."""
        log_info(
            logger,
            "[%s] date=%s request_id=%s",
            ReportingEventType.GENERATION_STARTED,
            date.isoformat(),
            request_id,
        )

    def log_generation_skipped(self, *, date: dt.date, reason: str) -> None:
        """Log a generation request that was ignored."""
        log_info(
            logger,
            "[%s] date=%s reason=%s",
            ReportingEventType.GENERATION_SKIPPED,
            date.isoformat(),
            reason,
        )

    def log_generation_completed(
        self,
        *,
        date: dt.date,
        app_count: int,
        total_runs: int,
        success_rate: float,
    ) -> None:
        """Log a summary that reached ``ready``."""
        log_info(
            logger,
            "[%s] date=%s apps=%d total_runs=%d success_rate=%.4f",
            ReportingEventType.GENERATION_COMPLETED,
            date.isoformat(),
            app_count,
            total_runs,
            success_rate,
        )

    def log_generation_failed(self, *, date: dt.date, error: BaseException) -> None:
        """Log a failed computation; the summary stays pending.

        Parameters
        ----------
        date
            Date whose report could not be computed.
        error
            Exception raised during computation.

        """
        log_error(
            logger,
            "[%s] date=%s error_type=%s error_message=%s",
            ReportingEventType.GENERATION_FAILED,
            date.isoformat(),
            type(error).__name__,
            str(error),
            exc_info=error,
        )
