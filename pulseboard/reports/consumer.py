"""Consume generation requests and write computed reports to the store.

The consumer owns the pending placeholder: it inserts the ``pending``
summary when it starts on a date and flips it to ``ready`` once the detail
rows are written.  Failures are logged and leave the summary pending, where
a forced query can clear it.
"""

from __future__ import annotations

import typing as typ

from pulseboard.channel.topics import GenerationRequest, Topic
from pulseboard.reports.observability import ReportingEventLogger
from pulseboard.reports.storage import ReportStatus

if typ.TYPE_CHECKING:
    import datetime as dt

    from pulseboard.reports.sources import RunStatsSource
    from pulseboard.reports.store import ReportStatusStore


class ReportGeneratorConsumer:
    """Processor for ``e2e:report:generate`` messages.

    Parameters
    ----------
    store
        Status store the computed report is written to.
    source
        Provider of per-application run statistics.
    event_logger
        Structured event logger; a default instance is created when omitted.

    """

    topic = Topic.REPORT_GENERATE
    message_type = GenerationRequest

    def __init__(
        self,
        store: ReportStatusStore,
        source: RunStatsSource,
        *,
        event_logger: ReportingEventLogger | None = None,
    ) -> None:
        """Store collaborators and initialise the in-flight set."""
        self._store = store
        self._source = source
        self._events = event_logger or ReportingEventLogger()
        self._in_flight: set[dt.date] = set()

    async def handle(self, message: GenerationRequest) -> bool:
        """Generate the report requested by ``message``.

        Returns
        -------
        bool
            ``True`` when this call marked the summary ready.

        """
        day = message.date
        if day in self._in_flight:
            self._events.log_generation_skipped(date=day, reason="in_progress")
            return False

        self._in_flight.add(day)
        try:
            return await self._generate(day, message.request_id)
        except Exception as exc:  # noqa: BLE001
            self._events.log_generation_failed(date=day, error=exc)
            return False
        finally:
            self._in_flight.discard(day)

    async def _generate(self, day: dt.date, request_id: str | None) -> bool:
        existing = await self._store.get_summary(day)
        if existing is not None and existing.status == ReportStatus.READY:
            self._events.log_generation_skipped(date=day, reason="already_ready")
            return False

        summary = existing
        if summary is None:
            summary, _ = await self._store.create_pending_summary(day)

        self._events.log_generation_started(date=day, request_id=request_id)
        stats = await self._source.collect(day)
        completed = await self._store.complete_summary(summary.id, stats)
        if completed is None:
            self._events.log_generation_skipped(date=day, reason="summary_deleted")
            return False

        self._events.log_generation_completed(
            date=day,
            app_count=len(stats),
            total_runs=completed.total_runs,
            success_rate=completed.success_rate,
        )
        return True
