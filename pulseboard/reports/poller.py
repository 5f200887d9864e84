"""Client-side polling of a report until generation finishes.

``ReportPoller`` mirrors the dashboard page: it loads the report for a date
together with the previous day's summary for comparison, re-fetches the
primary report every few seconds while it is pending, and exposes refresh
and confirmed force-refresh actions that cannot overlap.

Usage
-----
Poll a report from a script::

    client = DashboardClient(DashboardClientConfig.from_env())
    poller = ReportPoller(client, date=dt.date(2024, 6, 1))
    await poller.open()
    await poller.join()        # returns once the report is no longer pending
    print(poller.state.report)
    await poller.close()

"""

from __future__ import annotations

import asyncio
import contextlib
import dataclasses as dc
import datetime as dt
import os
import typing as typ

from pulseboard.common.time import utc_today
from pulseboard.logging import get_logger, log_debug, log_warning
from pulseboard.reports.models import ReportEnrichments, ReportPayload

if typ.TYPE_CHECKING:
    import collections.abc as cabc

logger = get_logger(__name__)

DEFAULT_POLL_INTERVAL_S = 5.0


class ReportFetcher(typ.Protocol):
    """Anything that can fetch a report, typically ``DashboardClient``."""

    async def get_e2e_report(
        self,
        *,
        date: dt.date | None = None,
        enrichments: ReportEnrichments | None = None,
        force: bool = False,
    ) -> ReportPayload:
        """Fetch the report for ``date``."""
        ...


@dc.dataclass(frozen=True, slots=True)
class PollerConfig:
    """Polling cadence for ``ReportPoller``."""

    interval_s: float = DEFAULT_POLL_INTERVAL_S

    @classmethod
    def from_env(cls) -> PollerConfig:
        """Read ``PULSEBOARD_POLL_INTERVAL_S`` as a positive float."""
        raw = os.environ.get("PULSEBOARD_POLL_INTERVAL_S", "").strip()
        if not raw:
            return cls()
        try:
            interval = float(raw)
        except ValueError as exc:
            msg = f"PULSEBOARD_POLL_INTERVAL_S must be a number, got: {raw!r}"
            raise ValueError(msg) from exc
        if interval <= 0:
            msg = f"PULSEBOARD_POLL_INTERVAL_S must be positive, got: {interval}"
            raise ValueError(msg)
        return cls(interval_s=interval)


@dc.dataclass(slots=True)
class PollerState:
    """Latest results seen by a poller."""

    report: ReportPayload | None = None
    comparison: ReportPayload | None = None
    error: Exception | None = None
    comparison_error: Exception | None = None


class ReportPoller:
    """Fetch a report and keep re-fetching it while it is pending.

    Parameters
    ----------
    fetcher
        Report source, usually a ``DashboardClient``.
    date
        Primary report date; defaults to today (UTC) when omitted.
    enrichments
        Flags for the primary fetch.  The comparison fetch for the previous
        day always disables details.
    config
        Polling interval.
    sleep
        Awaitable delay function, replaceable in tests.

    """

    def __init__(  # noqa: PLR0913
        self,
        fetcher: ReportFetcher,
        *,
        date: dt.date | None = None,
        enrichments: ReportEnrichments | None = None,
        config: PollerConfig | None = None,
        sleep: cabc.Callable[[float], cabc.Awaitable[object]] = asyncio.sleep,
    ) -> None:
        """Resolve dates and initialise state."""
        self._fetcher = fetcher
        self._date = date or utc_today()
        self._enrichments = enrichments or ReportEnrichments()
        self._interval_s = (config or PollerConfig()).interval_s
        self._sleep = sleep
        self._state = PollerState()
        self._poll_task: asyncio.Task[None] | None = None
        self._refreshing = False
        self._confirming = False
        self._closed = False

    @property
    def date(self) -> dt.date:
        """Primary report date."""
        return self._date

    @property
    def comparison_date(self) -> dt.date:
        """Date of the comparison report, one day before ``date``."""
        return self._date - dt.timedelta(days=1)

    @property
    def state(self) -> PollerState:
        """Latest fetched reports and errors."""
        return self._state

    @property
    def polling(self) -> bool:
        """Whether a polling timer is active."""
        return self._poll_task is not None and not self._poll_task.done()

    @property
    def refresh_enabled(self) -> bool:
        """Whether refresh controls accept input."""
        return not self._refreshing and not self._closed

    @property
    def confirmation_pending(self) -> bool:
        """Whether a force refresh awaits confirmation."""
        return self._confirming

    async def open(self) -> None:
        """Load the primary and comparison reports and start polling."""
        await asyncio.gather(self._fetch_primary(), self._fetch_comparison())
        self._sync_polling()

    async def refresh(self) -> bool:
        """Re-fetch both reports; returns ``False`` if one is already running."""
        return await self._refresh(force=False)

    def request_force_refresh(self) -> bool:
        """Open the confirmation step for a forced refresh."""
        if not self.refresh_enabled:
            return False
        self._confirming = True
        return True

    def cancel_force_refresh(self) -> None:
        """Dismiss a pending confirmation."""
        self._confirming = False

    async def confirm_force_refresh(self) -> bool:
        """Regenerate the primary report after confirmation.

        Returns
        -------
        bool
            ``False`` when no confirmation was pending or a refresh was
            already running.

        """
        if not self._confirming:
            return False
        self._confirming = False
        return await self._refresh(force=True)

    async def join(self) -> None:
        """Wait until the polling timer stops."""
        while (task := self._poll_task) is not None and not task.done():
            await asyncio.wait({task})

    async def close(self) -> None:
        """Stop polling.  Further refreshes are ignored."""
        self._closed = True
        self._confirming = False
        await self._stop_polling()

    async def _refresh(self, *, force: bool) -> bool:
        if not self.refresh_enabled:
            return False
        self._refreshing = True
        try:
            await self._stop_polling()
            await asyncio.gather(
                self._fetch_primary(force=force), self._fetch_comparison()
            )
        finally:
            self._refreshing = False
        self._sync_polling()
        return True

    def _is_pending(self) -> bool:
        report = self._state.report
        return report is not None and report.is_pending

    def _sync_polling(self) -> None:
        if self._closed or not self._is_pending() or self.polling:
            return
        self._poll_task = asyncio.create_task(self._poll())

    async def _stop_polling(self) -> None:
        task, self._poll_task = self._poll_task, None
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

    async def _poll(self) -> None:
        # A refresh cancels this task, so only one primary fetch is in flight.
        while not self._closed and self._is_pending():
            await self._sleep(self._interval_s)
            if self._closed or not self._is_pending():
                return
            log_debug(logger, "Polling pending report for %s", self._date.isoformat())
            await self._fetch_primary()

    async def _fetch_primary(self, *, force: bool = False) -> None:
        try:
            self._state.report = await self._fetcher.get_e2e_report(
                date=self._date, enrichments=self._enrichments, force=force
            )
        except Exception as exc:  # noqa: BLE001
            self._state.error = exc
            log_warning(
                logger, "Fetching report for %s failed: %s", self._date.isoformat(), exc
            )
        else:
            self._state.error = None

    async def _fetch_comparison(self) -> None:
        enrichments = ReportEnrichments(
            include_details=False,
            include_app_info=self._enrichments.include_app_info,
            include_manual_runs=self._enrichments.include_manual_runs,
        )
        try:
            self._state.comparison = await self._fetcher.get_e2e_report(
                date=self.comparison_date, enrichments=enrichments
            )
        except Exception as exc:  # noqa: BLE001
            self._state.comparison_error = exc
            log_warning(
                logger,
                "Fetching comparison report for %s failed: %s",
                self.comparison_date.isoformat(),
                exc,
            )
        else:
            self._state.comparison_error = None
