"""Sources of per-application run statistics for report generation.

The statistics themselves come from an external test dashboard.  The
consumer depends only on :class:`RunStatsSource`; this module provides a
fixed in-memory source and a JSON fixture source for local runs.
"""

from __future__ import annotations

import dataclasses as dc
import os
import typing as typ
from pathlib import Path

import msgspec

from pulseboard.reports.errors import ReportGenerationError
from pulseboard.reports.models import AppRunStats

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    import datetime as dt


@typ.runtime_checkable
class RunStatsSource(typ.Protocol):
    """Protocol for collecting run statistics for one day.

    Examples
    --------
    >>> source: RunStatsSource = StaticRunStatsSource()
    >>> isinstance(source, RunStatsSource)
    True

    """

    async def collect(self, date: dt.date) -> list[AppRunStats]:
        """Return statistics for every application that ran on ``date``.

        Raises
        ------
        ReportGenerationError
            If statistics cannot be obtained.

        """
        ...


@dc.dataclass(slots=True)
class StaticRunStatsSource:
    """Source returning the same statistics for every date."""

    stats: cabc.Sequence[AppRunStats] = ()

    async def collect(self, date: dt.date) -> list[AppRunStats]:
        """Return a copy of the configured statistics."""
        return list(self.stats)


class FixtureRunStatsSource:
    """Source reading statistics from a JSON file keyed by ISO date.

    The file maps ``"YYYY-MM-DD"`` to a list of ``AppRunStats`` objects in
    their camelCase wire form.  Dates missing from the file yield no stats.
    """

    def __init__(self, path: Path) -> None:
        """Remember the fixture path; the file is read on every collect."""
        self._path = path

    async def collect(self, date: dt.date) -> list[AppRunStats]:
        """Return the statistics recorded for ``date``."""
        try:
            raw = self._path.read_bytes()
        except OSError as exc:
            raise ReportGenerationError.source_failed(
                date.isoformat(), str(exc)
            ) from exc
        try:
            by_date = msgspec.json.decode(raw, type=dict[str, list[AppRunStats]])
        except msgspec.DecodeError as exc:
            raise ReportGenerationError.source_failed(
                date.isoformat(), str(exc)
            ) from exc
        return by_date.get(date.isoformat(), [])


def create_run_stats_source() -> RunStatsSource:
    """Build a source from ``PULSEBOARD_RUN_STATS_FIXTURE``.

    When the variable names a file, a :class:`FixtureRunStatsSource` reads
    it.  Otherwise an empty :class:`StaticRunStatsSource` is returned.
    """
    raw = os.environ.get("PULSEBOARD_RUN_STATS_FIXTURE", "").strip()
    if raw:
        return FixtureRunStatsSource(Path(raw))
    return StaticRunStatsSource()
