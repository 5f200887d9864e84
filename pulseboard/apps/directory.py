"""Read-only lookups of application metadata used to enrich reports."""

from __future__ import annotations

import collections
import typing as typ

from sqlalchemy import select

from pulseboard.apps.storage import Application, ManualRun

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    import datetime as dt

    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker


class ApplicationDirectory:
    """Batch lookups over the ``apps`` and ``e2e_manual_runs`` tables.

    Both methods take the full set of application ids for a report so the
    caller issues one query per enrichment rather than one per detail row.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        """Store the session factory used for lookups."""
        self._session_factory = session_factory

    async def get_applications(
        self, app_ids: cabc.Collection[int]
    ) -> dict[int, Application]:
        """Return the applications that exist among ``app_ids``, keyed by id."""
        if not app_ids:
            return {}
        async with self._session_factory() as session:
            rows = await session.scalars(
                select(Application).where(Application.id.in_(app_ids))
            )
            return {app.id: app for app in rows}

    async def list_manual_runs(
        self,
        app_ids: cabc.Collection[int],
        start: dt.datetime,
        end: dt.datetime,
    ) -> dict[int, list[ManualRun]]:
        """Return manual runs created in ``[start, end)`` grouped by app id.

        Runs are ordered newest first within each application.
        """
        grouped: dict[int, list[ManualRun]] = collections.defaultdict(list)
        if not app_ids:
            return grouped
        async with self._session_factory() as session:
            rows = await session.scalars(
                select(ManualRun)
                .where(
                    ManualRun.app_id.in_(app_ids),
                    ManualRun.created_at >= start,
                    ManualRun.created_at < end,
                )
                .order_by(ManualRun.created_at.desc())
            )
            for run in rows:
                grouped[run.app_id].append(run)
        return grouped
