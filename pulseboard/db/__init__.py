"""Database primitives shared by the Pulseboard storage modules.

Usage
-----
Create every table on a fresh engine::

    from sqlalchemy.ext.asyncio import create_async_engine

    from pulseboard.db import init_storage

    engine = create_async_engine("sqlite+aiosqlite:///pulseboard.db")
    await init_storage(engine)

"""

from __future__ import annotations

import typing as typ

from .base import Base, TimezoneAwareRequiredError, UTCDateTime

if typ.TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine


async def init_storage(engine: AsyncEngine) -> None:
    """Create all Pulseboard tables that are absent on ``engine``."""
    # Model modules register their tables on Base.metadata when imported.
    import pulseboard.apps.storage
    import pulseboard.notifications.storage
    import pulseboard.pulls.storage
    import pulseboard.reports.storage  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


__all__ = ["Base", "TimezoneAwareRequiredError", "UTCDateTime", "init_storage"]
