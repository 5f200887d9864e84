"""Shared fixtures for BDD feature tests.

Steps run synchronously and drive async code with ``asyncio.run``, so the
database fixture here uses ``NullPool``: no connection outlives the event
loop that opened it.
"""

from __future__ import annotations

import asyncio
import typing as typ

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from pulseboard.db import init_storage

if typ.TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture
def bdd_session_factory(
    tmp_path: Path,
) -> typ.Iterator[async_sessionmaker[AsyncSession]]:
    """Yield a session factory over a freshly initialised sqlite database."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'pulseboard_bdd.db'}", poolclass=NullPool
    )
    asyncio.run(init_storage(engine))
    try:
        yield async_sessionmaker(engine, expire_on_commit=False)
    finally:
        asyncio.run(engine.dispose())
