"""Unit-test fixtures for the report pipeline."""

from __future__ import annotations

import typing as typ

import pytest

from pulseboard.channel.memory import InMemoryChannel
from pulseboard.reports.store import ReportStatusStore

if typ.TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker


@pytest.fixture
def channel() -> InMemoryChannel:
    """Return an empty in-memory channel."""
    return InMemoryChannel()


@pytest.fixture
def store(session_factory: async_sessionmaker[AsyncSession]) -> ReportStatusStore:
    """Return a status store bound to the test database."""
    return ReportStatusStore(session_factory)
