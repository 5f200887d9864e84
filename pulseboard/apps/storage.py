"""Tables for monitored applications and their manual E2E runs."""

from __future__ import annotations

import datetime as dt  # noqa: TC003

from sqlalchemy import Boolean, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pulseboard.common.time import utcnow
from pulseboard.db.base import Base, UTCDateTime


class Application(Base):
    """An application whose E2E pipeline is tracked by the dashboard."""

    __tablename__ = "apps"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255))
    code: Mapped[str] = mapped_column(String(64), unique=True)
    pipeline_url: Mapped[str | None] = mapped_column(Text(), default=None)
    watching: Mapped[bool] = mapped_column(Boolean(), default=False)
    created_at: Mapped[dt.datetime] = mapped_column(UTCDateTime(), default=utcnow)
    updated_at: Mapped[dt.datetime] = mapped_column(
        UTCDateTime(), default=utcnow, onupdate=utcnow
    )

    manual_runs: Mapped[list[ManualRun]] = relationship(
        back_populates="app", cascade="all, delete-orphan"
    )


class ManualRun(Base):
    """A manually triggered E2E pipeline run for an application."""

    __tablename__ = "e2e_manual_runs"
    __table_args__ = (Index("ix_e2e_manual_runs_app_created", "app_id", "created_at"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    app_id: Mapped[int] = mapped_column(ForeignKey("apps.id", ondelete="CASCADE"))
    pipeline_id: Mapped[str] = mapped_column(String(64))
    created_at: Mapped[dt.datetime] = mapped_column(UTCDateTime(), default=utcnow)

    app: Mapped[Application] = relationship(back_populates="manual_runs")
