"""Tables backing the daily E2E report status store.

A ``ReportSummary`` exists at most once per calendar date.  The consumer
creates it as ``pending`` when it starts processing a generation request and
flips it to ``ready`` once every ``ReportDetail`` row has been written.  The
only way back to ``pending`` is deleting the summary (the force path).

``ReportDispatchClaim`` rows record which date most recently had a generation
request dispatched, so concurrent readers of an absent report publish a
single request between them.
"""

from __future__ import annotations

import datetime as dt  # noqa: TC003
import enum

from sqlalchemy import (
    CheckConstraint,
    Date,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pulseboard.common.time import utcnow
from pulseboard.db.base import Base, UTCDateTime


class ReportStatus(enum.StrEnum):
    """Lifecycle states of a daily report summary."""

    PENDING = "pending"
    READY = "ready"


class RunStatus(enum.StrEnum):
    """Outcome of an application's most recent E2E run."""

    PASSED = "passed"
    FAILED = "failed"
    NO_TESTS = "noTests"


def _enum_values(enum_cls: type[enum.StrEnum]) -> list[str]:
    return [member.value for member in enum_cls]


class ReportSummary(Base):
    """Aggregate E2E results for one calendar date."""

    __tablename__ = "e2e_report_summaries"
    __table_args__ = (
        UniqueConstraint("date", name="uq_e2e_report_summaries_date"),
        CheckConstraint(
            "success_rate >= 0 AND success_rate <= 1",
            name="ck_e2e_report_summaries_success_rate",
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    date: Mapped[dt.date] = mapped_column(Date(), nullable=False)
    status: Mapped[ReportStatus] = mapped_column(
        Enum(
            ReportStatus,
            native_enum=False,
            values_callable=_enum_values,
            validate_strings=True,
        ),
        default=ReportStatus.PENDING,
        nullable=False,
    )
    total_runs: Mapped[int] = mapped_column(Integer(), default=0)
    passed_runs: Mapped[int] = mapped_column(Integer(), default=0)
    failed_runs: Mapped[int] = mapped_column(Integer(), default=0)
    success_rate: Mapped[float] = mapped_column(Float(), default=0.0)
    created_at: Mapped[dt.datetime] = mapped_column(UTCDateTime(), default=utcnow)
    updated_at: Mapped[dt.datetime] = mapped_column(
        UTCDateTime(), default=utcnow, onupdate=utcnow
    )

    details: Mapped[list[ReportDetail]] = relationship(
        back_populates="summary",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="ReportDetail.app_id",
    )


class ReportDetail(Base):
    """Per-application E2E results attached to a ready summary.

    ``app_id`` is not a foreign key.  Rows may outlive their application;
    readers drop rows whose application no longer resolves.
    """

    __tablename__ = "e2e_report_details"
    __table_args__ = (
        UniqueConstraint(
            "report_summary_id", "app_id", name="uq_e2e_report_details_summary_app"
        ),
        Index("ix_e2e_report_details_app_id", "app_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    report_summary_id: Mapped[int] = mapped_column(
        ForeignKey("e2e_report_summaries.id", ondelete="CASCADE")
    )
    app_id: Mapped[int] = mapped_column(Integer())
    total_runs: Mapped[int] = mapped_column(Integer(), default=0)
    passed_runs: Mapped[int] = mapped_column(Integer(), default=0)
    failed_runs: Mapped[int] = mapped_column(Integer(), default=0)
    success_rate: Mapped[float] = mapped_column(Float(), default=0.0)
    last_run_status: Mapped[RunStatus] = mapped_column(
        Enum(
            RunStatus,
            native_enum=False,
            values_callable=_enum_values,
            validate_strings=True,
        ),
        default=RunStatus.NO_TESTS,
    )
    last_failed_run_at: Mapped[dt.datetime | None] = mapped_column(
        UTCDateTime(), default=None
    )
    last_run_at: Mapped[dt.datetime | None] = mapped_column(
        UTCDateTime(), default=None
    )
    created_at: Mapped[dt.datetime] = mapped_column(UTCDateTime(), default=utcnow)

    summary: Mapped[ReportSummary] = relationship(back_populates="details")


class ReportDispatchClaim(Base):
    """Most recent accepted generation dispatch for a date."""

    __tablename__ = "e2e_report_dispatch_claims"
    __table_args__ = (
        UniqueConstraint("date", name="uq_e2e_report_dispatch_claims_date"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    date: Mapped[dt.date] = mapped_column(Date(), nullable=False)
    request_id: Mapped[str] = mapped_column(String(64))
    claimed_at: Mapped[dt.datetime] = mapped_column(UTCDateTime(), default=utcnow)
