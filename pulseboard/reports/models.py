"""Structs shared by the report query API, the consumer and the SDK.

Wire representations use camelCase keys.  Optional members use
``msgspec.UNSET`` so they are omitted from the JSON entirely rather than
encoded as ``null``.
"""

from __future__ import annotations

import datetime as dt  # noqa: TC003

import msgspec

from pulseboard.reports.storage import ReportStatus, RunStatus

PENDING_MESSAGE = "Report is being generated. Please check back later."


class ReportEnrichments(msgspec.Struct, kw_only=True, frozen=True, rename="camel"):
    """Optional data attached to a ready report.

    Every flag defaults to ``True``; unknown keys are ignored when decoding.
    """

    include_details: bool = True
    include_app_info: bool = True
    include_manual_runs: bool = True


class AppRunStats(msgspec.Struct, kw_only=True, frozen=True, rename="camel"):
    """Run statistics for one application on one day."""

    app_id: int
    total_runs: int = 0
    passed_runs: int = 0
    failed_runs: int = 0
    last_run_status: RunStatus = RunStatus.NO_TESTS
    last_failed_run_at: dt.datetime | None = None
    last_run_at: dt.datetime | None = None

    @property
    def success_rate(self) -> float:
        """Return ``passed_runs / total_runs``, or 0 when nothing ran."""
        if self.total_runs == 0:
            return 0.0
        return self.passed_runs / self.total_runs


class SummaryView(msgspec.Struct, kw_only=True, frozen=True, rename="camel"):
    """Serialized ``ReportSummary``."""

    date: dt.date
    status: ReportStatus
    total_runs: int = 0
    passed_runs: int = 0
    failed_runs: int = 0
    success_rate: float = 0.0
    id: int | msgspec.UnsetType = msgspec.UNSET
    created_at: dt.datetime | msgspec.UnsetType = msgspec.UNSET
    updated_at: dt.datetime | msgspec.UnsetType = msgspec.UNSET


class ManualRunView(msgspec.Struct, kw_only=True, frozen=True, rename="camel"):
    """Serialized manual pipeline run."""

    id: int
    app_id: int
    pipeline_id: str
    created_at: dt.datetime


class AppView(msgspec.Struct, kw_only=True, frozen=True, rename="camel"):
    """Application metadata attached to a detail row."""

    id: int
    name: str
    code: str
    pipeline_url: str | None = None
    watching: bool = False
    manual_runs: list[ManualRunView] | msgspec.UnsetType = msgspec.UNSET


class DetailView(msgspec.Struct, kw_only=True, frozen=True, rename="camel"):
    """Serialized ``ReportDetail`` with optional application enrichment."""

    id: int
    report_summary_id: int
    app_id: int
    total_runs: int
    passed_runs: int
    failed_runs: int
    success_rate: float
    last_run_status: RunStatus
    last_failed_run_at: dt.datetime | None = None
    last_run_at: dt.datetime | None = None
    app: AppView | msgspec.UnsetType = msgspec.UNSET


class ReportPayload(msgspec.Struct, kw_only=True, frozen=True):
    """Body of a report query response."""

    summary: SummaryView
    success: bool = True
    details: list[DetailView] | msgspec.UnsetType = msgspec.UNSET
    message: str | msgspec.UnsetType = msgspec.UNSET

    @property
    def is_pending(self) -> bool:
        """Return ``True`` while the report is still being generated."""
        return self.summary.status == ReportStatus.PENDING

    @classmethod
    def pending_placeholder(cls, date: dt.date) -> ReportPayload:
        """Return the response for a report that has just been requested."""
        return cls(
            summary=SummaryView(date=date, status=ReportStatus.PENDING),
            details=[],
            message=PENDING_MESSAGE,
        )


__all__ = [
    "PENDING_MESSAGE",
    "AppRunStats",
    "AppView",
    "DetailView",
    "ManualRunView",
    "ReportEnrichments",
    "ReportPayload",
    "SummaryView",
]
