"""Parse raw report query parameters into typed values.

Each parser raises :class:`InvalidReportQueryError` naming the offending
field, so callers can reject a request before any side effect.
"""

from __future__ import annotations

import dataclasses as dc
import datetime as dt
import re

import msgspec

from pulseboard.common.time import utc_today
from pulseboard.reports.errors import InvalidReportQueryError
from pulseboard.reports.models import ReportEnrichments

_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_TRUTHY = frozenset({"true", "1"})


@dc.dataclass(frozen=True, slots=True)
class ReportQuery:
    """Validated report query."""

    date: dt.date
    enrichments: ReportEnrichments = dc.field(default_factory=ReportEnrichments)
    force: bool = False


def parse_report_date(raw: str | None) -> dt.date:
    """Parse ``YYYY-MM-DD``, defaulting to today in UTC when absent.

    Examples
    --------
    >>> parse_report_date("2024-02-29")
    datetime.date(2024, 2, 29)

    """
    if raw is None or not raw.strip():
        return utc_today()
    text = raw.strip()
    if not _DATE_PATTERN.match(text):
        raise InvalidReportQueryError.invalid_date(raw)
    try:
        return dt.date.fromisoformat(text)
    except ValueError as exc:
        raise InvalidReportQueryError.invalid_date(raw) from exc


def parse_enrichments(raw: str | None) -> ReportEnrichments:
    """Decode a JSON object of enrichment flags.

    Missing flags take their defaults.  Malformed JSON, a JSON value that is
    not an object, or a non-boolean flag is rejected.
    """
    if raw is None or not raw.strip():
        return ReportEnrichments()
    try:
        return msgspec.json.decode(raw, type=ReportEnrichments)
    except msgspec.DecodeError as exc:
        raise InvalidReportQueryError.invalid_enrichments(str(exc), raw) from exc


def parse_force(raw: str | None) -> bool:
    """Return ``True`` for ``"true"`` or ``"1"`` in any case."""
    return raw is not None and raw.strip().lower() in _TRUTHY


def parse_report_query(
    *,
    date: str | None = None,
    enrichments: str | None = None,
    force: str | None = None,
) -> ReportQuery:
    """Validate all raw query parameters together."""
    return ReportQuery(
        date=parse_report_date(date),
        enrichments=parse_enrichments(enrichments),
        force=parse_force(force),
    )
