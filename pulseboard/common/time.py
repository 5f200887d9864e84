"""Common time utilities."""

from __future__ import annotations

import datetime as dt


def utcnow() -> dt.datetime:
    """Return an aware UTC timestamp suitable for DB defaults."""
    return dt.datetime.now(dt.UTC)


def utc_today() -> dt.date:
    """Return the current calendar date in UTC."""
    return utcnow().date()


def utc_day_bounds(day: dt.date) -> tuple[dt.datetime, dt.datetime]:
    """Return the ``[start, end)`` UTC datetimes covering ``day``.

    Examples
    --------
    >>> start, end = utc_day_bounds(dt.date(2024, 6, 1))
    >>> start.isoformat(), end.isoformat()
    ('2024-06-01T00:00:00+00:00', '2024-06-02T00:00:00+00:00')

    """
    start = dt.datetime.combine(day, dt.time.min, tzinfo=dt.UTC)
    return start, start + dt.timedelta(days=1)
