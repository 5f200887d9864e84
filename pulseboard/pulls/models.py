"""Pull request records, upstream details and derived action items."""

from __future__ import annotations

import dataclasses as dc
import datetime as dt
import enum
import math
import typing as typ

import msgspec

_SECONDS_PER_DAY = 86_400

# Upstream timestamps without a UTC offset fail decoding.
AwareDatetime = typ.Annotated[dt.datetime, msgspec.Meta(tz=True)]


class PullRequestState(enum.StrEnum):
    """Upstream open/closed state of a pull request."""

    OPEN = "open"
    CLOSED = "closed"


class MergeableState(enum.StrEnum):
    """Mergeability buckets used when partitioning open pull requests."""

    CLEAN = "clean"
    UNSTABLE = "unstable"
    DIRTY = "dirty"
    BLOCKED = "blocked"
    BEHIND = "behind"
    UNKNOWN = "unknown"


READY_TO_MERGE_STATES = frozenset({MergeableState.CLEAN, MergeableState.UNSTABLE})
CONFLICT_STATES = frozenset({MergeableState.DIRTY})


class PullRequestRecord(msgspec.Struct, kw_only=True, frozen=True, rename="camel"):
    """A pull request tracked by the dashboard."""

    id: str
    pull_request_number: int
    repository: str
    url: str | None = None


class PullRequestDetails(msgspec.Struct, kw_only=True, frozen=True, rename="camel"):
    """Upstream details for a tracked pull request."""

    number: int
    title: str = ""
    state: str = PullRequestState.OPEN
    merged: bool = False
    mergeable_state: str | None = None
    created_at: AwareDatetime
    merged_at: AwareDatetime | None = None
    url: str | None = None


def calculate_age_days(created_at: dt.datetime, now: dt.datetime) -> int:
    """Return whole days elapsed between ``created_at`` and ``now``.

    Examples
    --------
    >>> created = dt.datetime(2024, 6, 1, 12, tzinfo=dt.UTC)
    >>> calculate_age_days(created, dt.datetime(2024, 6, 4, 11, tzinfo=dt.UTC))
    2

    """
    return math.floor((now - created_at).total_seconds() / _SECONDS_PER_DAY)


@dc.dataclass(frozen=True, slots=True)
class PRActionItem:
    """A fetched pull request with the fields the coordinator acts on.

    Action items exist only for the duration of one coordinator run.
    """

    record: PullRequestRecord
    details: PullRequestDetails
    age_days: int

    @classmethod
    def build(
        cls,
        record: PullRequestRecord,
        details: PullRequestDetails,
        *,
        now: dt.datetime,
    ) -> PRActionItem:
        """Derive the action item for ``record`` as of ``now``."""
        return cls(
            record=record,
            details=details,
            age_days=calculate_age_days(details.created_at, now),
        )

    @property
    def number(self) -> int:
        """Upstream pull request number."""
        return self.details.number

    @property
    def is_open(self) -> bool:
        """Whether the pull request is open upstream."""
        return self.details.state == PullRequestState.OPEN

    @property
    def merged(self) -> bool:
        """Whether the pull request has been merged."""
        return self.details.merged

    @property
    def ready_to_merge(self) -> bool:
        """Whether the mergeable state allows merging."""
        return self.details.mergeable_state in READY_TO_MERGE_STATES

    @property
    def has_conflicts(self) -> bool:
        """Whether the pull request has merge conflicts."""
        return self.details.mergeable_state in CONFLICT_STATES
