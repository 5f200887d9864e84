"""Pull request job coordinator and its deletion processor."""

from __future__ import annotations

from .coordinator import (
    CoordinatorRunResult,
    ItemFailure,
    PullRequestCoordinator,
    PullRequestSource,
)
from .errors import CoordinatorError, PullRequestListingError
from .models import (
    MergeableState,
    PRActionItem,
    PullRequestDetails,
    PullRequestRecord,
    PullRequestState,
    calculate_age_days,
)
from .partition import (
    PullRequestPartition,
    build_notifications,
    partition_pull_requests,
)
from .processor import PullRequestDeletionProcessor
from .storage import TrackedPullRequest

__all__ = [
    "CoordinatorError",
    "CoordinatorRunResult",
    "ItemFailure",
    "MergeableState",
    "PRActionItem",
    "PullRequestCoordinator",
    "PullRequestDeletionProcessor",
    "PullRequestDetails",
    "PullRequestListingError",
    "PullRequestPartition",
    "PullRequestRecord",
    "PullRequestSource",
    "PullRequestState",
    "TrackedPullRequest",
    "build_notifications",
    "calculate_age_days",
    "partition_pull_requests",
]
