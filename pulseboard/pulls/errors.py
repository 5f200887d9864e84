"""Errors raised by the pull request coordinator."""

from __future__ import annotations


class CoordinatorError(Exception):
    """Base class for pull request coordinator errors."""


class PullRequestListingError(CoordinatorError):
    """Raised when the tracked pull requests cannot be listed."""

    @classmethod
    def from_error(cls, error: Exception) -> PullRequestListingError:
        """Wrap the upstream error that aborted the run."""
        return cls(f"Listing tracked pull requests failed: {error}")
