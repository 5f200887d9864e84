"""Fetch tracked pull requests once and publish the resulting actions.

The coordinator makes a single listing call, fetches details per pull
request, partitions the results in memory and publishes one message per
action.  Per-item fetch and publish failures are collected in the run result
and never stop the run; only a failure to list the tracked set aborts it.
"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

from pulseboard.channel.topics import (
    PullRequestDeletionRequest,
    Topic,
    encode_message,
)
from pulseboard.common.time import utcnow
from pulseboard.logging import get_logger, log_info, log_warning
from pulseboard.pulls.errors import PullRequestListingError
from pulseboard.pulls.models import PRActionItem
from pulseboard.pulls.partition import build_notifications, partition_pull_requests

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    import datetime as dt

    from pulseboard.channel.protocol import MessageChannel
    from pulseboard.pulls.models import PullRequestDetails, PullRequestRecord
    from pulseboard.pulls.partition import PullRequestPartition

logger = get_logger(__name__)


class PullRequestSource(typ.Protocol):
    """Upstream provider of tracked pull requests, usually ``DashboardClient``."""

    async def list_pull_requests(self) -> list[PullRequestRecord]:
        """Return every tracked pull request."""
        ...

    async def get_pull_request_details(self, pull_request_id: str) -> PullRequestDetails:
        """Return upstream details for one tracked pull request."""
        ...


@dc.dataclass(frozen=True, slots=True)
class ItemFailure:
    """A per-item failure recorded during a coordinator run."""

    subject: str
    stage: str
    error: Exception


@dc.dataclass(slots=True)
class CoordinatorRunResult:
    """Outcome of one coordinator run."""

    items: list[PRActionItem] = dc.field(default_factory=list)
    notifications_published: int = 0
    deletions_published: int = 0
    failures: list[ItemFailure] = dc.field(default_factory=list)

    @property
    def fetch_failures(self) -> list[ItemFailure]:
        """Failures raised while fetching details."""
        return [failure for failure in self.failures if failure.stage == "fetch"]

    @property
    def publish_failures(self) -> list[ItemFailure]:
        """Failures raised while publishing messages."""
        return [failure for failure in self.failures if failure.stage == "publish"]


class PullRequestCoordinator:
    """Scheduled job turning tracked pull requests into channel messages.

    Parameters
    ----------
    source
        Provider of tracked pull requests and their details.
    channel
        Channel notifications and deletion requests are published to.
    clock
        Returns the current aware UTC time used for age calculation.

    """

    def __init__(
        self,
        source: PullRequestSource,
        channel: MessageChannel,
        *,
        clock: cabc.Callable[[], dt.datetime] = utcnow,
    ) -> None:
        """Store collaborators."""
        self._source = source
        self._channel = channel
        self._clock = clock

    async def run(self) -> CoordinatorRunResult:
        """Execute one coordinator pass.

        Raises
        ------
        PullRequestListingError
            If the tracked pull requests cannot be listed.

        """
        result = CoordinatorRunResult()
        try:
            records = await self._source.list_pull_requests()
        except Exception as exc:
            raise PullRequestListingError.from_error(exc) from exc

        if not records:
            log_info(logger, "No tracked pull requests")
            return result

        await self._fetch_items(records, result)
        partition = partition_pull_requests(result.items)
        log_info(
            logger,
            "Fetched %d pull request(s): ready=%d conflicts=%d "
            "reminder=%d escalation=%d merged=%d",
            len(result.items),
            len(partition.ready_to_merge),
            len(partition.with_conflicts),
            len(partition.reminder),
            len(partition.escalation),
            len(partition.merged),
        )
        await self._publish_notifications(partition, result)
        await self._publish_deletions(partition, result)
        if result.failures:
            log_warning(
                logger,
                "Pull request run finished with %d failure(s)",
                len(result.failures),
            )
        return result

    async def _fetch_items(
        self,
        records: cabc.Sequence[PullRequestRecord],
        result: CoordinatorRunResult,
    ) -> None:
        now = self._clock()
        for record in records:
            try:
                details = await self._source.get_pull_request_details(record.id)
                item = PRActionItem.build(record, details, now=now)
            except Exception as exc:  # noqa: BLE001
                log_warning(
                    logger, "Fetching details for %s failed: %s", record.id, exc
                )
                result.failures.append(ItemFailure(record.id, "fetch", exc))
                continue
            result.items.append(item)

    async def _publish_notifications(
        self, partition: PullRequestPartition, result: CoordinatorRunResult
    ) -> None:
        for notification in build_notifications(partition):
            try:
                await self._channel.publish(
                    Topic.NOTIFICATION_CREATE, encode_message(notification)
                )
            except Exception as exc:  # noqa: BLE001
                log_warning(
                    logger, "Publishing %r failed: %s", notification.title, exc
                )
                result.failures.append(ItemFailure(notification.title, "publish", exc))
            else:
                result.notifications_published += 1

    async def _publish_deletions(
        self, partition: PullRequestPartition, result: CoordinatorRunResult
    ) -> None:
        for item in partition.merged:
            merged_at = item.details.merged_at
            request = PullRequestDeletionRequest(
                id=item.record.id,
                pull_request_number=item.number,
                repository=item.record.repository,
                reason=f"Merged at {merged_at.isoformat()}" if merged_at else "Merged",
            )
            try:
                await self._channel.publish(
                    Topic.PULL_REQUEST_DELETE, encode_message(request)
                )
            except Exception as exc:  # noqa: BLE001
                log_warning(
                    logger,
                    "Publishing deletion for PR #%d failed: %s",
                    item.number,
                    exc,
                )
                result.failures.append(ItemFailure(item.record.id, "publish", exc))
            else:
                result.deletions_published += 1
