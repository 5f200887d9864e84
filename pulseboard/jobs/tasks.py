"""Async bodies of the scheduled jobs.

The Dramatiq actors in :mod:`pulseboard.jobs.actors` and the CLI both call
these functions, passing in the channel and clients they constructed.
"""

from __future__ import annotations

import typing as typ
import uuid

from pulseboard.common.time import utc_today
from pulseboard.logging import get_logger, log_info, log_warning
from pulseboard.pulls.coordinator import PullRequestCoordinator
from pulseboard.reports.dispatcher import GenerationDispatcher

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    import datetime as dt

    from pulseboard.channel.protocol import MessageChannel
    from pulseboard.pulls.coordinator import CoordinatorRunResult, PullRequestSource

logger = get_logger(__name__)


async def request_daily_report(
    channel: MessageChannel,
    *,
    date: dt.date | None = None,
    request_id_factory: cabc.Callable[[], str] = lambda: str(uuid.uuid4()),
) -> str:
    """Publish a generation request for ``date`` (today in UTC by default).

    Returns
    -------
    str
        The correlation id carried by the published request.

    """
    day = date or utc_today()
    request_id = request_id_factory()
    await GenerationDispatcher(channel).publish_generation_request(day, request_id)
    log_info(
        logger,
        "Requested E2E report for %s (request_id=%s)",
        day.isoformat(),
        request_id,
    )
    return request_id


async def manage_pull_requests(
    source: PullRequestSource,
    channel: MessageChannel,
) -> CoordinatorRunResult:
    """Run the pull request coordinator once and log its outcome."""
    result = await PullRequestCoordinator(source, channel).run()
    log_info(
        logger,
        "Pull request run finished: items=%d notifications=%d deletions=%d",
        len(result.items),
        result.notifications_published,
        result.deletions_published,
    )
    for failure in result.failures:
        log_warning(
            logger,
            "Pull request %s failed during %s: %s",
            failure.subject,
            failure.stage,
            failure.error,
        )
    return result
