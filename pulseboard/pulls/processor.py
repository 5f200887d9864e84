"""Processor removing merged pull requests from the tracked set."""

from __future__ import annotations

import typing as typ

from sqlalchemy import delete

from pulseboard.channel.topics import PullRequestDeletionRequest, Topic
from pulseboard.logging import get_logger, log_info
from pulseboard.pulls.storage import TrackedPullRequest

if typ.TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

logger = get_logger(__name__)


class PullRequestDeletionProcessor:
    """Handle ``pull-request:delete`` messages.

    Deleting a pull request that is already gone is a no-op, so redelivered
    messages are harmless.
    """

    topic = Topic.PULL_REQUEST_DELETE
    message_type = PullRequestDeletionRequest

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        """Store the session factory used for deletions."""
        self._session_factory = session_factory

    async def handle(self, message: PullRequestDeletionRequest) -> bool:
        """Delete the tracked pull request named by ``message``.

        Returns
        -------
        bool
            ``True`` when a row was deleted.

        """
        async with self._session_factory() as session, session.begin():
            result = await session.execute(
                delete(TrackedPullRequest)
                .where(TrackedPullRequest.id == message.id)
                .execution_options(synchronize_session=False)
            )
        deleted = bool(result.rowcount)
        log_info(
            logger,
            "PR #%d (%s) deletion: deleted=%s reason=%s",
            message.pull_request_number,
            message.repository,
            deleted,
            message.reason,
        )
        return deleted
