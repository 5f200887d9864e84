"""Processor storing notifications published on the channel."""

from __future__ import annotations

import typing as typ

from pulseboard.channel.topics import NotificationRequest, Topic
from pulseboard.logging import get_logger, log_info
from pulseboard.notifications.storage import Notification

if typ.TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

logger = get_logger(__name__)


class NotificationProcessor:
    """Handle ``notification:create`` messages by inserting a row."""

    topic = Topic.NOTIFICATION_CREATE
    message_type = NotificationRequest

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        """Store the session factory used for inserts."""
        self._session_factory = session_factory

    async def handle(self, message: NotificationRequest) -> Notification:
        """Persist ``message`` and return the stored notification."""
        async with self._session_factory() as session, session.begin():
            notification = Notification(
                title=message.title,
                message=message.message,
                type=message.type,
                link=message.link,
            )
            session.add(notification)
        log_info(
            logger,
            "Stored %s notification %r",
            message.type,
            message.title,
        )
        return notification
