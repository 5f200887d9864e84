"""Publish report generation requests onto the message channel."""

from __future__ import annotations

import typing as typ

from pulseboard.channel.topics import GenerationRequest, Topic, encode_message
from pulseboard.logging import get_logger, log_info

if typ.TYPE_CHECKING:
    import datetime as dt

    from pulseboard.channel.protocol import MessageChannel

logger = get_logger(__name__)


class GenerationDispatcher:
    """Fire-and-forget publisher for ``e2e:report:generate`` requests.

    The dispatcher does not retry.  Any error raised by the channel
    propagates to the caller unchanged.

    Examples
    --------
    >>> import asyncio, datetime as dt
    >>> from pulseboard.channel import InMemoryChannel
    >>> channel = InMemoryChannel()
    >>> dispatcher = GenerationDispatcher(channel)
    >>> asyncio.run(dispatcher.publish_generation_request(dt.date(2024, 6, 1)))
    >>> channel.published[0].payload
    b'{"date":"2024-06-01","requestId":null}'

    """

    def __init__(self, channel: MessageChannel) -> None:
        """Bind the dispatcher to a channel."""
        self._channel = channel

    async def publish_generation_request(
        self, date: dt.date, request_id: str | None = None
    ) -> None:
        """Publish a generation request for ``date``.

        Parameters
        ----------
        date
            Calendar date whose report should be computed.
        request_id
            Optional correlation identifier, sent as ``null`` when omitted.

        """
        payload = encode_message(GenerationRequest(date=date, request_id=request_id))
        await self._channel.publish(Topic.REPORT_GENERATE, payload)
        log_info(
            logger,
            "Dispatched report generation for %s (request_id=%s)",
            date.isoformat(),
            request_id,
        )
