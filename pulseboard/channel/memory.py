"""In-process message channel for local runs and tests."""

from __future__ import annotations

import asyncio
import typing as typ

import msgspec

from pulseboard.channel.errors import ChannelClosedError
from pulseboard.channel.protocol import ChannelMessage

if typ.TYPE_CHECKING:
    import collections.abc as cabc

T = typ.TypeVar("T")

_CLOSED = object()


class InMemoryChannel:
    """Channel that records every publish and fans out to local subscribers.

    Examples
    --------
    >>> import asyncio
    >>> channel = InMemoryChannel()
    >>> asyncio.run(channel.publish("e2e:report:generate", b"{}"))
    >>> [message.topic for message in channel.published]
    ['e2e:report:generate']

    """

    def __init__(self) -> None:
        """Initialise empty history and subscriber queues."""
        self.published: list[ChannelMessage] = []
        self._subscribers: list[
            tuple[frozenset[str], asyncio.Queue[ChannelMessage | object]]
        ] = []
        self._closed = False

    async def publish(self, topic: str, payload: bytes) -> None:
        """Record the message and deliver it to matching subscribers."""
        if self._closed:
            raise ChannelClosedError
        message = ChannelMessage(topic=topic, payload=payload)
        self.published.append(message)
        for topics, queue in self._subscribers:
            if topic in topics:
                queue.put_nowait(message)

    async def subscribe(
        self, topics: cabc.Collection[str]
    ) -> cabc.AsyncIterator[ChannelMessage]:
        """Yield messages published to ``topics`` after subscription."""
        if self._closed:
            raise ChannelClosedError
        queue: asyncio.Queue[ChannelMessage | object] = asyncio.Queue()
        entry = (frozenset(topics), queue)
        self._subscribers.append(entry)
        try:
            while True:
                item = await queue.get()
                if item is _CLOSED:
                    return
                yield typ.cast("ChannelMessage", item)
        finally:
            self._subscribers.remove(entry)

    async def aclose(self) -> None:
        """Close the channel and end every active subscription."""
        self._closed = True
        for _, queue in self._subscribers:
            queue.put_nowait(_CLOSED)

    def messages(self, topic: str, message_type: type[T]) -> list[T]:
        """Decode every message published to ``topic`` as ``message_type``."""
        return [
            msgspec.json.decode(message.payload, type=message_type)
            for message in self.published
            if message.topic == topic
        ]
