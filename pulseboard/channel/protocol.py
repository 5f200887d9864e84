"""Protocols for the publish/subscribe message channel."""

from __future__ import annotations

import dataclasses as dc
import typing as typ

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    import msgspec


@dc.dataclass(frozen=True, slots=True)
class ChannelMessage:
    """A raw message received from a subscribed topic."""

    topic: str
    payload: bytes


@typ.runtime_checkable
class MessageChannel(typ.Protocol):
    """One-way publishing capability over named topics.

    Publishing is fire-and-forget: a successful return means the transport
    accepted the message, not that any subscriber processed it.
    Implementations raise on transport failure and never retry.

    Examples
    --------
    >>> from pulseboard.channel import InMemoryChannel, MessageChannel
    >>> isinstance(InMemoryChannel(), MessageChannel)
    True

    """

    async def publish(self, topic: str, payload: bytes) -> None:
        """Publish ``payload`` to ``topic``."""
        ...


@typ.runtime_checkable
class SubscribableChannel(MessageChannel, typ.Protocol):
    """A channel that can also deliver messages to a subscriber."""

    def subscribe(
        self, topics: cabc.Collection[str]
    ) -> cabc.AsyncIterator[ChannelMessage]:
        """Yield messages published to any of ``topics`` until cancelled."""
        ...


class MessageProcessor(typ.Protocol):
    """Handler bound to one topic and one message type."""

    @property
    def topic(self) -> str:
        """Topic this processor consumes."""
        ...

    @property
    def message_type(self) -> type[msgspec.Struct]:
        """Struct type payloads on ``topic`` decode into."""
        ...

    async def handle(self, message: typ.Any) -> None:  # noqa: ANN401
        """Process one decoded message."""
        ...
