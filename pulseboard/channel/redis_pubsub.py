"""Redis pub/sub implementation of the message channel."""

from __future__ import annotations

import typing as typ

import redis.asyncio as aioredis
from redis.asyncio.retry import Retry
from redis.backoff import NoBackoff
from redis.exceptions import RedisError

from pulseboard.channel.errors import ChannelPublishError
from pulseboard.channel.protocol import ChannelMessage
from pulseboard.logging import get_logger, log_debug, log_info

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from pulseboard.channel.config import ChannelConfig

logger = get_logger(__name__)


class RedisChannel:
    """Publish and subscribe over Redis pub/sub.

    Parameters
    ----------
    client
        Connected ``redis.asyncio.Redis`` client.  The channel takes ownership
        when created through :meth:`from_config`.

    """

    def __init__(self, client: aioredis.Redis, *, owns_client: bool = False) -> None:
        """Wrap an existing Redis client."""
        self._client = client
        self._owns_client = owns_client

    @classmethod
    def from_config(cls, config: ChannelConfig) -> RedisChannel:
        """Create a channel with its own client built from ``config``.

        The client never retries a command, so a failed ``PUBLISH`` reaches
        the caller once and is never sent twice.
        """
        client = aioredis.Redis.from_url(
            config.redis_url, retry=Retry(NoBackoff(), 0), retry_on_timeout=False
        )
        return cls(client, owns_client=True)

    async def publish(self, topic: str, payload: bytes) -> None:
        """Publish ``payload`` to ``topic``.

        Raises
        ------
        ChannelPublishError
            If Redis rejects the command or the connection fails.

        """
        try:
            receivers = await self._client.publish(topic, payload)
        except RedisError as exc:
            raise ChannelPublishError.for_topic(topic, str(exc)) from exc
        log_debug(logger, "Published to %s (receivers=%s)", topic, receivers)

    async def subscribe(
        self, topics: cabc.Collection[str]
    ) -> cabc.AsyncIterator[ChannelMessage]:
        """Yield messages published to ``topics`` until the caller stops."""
        pubsub = self._client.pubsub(ignore_subscribe_messages=True)
        await pubsub.subscribe(*topics)
        log_info(logger, "Subscribed to %s", ", ".join(sorted(topics)))
        try:
            async for raw in pubsub.listen():
                if raw.get("type") != "message":
                    continue
                yield ChannelMessage(
                    topic=_as_text(raw["channel"]),
                    payload=_as_bytes(raw["data"]),
                )
        finally:
            await pubsub.unsubscribe()
            await pubsub.aclose()

    async def aclose(self) -> None:
        """Close the underlying client when this channel owns it."""
        if self._owns_client:
            await self._client.aclose()


def _as_text(value: bytes | str) -> str:
    return value.decode() if isinstance(value, bytes) else value


def _as_bytes(value: bytes | str) -> bytes:
    return value if isinstance(value, bytes) else value.encode()
