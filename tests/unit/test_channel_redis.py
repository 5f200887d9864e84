"""Unit tests for ``RedisChannel`` against a mocked Redis client."""

from __future__ import annotations

import typing as typ
from unittest import mock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from pulseboard.channel.config import ChannelConfig
from pulseboard.channel.errors import ChannelPublishError
from pulseboard.channel.redis_pubsub import RedisChannel
from pulseboard.channel.topics import Topic

if typ.TYPE_CHECKING:
    import collections.abc as cabc


class _FakePubSub:
    """Minimal stand-in for ``redis.asyncio.client.PubSub``."""

    def __init__(self, raw_messages: list[dict[str, object]]) -> None:
        self._raw_messages = raw_messages
        self.subscribed: tuple[str, ...] = ()
        self.closed = False

    async def subscribe(self, *topics: str) -> None:
        self.subscribed = topics

    async def listen(self) -> cabc.AsyncIterator[dict[str, object]]:
        for raw in self._raw_messages:
            yield raw

    async def unsubscribe(self) -> None:
        self.subscribed = ()

    async def aclose(self) -> None:
        self.closed = True


@pytest.mark.asyncio
async def test_publish_sends_payload() -> None:
    """Publishing forwards the topic and payload to Redis."""
    client = mock.AsyncMock()
    client.publish.return_value = 1

    await RedisChannel(client).publish(Topic.REPORT_GENERATE, b"{}")

    client.publish.assert_awaited_once_with(Topic.REPORT_GENERATE, b"{}")


@pytest.mark.asyncio
async def test_publish_failure_raises_channel_error() -> None:
    """Redis errors become ``ChannelPublishError`` naming the topic."""
    client = mock.AsyncMock()
    client.publish.side_effect = RedisConnectionError("connection refused")

    with pytest.raises(ChannelPublishError) as excinfo:
        await RedisChannel(client).publish(Topic.REPORT_GENERATE, b"{}")

    assert excinfo.value.topic == Topic.REPORT_GENERATE, "topic should be recorded"
    assert "connection refused" in str(excinfo.value), "reason should be included"


@pytest.mark.asyncio
async def test_subscribe_yields_only_messages() -> None:
    """Control frames are skipped and channel names are decoded."""
    pubsub = _FakePubSub(
        [
            {"type": "subscribe", "channel": b"e2e:report:generate", "data": 1},
            {
                "type": "message",
                "channel": b"e2e:report:generate",
                "data": b'{"date":"2024-06-01"}',
            },
            {"type": "message", "channel": "notification:create", "data": "{}"},
        ]
    )
    client = mock.MagicMock()
    client.pubsub.return_value = pubsub

    received = [
        message
        async for message in RedisChannel(client).subscribe(
            [Topic.REPORT_GENERATE, Topic.NOTIFICATION_CREATE]
        )
    ]

    assert [(message.topic, message.payload) for message in received] == [
        ("e2e:report:generate", b'{"date":"2024-06-01"}'),
        ("notification:create", b"{}"),
    ], "data messages should be yielded as text topics and bytes payloads"
    assert pubsub.subscribed == (), "subscription is released afterwards"
    assert pubsub.closed, "pubsub connection should be closed"


@pytest.mark.asyncio
async def test_aclose_only_closes_owned_clients() -> None:
    """Borrowed clients are left open."""
    borrowed = mock.AsyncMock()
    owned = mock.AsyncMock()

    await RedisChannel(borrowed).aclose()
    await RedisChannel(owned, owns_client=True).aclose()

    borrowed.aclose.assert_not_awaited()
    owned.aclose.assert_awaited_once()


@pytest.mark.asyncio
async def test_from_config_client_does_not_retry_commands() -> None:
    """A failed command is attempted exactly once."""
    with mock.patch(
        "pulseboard.channel.redis_pubsub.aioredis.Redis.from_url"
    ) as from_url:
        RedisChannel.from_config(ChannelConfig(redis_url="redis://cache:6379/2"))

    assert from_url.call_args.args == ("redis://cache:6379/2",)
    assert from_url.call_args.kwargs["retry_on_timeout"] is False, (
        "timeouts must not be retried"
    )
    retry = from_url.call_args.kwargs["retry"]
    attempts = 0

    async def _publish() -> None:
        nonlocal attempts
        attempts += 1
        raise RedisConnectionError("connection reset")

    async def _on_failure(error: Exception) -> None:
        del error

    with pytest.raises(RedisConnectionError):
        await retry.call_with_retry(_publish, _on_failure)
    assert attempts == 1, "the client retry policy should not resend PUBLISH"


def test_from_config_builds_owned_client() -> None:
    """``from_config`` connects lazily using the configured URL."""
    with mock.patch("pulseboard.channel.redis_pubsub.aioredis.Redis.from_url"):
        channel = RedisChannel.from_config(ChannelConfig())

    assert channel._owns_client is True  # noqa: SLF001


def test_channel_config_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """``PULSEBOARD_REDIS_URL`` overrides the local default."""
    monkeypatch.setenv("PULSEBOARD_REDIS_URL", "redis://queue:6379/1")
    assert ChannelConfig.from_env().redis_url == "redis://queue:6379/1"

    monkeypatch.setenv("PULSEBOARD_REDIS_URL", "")
    assert ChannelConfig.from_env().redis_url == "redis://localhost:6379/0"
