"""Unit tests for ``InMemoryChannel``."""

from __future__ import annotations

import asyncio

import pytest

from pulseboard.channel.errors import ChannelClosedError
from pulseboard.channel.memory import InMemoryChannel
from pulseboard.channel.protocol import (
    ChannelMessage,
    MessageChannel,
    SubscribableChannel,
)
from pulseboard.channel.topics import GenerationRequest, Topic
from tests.unit.report_helpers import REPORT_DATE


def test_satisfies_channel_protocols() -> None:
    """The in-memory channel can publish and subscribe."""
    channel = InMemoryChannel()

    assert isinstance(channel, MessageChannel)
    assert isinstance(channel, SubscribableChannel)


@pytest.mark.asyncio
async def test_subscriber_receives_matching_topics_only() -> None:
    """Messages on other topics are not delivered to a subscriber."""
    channel = InMemoryChannel()
    received: list[ChannelMessage] = []

    async def consume() -> None:
        async for message in channel.subscribe([Topic.REPORT_GENERATE]):
            received.append(message)

    task = asyncio.create_task(consume())
    await asyncio.sleep(0)
    await channel.publish(Topic.NOTIFICATION_CREATE, b"{}")
    await channel.publish(Topic.REPORT_GENERATE, b'{"date":"2024-06-01"}')
    await channel.aclose()
    await task

    assert [message.topic for message in received] == [Topic.REPORT_GENERATE], (
        "only the subscribed topic should be delivered"
    )
    assert len(channel.published) == 2, "every publish is recorded"


@pytest.mark.asyncio
async def test_messages_decodes_history() -> None:
    """Recorded payloads decode into their message type."""
    channel = InMemoryChannel()
    await channel.publish(
        Topic.REPORT_GENERATE, b'{"date":"2024-06-01","requestId":"r"}'
    )

    assert channel.messages(Topic.REPORT_GENERATE, GenerationRequest) == [
        GenerationRequest(date=REPORT_DATE, request_id="r")
    ]


@pytest.mark.asyncio
async def test_closed_channel_rejects_publish_and_subscribe() -> None:
    """A closed channel raises ``ChannelClosedError``."""
    channel = InMemoryChannel()
    await channel.aclose()

    with pytest.raises(ChannelClosedError):
        await channel.publish(Topic.REPORT_GENERATE, b"{}")
    with pytest.raises(ChannelClosedError):
        await anext(aiter(channel.subscribe([Topic.REPORT_GENERATE])))
