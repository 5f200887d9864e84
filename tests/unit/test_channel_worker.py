"""Unit tests for ``ChannelWorker`` routing."""

from __future__ import annotations

import asyncio

import pytest

from pulseboard.channel.memory import InMemoryChannel
from pulseboard.channel.protocol import ChannelMessage
from pulseboard.channel.topics import GenerationRequest, NotificationRequest, Topic
from pulseboard.channel.worker import ChannelWorker
from tests.unit.report_helpers import REPORT_DATE


class _RecordingProcessor:
    topic = Topic.REPORT_GENERATE
    message_type = GenerationRequest

    def __init__(self, *, fail: bool = False) -> None:
        self.handled: list[GenerationRequest] = []
        self._fail = fail

    async def handle(self, message: GenerationRequest) -> None:
        self.handled.append(message)
        if self._fail:
            msg = "processor exploded"
            raise RuntimeError(msg)


def _generate(payload: bytes) -> ChannelMessage:
    return ChannelMessage(topic=Topic.REPORT_GENERATE, payload=payload)


class TestProcess:
    """Tests for ``ChannelWorker.process``."""

    @pytest.mark.asyncio
    async def test_decodes_and_dispatches(self) -> None:
        """Payloads are decoded into the processor's message type."""
        processor = _RecordingProcessor()
        worker = ChannelWorker(InMemoryChannel(), [processor])

        handled = await worker.process(_generate(b'{"date":"2024-06-01"}'))

        assert handled is True, "processing should succeed"
        assert processor.handled == [GenerationRequest(date=REPORT_DATE)]

    @pytest.mark.asyncio
    async def test_malformed_payload_is_dropped(self) -> None:
        """Messages that do not decode never reach the processor."""
        processor = _RecordingProcessor()
        worker = ChannelWorker(InMemoryChannel(), [processor])

        handled = await worker.process(_generate(b'{"date":"June 1st"}'))

        assert handled is False, "malformed messages are dropped"
        assert processor.handled == [], "processor should not be called"

    @pytest.mark.asyncio
    async def test_processor_errors_are_contained(self) -> None:
        """A raising processor does not stop the worker."""
        processor = _RecordingProcessor(fail=True)
        worker = ChannelWorker(InMemoryChannel(), [processor])

        handled = await worker.process(_generate(b'{"date":"2024-06-01"}'))

        assert handled is False, "failures are reported as unhandled"
        assert len(processor.handled) == 1, "processor was invoked"

    @pytest.mark.asyncio
    async def test_unknown_topic_is_ignored(self) -> None:
        """Messages without a processor are skipped."""
        worker = ChannelWorker(InMemoryChannel(), [_RecordingProcessor()])

        handled = await worker.process(
            ChannelMessage(topic=Topic.NOTIFICATION_CREATE, payload=b"{}")
        )

        assert handled is False, "no processor handles the topic"


def test_duplicate_topics_are_rejected() -> None:
    """Two processors for one topic are a configuration error."""
    with pytest.raises(ValueError, match="Duplicate processor"):
        ChannelWorker(
            InMemoryChannel(), [_RecordingProcessor(), _RecordingProcessor()]
        )


@pytest.mark.asyncio
async def test_run_consumes_until_channel_closes() -> None:
    """``run`` subscribes to processor topics and handles each message."""
    channel = InMemoryChannel()
    processor = _RecordingProcessor()
    worker = ChannelWorker(channel, [processor])

    task = asyncio.create_task(worker.run())
    await asyncio.sleep(0)
    await channel.publish(Topic.REPORT_GENERATE, b'{"date":"2024-06-01"}')
    await channel.publish(
        Topic.NOTIFICATION_CREATE,
        b'{"title":"t","message":"m","type":"info"}',
    )
    await asyncio.sleep(0)
    await channel.aclose()
    await task

    assert worker.topics == frozenset({Topic.REPORT_GENERATE})
    assert processor.handled == [GenerationRequest(date=REPORT_DATE)], (
        "only subscribed messages are processed"
    )
    assert isinstance(
        channel.messages(Topic.NOTIFICATION_CREATE, NotificationRequest)[0],
        NotificationRequest,
    )
