"""Subscribe to the message channel and dispatch messages to processors."""

from __future__ import annotations

import typing as typ

import msgspec

from pulseboard.logging import get_logger, log_exception, log_info, log_warning

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from pulseboard.channel.protocol import (
        ChannelMessage,
        MessageProcessor,
        SubscribableChannel,
    )

logger = get_logger(__name__)


class ChannelWorker:
    """Long-running consumer that routes channel messages by topic.

    A message that fails to decode or whose processor raises is logged and
    dropped; the worker keeps consuming.

    Parameters
    ----------
    channel
        Channel to subscribe on.
    processors
        Processors to route to; at most one per topic.

    """

    def __init__(
        self,
        channel: SubscribableChannel,
        processors: cabc.Iterable[MessageProcessor],
    ) -> None:
        """Index processors by topic."""
        self._channel = channel
        self._processors: dict[str, MessageProcessor] = {}
        for processor in processors:
            if processor.topic in self._processors:
                msg = f"Duplicate processor for topic {processor.topic!r}"
                raise ValueError(msg)
            self._processors[processor.topic] = processor

    @property
    def topics(self) -> frozenset[str]:
        """Topics this worker subscribes to."""
        return frozenset(self._processors)

    async def run(self) -> None:
        """Consume messages until the subscription ends or the task is cancelled."""
        log_info(logger, "Channel worker starting for %d topic(s)", len(self.topics))
        async for message in self._channel.subscribe(self.topics):
            await self.process(message)

    async def process(self, message: ChannelMessage) -> bool:
        """Decode and dispatch one message.

        Returns
        -------
        bool
            ``True`` when the processor completed without raising.

        """
        processor = self._processors.get(message.topic)
        if processor is None:
            log_warning(logger, "No processor registered for %s", message.topic)
            return False
        try:
            decoded = msgspec.json.decode(message.payload, type=processor.message_type)
        except msgspec.DecodeError as exc:
            log_warning(
                logger, "Dropping malformed message on %s: %s", message.topic, exc
            )
            return False
        try:
            await processor.handle(decoded)
        except Exception as exc:  # noqa: BLE001
            log_exception(
                logger, f"Processor for {message.topic} failed; message dropped", exc
            )
            return False
        return True
