"""Errors raised by message channel transports."""

from __future__ import annotations


class ChannelError(Exception):
    """Base class for message channel errors."""


class ChannelPublishError(ChannelError):
    """Raised when a transport fails to publish a message.

    Attributes
    ----------
    topic
        Topic the message was addressed to.

    """

    def __init__(self, message: str, *, topic: str) -> None:
        """Record the failing topic alongside the message."""
        self.topic = topic
        super().__init__(message)

    @classmethod
    def for_topic(cls, topic: str, reason: str) -> ChannelPublishError:
        """Return an error describing a failed publish to ``topic``."""
        return cls(f"Failed to publish to {topic}: {reason}", topic=topic)


class ChannelClosedError(ChannelError):
    """Raised when publishing to or subscribing on a closed channel."""

    def __init__(self) -> None:
        """Attach a fixed message."""
        super().__init__("Message channel is closed")
