"""Publish/subscribe message channel connecting producers and processors.

Public API
----------
MessageChannel
    Protocol for the one-way ``publish(topic, payload)`` capability.
InMemoryChannel
    Local transport recording every publish.
RedisChannel
    Redis pub/sub transport.
ChannelWorker
    Subscriber that decodes messages and routes them to processors.
Topic
    Named topics and their payload structs.

"""

from __future__ import annotations

from .config import ChannelConfig
from .errors import ChannelClosedError, ChannelError, ChannelPublishError
from .memory import InMemoryChannel
from .protocol import (
    ChannelMessage,
    MessageChannel,
    MessageProcessor,
    SubscribableChannel,
)
from .redis_pubsub import RedisChannel
from .topics import (
    GenerationRequest,
    NotificationRequest,
    NotificationType,
    PullRequestDeletionRequest,
    Topic,
    encode_message,
)
from .worker import ChannelWorker

__all__ = [
    "ChannelClosedError",
    "ChannelConfig",
    "ChannelError",
    "ChannelMessage",
    "ChannelPublishError",
    "ChannelWorker",
    "GenerationRequest",
    "InMemoryChannel",
    "MessageChannel",
    "MessageProcessor",
    "NotificationRequest",
    "NotificationType",
    "PullRequestDeletionRequest",
    "RedisChannel",
    "SubscribableChannel",
    "Topic",
    "encode_message",
]
