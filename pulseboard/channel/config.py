"""Configuration for the Redis-backed message channel."""

from __future__ import annotations

import dataclasses as dc
import os

_DEFAULT_REDIS_URL = "redis://localhost:6379/0"


@dc.dataclass(frozen=True, slots=True)
class ChannelConfig:
    """Connection settings for ``RedisChannel``.

    Attributes
    ----------
    redis_url
        Redis connection URL.

    """

    redis_url: str = _DEFAULT_REDIS_URL

    @classmethod
    def from_env(cls) -> ChannelConfig:
        """Read ``PULSEBOARD_REDIS_URL``, falling back to a local Redis."""
        raw = os.environ.get("PULSEBOARD_REDIS_URL", "").strip()
        return cls(redis_url=raw or _DEFAULT_REDIS_URL)
