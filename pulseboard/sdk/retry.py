"""Retry policy for dashboard API requests.

A policy is a callable ``(attempt, error) -> delay | None``.  ``None`` means
give up and re-raise; a float is the number of seconds to wait before the
next attempt.  ``attempt`` counts from 1 for the request that just failed.
"""

from __future__ import annotations

import dataclasses as dc
import random
import typing as typ

from pulseboard.sdk.errors import APIError, NetworkError

if typ.TYPE_CHECKING:
    import collections.abc as cabc

RetryDecision: typ.TypeAlias = "cabc.Callable[[int, Exception], float | None]"


def is_retryable(error: Exception) -> bool:
    """Return whether ``error`` may clear up on a later attempt.

    Network failures, 5xx responses and 429 responses are retryable; other
    4xx responses and every other exception are not.
    """
    if isinstance(error, NetworkError):
        return True
    if isinstance(error, APIError):
        return error.is_retryable
    return False


@dc.dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Exponential backoff with jitter, honouring server-provided delays.

    Attributes
    ----------
    max_attempts
        Total attempts including the first; no delay is returned once the
        failed attempt number reaches it.
    base_delay_s
        Delay before the second attempt, doubled for every later one.
    jitter_ratio
        Upper bound of the random extra delay, as a fraction of the backoff.
    rand
        Source of uniform ``[0, 1)`` values for jitter.

    Examples
    --------
    >>> policy = RetryPolicy(rand=lambda: 0.0)
    >>> policy(1, NetworkError.timeout()), policy(2, NetworkError.timeout())
    (1.0, 2.0)
    >>> policy(3, NetworkError.timeout()) is None
    True

    """

    max_attempts: int = 3
    base_delay_s: float = 1.0
    jitter_ratio: float = 0.1
    rand: cabc.Callable[[], float] = random.random

    def __call__(self, attempt: int, error: Exception) -> float | None:
        """Return the delay before the next attempt, or ``None`` to stop."""
        if attempt >= self.max_attempts or not is_retryable(error):
            return None
        if isinstance(error, APIError) and error.retry_after is not None:
            return error.retry_after
        return self.backoff_delay(attempt)

    def backoff_delay(self, attempt: int) -> float:
        """Return ``base * 2**(attempt - 1)`` plus up to ``jitter_ratio`` of it."""
        delay = self.base_delay_s * 2 ** (attempt - 1)
        return delay + self.rand() * self.jitter_ratio * delay
