"""Configuration for the dashboard SDK client.

Usage
-----
>>> config = DashboardClientConfig(base_url="https://dash.example/", api_key="k")
>>> config.base_url
'https://dash.example'

"""

from __future__ import annotations

import dataclasses as dc
import os

from pulseboard.sdk.errors import DashboardConfigError

DEFAULT_TIMEOUT_S = 30.0
DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_USER_AGENT = "pulseboard-sdk/0.1.0"


@dc.dataclass(frozen=True, slots=True)
class DashboardClientConfig:
    """Connection settings for ``DashboardClient``.

    Attributes
    ----------
    base_url
        API root; a trailing slash is stripped.
    api_key
        Value sent in the ``x-api-key`` header.
    timeout_s
        Per-request timeout in seconds.
    max_attempts
        Total attempts per request, including the first.
    user_agent
        ``User-Agent`` header value.

    """

    base_url: str
    api_key: str
    timeout_s: float = DEFAULT_TIMEOUT_S
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    user_agent: str = DEFAULT_USER_AGENT

    def __post_init__(self) -> None:
        """Validate required fields and normalise the base URL."""
        if not self.base_url.strip():
            raise DashboardConfigError.missing("base_url", "PULSEBOARD_API_URL")
        if not self.api_key.strip():
            raise DashboardConfigError.missing("api_key", "PULSEBOARD_API_KEY")
        object.__setattr__(self, "base_url", self.base_url.strip().rstrip("/"))

    @classmethod
    def from_env(cls) -> DashboardClientConfig:
        """Create configuration from environment variables.

        Reads the following environment variables:

        - ``PULSEBOARD_API_URL``: Required API root URL.
        - ``PULSEBOARD_API_KEY``: Required API key.
        - ``PULSEBOARD_API_TIMEOUT_S``: Optional positive timeout in seconds.
        - ``PULSEBOARD_API_MAX_ATTEMPTS``: Optional positive attempt count.

        Raises
        ------
        DashboardConfigError
            If a required variable is missing or a value is malformed.

        """
        return cls(
            base_url=os.environ.get("PULSEBOARD_API_URL", ""),
            api_key=os.environ.get("PULSEBOARD_API_KEY", ""),
            timeout_s=_parse_positive_float(
                "PULSEBOARD_API_TIMEOUT_S", DEFAULT_TIMEOUT_S
            ),
            max_attempts=int(
                _parse_positive_float(
                    "PULSEBOARD_API_MAX_ATTEMPTS", DEFAULT_MAX_ATTEMPTS, integer=True
                )
            ),
        )


def _parse_positive_float(
    env_var: str, default: float, *, integer: bool = False
) -> float:
    raw = os.environ.get(env_var, "").strip()
    if not raw:
        return default
    expected = "a positive integer" if integer else "a positive number"
    try:
        value = int(raw) if integer else float(raw)
    except ValueError as exc:
        raise DashboardConfigError.invalid(env_var, raw, expected) from exc
    if value <= 0:
        raise DashboardConfigError.invalid(env_var, raw, expected)
    return value
