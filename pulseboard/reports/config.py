"""Configuration for the report query and generation pipeline.

Usage
-----
Create a configuration with defaults:

>>> config = ReportingConfig()
>>> config.dispatch_claim_ttl_s
120

Or load from environment variables:

>>> import os
>>> os.environ["PULSEBOARD_REPORT_CLAIM_TTL_S"] = "30"
>>> ReportingConfig.from_env().dispatch_claim_ttl_s
30

"""

from __future__ import annotations

import dataclasses as dc
import datetime as dt
import os


def _parse_positive_int(env_var: str, default: int) -> int:
    """Read a positive integer env var, falling back to a default."""
    raw = os.environ.get(env_var, "")
    if not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        msg = f"{env_var} must be an integer, got: {raw!r}"
        raise ValueError(msg) from exc
    if value < 1:
        msg = f"{env_var} must be positive, got: {value}"
        raise ValueError(msg)
    return value


@dc.dataclass(frozen=True, slots=True)
class ReportingConfig:
    """Tunables for ``ReportQueryService``.

    Attributes
    ----------
    dispatch_claim_ttl_s
        Seconds during which a dispatched generation request suppresses
        further dispatches for the same date.  Once it lapses with no summary
        written, the next reader dispatches again.  Default is 120.
    pending_timeout_s
        Age in seconds after which a pending summary is reported as stale in
        the logs.  Default is 900.

    """

    dispatch_claim_ttl_s: int = 120
    pending_timeout_s: int = 900

    @property
    def dispatch_claim_ttl(self) -> dt.timedelta:
        """Return the claim TTL as a ``timedelta``."""
        return dt.timedelta(seconds=self.dispatch_claim_ttl_s)

    @property
    def pending_timeout(self) -> dt.timedelta:
        """Return the pending timeout as a ``timedelta``."""
        return dt.timedelta(seconds=self.pending_timeout_s)

    @classmethod
    def from_env(cls) -> ReportingConfig:
        """Create configuration from environment variables.

        Reads ``PULSEBOARD_REPORT_CLAIM_TTL_S`` and
        ``PULSEBOARD_REPORT_PENDING_TIMEOUT_S``; both must be positive
        integers when set.

        Raises
        ------
        ValueError
            If either variable is set to a non-positive or non-integer value.

        """
        return cls(
            dispatch_claim_ttl_s=_parse_positive_int(
                "PULSEBOARD_REPORT_CLAIM_TTL_S", 120
            ),
            pending_timeout_s=_parse_positive_int(
                "PULSEBOARD_REPORT_PENDING_TIMEOUT_S", 900
            ),
        )
