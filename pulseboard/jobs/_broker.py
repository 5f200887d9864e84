"""Broker configuration helpers for Dramatiq actor setup.

This private module encapsulates the broker detection and configuration logic
used at actor invocation time to ensure a Dramatiq broker is available.
"""

from __future__ import annotations

import os
import sys
import threading

import dramatiq
from dramatiq.brokers.stub import StubBroker

_BROKER_LOCK = threading.Lock()
_broker_configured = False
_TRUTHY = frozenset({"1", "true", "yes"})


def _is_running_tests() -> bool:
    """Check whether the current process runs under pytest."""
    return "pytest" in sys.modules or any(
        key in os.environ
        for key in ["PYTEST_CURRENT_TEST", "PYTEST_XDIST_WORKER", "PYTEST_ADDOPTS"]
    )


def _should_use_stub_broker() -> bool:
    """Return True when ``PULSEBOARD_ALLOW_STUB_BROKER`` is set or under test."""
    allow_stub = os.environ.get("PULSEBOARD_ALLOW_STUB_BROKER", "")
    return allow_stub.lower() in _TRUTHY or _is_running_tests()


def _redis_broker_url() -> str | None:
    raw = os.environ.get("PULSEBOARD_BROKER_URL", "").strip()
    return raw or None


def ensure_broker_configured() -> None:
    """Ensure a Dramatiq broker is configured before actor execution.

    Thread-safe and idempotent.  When no broker is set, a ``RedisBroker`` is
    created from ``PULSEBOARD_BROKER_URL``; failing that a ``StubBroker`` is
    installed for tests and local runs.

    Raises
    ------
    RuntimeError
        If no broker can be configured outside a test/stub-allowed context.

    """
    global _broker_configured

    if _broker_configured:
        return

    with _BROKER_LOCK:
        if _broker_configured:
            return

        try:  # pragma: no cover - exercised in tests and CLI usage
            current_broker = dramatiq.get_broker()
        except (ImportError, LookupError):
            # ImportError: broker dependencies are not installed
            # LookupError: no broker has been configured yet
            current_broker = None

        if current_broker is None:
            broker_url = _redis_broker_url()
            if broker_url is not None:
                from dramatiq.brokers.redis import RedisBroker

                dramatiq.set_broker(RedisBroker(url=broker_url))
            elif _should_use_stub_broker():
                dramatiq.set_broker(StubBroker())
            else:  # pragma: no cover - guard for prod misconfigurations
                message = (
                    "No Dramatiq broker configured. "
                    "Set PULSEBOARD_BROKER_URL, or PULSEBOARD_ALLOW_STUB_BROKER=1 "
                    "for local/test runs."
                )
                raise RuntimeError(message)

        _broker_configured = True
