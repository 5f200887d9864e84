"""Python client for the dashboard HTTP API."""

from __future__ import annotations

from .client import DashboardClient
from .config import DashboardClientConfig
from .errors import (
    APIError,
    DashboardConfigError,
    DashboardSDKError,
    NetworkError,
    ResponseShapeError,
)
from .retry import RetryPolicy, is_retryable

__all__ = [
    "APIError",
    "DashboardClient",
    "DashboardClientConfig",
    "DashboardConfigError",
    "DashboardSDKError",
    "NetworkError",
    "ResponseShapeError",
    "RetryPolicy",
    "is_retryable",
]
