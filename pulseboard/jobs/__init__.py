"""Scheduled jobs publishing report requests and pull request actions."""

from __future__ import annotations

from .tasks import manage_pull_requests, request_daily_report

__all__ = ["manage_pull_requests", "request_daily_report"]
