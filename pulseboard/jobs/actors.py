"""Dramatiq actors for the scheduled jobs.

Usage
-----
Queue today's report request and a pull request management run:

>>> request_daily_report_job.send()
>>> manage_pull_requests_job.send()

Each invocation builds its Redis channel and API client from the
environment, runs the job once and closes them again.
"""

from __future__ import annotations

import asyncio

import dramatiq

from pulseboard.channel.config import ChannelConfig
from pulseboard.channel.redis_pubsub import RedisChannel
from pulseboard.jobs._broker import ensure_broker_configured
from pulseboard.jobs.tasks import manage_pull_requests, request_daily_report
from pulseboard.sdk.client import DashboardClient
from pulseboard.sdk.config import DashboardClientConfig

ensure_broker_configured()


def _channel_config(redis_url: str | None) -> ChannelConfig:
    if redis_url is None:
        return ChannelConfig.from_env()
    return ChannelConfig(redis_url=redis_url)


async def _request_daily_report_async(redis_url: str | None) -> str:
    channel = RedisChannel.from_config(_channel_config(redis_url))
    try:
        return await request_daily_report(channel)
    finally:
        await channel.aclose()


async def _manage_pull_requests_async(redis_url: str | None) -> dict[str, int]:
    channel = RedisChannel.from_config(_channel_config(redis_url))
    try:
        async with DashboardClient(DashboardClientConfig.from_env()) as client:
            result = await manage_pull_requests(client, channel)
    finally:
        await channel.aclose()
    return {
        "items": len(result.items),
        "notifications": result.notifications_published,
        "deletions": result.deletions_published,
        "failures": len(result.failures),
    }


@dramatiq.actor
def request_daily_report_job(redis_url: str | None = None) -> str:
    """Publish a report generation request for today.

    Parameters
    ----------
    redis_url
        Redis URL overriding ``PULSEBOARD_REDIS_URL``.

    Returns
    -------
    str
        The request id of the published message.

    """
    return asyncio.run(_request_daily_report_async(redis_url))


@dramatiq.actor
def manage_pull_requests_job(redis_url: str | None = None) -> dict[str, int]:
    """Run the pull request coordinator once and return its counters."""
    return asyncio.run(_manage_pull_requests_async(redis_url))
