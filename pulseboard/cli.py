"""Command-line entrypoints for the Pulseboard worker and jobs.

Subcommands
-----------
init-db
    Create the database tables.
process
    Run the channel worker with the report, pull request and notification
    processors.
request-report
    Publish a report generation request (today by default).
watch-report
    Poll the API until a report is ready and print it as JSON.
manage-pull-requests
    Run the pull request coordinator once.
"""

from __future__ import annotations

import argparse
import asyncio
import datetime as dt
import os
import sys

import msgspec

from pulseboard.channel.config import ChannelConfig
from pulseboard.logging import configure_logging, get_logger, log_error, log_info

logger = get_logger(__name__)


def _database_url(args: argparse.Namespace) -> str:
    url = args.database_url or os.environ.get("PULSEBOARD_DATABASE_URL", "")
    if not url:
        msg = "a database URL is required (--database-url or PULSEBOARD_DATABASE_URL)"
        raise SystemExit(msg)
    return url


def _channel_config(args: argparse.Namespace) -> ChannelConfig:
    if args.redis_url:
        return ChannelConfig(redis_url=args.redis_url)
    return ChannelConfig.from_env()


def _parse_date(raw: str) -> dt.date:
    try:
        return dt.date.fromisoformat(raw)
    except ValueError as exc:
        msg = f"invalid date {raw!r}; use YYYY-MM-DD"
        raise argparse.ArgumentTypeError(msg) from exc


async def _init_db(args: argparse.Namespace) -> int:
    from sqlalchemy.ext.asyncio import create_async_engine

    from pulseboard.db import init_storage

    engine = create_async_engine(_database_url(args))
    try:
        await init_storage(engine)
    finally:
        await engine.dispose()
    log_info(logger, "Database schema is up to date")
    return 0


async def _process(args: argparse.Namespace) -> int:
    from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

    from pulseboard.channel.redis_pubsub import RedisChannel
    from pulseboard.channel.worker import ChannelWorker
    from pulseboard.notifications.processor import NotificationProcessor
    from pulseboard.pulls.processor import PullRequestDeletionProcessor
    from pulseboard.reports.consumer import ReportGeneratorConsumer
    from pulseboard.reports.sources import create_run_stats_source
    from pulseboard.reports.store import ReportStatusStore

    engine = create_async_engine(_database_url(args))
    session_factory = async_sessionmaker(engine, expire_on_commit=False)
    channel = RedisChannel.from_config(_channel_config(args))
    worker = ChannelWorker(
        channel,
        [
            ReportGeneratorConsumer(
                ReportStatusStore(session_factory), create_run_stats_source()
            ),
            PullRequestDeletionProcessor(session_factory),
            NotificationProcessor(session_factory),
        ],
    )
    try:
        await worker.run()
    finally:
        await channel.aclose()
        await engine.dispose()
    return 0


async def _request_report(args: argparse.Namespace) -> int:
    from pulseboard.channel.redis_pubsub import RedisChannel
    from pulseboard.jobs.tasks import request_daily_report

    channel = RedisChannel.from_config(_channel_config(args))
    try:
        request_id = await request_daily_report(channel, date=args.date)
    finally:
        await channel.aclose()
    print(request_id)
    return 0


async def _watch_report(args: argparse.Namespace) -> int:
    from pulseboard.reports.poller import PollerConfig, ReportPoller
    from pulseboard.reports.query import parse_enrichments
    from pulseboard.sdk.client import DashboardClient
    from pulseboard.sdk.config import DashboardClientConfig

    config = (
        PollerConfig(interval_s=args.interval)
        if args.interval is not None
        else PollerConfig.from_env()
    )
    async with DashboardClient(DashboardClientConfig.from_env()) as client:
        poller = ReportPoller(
            client,
            date=args.date,
            enrichments=parse_enrichments(args.enrichments),
            config=config,
        )
        try:
            await poller.open()
            if args.force and poller.request_force_refresh():
                await poller.confirm_force_refresh()
            await poller.join()
        finally:
            await poller.close()

    state = poller.state
    if state.report is None:
        log_error(
            logger,
            "Report for %s could not be fetched: %s",
            poller.date.isoformat(),
            state.error,
        )
        return 1
    sys.stdout.write(msgspec.json.encode(state.report).decode() + "\n")
    return 0


async def _manage_pull_requests(args: argparse.Namespace) -> int:
    from pulseboard.channel.redis_pubsub import RedisChannel
    from pulseboard.jobs.tasks import manage_pull_requests
    from pulseboard.sdk.client import DashboardClient
    from pulseboard.sdk.config import DashboardClientConfig

    channel = RedisChannel.from_config(_channel_config(args))
    try:
        async with DashboardClient(DashboardClientConfig.from_env()) as client:
            result = await manage_pull_requests(client, channel)
    finally:
        await channel.aclose()
    return 1 if result.failures else 0


def build_parser() -> argparse.ArgumentParser:
    """Return the argument parser for all subcommands."""
    parser = argparse.ArgumentParser(prog="pulseboard", description=__doc__)
    parser.add_argument(
        "--log-level",
        default=os.environ.get("PULSEBOARD_LOG_LEVEL", "INFO"),
        help="Log level (default: PULSEBOARD_LOG_LEVEL or INFO)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    init_db = subparsers.add_parser("init-db", help="Create database tables")
    init_db.add_argument("--database-url", default=None)
    init_db.set_defaults(handler=_init_db)

    process = subparsers.add_parser("process", help="Run the channel worker")
    process.add_argument("--database-url", default=None)
    process.add_argument("--redis-url", default=None)
    process.set_defaults(handler=_process)

    request = subparsers.add_parser(
        "request-report", help="Publish a report generation request"
    )
    request.add_argument("--date", type=_parse_date, default=None)
    request.add_argument("--redis-url", default=None)
    request.set_defaults(handler=_request_report)

    watch = subparsers.add_parser(
        "watch-report", help="Poll until a report is ready and print it"
    )
    watch.add_argument("--date", type=_parse_date, default=None)
    watch.add_argument(
        "--enrichments", default=None, help="JSON object of enrichment flags"
    )
    watch.add_argument("--interval", type=float, default=None)
    watch.add_argument(
        "--force", action="store_true", help="Regenerate the report first"
    )
    watch.set_defaults(handler=_watch_report)

    manage = subparsers.add_parser(
        "manage-pull-requests", help="Run the pull request coordinator once"
    )
    manage.add_argument("--redis-url", default=None)
    manage.set_defaults(handler=_manage_pull_requests)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Parse ``argv`` and run the selected subcommand.

    Parameters
    ----------
    argv : list[str] | None, optional
        Command-line arguments. ``None`` defaults to ``sys.argv``.

    Returns
    -------
    int
        Exit code of the subcommand.

    """
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)
    return asyncio.run(args.handler(args))


if __name__ == "__main__":
    raise SystemExit(main())
