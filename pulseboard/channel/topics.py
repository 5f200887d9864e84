"""Topic names and message payloads carried over the message channel.

Payloads are msgspec structs encoded as JSON with camelCase keys::

    e2e:report:generate   {"date": "2024-06-01", "requestId": null}
    pull-request:delete   {"id": "pr-3", "pullRequestNumber": 42,
                           "repository": "acme/api", "reason": "..."}
    notification:create   {"title": "...", "message": "...",
                           "type": "warning", "link": "/pull_requests"}

"""

from __future__ import annotations

import datetime as dt  # noqa: TC003
import enum

import msgspec


class Topic(enum.StrEnum):
    """Named channels understood by Pulseboard publishers and processors."""

    REPORT_GENERATE = "e2e:report:generate"
    PULL_REQUEST_DELETE = "pull-request:delete"
    NOTIFICATION_CREATE = "notification:create"


class GenerationRequest(msgspec.Struct, kw_only=True, frozen=True, rename="camel"):
    """Request to compute the E2E report for ``date``.

    ``request_id`` is for log correlation only and is always present on the
    wire, encoded as ``null`` when absent.
    """

    date: dt.date
    request_id: str | None = None


class PullRequestDeletionRequest(
    msgspec.Struct, kw_only=True, frozen=True, rename="camel", omit_defaults=True
):
    """Request to stop tracking a pull request that has been merged."""

    id: str
    pull_request_number: int
    repository: str
    reason: str | None = None


class NotificationType(enum.StrEnum):
    """Severity shown alongside a dashboard notification."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    SUCCESS = "success"


class NotificationRequest(
    msgspec.Struct, kw_only=True, frozen=True, rename="camel", omit_defaults=True
):
    """Request to create a dashboard notification."""

    title: str
    message: str
    type: NotificationType
    link: str | None = None


def encode_message(message: msgspec.Struct) -> bytes:
    """Encode a channel message struct as JSON bytes."""
    return msgspec.json.encode(message)


__all__ = [
    "GenerationRequest",
    "NotificationRequest",
    "NotificationType",
    "PullRequestDeletionRequest",
    "Topic",
    "encode_message",
]
