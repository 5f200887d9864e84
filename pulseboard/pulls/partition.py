"""Pure partitioning of fetched pull requests into notification buckets."""

from __future__ import annotations

import dataclasses as dc
import typing as typ

from pulseboard.channel.topics import NotificationRequest, NotificationType

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from pulseboard.pulls.models import PRActionItem

PULL_REQUESTS_LINK = "/pull_requests"
REMINDER_DAYS = 3
ESCALATION_DAYS = 7


@dc.dataclass(frozen=True, slots=True)
class PullRequestPartition:
    """Buckets derived from one coordinator fetch.

    ``ready_to_merge``, ``with_conflicts``, ``reminder`` and ``escalation``
    are drawn from open, unmerged pull requests.  ``reminder`` and
    ``escalation`` are mutually exclusive.  ``merged`` holds every merged
    pull request regardless of state.
    """

    ready_to_merge: tuple[PRActionItem, ...] = ()
    with_conflicts: tuple[PRActionItem, ...] = ()
    reminder: tuple[PRActionItem, ...] = ()
    escalation: tuple[PRActionItem, ...] = ()
    merged: tuple[PRActionItem, ...] = ()


def partition_pull_requests(
    items: cabc.Iterable[PRActionItem],
) -> PullRequestPartition:
    """Split ``items`` into the buckets the coordinator acts on."""
    ready: list[PRActionItem] = []
    conflicts: list[PRActionItem] = []
    reminder: list[PRActionItem] = []
    escalation: list[PRActionItem] = []
    merged: list[PRActionItem] = []

    for item in items:
        if item.merged:
            merged.append(item)
            continue
        if not item.is_open:
            continue
        if item.ready_to_merge:
            ready.append(item)
        elif item.has_conflicts:
            conflicts.append(item)
        if item.age_days >= ESCALATION_DAYS:
            escalation.append(item)
        elif item.age_days >= REMINDER_DAYS:
            reminder.append(item)

    return PullRequestPartition(
        ready_to_merge=tuple(ready),
        with_conflicts=tuple(conflicts),
        reminder=tuple(reminder),
        escalation=tuple(escalation),
        merged=tuple(merged),
    )


def _numbers(items: cabc.Sequence[PRActionItem]) -> str:
    return ", ".join(f"#{item.number}" for item in items)


def _there_are(count: int) -> str:
    return f"There {'are' if count > 1 else 'is'} {count} pull request" + (
        "s" if count > 1 else ""
    )


def _have_been(count: int) -> str:
    noun = "pull requests" if count > 1 else "pull request"
    verb = "have" if count > 1 else "has"
    return f"{count} {noun} {verb} been open"


def build_notifications(partition: PullRequestPartition) -> list[NotificationRequest]:
    """Return one notification per non-empty bucket except ``merged``.

    Examples
    --------
    >>> build_notifications(PullRequestPartition())
    []

    """
    notifications: list[NotificationRequest] = []
    if ready := partition.ready_to_merge:
        notifications.append(
            NotificationRequest(
                title="Pull Requests Ready to Merge",
                message=(
                    f"{_there_are(len(ready))} ready to merge: {_numbers(ready)}."
                ),
                type=NotificationType.INFO,
                link=PULL_REQUESTS_LINK,
            )
        )
    if conflicts := partition.with_conflicts:
        notifications.append(
            NotificationRequest(
                title="Pull Requests with Conflicts",
                message=(
                    f"{_there_are(len(conflicts))} with merge conflicts: "
                    f"{_numbers(conflicts)}."
                ),
                type=NotificationType.WARNING,
                link=PULL_REQUESTS_LINK,
            )
        )
    if reminder := partition.reminder:
        notifications.append(
            NotificationRequest(
                title=f"Pull Requests Reminder ({REMINDER_DAYS}+ days old)",
                message=(
                    f"{_have_been(len(reminder))} for {REMINDER_DAYS}+ days: "
                    f"{_numbers(reminder)}"
                ),
                type=NotificationType.INFO,
                link=PULL_REQUESTS_LINK,
            )
        )
    if escalation := partition.escalation:
        notifications.append(
            NotificationRequest(
                title=f"Pull Requests Reminder ({ESCALATION_DAYS}+ days old)",
                message=(
                    f"{_have_been(len(escalation))} for {ESCALATION_DAYS}+ days: "
                    f"{_numbers(escalation)}. Please review!"
                ),
                type=NotificationType.WARNING,
                link=PULL_REQUESTS_LINK,
            )
        )
    return notifications
