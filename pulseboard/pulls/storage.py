"""Table of pull requests tracked by the dashboard."""

from __future__ import annotations

import datetime as dt  # noqa: TC003
import uuid

from sqlalchemy import Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from pulseboard.common.time import utcnow
from pulseboard.db.base import Base, UTCDateTime


class TrackedPullRequest(Base):
    """A pull request the dashboard follows until it is merged."""

    __tablename__ = "pull_requests"
    __table_args__ = (
        UniqueConstraint(
            "repository", "pull_request_number", name="uq_pull_requests_repo_number"
        ),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    pull_request_number: Mapped[int] = mapped_column(Integer())
    repository: Mapped[str] = mapped_column(String(255))
    url: Mapped[str | None] = mapped_column(Text(), default=None)
    created_at: Mapped[dt.datetime] = mapped_column(UTCDateTime(), default=utcnow)
