"""Table of dashboard notifications."""

from __future__ import annotations

import datetime as dt  # noqa: TC003

from sqlalchemy import Boolean, Enum, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from pulseboard.channel.topics import NotificationType
from pulseboard.common.time import utcnow
from pulseboard.db.base import Base, UTCDateTime


class Notification(Base):
    """A notification shown in the dashboard inbox."""

    __tablename__ = "notifications"
    __table_args__ = (Index("ix_notifications_created_at", "created_at"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255))
    message: Mapped[str] = mapped_column(Text())
    type: Mapped[NotificationType] = mapped_column(
        Enum(
            NotificationType,
            native_enum=False,
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
            validate_strings=True,
        )
    )
    link: Mapped[str | None] = mapped_column(Text(), default=None)
    is_read: Mapped[bool] = mapped_column(Boolean(), default=False)
    created_at: Mapped[dt.datetime] = mapped_column(UTCDateTime(), default=utcnow)
