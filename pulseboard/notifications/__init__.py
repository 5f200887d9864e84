"""Dashboard notifications created from channel messages."""

from __future__ import annotations

from .processor import NotificationProcessor
from .storage import Notification

__all__ = ["Notification", "NotificationProcessor"]
