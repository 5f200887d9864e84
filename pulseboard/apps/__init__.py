"""Monitored applications and their manual E2E runs."""

from __future__ import annotations

from .directory import ApplicationDirectory
from .storage import Application, ManualRun

__all__ = ["Application", "ApplicationDirectory", "ManualRun"]
