"""Capture femtologging output so tests can assert on emitted log lines.

femtologging delivers records on its own worker thread, so assertions wait
for the expected number of records before inspecting them::

    with capture_femto_logs("pulseboard.reports.observability") as capture:
        events.log_report_forced(date=day, deleted=True)
        capture.wait_for_count(1)
    assert capture.records[0].level == "INFO"

"""

from __future__ import annotations

import contextlib
import dataclasses as dc
import threading
import time
import typing as typ

from femtologging import get_logger


@dc.dataclass(frozen=True, slots=True)
class CapturedRecord:
    """One log line delivered to a ``LogCapture``."""

    logger: str
    level: str
    message: str
    exc_info: object | None = None


class LogCapture:
    """femtologging handler collecting records in memory."""

    def __init__(self) -> None:
        """Start with no records."""
        self.records: list[CapturedRecord] = []
        self._arrived = threading.Condition()

    def handle(self, logger: str, level: str, message: str) -> None:
        """Receive a plain record from the femtologging worker."""
        self._store(CapturedRecord(str(logger), str(level), message))

    def handle_record(self, record: dict[str, object]) -> None:
        """Receive a structured record, which may carry ``exc_info``."""
        self._store(
            CapturedRecord(
                logger=str(record.get("logger", "")),
                level=str(record.get("level", "")),
                message=str(record.get("message", "")),
                exc_info=record.get("exc_info"),
            )
        )

    def _store(self, record: CapturedRecord) -> None:
        with self._arrived:
            self.records.append(record)
            self._arrived.notify_all()

    @property
    def messages(self) -> list[str]:
        """Messages captured so far, in arrival order."""
        return [record.message for record in self.records]

    def wait_for_count(self, count: int, timeout: float = 1.0) -> None:
        """Block until ``count`` records arrive, failing after ``timeout``."""
        deadline = time.monotonic() + timeout
        with self._arrived:
            while len(self.records) < count:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    break
                self._arrived.wait(timeout=remaining)

        assert len(self.records) >= count, (
            f"expected {count} log record(s), got {self.messages}"
        )


@contextlib.contextmanager
def capture_femto_logs(
    logger_name: str, *, level: str = "TRACE"
) -> typ.Iterator[LogCapture]:
    """Attach a ``LogCapture`` to ``logger_name`` for the duration of the block.

    Propagation is switched off while capturing so records do not also reach
    whatever handlers ``configure_logging`` installed on the root logger.
    """
    logger = get_logger(logger_name)
    previous_level = logger.level
    previous_propagate = logger.propagate
    capture = LogCapture()

    logger.set_level(level)
    logger.set_propagate(False)
    logger.add_handler(capture)
    try:
        yield capture
    finally:
        logger.remove_handler(capture)
        logger.set_level(previous_level)
        logger.set_propagate(previous_propagate)
