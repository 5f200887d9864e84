"""Errors raised by the report pipeline."""

from __future__ import annotations


class ReportingError(Exception):
    """Base class for report pipeline errors."""


class InvalidReportQueryError(ReportingError):
    """Raised when report query input fails validation.

    Validation happens before the query touches the store or the channel, so
    raising this error guarantees no side effect took place.

    Attributes
    ----------
    reason
        Human-readable description of the validation failure.
    field
        Name of the offending query parameter.
    value
        The raw value that was rejected, when available.

    """

    def __init__(
        self, reason: str, *, field: str, value: object | None = None
    ) -> None:
        """Record the reason, field and rejected value."""
        self.reason = reason
        self.field = field
        self.value = value
        super().__init__(f"{field}: {reason}")

    @classmethod
    def invalid_date(cls, raw: str) -> InvalidReportQueryError:
        """Return an error for a date that is not a ``YYYY-MM-DD`` calendar day."""
        return cls(
            "Invalid date format. Use YYYY-MM-DD", field="date", value=raw
        )

    @classmethod
    def invalid_enrichments(cls, detail: str, raw: str) -> InvalidReportQueryError:
        """Return an error for an enrichments value that is not a flag object."""
        return cls(
            f"Invalid enrichments parameter: {detail}",
            field="enrichments",
            value=raw,
        )


class ReportStoreError(ReportingError):
    """Raised when the report status store cannot complete an operation.

    This is an infrastructure failure.  It is distinct from a missing
    summary, which callers treat as a request to generate the report.
    """

    def __init__(self, operation: str) -> None:
        """Record which store operation failed."""
        self.operation = operation
        super().__init__(f"Report store failed during {operation}")


class ReportGenerationError(ReportingError):
    """Raised when run statistics for a date cannot be collected."""

    @classmethod
    def source_failed(cls, date_text: str, reason: str) -> ReportGenerationError:
        """Return an error for a run statistics source failure."""
        return cls(f"Run statistics unavailable for {date_text}: {reason}")
