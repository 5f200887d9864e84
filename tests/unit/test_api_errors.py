"""Unit tests for pulseboard.api.errors error handlers.

Usage
-----
Run with pytest::

    pytest tests/unit/test_api_errors.py

"""

from __future__ import annotations

import falcon.asgi
import falcon.testing
import pytest

from pulseboard.api.errors import (
    handle_channel_error,
    handle_invalid_report_query,
    handle_report_store_error,
)
from pulseboard.channel.errors import ChannelClosedError, ChannelError
from pulseboard.reports.errors import InvalidReportQueryError, ReportStoreError


class _BadDateResource:
    """Resource that raises an invalid date error."""

    async def on_get(
        self, req: falcon.asgi.Request, resp: falcon.asgi.Response
    ) -> None:
        raise InvalidReportQueryError.invalid_date("tomorrow")


class _StoreFailureResource:
    """Resource that raises ReportStoreError."""

    async def on_get(
        self, req: falcon.asgi.Request, resp: falcon.asgi.Response
    ) -> None:
        raise ReportStoreError("claim dispatch")


class _ClosedChannelResource:
    """Resource that raises ChannelClosedError."""

    async def on_get(
        self, req: falcon.asgi.Request, resp: falcon.asgi.Response
    ) -> None:
        raise ChannelClosedError


@pytest.fixture
def client() -> falcon.testing.TestClient:
    """Build a test client with error handlers registered."""
    app = falcon.asgi.App()
    app.add_route("/bad-date", _BadDateResource())
    app.add_route("/store-failure", _StoreFailureResource())
    app.add_route("/closed-channel", _ClosedChannelResource())
    app.add_error_handler(InvalidReportQueryError, handle_invalid_report_query)
    app.add_error_handler(ReportStoreError, handle_report_store_error)
    app.add_error_handler(ChannelError, handle_channel_error)
    return falcon.testing.TestClient(app)


class TestInvalidReportQueryHandler:
    """Tests for handle_invalid_report_query."""

    def test_returns_400_with_field(self, client: falcon.testing.TestClient) -> None:
        """Validation errors answer 400 naming the field."""
        result = client.simulate_get("/bad-date")
        assert result.status == falcon.HTTP_400, "expected HTTP 400"
        assert result.json == {
            "title": "Invalid input",
            "description": "Invalid date format. Use YYYY-MM-DD",
            "field": "date",
        }, "wrong error body"


class TestReportStoreErrorHandler:
    """Tests for handle_report_store_error."""

    def test_returns_500(self, client: falcon.testing.TestClient) -> None:
        """Store failures answer 500 with the operation in the description."""
        result = client.simulate_get("/store-failure")
        assert result.status == falcon.HTTP_500, "expected HTTP 500"
        assert result.json["description"] == (
            "Report store failed during claim dispatch"
        ), "wrong description"


class TestChannelErrorHandler:
    """Tests for handle_channel_error."""

    def test_subclasses_return_503(self, client: falcon.testing.TestClient) -> None:
        """Any channel error answers 503."""
        result = client.simulate_get("/closed-channel")
        assert result.status == falcon.HTTP_503, "expected HTTP 503"
        assert result.json == {
            "title": "Report generation unavailable",
            "description": "Message channel is closed",
        }, "wrong error body"
