"""Unit tests for the dashboard SDK client."""

from __future__ import annotations

import datetime as dt
import json
import secrets
import typing as typ

import httpx
import pytest

from pulseboard.reports.models import ReportEnrichments
from pulseboard.reports.storage import ReportStatus
from pulseboard.sdk import (
    APIError,
    DashboardClient,
    DashboardClientConfig,
    NetworkError,
    ResponseShapeError,
    RetryPolicy,
)

_API_KEY = secrets.token_hex(8)
_BASE_URL = "https://dash.example.test"

_READY_BODY: dict[str, typ.Any] = {
    "success": True,
    "summary": {
        "id": 3,
        "date": "2024-06-01",
        "status": "ready",
        "totalRuns": 10,
        "passedRuns": 8,
        "failedRuns": 2,
        "successRate": 0.8,
        "createdAt": "2024-06-01T20:00:00Z",
        "updatedAt": "2024-06-01T20:05:00Z",
    },
    "details": [],
}

_PENDING_BODY: dict[str, typ.Any] = {
    "success": True,
    "summary": {"date": "2024-06-01", "status": "pending"},
    "details": [],
    "message": "Report is being generated. Please check back later.",
}

_Reply: typ.TypeAlias = "httpx.Response | Exception"


def _make_client(
    replies: list[_Reply],
    *,
    max_attempts: int = 3,
) -> tuple[DashboardClient, list[httpx.Request], list[float]]:
    requests: list[httpx.Request] = []
    delays: list[float] = []

    def _handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        reply = replies[len(requests) - 1]
        if isinstance(reply, Exception):
            raise reply
        return reply

    async def _sleep(delay: float) -> None:
        delays.append(delay)

    client = DashboardClient(
        DashboardClientConfig(base_url=_BASE_URL, api_key=_API_KEY),
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(_handler)),
        retry_policy=RetryPolicy(max_attempts=max_attempts, rand=lambda: 0.0),
        sleep=_sleep,
    )
    return client, requests, delays


class TestGetE2EReport:
    """Tests for ``DashboardClient.get_e2e_report``."""

    @pytest.mark.asyncio
    async def test_sends_auth_and_query_parameters(self) -> None:
        """Date, enrichments and force are sent as query parameters."""
        client, requests, _ = _make_client(
            [httpx.Response(200, json=_READY_BODY)]
        )

        payload = await client.get_e2e_report(
            date=dt.date(2024, 6, 1),
            enrichments=ReportEnrichments(include_manual_runs=False),
            force=True,
        )

        request = requests[0]
        assert request.url.path == "/api/e2e_run_report", "report path expected"
        assert request.headers["x-api-key"] == _API_KEY, "API key header expected"
        assert request.url.params["date"] == "2024-06-01"
        assert json.loads(request.url.params["enrichments"]) == {
            "includeDetails": True,
            "includeAppInfo": True,
            "includeManualRuns": False,
        }, "enrichments should be JSON with camelCase keys"
        assert request.url.params["force"] == "true"
        assert payload.summary.status == ReportStatus.READY, "payload is decoded"
        assert payload.summary.success_rate == pytest.approx(0.8)

    @pytest.mark.asyncio
    async def test_omits_unset_parameters(self) -> None:
        """Without arguments the server defaults apply."""
        client, requests, _ = _make_client([httpx.Response(202, json=_PENDING_BODY)])

        payload = await client.get_e2e_report()

        assert dict(requests[0].url.params) == {}, "no query parameters expected"
        assert payload.is_pending, "202 bodies decode as pending placeholders"

    @pytest.mark.asyncio
    async def test_invalid_body_raises_shape_error(self) -> None:
        """A body that is not a report raises ``ResponseShapeError``."""
        client, _, _ = _make_client([httpx.Response(200, json={"summary": 3})])

        with pytest.raises(ResponseShapeError, match="/api/e2e_run_report"):
            await client.get_e2e_report()


class TestErrorMapping:
    """HTTP statuses map onto ``APIError`` factories."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("status", "body", "message"),
        [
            pytest.param(401, {}, "Invalid API key", id="unauthorized"),
            pytest.param(403, {}, "Access forbidden", id="forbidden"),
            pytest.param(
                404, {}, "Resource not found: /api/e2e_run_report", id="not-found"
            ),
            pytest.param(
                400,
                {"title": "Invalid input", "description": "Invalid date format"},
                "Invalid date format",
                id="falcon-error-body",
            ),
            pytest.param(
                422, {"error": {"message": "bad flags"}}, "bad flags", id="nested"
            ),
            pytest.param(409, {"error": "conflict"}, "conflict", id="string-error"),
        ],
    )
    async def test_client_errors_are_not_retried(
        self, status: int, body: dict[str, typ.Any], message: str
    ) -> None:
        """4xx responses raise immediately with a descriptive message."""
        client, requests, delays = _make_client([httpx.Response(status, json=body)])

        with pytest.raises(APIError, match=message) as excinfo:
            await client.get_e2e_report()

        assert excinfo.value.status_code == status, "status code is recorded"
        assert len(requests) == 1, "client errors are not retried"
        assert delays == [], "no backoff should happen"

    @pytest.mark.asyncio
    async def test_non_json_error_body_has_fallback_message(self) -> None:
        """An unparseable error body yields ``Unknown error``."""
        client, _, _ = _make_client(
            [httpx.Response(418, text="<html>teapot</html>")]
        )

        with pytest.raises(APIError, match="Unknown error"):
            await client.get_e2e_report()


class TestRetries:
    """Transient failures are retried according to the policy."""

    @pytest.mark.asyncio
    async def test_server_errors_retry_with_backoff(self) -> None:
        """5xx responses back off exponentially until success."""
        client, requests, delays = _make_client(
            [
                httpx.Response(503, json={}),
                httpx.Response(500, json={}),
                httpx.Response(200, json=_READY_BODY),
            ]
        )

        payload = await client.get_e2e_report()

        assert payload.summary.total_runs == 10, "third attempt succeeds"
        assert len(requests) == 3, "two retries expected"
        assert delays == [1.0, 2.0], "delays double between attempts"

    @pytest.mark.asyncio
    async def test_rate_limit_honours_retry_after(self) -> None:
        """A 429 waits for the server-requested delay."""
        client, _, delays = _make_client(
            [
                httpx.Response(429, headers={"Retry-After": "7"}, json={}),
                httpx.Response(429, json={"retryAfter": 3}),
                httpx.Response(200, json=_READY_BODY),
            ]
        )

        await client.get_e2e_report()

        assert delays == [7.0, 3.0], "header and body delays are honoured"

    @pytest.mark.asyncio
    async def test_gives_up_after_max_attempts(self) -> None:
        """The last error propagates once attempts are exhausted."""
        client, requests, delays = _make_client(
            [httpx.Response(502, json={})] * 2, max_attempts=2
        )

        with pytest.raises(APIError, match="Server error 502") as excinfo:
            await client.get_e2e_report()

        assert excinfo.value.is_retryable, "5xx errors are retryable"
        assert len(requests) == 2, "exactly max_attempts requests"
        assert delays == [1.0], "one backoff between the two attempts"

    @pytest.mark.asyncio
    async def test_network_errors_are_wrapped_and_retried(self) -> None:
        """Timeouts and connection errors become ``NetworkError``."""
        client, requests, _ = _make_client(
            [
                httpx.ConnectError("connection refused"),
                httpx.ReadTimeout("slow"),
            ],
            max_attempts=2,
        )

        with pytest.raises(NetworkError, match="timed out"):
            await client.get_e2e_report()

        assert len(requests) == 2, "the connection error should be retried"


class TestPullRequests:
    """Tests for the pull request endpoints."""

    @pytest.mark.asyncio
    async def test_list_pull_requests_unwraps_envelope(self) -> None:
        """``{success, data}`` envelopes are unwrapped."""
        client, requests, _ = _make_client(
            [
                httpx.Response(
                    200,
                    json={
                        "success": True,
                        "data": [
                            {
                                "id": "pr-1",
                                "pullRequestNumber": 42,
                                "repository": "acme/api",
                            }
                        ],
                    },
                )
            ]
        )

        records = await client.list_pull_requests()

        assert requests[0].url.path == "/api/pull_requests"
        assert [(record.id, record.pull_request_number) for record in records] == [
            ("pr-1", 42)
        ], "records should be decoded"

    @pytest.mark.asyncio
    async def test_get_pull_request_details(self) -> None:
        """Details are fetched by record id."""
        client, requests, _ = _make_client(
            [
                httpx.Response(
                    200,
                    json={
                        "number": 42,
                        "title": "Add retries",
                        "state": "closed",
                        "merged": True,
                        "createdAt": "2024-05-20T08:00:00Z",
                    },
                )
            ]
        )

        details = await client.get_pull_request_details("pr-1")

        assert requests[0].url.path == "/api/pull_requests/pr-1"
        assert details.merged is True, "merged flag should be decoded"
        assert details.created_at == dt.datetime(2024, 5, 20, 8, tzinfo=dt.UTC)

    @pytest.mark.asyncio
    async def test_details_without_utc_offset_are_rejected(self) -> None:
        """A ``createdAt`` lacking an offset is a response shape error."""
        client, _, _ = _make_client(
            [
                httpx.Response(
                    200, json={"number": 42, "createdAt": "2024-06-01T00:00:00"}
                )
            ]
        )

        with pytest.raises(ResponseShapeError):
            await client.get_pull_request_details("pr-1")


@pytest.mark.asyncio
async def test_context_manager_closes_owned_client() -> None:
    """An owned ``httpx.AsyncClient`` is closed on exit."""
    async with DashboardClient(
        DashboardClientConfig(base_url=_BASE_URL, api_key=_API_KEY)
    ) as client:
        owned = client._client  # noqa: SLF001

    assert owned.is_closed, "owned client should be closed"
