"""Async HTTP client for the dashboard API.

The client authenticates with an ``x-api-key`` header, maps error statuses
onto ``APIError`` factories, unwraps ``{"success": ..., "data": ...}``
envelopes and retries transient failures according to a ``RetryPolicy``.
"""

from __future__ import annotations

import asyncio
import json
import typing as typ

import httpx
import msgspec

from pulseboard.logging import get_logger, log_warning
from pulseboard.pulls.models import PullRequestDetails, PullRequestRecord
from pulseboard.reports.models import ReportEnrichments, ReportPayload
from pulseboard.sdk.errors import APIError, NetworkError, ResponseShapeError
from pulseboard.sdk.retry import RetryPolicy

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    import datetime as dt

    from pulseboard.sdk.config import DashboardClientConfig
    from pulseboard.sdk.retry import RetryDecision

T = typ.TypeVar("T")

logger = get_logger(__name__)

_HTTP_UNAUTHORIZED = 401
_HTTP_FORBIDDEN = 403
_HTTP_NOT_FOUND = 404
_HTTP_RATE_LIMITED = 429
_HTTP_ERROR_STATUS_THRESHOLD = 400
_HTTP_SERVER_ERROR = 500
_DEFAULT_RETRY_AFTER_S = 60.0

REPORT_PATH = "/api/e2e_run_report"
PULL_REQUESTS_PATH = "/api/pull_requests"


def _get_retry_after(response: httpx.Response, body: object) -> float:
    """Return the delay requested by a 429 response.

    The ``Retry-After`` header wins over a ``retryAfter`` body member; the
    fallback is sixty seconds.
    """
    header = response.headers.get("Retry-After", "").strip()
    if header.isdigit():
        return float(header)
    if isinstance(body, dict):
        value = typ.cast("dict[str, object]", body).get("retryAfter")
        if isinstance(value, int | float) and not isinstance(value, bool):
            return float(value)
    return _DEFAULT_RETRY_AFTER_S


def _error_message(body: object) -> str:
    """Extract a human-readable message from an error body."""
    if not isinstance(body, dict):
        return "Unknown error"
    body_dict = typ.cast("dict[str, object]", body)
    error = body_dict.get("error")
    if isinstance(error, str):
        return error
    if isinstance(error, dict):
        message = typ.cast("dict[str, object]", error).get("message")
        if isinstance(message, str):
            return message
    for key in ("description", "title"):
        value = body_dict.get(key)
        if isinstance(value, str):
            return value
    return "Unknown error"


def _unwrap(body: object) -> object:
    """Return ``data`` from a ``{success, data}`` envelope, else ``body``."""
    if isinstance(body, dict):
        body_dict = typ.cast("dict[str, object]", body)
        if "success" in body_dict and "data" in body_dict:
            return body_dict["data"]
    return body


class DashboardClient:
    """Client for the report and pull request endpoints.

    Parameters
    ----------
    config
        Connection settings.
    http_client
        Optional ``httpx.AsyncClient`` for testing.  If omitted the instance
        creates and owns its own client.
    retry_policy
        Decides whether and how long to wait after a failed attempt.
        Defaults to ``RetryPolicy(max_attempts=config.max_attempts)``.
    sleep
        Awaitable used between attempts.

    Examples
    --------
    >>> import asyncio
    >>> from pulseboard.sdk import DashboardClient, DashboardClientConfig
    >>> client = DashboardClient(
    ...     DashboardClientConfig(base_url="https://dash.example", api_key="k")
    ... )
    >>> asyncio.run(client.aclose())

    """

    def __init__(
        self,
        config: DashboardClientConfig,
        *,
        http_client: httpx.AsyncClient | None = None,
        retry_policy: RetryDecision | None = None,
        sleep: cabc.Callable[[float], cabc.Awaitable[object]] = asyncio.sleep,
    ) -> None:
        """Initialise the client with configuration."""
        self._config = config
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=config.timeout_s)
        self._retry_policy = retry_policy or RetryPolicy(
            max_attempts=config.max_attempts
        )
        self._sleep = sleep

    @property
    def config(self) -> DashboardClientConfig:
        """Read-only access to the client configuration."""
        return self._config

    async def aclose(self) -> None:
        """Close any owned HTTP resources."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> typ.Self:
        """Return the client for use in ``async with``."""
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        """Close owned resources on exit."""
        await self.aclose()

    async def get_e2e_report(
        self,
        *,
        date: dt.date | str | None = None,
        enrichments: ReportEnrichments | None = None,
        force: bool = False,
    ) -> ReportPayload:
        """Fetch the end-to-end report for ``date``.

        Parameters
        ----------
        date
            Report date; the server defaults to today (UTC) when omitted.
        enrichments
            Enrichment flags, sent as a JSON-encoded query parameter.
        force
            Ask the server to discard and regenerate the report.

        Returns
        -------
        ReportPayload
            Ready report or pending placeholder.  Callers check
            ``payload.is_pending`` rather than the HTTP status.

        Raises
        ------
        APIError
            If the server answers with an error status after all retries.
        NetworkError
            If the server cannot be reached after all retries.
        ResponseShapeError
            If the body does not decode as a report payload.

        """
        params: dict[str, str | None] = {
            "date": None if date is None else str(date),
            "enrichments": (
                None
                if enrichments is None
                else msgspec.json.encode(enrichments).decode()
            ),
            "force": "true" if force else None,
        }
        data = await self._request("GET", REPORT_PATH, params=params)
        return self._convert(data, ReportPayload, REPORT_PATH)

    async def list_pull_requests(self) -> list[PullRequestRecord]:
        """Return every pull request tracked by the dashboard."""
        data = await self._request("GET", PULL_REQUESTS_PATH)
        return self._convert(data, list[PullRequestRecord], PULL_REQUESTS_PATH)

    async def get_pull_request_details(
        self, pull_request_id: str
    ) -> PullRequestDetails:
        """Return upstream details for one tracked pull request."""
        path = f"{PULL_REQUESTS_PATH}/{pull_request_id}"
        data = await self._request("GET", path)
        return self._convert(data, PullRequestDetails, path)

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: cabc.Mapping[str, str | None] | None = None,
    ) -> object:
        """Send a request, retrying as the policy allows, and return its data."""
        attempt = 1
        while True:
            try:
                return await self._request_once(method, path, params=params)
            except (APIError, NetworkError) as exc:
                delay = self._retry_policy(attempt, exc)
                if delay is None:
                    raise
                log_warning(
                    logger,
                    "%s %s failed on attempt %d (%s); retrying in %.2fs",
                    method,
                    path,
                    attempt,
                    exc,
                    delay,
                )
                await self._sleep(delay)
                attempt += 1

    async def _request_once(
        self,
        method: str,
        path: str,
        *,
        params: cabc.Mapping[str, str | None] | None = None,
    ) -> object:
        response = await self._send_request(method, path, params=params)
        body = self._parse_body(response)
        self._check_response_errors(response, body, path)
        return _unwrap(body)

    async def _send_request(
        self,
        method: str,
        path: str,
        *,
        params: cabc.Mapping[str, str | None] | None = None,
    ) -> httpx.Response:
        """Perform one HTTP request.

        Raises
        ------
        NetworkError
            If a timeout or transport error occurs.

        """
        query = {
            key: value for key, value in (params or {}).items() if value is not None
        }
        try:
            return await self._client.request(
                method,
                f"{self._config.base_url}{path}",
                params=query,
                headers={
                    "x-api-key": self._config.api_key,
                    "Content-Type": "application/json",
                    "User-Agent": self._config.user_agent,
                },
            )
        except httpx.TimeoutException as exc:
            raise NetworkError.timeout() from exc
        except httpx.RequestError as exc:
            raise NetworkError.connection(str(exc)) from exc

    @staticmethod
    def _parse_body(response: httpx.Response) -> object:
        """Decode a JSON body; anything else reads as an empty object."""
        content_type = response.headers.get("Content-Type", "")
        if "application/json" not in content_type:
            return {}
        try:
            return response.json()
        except json.JSONDecodeError:
            return {}

    @staticmethod
    def _check_response_errors(
        response: httpx.Response, body: object, path: str
    ) -> None:
        """Raise the ``APIError`` matching an error status.

        Raises
        ------
        APIError
            If the response status is 400 or above.

        """
        status = response.status_code
        if status < _HTTP_ERROR_STATUS_THRESHOLD:
            return
        if status == _HTTP_UNAUTHORIZED:
            raise APIError.unauthorized()
        if status == _HTTP_FORBIDDEN:
            raise APIError.forbidden()
        if status == _HTTP_NOT_FOUND:
            raise APIError.not_found(path)
        if status == _HTTP_RATE_LIMITED:
            raise APIError.rate_limited(_get_retry_after(response, body))
        if status >= _HTTP_SERVER_ERROR:
            raise APIError.server_error(status)
        raise APIError.http_error(status, _error_message(body))

    @staticmethod
    def _convert(data: object, target: type[T], path: str) -> T:
        try:
            return msgspec.convert(data, type=target)
        except msgspec.ValidationError as exc:
            raise ResponseShapeError.for_path(path, str(exc)) from exc
