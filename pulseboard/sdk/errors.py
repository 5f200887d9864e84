"""Exceptions raised by the dashboard SDK client."""

from __future__ import annotations

_HTTP_UNAUTHORIZED = 401
_HTTP_FORBIDDEN = 403
_HTTP_NOT_FOUND = 404
_HTTP_RATE_LIMITED = 429
_HTTP_SERVER_ERROR = 500


class DashboardSDKError(Exception):
    """Base exception for every SDK error."""


class DashboardConfigError(DashboardSDKError):
    """Raised when client configuration is missing or invalid."""

    @classmethod
    def missing(cls, field: str, env_var: str) -> DashboardConfigError:
        """Create error for a required setting that was not provided.

        Parameters
        ----------
        field
            Configuration attribute name.
        env_var
            Environment variable that supplies it.

        Returns
        -------
        DashboardConfigError
            Error naming both the field and the variable.

        """
        return cls(f"{field} is required (set {env_var})")

    @classmethod
    def invalid(cls, env_var: str, raw: str, expected: str) -> DashboardConfigError:
        """Create error for an environment value of the wrong shape."""
        return cls(f"{env_var} must be {expected}, got: {raw!r}")


class APIError(DashboardSDKError):
    """Raised when the dashboard API answers with an error status.

    Attributes
    ----------
    status_code
        HTTP status code of the response.
    retry_after
        Server-requested delay in seconds, set for rate-limited responses.

    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int,
        retry_after: float | None = None,
    ) -> None:
        """Record the status code and optional retry delay."""
        self.status_code = status_code
        self.retry_after = retry_after
        super().__init__(message)

    @property
    def is_retryable(self) -> bool:
        """Whether the request may succeed if repeated (5xx or 429)."""
        return (
            self.status_code >= _HTTP_SERVER_ERROR
            or self.status_code == _HTTP_RATE_LIMITED
        )

    @classmethod
    def unauthorized(cls) -> APIError:
        """Create error for a rejected API key."""
        return cls(
            "Invalid API key - check your credentials", status_code=_HTTP_UNAUTHORIZED
        )

    @classmethod
    def forbidden(cls) -> APIError:
        """Create error for an authenticated but forbidden request."""
        return cls(
            "Access forbidden - insufficient permissions", status_code=_HTTP_FORBIDDEN
        )

    @classmethod
    def not_found(cls, path: str) -> APIError:
        """Create error for a missing resource."""
        return cls(f"Resource not found: {path}", status_code=_HTTP_NOT_FOUND)

    @classmethod
    def rate_limited(cls, retry_after: float) -> APIError:
        """Create error for a 429 response carrying a retry delay."""
        return cls(
            f"Rate limited - retry after {retry_after:g} seconds",
            status_code=_HTTP_RATE_LIMITED,
            retry_after=retry_after,
        )

    @classmethod
    def server_error(cls, status_code: int) -> APIError:
        """Create error for a 5xx response."""
        return cls(
            f"Server error {status_code} - please try again later",
            status_code=status_code,
        )

    @classmethod
    def http_error(cls, status_code: int, message: str) -> APIError:
        """Create error for any other non-success response."""
        return cls(message, status_code=status_code)


class NetworkError(DashboardSDKError):
    """Raised when the API cannot be reached or does not answer in time."""

    @classmethod
    def timeout(cls) -> NetworkError:
        """Create error for a request timeout."""
        return cls("Network error: request timed out")

    @classmethod
    def connection(cls, reason: str) -> NetworkError:
        """Create error for a transport-level failure."""
        return cls(f"Network error: {reason}")


class ResponseShapeError(DashboardSDKError):
    """Raised when a successful response does not match the expected shape."""

    @classmethod
    def for_path(cls, path: str, reason: str) -> ResponseShapeError:
        """Create error naming the endpoint and the decode failure."""
        return cls(f"Unexpected response from {path}: {reason}")
