"""Structured exceptions for API errors.

Calls return `Outcome` values; these exceptions exist for callers that prefer
exception style (`outcome.unwrap()`) and for contract violations.
"""

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from namaste_client.errors.models import Failure


class ConfigurationError(Exception):
    """Client used with missing or invalid configuration."""

    pass


class APIError(Exception):
    """Base exception for API errors."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        code: str | None = None,
        details: Any = None,
        failure: "Failure | None" = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.details = details
        self.failure = failure


class ClientError(APIError):
    """4xx client errors."""

    pass


class BadRequestError(ClientError):
    """400 Bad Request."""

    pass


class UnauthorizedError(ClientError):
    """401 Unauthorized, or credentials could not be refreshed."""

    pass


class ForbiddenError(ClientError):
    """403 Forbidden."""

    pass


class NotFoundError(ClientError):
    """404 Not Found."""

    pass


class ConflictError(ClientError):
    """409 Conflict."""

    pass


class ValidationError(ClientError):
    """422 Unprocessable Entity (validation errors)."""

    def __init__(self, message: str, validation_errors: list[dict] | None = None, **kwargs):
        super().__init__(message, **kwargs)
        self.validation_errors = validation_errors if validation_errors is not None else []


class RateLimitError(ClientError):
    """429 Too Many Requests."""

    def __init__(self, message: str, retry_after: int | None = None, **kwargs):
        super().__init__(message, **kwargs)
        self.retry_after = retry_after


class ServerError(APIError):
    """5xx server errors."""

    pass


class NetworkError(APIError):
    """The call could not complete."""

    pass


class RequestTimeoutError(NetworkError):
    """The call exceeded its timeout."""

    pass


class ResponseParseError(APIError):
    """The response payload could not be decoded."""

    pass
