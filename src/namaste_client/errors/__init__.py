"""Outcome models and error classification for the NAMASTE API client."""

from namaste_client.errors.exceptions import (
    APIError,
    BadRequestError,
    ClientError,
    ConfigurationError,
    ConflictError,
    ForbiddenError,
    NetworkError,
    NotFoundError,
    RateLimitError,
    RequestTimeoutError,
    ResponseParseError,
    ServerError,
    UnauthorizedError,
    ValidationError,
)
from namaste_client.errors.handler import (
    classify_status,
    deadline_failure,
    exception_for,
    failure_from_transport_error,
    parse_response,
    raise_for_failure,
)
from namaste_client.errors.models import ErrorBody, Failure, FailureKind, Outcome, Success

__all__ = [
    "APIError",
    "BadRequestError",
    "ClientError",
    "ConfigurationError",
    "ConflictError",
    "ErrorBody",
    "Failure",
    "FailureKind",
    "ForbiddenError",
    "NetworkError",
    "NotFoundError",
    "Outcome",
    "RateLimitError",
    "RequestTimeoutError",
    "ResponseParseError",
    "ServerError",
    "Success",
    "UnauthorizedError",
    "ValidationError",
    "classify_status",
    "deadline_failure",
    "exception_for",
    "failure_from_transport_error",
    "parse_response",
    "raise_for_failure",
]
