"""Response parsing and error classification."""

import json
import logging
from typing import NoReturn

import httpx

from namaste_client.errors.exceptions import (
    APIError,
    BadRequestError,
    ClientError,
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
from namaste_client.errors.models import ErrorBody, Failure, FailureKind, Outcome, Success

logger = logging.getLogger(__name__)


def classify_status(status_code: int) -> FailureKind:
    """Map a non-success HTTP status to a failure kind."""
    if status_code in (401, 403):
        return FailureKind.AUTH
    if status_code >= 500:
        return FailureKind.SERVER
    # 4xx, and any other non-2xx left after redirects
    return FailureKind.CLIENT


def is_json_content(content_type: str) -> bool:
    """True for `application/json` and `+json` media types."""
    media_type = content_type.split(";", 1)[0].strip().lower()
    return media_type == "application/json" or media_type.endswith("+json")


def parse_response(response: httpx.Response, path: str) -> Outcome:
    """Normalize an HTTP response into an Outcome.

    JSON content is decoded as structured data, everything else as text.
    A non-success status always yields a Failure; a success status whose
    JSON payload cannot be decoded yields a PARSE Failure.

    Args:
        response: HTTP response object (already read)
        path: Originating request path, recorded on failures

    Returns:
        Success or Failure
    """
    content_type = response.headers.get("content-type", "")
    headers = dict(response.headers)

    decode_error = None
    if is_json_content(content_type):
        try:
            payload = response.json() if response.content else None
        except (ValueError, UnicodeDecodeError) as e:
            # json.JSONDecodeError is a ValueError
            decode_error = e
            payload = response.text
    else:
        payload = response.text

    if not response.is_success:
        body = ErrorBody.from_payload(payload)
        status_code = response.status_code
        return Failure(
            kind=classify_status(status_code),
            status=status_code,
            code=body.code or f"HTTP_{status_code}",
            message=body.message or response.reason_phrase or "Request failed",
            details=body.details,
            headers=headers,
            path=path,
        )

    if decode_error is not None:
        return Failure(
            kind=FailureKind.PARSE,
            status=response.status_code,
            code="INVALID_RESPONSE_BODY",
            message=f"Response declared {content_type} but could not be decoded: {decode_error}",
            details={"body": response.text[:200]},
            headers=headers,
            path=path,
        )

    return Success(
        data=payload,
        status=response.status_code,
        headers=headers,
        reason=response.reason_phrase,
    )


def failure_from_transport_error(exc: httpx.HTTPError, path: str) -> Failure:
    """Classify an exception raised by the transport.

    Args:
        exc: Timeout, connection or decoding error raised by httpx
        path: Originating request path

    Returns:
        TIMEOUT, PARSE or NETWORK Failure
    """
    if isinstance(exc, httpx.TimeoutException):
        return Failure(
            kind=FailureKind.TIMEOUT,
            code="TIMEOUT",
            message=f"Request timed out: {exc}" if str(exc) else "Request timed out",
            path=path,
        )
    if isinstance(exc, httpx.DecodingError):
        return Failure(
            kind=FailureKind.PARSE,
            code="DECODING_ERROR",
            message=f"Response could not be decoded: {exc}",
            path=path,
        )
    return Failure(
        kind=FailureKind.NETWORK,
        code="NETWORK_ERROR",
        message=f"{type(exc).__name__}: {exc}" if str(exc) else type(exc).__name__,
        path=path,
    )


def deadline_failure(timeout_ms: int, path: str) -> Failure:
    """TIMEOUT Failure for an attempt that outlived its total deadline."""
    return Failure(
        kind=FailureKind.TIMEOUT,
        code="TIMEOUT",
        message=f"Request timed out after {timeout_ms}ms",
        path=path,
    )


def _parse_retry_after(headers: dict[str, str]) -> int | None:
    value = headers.get("retry-after")
    if value is None:
        return None
    try:
        return int(value)
    except (ValueError, TypeError):
        return None


def exception_for(failure: Failure) -> APIError:
    """Build the APIError subclass that matches a Failure."""
    exception_map = {
        400: BadRequestError,
        401: UnauthorizedError,
        403: ForbiddenError,
        404: NotFoundError,
        409: ConflictError,
        422: ValidationError,
        429: RateLimitError,
    }
    kwargs = {
        "status_code": failure.status,
        "code": failure.code,
        "details": failure.details,
        "failure": failure,
    }

    if failure.kind is FailureKind.TIMEOUT:
        return RequestTimeoutError(failure.message, **kwargs)
    if failure.kind is FailureKind.NETWORK:
        return NetworkError(failure.message, **kwargs)
    if failure.kind is FailureKind.PARSE:
        return ResponseParseError(failure.message, **kwargs)
    if failure.kind is FailureKind.SERVER:
        return ServerError(failure.message, **kwargs)

    exc_class = exception_map.get(failure.status)
    if exc_class is None:
        # AUTH without a status comes from a failed token refresh
        exc_class = UnauthorizedError if failure.kind is FailureKind.AUTH else ClientError

    if exc_class is RateLimitError:
        return RateLimitError(failure.message, retry_after=_parse_retry_after(failure.headers), **kwargs)

    if exc_class is ValidationError:
        validation_errors = None
        if isinstance(failure.details, list):
            validation_errors = failure.details
        elif isinstance(failure.details, dict):
            validation_errors = failure.details.get("errors")
        return ValidationError(failure.message, validation_errors=validation_errors, **kwargs)

    return exc_class(failure.message, **kwargs)


def raise_for_failure(failure: Failure) -> NoReturn:
    """Raise the APIError subclass that matches a Failure.

    Raises:
        APIError subclass based on kind and status code
    """
    logger.debug(f"Raising for failure: {json.dumps(failure.to_dict(), default=str)}")
    raise exception_for(failure)
