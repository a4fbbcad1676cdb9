"""Outcome models returned by every client call.

A call produces exactly one of two values:

- `Success`: the decoded payload plus status, reason and headers.
- `Failure`: a classified error carrying a stable `kind`, optional
  status/code, a human-readable message, and the originating path.

Example:
    ```python
    outcome = await client.get("codesystems")
    if outcome.ok:
        rows = outcome.data
    elif outcome.kind is FailureKind.AUTH:
        redirect_to_login()
    ```
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Union


class FailureKind(str, Enum):
    """Classification of a failed call attempt."""

    NETWORK = "NETWORK"  # call could not complete (DNS, reset, refused)
    TIMEOUT = "TIMEOUT"  # call exceeded its deadline
    CLIENT = "CLIENT"  # 4xx other than 401/403
    AUTH = "AUTH"  # 401 / 403
    SERVER = "SERVER"  # 5xx
    PARSE = "PARSE"  # payload could not be decoded as declared

    @property
    def is_network(self) -> bool:
        return self in (FailureKind.NETWORK, FailureKind.TIMEOUT)

    @property
    def is_client_error(self) -> bool:
        return self in (FailureKind.CLIENT, FailureKind.AUTH)


@dataclass(frozen=True)
class Success:
    """Successful response."""

    data: Any
    status: int
    headers: dict[str, str] = field(default_factory=dict)
    reason: str = ""

    ok = True

    def unwrap(self) -> Any:
        return self.data


@dataclass(frozen=True)
class Failure:
    """Classified failure of a call attempt."""

    kind: FailureKind
    message: str
    path: str
    status: int | None = None
    code: str | None = None
    details: Any = None
    headers: dict[str, str] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    ok = False

    def unwrap(self) -> Any:
        """Raise the `APIError` subclass matching this failure."""
        from namaste_client.errors.handler import raise_for_failure

        raise_for_failure(self)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for logs and diagnostics."""
        return {
            "kind": self.kind.value,
            "status": self.status,
            "code": self.code,
            "message": self.message,
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
            "path": self.path,
        }


Outcome = Union[Success, Failure]


@dataclass
class ErrorBody:
    """Error fields extracted from a response body.

    Reads the API's own `{code, message, details}` shape, and accepts
    RFC 7807 problem details (`title`/`detail`) as a fallback for the message.
    See: https://datatracker.ietf.org/doc/html/rfc7807
    """

    code: str | None = None
    message: str | None = None
    details: Any = None

    @classmethod
    def from_payload(cls, payload: Any) -> "ErrorBody":
        """Extract error fields from a decoded body.

        Args:
            payload: Decoded JSON (any shape) or raw text

        Returns:
            ErrorBody, with every field None when the payload carries none
        """
        if not isinstance(payload, dict):
            return cls()

        code = payload.get("code")
        message = payload.get("message")
        if not message:
            message = payload.get("detail") or payload.get("title")

        return cls(
            code=str(code) if code is not None else None,
            message=str(message) if message else None,
            details=payload.get("details"),
        )
