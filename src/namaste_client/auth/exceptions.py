"""Custom exceptions for credential handling.

These signal problems between the auth components and the request executor.
They never reach callers of `APIClient.request()`: the executor turns a
`TokenRefreshError` into an AUTH `Failure`.

Example:
    ```python
    from namaste_client.auth.exceptions import InvalidCredentialError

    try:
        credential = Credential.from_auth_response(payload, now_ms=now)
    except InvalidCredentialError as e:
        logger.warning(f"Login response unusable: {e}")
    ```
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from namaste_client.errors.models import Failure


class CredentialError(Exception):
    """Base exception for credential-related errors.

    All credential-specific exceptions inherit from this class,
    making it easy to catch any credential-related error.
    """

    pass


class InvalidCredentialError(CredentialError):
    """Raised when an auth payload or stored record is not a usable credential.

    Example:
        ```python
        Credential.from_auth_response({"tokenType": "Bearer"}, now_ms=0)
        # InvalidCredentialError: auth response has no accessToken
        ```
    """

    pass


class TokenRefreshError(CredentialError):
    """Raised when an expired credential could not be refreshed.

    Every caller waiting on the same refresh receives the same error.
    Stored credentials have already been cleared when this is raised.

    Attributes:
        failure: Failure describing why the refresh did not succeed.
    """

    def __init__(self, message: str, failure: "Failure"):
        super().__init__(message)
        self.failure = failure


class NoRefreshTokenError(TokenRefreshError):
    """Raised when a credential expired and there is no refresh token to use."""

    pass
