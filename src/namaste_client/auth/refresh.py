"""Single-flight credential refresh.

Many requests can discover an expired credential at the same moment. The
coordinator guarantees that only one refresh call reaches the network: the
first caller starts it, the rest attach to the same pending result.

States:
    IDLE        no refresh in flight
    REFRESHING  a refresh task is pending; callers await it

The check-and-start step contains no `await`, so under asyncio's
cooperative scheduling no second caller can slip in between "saw IDLE" and
"published the pending task". The state returns to IDLE inside the task
itself, after the new credential is stored or the old one cleared.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from enum import Enum

from namaste_client.auth.credentials import Credential, CredentialStore
from namaste_client.auth.exceptions import InvalidCredentialError, NoRefreshTokenError, TokenRefreshError
from namaste_client.errors.models import Failure, FailureKind, Outcome

logger = logging.getLogger(__name__)


class RefreshState(str, Enum):
    IDLE = "IDLE"
    REFRESHING = "REFRESHING"


class RefreshCoordinator:
    """Produces a valid access token, refreshing at most once at a time.

    Args:
        store: Credential store to read and update.
        refresher: Issues the refresh call for a refresh token. It must bypass
            auth injection (otherwise it would recurse into this coordinator).
        skew_margin_ms: Passed to `CredentialStore.is_expired`.

    Example:
        ```python
        coordinator = RefreshCoordinator(store, refresher=send_refresh)

        token = await coordinator.get_valid_token()
        if token:
            headers["Authorization"] = f"Bearer {token}"
        ```
    """

    def __init__(
        self,
        store: CredentialStore,
        refresher: Callable[[str], Awaitable[Outcome]],
        *,
        skew_margin_ms: int | None = None,
    ):
        self._store = store
        self._refresher = refresher
        self._skew_margin_kwargs = {} if skew_margin_ms is None else {"skew_margin_ms": skew_margin_ms}
        self._state = RefreshState.IDLE
        self._pending: asyncio.Task[str] | None = None
        self.refresh_count = 0

    @property
    def state(self) -> RefreshState:
        return self._state

    async def get_valid_token(self, *, auth_enabled: bool = True) -> str | None:
        """Return an access token that is not about to expire.

        Returns:
            The access token, or None when auth is disabled or no credential
            is held (the request then goes out unauthenticated).

        Raises:
            NoRefreshTokenError: The credential expired and cannot be refreshed.
            TokenRefreshError: The refresh call failed. Credentials are cleared.
        """
        if not auth_enabled:
            return None

        credential = self._store.credential
        if credential is None:
            return None

        if not self._store.is_expired(**self._skew_margin_kwargs):
            return credential.access_token

        if self._state is RefreshState.IDLE:
            if not credential.refresh_token:
                self._store.clear()
                failure = Failure(
                    kind=FailureKind.AUTH,
                    code="NO_REFRESH_TOKEN",
                    message="No refresh token available",
                    path="",
                )
                raise NoRefreshTokenError(failure.message, failure)
            self._start_refresh(credential)

        # Shield so one cancelled waiter does not cancel everyone's refresh
        return await asyncio.shield(self._pending)

    def _start_refresh(self, credential: Credential) -> None:
        self._state = RefreshState.REFRESHING
        self._pending = asyncio.ensure_future(self._perform_refresh(credential.refresh_token))
        # Retrieve the exception if every waiter was cancelled
        self._pending.add_done_callback(lambda task: task.cancelled() or task.exception())

    async def _perform_refresh(self, refresh_token: str) -> str:
        try:
            self.refresh_count += 1
            logger.debug("Refreshing access token (***)")
            outcome = await self._refresher(refresh_token)

            if not outcome.ok:
                logger.error(f"Token refresh failed: {outcome.kind.value} {outcome.status or ''} {outcome.message}")
                self._store.clear()
                raise TokenRefreshError(f"Token refresh failed: {outcome.message}", outcome)

            try:
                credential = Credential.from_auth_response(
                    outcome.data,
                    now_ms=self._store.now_ms(),
                    fallback_refresh_token=refresh_token,
                )
            except InvalidCredentialError as e:
                logger.error(f"Token refresh returned an unusable payload: {e}")
                self._store.clear()
                failure = Failure(
                    kind=FailureKind.PARSE,
                    status=outcome.status,
                    code="INVALID_AUTH_RESPONSE",
                    message=str(e),
                    path="",
                )
                raise TokenRefreshError(f"Token refresh failed: {e}", failure) from e

            self._store.save(credential)
            logger.debug(f"Access token refreshed, expires at {credential.expires_at}")
            return credential.access_token
        finally:
            self._state = RefreshState.IDLE
            self._pending = None
