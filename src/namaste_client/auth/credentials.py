"""Credential model and its durable store.

The store is the only holder of the current access/refresh token pair. It
restores the pair from storage at startup, persists every replacement, and
answers expiry questions with a skew margin so a request never starts with a
token about to expire in flight.

Durable record (one key, JSON):
    {"accessToken": "...", "refreshToken": "...", "expiresAt": 1760000000000}

Example:
    ```python
    from namaste_client.auth import CredentialStore, MemoryStorage

    store = CredentialStore(MemoryStorage())
    store.load()

    store.save(Credential.from_auth_response(login_payload, now_ms=store.now_ms()))
    store.is_authenticated()  # True
    ```

Security Considerations:
    - Tokens are never logged (masked with ***)
    - A corrupted record is discarded and removed, never raised
"""

import json
import logging
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from namaste_client.auth.exceptions import InvalidCredentialError
from namaste_client.auth.storage import KeyValueStorage, MemoryStorage

logger = logging.getLogger(__name__)

DEFAULT_STORAGE_KEY = "namaste_auth_tokens"

# 5 minutes
DEFAULT_SKEW_MARGIN_MS = 5 * 60 * 1000


@dataclass(frozen=True)
class Credential:
    """Access/refresh token pair and the instant the access token expires.

    Attributes:
        access_token: Bearer token sent on authenticated requests.
        refresh_token: Token exchanged for a new pair once access expires.
        expires_at: Expiry as epoch milliseconds.
    """

    access_token: str
    refresh_token: str
    expires_at: int

    def __repr__(self) -> str:
        return f"Credential(access_token='***', refresh_token='***', expires_at={self.expires_at})"

    def to_record(self) -> dict[str, Any]:
        return {
            "accessToken": self.access_token,
            "refreshToken": self.refresh_token,
            "expiresAt": self.expires_at,
        }

    @classmethod
    def from_record(cls, record: Any) -> "Credential":
        """Rebuild a credential from its durable record.

        Raises:
            InvalidCredentialError: If any field is missing or mistyped.
        """
        if not isinstance(record, Mapping):
            raise InvalidCredentialError("credential record is not an object")

        access_token = record.get("accessToken")
        refresh_token = record.get("refreshToken")
        expires_at = record.get("expiresAt")

        if not isinstance(access_token, str) or not access_token:
            raise InvalidCredentialError("credential record has no accessToken")
        if not isinstance(refresh_token, str):
            raise InvalidCredentialError("credential record has no refreshToken")
        # bool is an int subclass
        if isinstance(expires_at, bool) or not isinstance(expires_at, (int, float)):
            raise InvalidCredentialError("credential record has no numeric expiresAt")

        return cls(access_token=access_token, refresh_token=refresh_token, expires_at=int(expires_at))

    @classmethod
    def from_auth_response(
        cls,
        payload: Any,
        *,
        now_ms: int,
        fallback_refresh_token: str | None = None,
    ) -> "Credential":
        """Build a credential from a login or refresh response.

        Args:
            payload: Decoded response with `accessToken`, `refreshToken` and
                `expiresIn` (seconds).
            now_ms: Current time in epoch milliseconds.
            fallback_refresh_token: Used when the payload omits `refreshToken`,
                as refresh responses may.

        Raises:
            InvalidCredentialError: If the payload lacks a token or lifetime.
        """
        if not isinstance(payload, Mapping):
            raise InvalidCredentialError("auth response is not an object")

        access_token = payload.get("accessToken")
        if not isinstance(access_token, str) or not access_token:
            raise InvalidCredentialError("auth response has no accessToken")

        refresh_token = payload.get("refreshToken") or fallback_refresh_token
        if not isinstance(refresh_token, str) or not refresh_token:
            raise InvalidCredentialError("auth response has no refreshToken")

        expires_in = payload.get("expiresIn")
        if isinstance(expires_in, bool) or not isinstance(expires_in, (int, float)):
            raise InvalidCredentialError("auth response has no numeric expiresIn")

        return cls(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_at=int(now_ms + expires_in * 1000),
        )


class CredentialStore:
    """Holds the current credential and mirrors it to durable storage.

    Writers are the refresh coordinator and explicit login/logout. Every
    replacement swaps a single frozen `Credential`, so readers never observe
    a token paired with another token's expiry.

    Args:
        storage: Durable key-value backend (default: in-memory).
        key: Storage key for the JSON record.
        clock: Returns the current time in epoch seconds (default: time.time).
    """

    def __init__(
        self,
        storage: KeyValueStorage | None = None,
        *,
        key: str = DEFAULT_STORAGE_KEY,
        clock: Callable[[], float] = time.time,
    ):
        self._storage = storage if storage is not None else MemoryStorage()
        self._key = key
        self._clock = clock
        self._credential: Credential | None = None

    @property
    def credential(self) -> Credential | None:
        return self._credential

    def now_ms(self) -> int:
        return int(self._clock() * 1000)

    def load(self) -> Credential | None:
        """Restore the credential from durable storage.

        Absent data leaves the store empty. Malformed data is discarded and
        removed from storage; this method never raises.
        """
        try:
            raw = self._storage.get(self._key)
        except Exception as e:
            logger.warning(f"Failed to read stored credentials: {e}")
            self._credential = None
            return None

        if raw is None:
            self._credential = None
            return None

        try:
            credential = Credential.from_record(json.loads(raw))
        except (ValueError, TypeError, InvalidCredentialError) as e:
            # json.JSONDecodeError is a ValueError
            logger.warning(f"Discarding stored credentials: {e}")
            self.clear()
            return None

        self._credential = credential
        logger.debug(f"Restored credentials from storage key '{self._key}' (***)")
        return credential

    def save(self, credential: Credential) -> None:
        """Replace the current credential and persist it.

        The in-memory credential is replaced even if persisting fails; the
        failure is logged.
        """
        self._credential = credential
        try:
            self._storage.set(self._key, json.dumps(credential.to_record()))
        except Exception as e:
            logger.error(f"Failed to persist credentials: {e}")

    def clear(self) -> None:
        """Remove both the in-memory and the durable credential."""
        self._credential = None
        try:
            self._storage.remove(self._key)
        except Exception as e:
            logger.error(f"Failed to remove stored credentials: {e}")

    def is_expired(self, skew_margin_ms: int = DEFAULT_SKEW_MARGIN_MS, *, now_ms: int | None = None) -> bool:
        """True when `now >= expires_at - skew_margin`, or when there is no credential."""
        credential = self._credential
        if credential is None:
            return True
        if now_ms is None:
            now_ms = self.now_ms()
        return now_ms >= credential.expires_at - skew_margin_ms

    def is_authenticated(self) -> bool:
        return self._credential is not None and not self.is_expired()
