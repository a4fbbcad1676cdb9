"""ABHA authentication flows.

Login endpoints return `{accessToken, refreshToken, expiresIn, ...}`; on
success the tokens are handed to the client's credential store. Logout
always clears local credentials, whatever the server says.
"""

import logging
from typing import Any

from namaste_client.auth.exceptions import InvalidCredentialError
from namaste_client.client import APIClient
from namaste_client.errors.models import Failure, FailureKind, Outcome

logger = logging.getLogger(__name__)


class AuthService:
    """Authentication calls bound to one client."""

    def __init__(self, client: APIClient):
        self._client = client

    async def login_with_otp(self, abha_number: str) -> Outcome:
        """Ask the server to send an OTP; returns `{sessionId, message}`."""
        return await self._client.post(
            "auth/abha/otp/generate",
            {"abhaNumber": abha_number, "authMethod": "ABHA_OTP"},
        )

    async def verify_otp(self, session_id: str, otp: str) -> Outcome:
        outcome = await self._client.post("auth/abha/otp/verify", {"sessionId": session_id, "otp": otp})
        return self._store_tokens(outcome, "auth/abha/otp/verify")

    async def login_with_pin(self, abha_number: str, pin: str) -> Outcome:
        outcome = await self._client.post(
            "auth/abha/pin",
            {"abhaNumber": abha_number, "pin": pin, "authMethod": "ABHA_PIN"},
        )
        return self._store_tokens(outcome, "auth/abha/pin")

    async def logout(self) -> Outcome:
        try:
            outcome = await self._client.post("auth/logout")
            if not outcome.ok:
                logger.warning(f"Server-side logout failed: {outcome.kind.value} {outcome.message}")
            return outcome
        finally:
            self._client.clear_auth()

    async def current_user(self) -> Outcome:
        return await self._client.get("auth/profile")

    async def validate_session(self) -> Outcome:
        """Returns `{valid, expiresAt}` from the server."""
        return await self._client.get("auth/validate")

    def _store_tokens(self, outcome: Outcome, path: str) -> Outcome:
        """Keep the credential from a login response; unusable payloads become PARSE failures."""
        if not outcome.ok:
            return outcome
        try:
            self._client.set_auth_tokens(outcome.data)
        except InvalidCredentialError as e:
            logger.warning(f"Login response unusable: {e}")
            return Failure(
                kind=FailureKind.PARSE,
                code="INVALID_AUTH_RESPONSE",
                message=f"Login response unusable: {e}",
                status=outcome.status,
                headers=outcome.headers,
                path=path,
            )
        return outcome

    def is_authenticated(self) -> bool:
        return self._client.is_authenticated()

    @staticmethod
    def profile_from(auth_response: Any) -> dict | None:
        """Extract the ABHA profile from a login response, if present."""
        if isinstance(auth_response, dict):
            return auth_response.get("abhaProfile")
        return None
