"""Resilient HTTP client for the NAMASTE terminology API.

Every outbound call goes through `APIClient.request()`:

    BUILD -> AUTHENTICATE (optional) -> SEND -> PARSE
      -> SUCCESS
      -> retryable failure -> backoff -> BUILD
      -> terminal failure

Calls never raise for HTTP or transport errors; they return an `Outcome`
(`Success` or `Failure`). Only contract violations (bad configuration,
unsupported method) raise.

Example:
    ```python
    from namaste_client import APIClient, ClientConfig, FileStorage

    config = ClientConfig(base_url="https://terminology.example.org/api/v1")

    async with APIClient(config, storage=FileStorage("~/.config/namaste/auth.json")) as client:
        outcome = await client.get("codesystems", params={"page": 1, "limit": 20})
        if outcome.ok:
            print(outcome.data)
        else:
            print(outcome.kind, outcome.message)
    ```
"""

import asyncio
import json
import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from typing import Any

import httpx

from namaste_client.auth.credentials import DEFAULT_STORAGE_KEY, Credential, CredentialStore
from namaste_client.auth.exceptions import TokenRefreshError
from namaste_client.auth.refresh import RefreshCoordinator
from namaste_client.auth.storage import KeyValueStorage
from namaste_client.config import ClientConfig
from namaste_client.errors.exceptions import ConfigurationError
from namaste_client.errors.handler import deadline_failure, failure_from_transport_error, parse_response
from namaste_client.errors.models import Failure, FailureKind, Outcome
from namaste_client.transport.retry import RetryPolicy

logger = logging.getLogger(__name__)

SUPPORTED_METHODS: frozenset[str] = frozenset(["GET", "POST", "PUT", "DELETE", "PATCH"])

# Body fields masked in request logs
SENSITIVE_FIELDS: frozenset[str] = frozenset(["accessToken", "refreshToken", "otp", "pin", "password"])


@dataclass(frozen=True)
class RequestDescriptor:
    """One logical call, as issued by the caller."""

    method: str
    path: str
    body: Any = None
    params: Mapping[str, Any] | None = None
    headers: Mapping[str, str] | None = None
    timeout_ms: int | None = None
    skip_auth: bool = False


def build_url(base_url: str, path: str, params: Mapping[str, Any] | None = None) -> httpx.URL:
    """Join a path to the base URL and append query parameters.

    Absolute `http(s)://` paths are used as-is. Parameters whose value is
    None are omitted; booleans become `true`/`false`; everything else is
    passed through `str()`.
    """
    if path.startswith(("http://", "https://")):
        url = httpx.URL(path)
    else:
        url = httpx.URL(f"{base_url.rstrip('/')}/{path.lstrip('/')}")

    if params:
        query = {}
        for key, value in params.items():
            if value is None:
                continue
            if isinstance(value, bool):
                query[key] = "true" if value else "false"
            else:
                query[key] = str(value)
        if query:
            url = url.copy_merge_params(query)
    return url


def _redact_headers(headers: httpx.Headers) -> dict[str, str]:
    return {k: ("***" if k.lower() == "authorization" else v) for k, v in headers.items()}


def _redact_body(body: Any) -> Any:
    if isinstance(body, Mapping):
        return {k: ("***" if k in SENSITIVE_FIELDS else _redact_body(v)) for k, v in body.items()}
    if isinstance(body, list):
        return [_redact_body(item) for item in body]
    return body


class APIClient:
    """Request executor with credential lifecycle and retries.

    Owns the credential store, the refresh coordinator and the HTTP
    connection pool. Safe to share between any number of concurrent tasks on
    one event loop.

    Args:
        config: Initial configuration.
        storage: Durable backend for credentials (default: in-memory).
        storage_key: Key the credential record is stored under.
        transport: httpx transport to build the connection pool on
            (e.g. `httpx.MockTransport` in tests).
        http_client: Pre-built `httpx.AsyncClient`; the caller keeps ownership.
        clock: Epoch-seconds clock used for token expiry.
        sleep: Awaitable sleep used between retries.
    """

    def __init__(
        self,
        config: ClientConfig,
        *,
        storage: KeyValueStorage | None = None,
        storage_key: str = DEFAULT_STORAGE_KEY,
        transport: httpx.AsyncBaseTransport | None = None,
        http_client: httpx.AsyncClient | None = None,
        clock: Callable[[], float] | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if not isinstance(config, ClientConfig):
            raise ConfigurationError(f"config must be a ClientConfig, got {type(config).__name__}")

        self._config = config
        self._sleep = sleep

        store_kwargs = {"key": storage_key}
        if clock is not None:
            store_kwargs["clock"] = clock
        self._store = CredentialStore(storage, **store_kwargs)
        self._store.load()

        self._refresh = RefreshCoordinator(self._store, refresher=self._send_refresh)

        self._owns_http_client = http_client is None
        self._http = http_client or httpx.AsyncClient(transport=transport, follow_redirects=True)

    async def __aenter__(self) -> "APIClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the connection pool if this client created it."""
        if self._owns_http_client:
            await self._http.aclose()

    @property
    def credentials(self) -> CredentialStore:
        return self._store

    @property
    def refresh_coordinator(self) -> RefreshCoordinator:
        return self._refresh

    # Configuration

    def get_config(self) -> ClientConfig:
        return self._config

    def update_config(self, **changes) -> ClientConfig:
        """Replace configuration fields for calls issued from now on.

        Raises:
            ConfigurationError: On an unknown field or invalid value.
        """
        self._config = self._config.with_updates(**changes)
        return self._config

    # Credentials

    def set_auth_tokens(self, auth_response: Mapping[str, Any]) -> Credential:
        """Store the credential from a successful login response.

        Raises:
            InvalidCredentialError: If the response has no usable tokens.
        """
        credential = Credential.from_auth_response(auth_response, now_ms=self._store.now_ms())
        self._store.save(credential)
        return credential

    def clear_auth(self) -> None:
        self._store.clear()

    def is_authenticated(self) -> bool:
        return self._store.is_authenticated()

    # Requests

    async def get(
        self, path: str, params: Mapping[str, Any] | None = None, headers: Mapping[str, str] | None = None
    ) -> Outcome:
        return await self.request("GET", path, params=params, headers=headers)

    async def post(self, path: str, body: Any = None, headers: Mapping[str, str] | None = None) -> Outcome:
        return await self.request("POST", path, body=body, headers=headers)

    async def put(self, path: str, body: Any = None, headers: Mapping[str, str] | None = None) -> Outcome:
        return await self.request("PUT", path, body=body, headers=headers)

    async def patch(self, path: str, body: Any = None, headers: Mapping[str, str] | None = None) -> Outcome:
        return await self.request("PATCH", path, body=body, headers=headers)

    async def delete(self, path: str, headers: Mapping[str, str] | None = None) -> Outcome:
        return await self.request("DELETE", path, headers=headers)

    async def request(
        self,
        method: str,
        path: str,
        *,
        body: Any = None,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
        timeout_ms: int | None = None,
        skip_auth: bool = False,
    ) -> Outcome:
        """Perform one logical call with auth and retries.

        Args:
            method: GET, POST, PUT, DELETE or PATCH.
            path: Path relative to `base_url`, or an absolute URL.
            body: JSON-serializable payload; ignored for GET.
            params: Flat query parameters; None values are dropped.
            headers: Extra headers, overriding the JSON content type default.
            timeout_ms: Per-attempt timeout overriding the configured one.
            skip_auth: Send without a bearer credential.

        Returns:
            Success with the decoded payload, or the Failure of the last attempt.

        Raises:
            ConfigurationError: On an unsupported method or a non-positive timeout.
        """
        method = method.upper()
        if method not in SUPPORTED_METHODS:
            raise ConfigurationError(f"Unsupported HTTP method: {method}")
        if timeout_ms is not None and timeout_ms <= 0:
            raise ConfigurationError(f"timeout_ms must be positive, got {timeout_ms}")

        # Later update_config() calls must not affect this call
        config = self._config
        descriptor = RequestDescriptor(
            method=method,
            path=path,
            body=body,
            params=params,
            headers=headers,
            timeout_ms=timeout_ms,
            skip_auth=skip_auth,
        )
        policy = RetryPolicy(
            max_retries=config.max_retries,
            base_delay_ms=config.retry_base_delay_ms,
            sleep=self._sleep,
        )

        async def attempt(number: int) -> Outcome:
            return await self._attempt(descriptor, config, number)

        return await policy.run(attempt, description=f"{method} {path}")

    async def _send_refresh(self, refresh_token: str) -> Outcome:
        return await self.request(
            "POST",
            self._config.refresh_path,
            body={"refreshToken": refresh_token},
            skip_auth=True,
        )

    async def _authenticate(self, descriptor: RequestDescriptor, config: ClientConfig) -> str | None:
        if descriptor.skip_auth or not config.auth_enabled:
            return None
        return await self._refresh.get_valid_token(auth_enabled=config.auth_enabled)

    def _build_request(self, descriptor: RequestDescriptor, config: ClientConfig, token: str | None) -> httpx.Request:
        url = build_url(config.base_url, descriptor.path, descriptor.params)

        headers = httpx.Headers({"Content-Type": "application/json"})
        if descriptor.headers:
            headers.update(descriptor.headers)
        if token:
            headers["Authorization"] = f"Bearer {token}"

        content = None
        if descriptor.body is not None and descriptor.method != "GET":
            content = json.dumps(descriptor.body).encode("utf-8")

        timeout_ms = _timeout_ms(descriptor, config)
        return self._http.build_request(
            descriptor.method,
            url,
            headers=headers,
            content=content,
            timeout=httpx.Timeout(timeout_ms / 1000),
        )

    async def _attempt(self, descriptor: RequestDescriptor, config: ClientConfig, number: int) -> Outcome:
        try:
            token = await self._authenticate(descriptor, config)
        except TokenRefreshError as e:
            return _refresh_failure(e, descriptor.path)

        request = self._build_request(descriptor, config, token)

        if config.logging_enabled:
            logger.info(
                f"API Request [Attempt {number}]: {request.method} {request.url} "
                f"headers={_redact_headers(request.headers)} body={_redact_body(descriptor.body)}"
            )

        timeout_ms = _timeout_ms(descriptor, config)
        try:
            # httpx timeouts apply per phase; this bounds the whole attempt
            async with asyncio.timeout(timeout_ms / 1000):
                response = await self._http.send(request)
        except (httpx.HTTPError, TimeoutError) as e:
            if isinstance(e, TimeoutError):
                failure = deadline_failure(timeout_ms, descriptor.path)
            else:
                failure = failure_from_transport_error(e, descriptor.path)
            if config.logging_enabled:
                logger.info(f"API Error [Attempt {number}]: {failure.kind.value} {failure.message}")
            return failure

        outcome = parse_response(response, descriptor.path)

        if config.logging_enabled:
            logged = _redact_body(outcome.data) if outcome.ok else outcome.to_dict()
            logger.info(f"API Response [{response.status_code}]: {logged}")

        return outcome


def _timeout_ms(descriptor: RequestDescriptor, config: ClientConfig) -> int:
    return descriptor.timeout_ms if descriptor.timeout_ms is not None else config.timeout_ms


def _refresh_failure(error: TokenRefreshError, path: str) -> Failure:
    """AUTH failure handed to a caller whose credential could not be refreshed."""
    cause = error.failure
    return Failure(
        kind=FailureKind.AUTH,
        status=cause.status,
        code=cause.code if cause.code == "NO_REFRESH_TOKEN" else "TOKEN_REFRESH_FAILED",
        message=str(error),
        details={"kind": cause.kind.value, "status": cause.status, "code": cause.code},
        path=path,
    )
