"""Testing utilities for code built on the NAMASTE API client.

`MockAPI` stands in for the server: it routes `(method, path)` to canned
responses, records every request, and plugs into `APIClient` through
`httpx.MockTransport`.

Example:
    ```python
    from namaste_client.testing import MockAPI, auth_payload

    api = MockAPI()
    api.add("POST", "auth/refresh", json=auth_payload("new-access"))
    api.add("GET", "codesystems", json={"data": []})

    client = APIClient(config, transport=api.transport)
    await client.get("codesystems")
    assert api.count("POST", "auth/refresh") == 0
    ```
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

import httpx

Responder = Callable[[httpx.Request], httpx.Response | Awaitable[httpx.Response]]


def auth_payload(
    access_token: str = "access-token",
    refresh_token: str | None = "refresh-token",
    expires_in: int = 3600,
    **extra: Any,
) -> dict[str, Any]:
    """Login/refresh response body."""
    payload: dict[str, Any] = {"accessToken": access_token, "tokenType": "Bearer", "expiresIn": expires_in}
    if refresh_token is not None:
        payload["refreshToken"] = refresh_token
    payload.update(extra)
    return payload


def error_body(code: str, message: str, details: Any = None) -> dict[str, Any]:
    """Error response body in the API's `{code, message, details}` shape."""
    body: dict[str, Any] = {"code": code, "message": message}
    if details is not None:
        body["details"] = details
    return body


class MockAPI:
    """In-process fake of the API server.

    Routes are matched on method and the URL path with the base URL's path
    prefix removed, so `add("GET", "codesystems")` matches
    `GET http://api.test/api/v1/codesystems?page=1`.

    A route holds a queue of responders; each request consumes one, and the
    last one repeats. A responder is an `httpx.Response`, an exception to
    raise, or a (sync or async) callable taking the request.
    """

    def __init__(self, base_path: str = "/api/v1"):
        self.base_path = "/" + base_path.strip("/") if base_path.strip("/") else ""
        self.requests: list[httpx.Request] = []
        self._routes: dict[tuple[str, str], list[Any]] = {}

    def add(
        self,
        method: str,
        path: str,
        status: int = 200,
        *,
        json: Any = None,
        text: str | None = None,
        headers: dict[str, str] | None = None,
        response: Any = None,
    ) -> "MockAPI":
        """Queue a response for a route.

        Args:
            method: HTTP method.
            path: Path relative to the base path.
            status: Status code for a `json`/`text` response.
            json: JSON body.
            text: Plain text body.
            headers: Response headers.
            response: Exception instance, `httpx.Response` or callable; takes
                precedence over the other arguments.
        """
        if response is None:
            if text is not None:
                response = httpx.Response(status, text=text, headers=headers)
            else:
                response = httpx.Response(status, json=json, headers=headers)
        key = (method.upper(), path.strip("/"))
        self._routes.setdefault(key, []).append(response)
        return self

    def _route_key(self, request: httpx.Request) -> tuple[str, str]:
        path = request.url.path
        if self.base_path and path.startswith(self.base_path):
            path = path[len(self.base_path) :]
        return request.method, path.strip("/")

    async def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = self._route_key(request)
        queue = self._routes.get(key)
        if not queue:
            return httpx.Response(404, json={"code": "NO_ROUTE", "message": f"No mock route for {key[0]} {key[1]}"})

        responder = queue.pop(0) if len(queue) > 1 else queue[0]

        if isinstance(responder, BaseException):
            raise responder
        if isinstance(responder, httpx.Response):
            # Responses are single-use once read; hand out a fresh copy
            return httpx.Response(
                responder.status_code,
                headers=responder.headers,
                content=responder.content,
            )
        result = responder(request)
        if asyncio.iscoroutine(result):
            result = await result
        return result

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        key = (method.upper(), path.strip("/"))
        return [r for r in self.requests if self._route_key(r) == key]

    def count(self, method: str, path: str) -> int:
        return len(self.calls(method, path))


__all__ = ["MockAPI", "Responder", "auth_payload", "error_body"]
