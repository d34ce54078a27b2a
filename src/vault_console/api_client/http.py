"""
vault_console.api_client.http

Transport wrapper around `httpx.AsyncClient`.

Responsibilities:
- Attach the current bearer token to every request.
- Translate HTTP and transport failures into the `vault_console.errors` taxonomy.
- Notify the session layer when the server answers 401 so stale identity is dropped.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import httpx

from vault_console.errors import ApiError, ApiTransportError, UnauthorizedError
from vault_console.observability.logging import get_logger
from vault_console.settings import Settings

log = get_logger(__name__)

TokenProvider = Callable[[], str | None]
UnauthorizedHook = Callable[[], None]


def create_http_client(settings: Settings, **kwargs: Any) -> httpx.AsyncClient:
    # Fixed client timeout; expiries surface as ApiTransportError.
    return httpx.AsyncClient(
        base_url=settings.api_base_url,
        timeout=settings.request_timeout_s,
        headers={"Content-Type": "application/json"},
        **kwargs,
    )


class ApiTransport:
    """
    Thin request layer shared by the endpoint wrappers.
    """

    def __init__(self, *, http: httpx.AsyncClient, token_provider: TokenProvider | None = None) -> None:
        self._http = http
        self._token_provider = token_provider
        self._on_unauthorized: list[UnauthorizedHook] = []

    def set_token_provider(self, provider: TokenProvider) -> None:
        self._token_provider = provider

    def on_unauthorized(self, hook: UnauthorizedHook) -> None:
        self._on_unauthorized.append(hook)

    def _headers(self) -> dict[str, str]:
        token = self._token_provider() if self._token_provider else None
        if not token:
            return {}
        return {"Authorization": f"Bearer {token}"}

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        try:
            r = await self._http.request(
                method, path, json=json, params=params, headers=self._headers()
            )
        except httpx.TimeoutException as e:
            raise ApiTransportError(f"{method} {path} timed out") from e
        except httpx.RequestError as e:
            # Connection, protocol, redirect and body-decoding failures alike.
            raise ApiTransportError(f"{method} {path} failed: {e}") from e

        if r.status_code == 401:
            for hook in list(self._on_unauthorized):
                hook()
            raise UnauthorizedError(_error_text(r) or "unauthorized", status_code=401)
        if r.is_error:
            raise ApiError(_error_text(r) or r.reason_phrase, status_code=r.status_code)

        if not r.content:
            return None
        try:
            return r.json()
        except ValueError as e:
            raise ApiError(f"{method} {path} returned invalid JSON", status_code=r.status_code) from e

    async def get(self, path: str, **kwargs: Any) -> Any:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs: Any) -> Any:
        return await self.request("POST", path, **kwargs)

    async def put(self, path: str, **kwargs: Any) -> Any:
        return await self.request("PUT", path, **kwargs)

    async def delete(self, path: str, **kwargs: Any) -> Any:
        return await self.request("DELETE", path, **kwargs)


def _error_text(r: httpx.Response) -> str | None:
    try:
        body = r.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        err = body.get("error") or body.get("message")
        return str(err) if err else None
    return None


# --- Module Notes -----------------------------------------------------------
# 401 hooks run before the error is raised so the session is already cleared when the
# caller's except-block executes.
