"""
vault_console.api_client.auth

Typed wrappers for the `/auth/*` endpoints.
"""

from __future__ import annotations

from pydantic import ValidationError

from vault_console.api_client.http import ApiTransport
from vault_console.api_client.schemas import LoginRequest, LoginResponse
from vault_console.errors import ApiError


class AuthApi:
    def __init__(self, transport: ApiTransport) -> None:
        self._t = transport

    async def login(self, *, email: str, password: str) -> LoginResponse:
        body = await self._t.post(
            "/auth/login", json=LoginRequest(email=email, password=password).model_dump()
        )
        try:
            return LoginResponse.model_validate(body or {})
        except ValidationError as e:
            raise ApiError("unexpected login payload") from e

    async def logout(self) -> None:
        await self._t.post("/auth/logout")


# --- Module Notes -----------------------------------------------------------
# WeWork/WebAuthn sign-in flows belong to the UI layer and are not wrapped here.
