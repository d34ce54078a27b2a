"""
tests.conftest

Shared fixtures: an in-process fake of the console REST API served through
`httpx.MockTransport`, and a fully wired `Console` pointed at it.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import AsyncIterator
from datetime import UTC, datetime, timedelta
from typing import Any

import httpx
import jwt
import pytest
import pytest_asyncio

from vault_console.console import Console, create_console
from vault_console.settings import Settings

API_PREFIX = "/api/v1"
PASSWORD = "correct-horse"


def make_token(*, subject: str = "1", ttl: timedelta = timedelta(hours=1)) -> str:
    now = datetime.now(tz=UTC)
    return jwt.encode(
        {"sub": subject, "iat": int(now.timestamp()), "exp": int((now + ttl).timestamp())},
        "server-side-secret",
        algorithm="HS256",
    )


def make_user(role: str = "dev", *, user_id: int = 1) -> dict[str, Any]:
    return {
        "id": user_id,
        "name": f"{role}-user",
        "email": f"{role}@example.com",
        "role": role,
        "status": "active",
    }


class FakeConsoleApi:
    """
    Minimal stand-in for the server. Tests tweak the public attributes to shape answers.
    """

    def __init__(self) -> None:
        self.user: dict[str, Any] = make_user("dev")
        self.decisions: dict[tuple[str, str, str], bool] = {}
        self.all_permissions: dict[str, bool] = {}
        # path -> HTTP status to answer with instead of the normal body
        self.fail: dict[str, int] = {}
        self.unreachable: set[str] = set()
        # paths answered with a body that claims gzip but is not
        self.corrupt: set[str] = set()
        self.calls: list[tuple[str, str, Any]] = []
        self.headers: list[httpx.Headers] = []
        # When set, every request waits for it before answering.
        self.release: asyncio.Event | None = None

    def count(self, method: str, path: str) -> int:
        return sum(1 for m, p, _ in self.calls if m == method and p == path)

    @property
    def check_calls(self) -> int:
        return self.count("POST", "/permissions/check")

    async def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path.removeprefix(API_PREFIX)
        body = json.loads(request.content) if request.content else None
        self.calls.append((request.method, path, body))
        self.headers.append(request.headers)

        if self.release is not None:
            await self.release.wait()
        if path in self.unreachable:
            raise httpx.ConnectError("connection refused", request=request)
        if path in self.corrupt:
            return httpx.Response(
                200, headers={"content-encoding": "gzip"}, stream=httpx.ByteStream(b"not gzip")
            )
        if path in self.fail:
            return httpx.Response(self.fail[path], json={"error": f"{path} failed"})

        route = (request.method, path)
        if route == ("POST", "/auth/login"):
            if body.get("password") != PASSWORD:
                return httpx.Response(401, json={"error": "invalid credentials"})
            return httpx.Response(
                200, json={"token": make_token(), "user": self.user, "message": "welcome"}
            )
        if route == ("POST", "/auth/logout"):
            return httpx.Response(200, json={"message": "bye"})
        if route == ("POST", "/permissions/check"):
            key = (body["role"], body["resource"], body["action"])
            return httpx.Response(
                200, json={"data": {**body, "has_permission": self.decisions.get(key, False)}}
            )
        if route == ("POST", "/permissions/batch-check"):
            results = {
                f"{p['resource']}:{p['action']}": self.decisions.get(
                    (p["role"], p["resource"], p["action"]), False
                )
                for p in body["permissions"]
            }
            return httpx.Response(200, json={"data": {"results": results}})
        if route == ("GET", "/permissions/all"):
            return httpx.Response(
                200,
                json={"data": {"role": self.user["role"], "permissions": self.all_permissions}},
            )
        if route == ("POST", "/permissions/reload"):
            return httpx.Response(200, json={"message": "policy reloaded"})
        if route == ("GET", "/permissions/policies"):
            return httpx.Response(
                200, json={"data": {"policies": [[r, res, a] for (r, res, a) in self.decisions]}}
            )
        if route == ("GET", "/permissions/menus"):
            return httpx.Response(
                200,
                json={"data": {"menus": [{"path": "/dashboard", "title": "Dashboard", "icon": "LayoutDashboard", "order": 1}]}},
            )
        return httpx.Response(404, json={"error": "not found"})


@pytest.fixture
def settings() -> Settings:
    return Settings(env="test", api_base_url=f"http://console.test{API_PREFIX}", log_level="WARNING")


@pytest.fixture
def fake_api() -> FakeConsoleApi:
    return FakeConsoleApi()


@pytest_asyncio.fixture
async def http(fake_api: FakeConsoleApi, settings: Settings) -> AsyncIterator[httpx.AsyncClient]:
    async with httpx.AsyncClient(
        transport=httpx.MockTransport(fake_api.handler),
        base_url=settings.api_base_url,
        timeout=settings.request_timeout_s,
    ) as client:
        yield client


@pytest_asyncio.fixture
async def console(settings: Settings, http: httpx.AsyncClient) -> AsyncIterator[Console]:
    c = create_console(settings=settings, http=http)
    try:
        yield c
    finally:
        await c.aclose()


@pytest.fixture
def sign_in(console: Console, fake_api: FakeConsoleApi):
    async def _sign_in(role: str) -> None:
        fake_api.user = make_user(role)
        result = await console.login(f"{role}@example.com", PASSWORD)
        assert result.success, result.message

    return _sign_in


# --- Module Notes -----------------------------------------------------------
# `sign_in` goes through the real login path, so it also triggers the login-time
# `GET /permissions/all` warm-up; tests that count calls account for it.
