"""
tests.test_session

Identity lifecycle and its effect on the permission cache.
"""

from __future__ import annotations

import asyncio
from datetime import timedelta

import jwt
import pytest

from vault_console.api_client.schemas import User
from vault_console.auth.jwt import TokenInspectionError, is_token_expired, token_expires_at
from vault_console.auth.session import SessionEventKind

from conftest import make_token, make_user


@pytest.mark.asyncio
async def test_login_success_binds_identity_and_warms_cache(console, fake_api, sign_in) -> None:
    fake_api.all_permissions = {"dashboard:read": True}
    events = []
    console.session.subscribe(events.append)

    await sign_in("dev")

    assert console.session.is_authenticated
    assert console.session.role == "dev"
    assert console.session.is_developer
    assert [e.kind for e in events] == [SessionEventKind.login]
    assert console.evaluator.check_sync("dashboard", "read") is True
    assert fake_api.headers[-1]["Authorization"].startswith("Bearer ")


@pytest.mark.asyncio
async def test_login_failure_returns_server_message(console, fake_api) -> None:
    result = await console.login("dev@example.com", "wrong")

    assert result.success is False
    assert result.message == "invalid credentials"
    assert console.session.identity is None
    assert fake_api.count("GET", "/permissions/all") == 0


@pytest.mark.asyncio
async def test_login_survives_permission_warmup_failure(console, fake_api, sign_in) -> None:
    fake_api.fail["/permissions/all"] = 500

    await sign_in("dev")

    assert console.session.is_authenticated
    assert console.evaluator.cache.is_empty


@pytest.mark.asyncio
async def test_logout_clears_cache_even_if_server_call_fails(console, fake_api, sign_in) -> None:
    fake_api.all_permissions = {"secret:read": True}
    await sign_in("dev")
    assert not console.evaluator.cache.is_empty
    fake_api.fail["/auth/logout"] = 500

    await console.logout()

    assert console.session.identity is None
    assert console.evaluator.cache.is_empty
    assert console.evaluator.check_sync("secret", "read", fallback=True) is False


@pytest.mark.asyncio
async def test_unauthorized_response_drops_identity(console, fake_api, sign_in) -> None:
    fake_api.all_permissions = {"secret:read": True}
    await sign_in("dev")
    fake_api.fail["/permissions/check"] = 401

    # The read still degrades to the fallback; the 401 hook signs the user out.
    assert await console.evaluator.check_async("user", "read", fallback=False) is False
    assert console.session.identity is None
    assert console.evaluator.cache.is_empty


@pytest.mark.asyncio
async def test_role_change_invalidates_previous_role(console, fake_api, sign_in) -> None:
    fake_api.all_permissions = {"secret:read": True}
    await sign_in("dev")
    events = []
    console.session.subscribe(events.append)

    fake_api.all_permissions = {"audit:read": True}
    await console.restore(console.session.token, User(id=1, name="x", email="x@example.com", role="auditor"))

    assert [(e.kind, e.previous_role, e.role) for e in events] == [
        (SessionEventKind.role_changed, "dev", "auditor")
    ]
    assert console.evaluator.cache.keys() == ["auditor:audit:read"]


@pytest.mark.asyncio
async def test_restore_with_empty_token_signs_out(console, fake_api, sign_in) -> None:
    await sign_in("dev")
    await console.restore("", None)
    assert console.session.identity is None


def test_token_expiry_helpers() -> None:
    fresh = make_token()
    stale = make_token(ttl=timedelta(seconds=-5))

    assert token_expires_at(fresh) is not None
    assert is_token_expired(fresh) is False
    assert is_token_expired(stale) is True
    # Opaque tokens cannot be inspected and are left to the server to reject.
    assert is_token_expired("not-a-jwt") is False


@pytest.mark.asyncio
async def test_expired_token_is_not_authenticated(console) -> None:
    console.session.set_auth(
        make_token(ttl=timedelta(seconds=-5)), User(id=1, email="a@example.com", role="dev")
    )
    assert console.session.role == "dev"
    assert console.session.is_authenticated is False


def test_non_numeric_exp_is_treated_as_uninspectable() -> None:
    token = jwt.encode({"sub": "1", "exp": "soon"}, "server-side-secret", algorithm="HS256")

    with pytest.raises(TokenInspectionError):
        token_expires_at(token)
    assert is_token_expired(token) is False


@pytest.mark.asyncio
async def test_role_switch_without_restore_warms_new_role(console, fake_api, sign_in) -> None:
    fake_api.all_permissions = {"secret:read": True}
    await sign_in("dev")

    fake_api.user = make_user("auditor")
    fake_api.all_permissions = {"audit:read": True}
    console.session.set_auth(
        console.session.token, User(id=1, email="auditor@example.com", role="auditor")
    )

    async def _warmed() -> None:
        while "auditor:audit:read" not in console.evaluator.cache:
            await asyncio.sleep(0)

    await asyncio.wait_for(_warmed(), timeout=2)
    assert console.evaluator.cache.keys() == ["auditor:audit:read"]
    assert fake_api.count("GET", "/permissions/all") == 2
