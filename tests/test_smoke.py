"""
tests.test_smoke

End-to-end smoke test: sign in, render a menu, gate a button, sign out.
"""

from __future__ import annotations

import pytest


@pytest.mark.asyncio
async def test_sign_in_menu_and_sign_out(console, fake_api, sign_in) -> None:
    fake_api.all_permissions = {
        "dashboard:read": True,
        "secret:read": True,
        "secret:create": False,
    }
    await sign_in("dev")

    assert await console.guard.resolve("/password") is None
    menu = [m.path for m in console.gate.menu_from_routes()]
    assert menu[0] == "/dashboard"
    assert "/password" in menu
    assert console.gate.should_disable("secret", "create") is True

    menus = await console.permission_api.get_user_accessible_menus()
    assert [m.path for m in menus.menus] == ["/dashboard"]

    await console.logout()
    assert console.gate.menu_from_routes() == []
    assert await console.guard.resolve("/password") == "/login"


# --- Module Notes -----------------------------------------------------------
# Finer-grained behavior is covered module by module in the sibling test files.
