"""
vault_console.routing.guard

Navigation guard run before every route change.

Responsibilities:
- Redirect unauthenticated users to the login page and signed-in users away from it.
- Make sure the permission cache is warm before a protected page renders.
- Enforce route role allow-lists.
"""

from __future__ import annotations

from vault_console.auth.session import SessionStore
from vault_console.errors import ApiError
from vault_console.observability.logging import get_logger
from vault_console.permissions.evaluator import PermissionEvaluator
from vault_console.routing.table import HOME_PATH, LOGIN_PATH, Route, page_permissions, route_by_path

log = get_logger(__name__)


class NavigationGuard:
    def __init__(self, *, session: SessionStore, evaluator: PermissionEvaluator) -> None:
        self._session = session
        self._evaluator = evaluator

    async def resolve(self, target: Route | str) -> str | None:
        """
        Returns the redirect path, or None when navigation may proceed.
        Unknown paths are treated as protected screens with no role restriction.
        """

        route = route_by_path(target) if isinstance(target, str) else target
        if route is None:
            route = Route(path=str(target), name="")

        authenticated = self._session.is_authenticated
        if route.requires_auth and not authenticated:
            return LOGIN_PATH
        if route.path == LOGIN_PATH and authenticated:
            return HOME_PATH
        if not authenticated:
            return None

        if self._evaluator.cache.is_empty:
            try:
                await self._evaluator.initialize_from_server()
            except ApiError as e:
                # Pages still render; checks fall back to incremental lookups.
                log.warning("guard_permission_init_failed", path=route.path, error=e.message)

        role = self._session.role
        if route.roles is not None and role not in route.roles:
            log.info("guard_role_denied", path=route.path, role=role)
            return HOME_PATH

        await self._evaluator.preload(page_permissions(route.path))
        return None


# --- Module Notes -----------------------------------------------------------
# The guard never raises for permission lookups; only the redirect decision is returned.
