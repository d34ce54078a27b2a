"""
vault_console.permissions.evaluator

Permission evaluation service (the single entry point client code calls into).

Responsibilities:
- Answer "may the current role do <action> on <resource>?" from cache or remote API.
- Coalesce concurrent checks per key; cache failures as the caller's fallback.
- Batch, preload, and bulk-initialize the cache; invalidate it on identity changes.
- Expose role flags computed straight from identity.

Read operations (`check_async`, `check_sync`, batch, preload) never raise for remote
failures; they degrade to the fallback value. `initialize_from_server` and
`reload_policy` propagate `ApiError` so callers can surface it.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Iterable
from typing import Any

from vault_console.api_client.permissions import PermissionApi
from vault_console.auth.session import SessionEvent, SessionEventKind, SessionStore
from vault_console.errors import ApiError
from vault_console.observability.logging import get_logger
from vault_console.permissions.cache import PendingState, PermissionCache
from vault_console.permissions.coalescer import InFlightCoalescer
from vault_console.permissions.keys import BUTTON_PERMISSIONS, Permission, PermissionKey, Perms
from vault_console.settings import Settings

log = get_logger(__name__)

PermissionLike = Permission | tuple[str, str]


def as_permission(p: PermissionLike) -> Permission:
    if isinstance(p, Permission):
        return p
    resource, action = p
    return Permission(resource, action)


class PermissionEvaluator:
    def __init__(
        self,
        *,
        session: SessionStore,
        api: PermissionApi,
        settings: Settings,
        cache: PermissionCache | None = None,
        coalescer: InFlightCoalescer[bool] | None = None,
    ) -> None:
        self._session = session
        self._api = api
        self._settings = settings
        self._cache = cache if cache is not None else PermissionCache()
        self._coalescer: InFlightCoalescer[bool] = (
            coalescer if coalescer is not None else InFlightCoalescer()
        )
        # Results of checks started before a clear of their role are not cached.
        # `clear_cache` bumps the epoch (every role); `clear_role_cache` bumps one role.
        self._epoch = 0
        self._role_generations: dict[str, int] = {}

    @property
    def cache(self) -> PermissionCache:
        return self._cache

    @property
    def loading(self) -> bool:
        return len(self._coalescer) > 0

    # --- identity -----------------------------------------------------------

    @property
    def current_role(self) -> str | None:
        return self._session.role

    @property
    def is_admin(self) -> bool:
        return self._session.is_admin

    @property
    def is_security_manager(self) -> bool:
        return self._session.is_security_manager

    @property
    def is_developer(self) -> bool:
        return self._session.is_developer

    @property
    def is_auditor(self) -> bool:
        return self._session.is_auditor

    def _is_bypass(self, role: str) -> bool:
        return role == self._settings.bypass_role

    def _generation(self, role: str) -> tuple[int, int]:
        return self._epoch, self._role_generations.get(role, 0)

    # --- checks -------------------------------------------------------------

    async def check_async(self, resource: str, action: str, fallback: bool = False) -> bool:
        role = self._session.role
        if not role:
            return False
        if self._is_bypass(role):
            return True

        key = PermissionKey(role, resource, action)
        cached = self._cache.lookup(role, resource, action)
        if cached is not None:
            return cached

        # Joins the owner's task when one is in flight, so every caller gets its value.
        try:
            return await self._coalescer.run(
                key.cache_key, lambda: self._remote_check(key, fallback)
            )
        except Exception:
            log.exception("permission_check_crashed", key=key.cache_key)
            cached = self._cache.get(role, resource, action)
            return fallback if cached is None else cached

    async def _remote_check(self, key: PermissionKey, fallback: bool) -> bool:
        generation = self._generation(key.role)
        self._cache.mark_checking(key.cache_key)
        try:
            data = await self._api.check_permission(
                role=key.role, resource=key.resource, action=key.action
            )
            allowed = bool(data.has_permission)
        except ApiError as e:
            log.warning(
                "permission_check_failed",
                role=key.role,
                resource=key.resource,
                action=key.action,
                status_code=e.status_code,
                error=e.message,
            )
            allowed = fallback
        finally:
            if self._generation(key.role) == generation and (
                self._cache.state(key.cache_key) is PendingState.checking
            ):
                self._cache.discard_state(key.cache_key)

        if self._generation(key.role) == generation:
            self._cache.set(key.role, key.resource, key.action, allowed)
        else:
            log.debug("permission_check_discarded", key=key.cache_key)
        return allowed

    def check_sync(self, resource: str, action: str, fallback: bool = False) -> bool:
        role = self._session.role
        if not role:
            return False
        if self._is_bypass(role):
            return True
        cached = self._cache.lookup(role, resource, action)
        return fallback if cached is None else cached

    async def check_batch(self, permissions: Iterable[PermissionLike]) -> dict[str, bool]:
        perms = [as_permission(p) for p in permissions]
        results = await asyncio.gather(*(self.check_async(p.resource, p.action) for p in perms))
        return {p.key: allowed for p, allowed in zip(perms, results)}

    async def preload(self, permissions: Iterable[PermissionLike]) -> None:
        role = self._session.role
        if not role or self._is_bypass(role):
            return

        todo: list[Permission] = []
        for p in map(as_permission, permissions):
            key = PermissionKey(role, p.resource, p.action).cache_key
            if key in self._cache or self._coalescer.in_flight(key):
                continue
            todo.append(p)

        if todo:
            log.debug("permission_preload", role=role, count=len(todo))
            await self.check_batch(todo)

    def check_menu_permission(
        self, permission: PermissionLike, *, use_async: bool = False
    ) -> bool | Awaitable[bool]:
        p = as_permission(permission)
        if use_async:
            return self.check_async(p.resource, p.action)
        return self.check_sync(p.resource, p.action)

    def check_button_permission(
        self, button: str | PermissionLike, *, use_async: bool = False
    ) -> bool | Awaitable[bool]:
        """
        `button` is either a pair or a name from `BUTTON_PERMISSIONS` (e.g. "SECRET_EDIT").
        Unknown names raise `KeyError`: they are programming errors, not denials.
        """

        permission = BUTTON_PERMISSIONS[button] if isinstance(button, str) else button
        return self.check_menu_permission(permission, use_async=use_async)

    def module_permissions(self) -> dict[str, dict[str, bool]]:
        """
        Capability flags per console module, from cached decisions only.
        """

        has = self.check_sync

        def crud(resource: str) -> dict[str, bool]:
            flags = {
                "can_create": has(resource, "create"),
                "can_read": has(resource, "read"),
                "can_update": has(resource, "update"),
                "can_delete": has(resource, "delete"),
            }
            flags["can_manage"] = (
                flags["can_create"] or flags["can_update"] or flags["can_delete"]
            )
            return flags

        secret = crud("secret")
        secret["can_request"] = has(*_pair(Perms.SECRET_REQUEST))
        secret["can_temp"] = has(*_pair(Perms.SECRET_TEMP))

        return {
            "user": crud("user"),
            "secret": secret,
            "policy": crud("policy"),
            "audit": {"can_read": has(*_pair(Perms.AUDIT_READ))},
            "dashboard": {"can_read": has(*_pair(Perms.DASHBOARD_READ))},
            "access_request": {
                "can_read": has(*_pair(Perms.ACCESS_REQUEST_READ)),
                "can_create": has(*_pair(Perms.ACCESS_REQUEST_CREATE)),
                "can_update": has(*_pair(Perms.ACCESS_REQUEST_UPDATE)),
                "can_approve": has(*_pair(Perms.ACCESS_REQUEST_APPROVE)),
                "can_reject": has(*_pair(Perms.ACCESS_REQUEST_REJECT)),
            },
        }

    # --- bulk load / invalidation -------------------------------------------

    async def initialize_from_server(self) -> int:
        """
        Load the full permission table for the current role in one call.
        Returns the number of entries written. On failure the role's entries are cleared
        and the error is re-raised.
        """

        role = self._session.role
        if not role or self._is_bypass(role):
            return 0

        generation = self._generation(role)
        try:
            data = await self._api.get_user_all_permissions()
        except ApiError:
            log.exception("permission_init_failed", role=role)
            self.clear_role_cache(role)
            raise

        if generation != self._generation(role) or self._session.role != role:
            log.info("permission_init_discarded", role=role)
            return 0
        if data.role and data.role != role:
            log.warning("permission_init_role_mismatch", role=role, server_role=data.role)

        written = self._cache.bulk_set(role, data.permissions)
        log.info("permission_init_loaded", role=role, entries=len(written))
        return len(written)

    async def reload_policy(self) -> None:
        """
        Ask the server to reload its policy, then refetch this role's decisions.
        """

        await self._api.reload_policy()
        role = self._session.role
        if role:
            self.clear_role_cache(role)
        await self.initialize_from_server()

    def clear_cache(self) -> None:
        self._epoch += 1
        self._coalescer.forget_all()
        self._cache.clear()
        log.info("permission_cache_cleared")

    def clear_role_cache(self, role: str) -> None:
        self._role_generations[role] = self._role_generations.get(role, 0) + 1
        for key in self._coalescer.keys():
            if key.startswith(f"{role}:"):
                # Later callers start a fresh check instead of joining the stale one.
                self._coalescer.forget(key)
        removed = self._cache.clear_for_role(role)
        log.info("permission_role_cache_cleared", role=role, entries=len(removed))

    # --- session wiring -----------------------------------------------------

    def on_session_event(self, event: SessionEvent) -> None:
        if event.kind is SessionEventKind.logout:
            self.clear_cache()
        elif event.kind is SessionEventKind.role_changed and event.previous_role:
            self.clear_role_cache(event.previous_role)

    def stats(self) -> dict[str, Any]:
        return {**self._cache.stats().as_dict(), "in_flight": len(self._coalescer)}


def _pair(p: Permission) -> tuple[str, str]:
    return p.resource, p.action


# --- Module Notes -----------------------------------------------------------
# Login-time and role-switch warm-ups (`initialize_from_server`) are driven by
# `vault_console.console`, since session listeners are synchronous.
