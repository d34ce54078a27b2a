"""
vault_console.api_client.permissions

Typed wrappers for the `/permissions/*` endpoints.

Responsibilities:
- Single and batch permission checks for the current role.
- Full permission table for the signed-in user (login-time cache warm-up).
- Policy administration calls used by the role/permission management screens.
"""

from __future__ import annotations

from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from vault_console.api_client.http import ApiTransport
from vault_console.api_client.schemas import (
    BatchPermissionData,
    Envelope,
    MenuData,
    PermissionData,
    PermissionRequest,
    PolicyData,
    RolePermissionsData,
    RoleUsersData,
    UserAllPermissionsData,
    UserRolesData,
)
from vault_console.errors import ApiError

M = TypeVar("M", bound=BaseModel)


def _unwrap(body: Any, model: type[M]) -> M:
    # Every /permissions response carries its payload under "data".
    try:
        env = Envelope.model_validate(body or {})
        return model.model_validate(env.data or {})
    except ValidationError as e:
        raise ApiError(f"unexpected {model.__name__} payload: {e.error_count()} error(s)") from e


def _message(body: Any) -> str:
    if isinstance(body, dict):
        return str(body.get("message") or "")
    return ""


class PermissionApi:
    def __init__(self, transport: ApiTransport) -> None:
        self._t = transport

    async def check_permission(self, *, role: str, resource: str, action: str) -> PermissionData:
        body = await self._t.post(
            "/permissions/check",
            json=PermissionRequest(role=role, resource=resource, action=action).model_dump(),
        )
        return _unwrap(body, PermissionData)

    async def batch_check_permissions(
        self, permissions: list[PermissionRequest]
    ) -> BatchPermissionData:
        body = await self._t.post(
            "/permissions/batch-check",
            json={"permissions": [p.model_dump() for p in permissions]},
        )
        return _unwrap(body, BatchPermissionData)

    async def get_user_all_permissions(self) -> UserAllPermissionsData:
        # Role is taken from the bearer token server-side.
        return _unwrap(await self._t.get("/permissions/all"), UserAllPermissionsData)

    async def reload_policy(self) -> str:
        return _message(await self._t.post("/permissions/reload"))

    async def get_policies(self) -> PolicyData:
        return _unwrap(await self._t.get("/permissions/policies"), PolicyData)

    async def add_policy(self, *, role: str, resource: str, action: str) -> str:
        body = await self._t.post(
            "/permissions/policies",
            json=PermissionRequest(role=role, resource=resource, action=action).model_dump(),
        )
        return _message(body)

    async def remove_policy(self, *, role: str, resource: str, action: str) -> str:
        body = await self._t.delete(
            "/permissions/policies",
            json=PermissionRequest(role=role, resource=resource, action=action).model_dump(),
        )
        return _message(body)

    async def add_role_for_user(self, *, user: str, role: str) -> str:
        return _message(
            await self._t.post("/permissions/users/roles", json={"user": user, "role": role})
        )

    async def delete_role_for_user(self, *, user: str, role: str) -> str:
        return _message(
            await self._t.delete("/permissions/users/roles", json={"user": user, "role": role})
        )

    async def get_roles_for_user(self, user: str) -> UserRolesData:
        return _unwrap(await self._t.get(f"/permissions/users/{user}/roles"), UserRolesData)

    async def get_users_for_role(self, role: str) -> RoleUsersData:
        return _unwrap(await self._t.get(f"/permissions/roles/{role}/users"), RoleUsersData)

    async def get_permissions_for_role(self, role: str) -> RolePermissionsData:
        return _unwrap(
            await self._t.get(f"/permissions/roles/{role}/permissions"), RolePermissionsData
        )

    async def update_role_permissions(self, role: str, permissions: dict[str, list[str]]) -> str:
        # `permissions` maps resource -> allowed actions.
        body = await self._t.put(
            f"/permissions/roles/{role}/permissions", json={"permissions": permissions}
        )
        return _message(body)

    async def get_user_accessible_menus(self) -> MenuData:
        return _unwrap(await self._t.get("/permissions/menus"), MenuData)


# --- Module Notes -----------------------------------------------------------
# Callers that change policy should follow up with `PermissionEvaluator.reload_policy`
# (or `clear_role_cache`) so the local mirror does not serve stale decisions.
