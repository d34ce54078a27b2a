"""
vault_console.api_client.schemas

Request/response schemas for the remote console API.

Responsibilities:
- Validate payloads at the client boundary so callers work with typed objects.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class _ApiModel(BaseModel):
    # The server adds fields over time; ignore what we do not model.
    model_config = ConfigDict(extra="ignore")


class User(_ApiModel):
    id: int | str
    name: str = ""
    email: str = ""
    role: str
    status: str = "active"
    avatar: str | None = None


class LoginRequest(_ApiModel):
    email: str
    password: str


class LoginResponse(_ApiModel):
    token: str
    user: User
    message: str = ""


class PermissionRequest(_ApiModel):
    role: str
    resource: str
    action: str


class PermissionData(_ApiModel):
    has_permission: bool = False
    role: str = ""
    resource: str = ""
    action: str = ""


class BatchPermissionData(_ApiModel):
    results: dict[str, bool] = Field(default_factory=dict)


class UserAllPermissionsData(_ApiModel):
    role: str = ""
    # Keyed "resource:action".
    permissions: dict[str, bool] = Field(default_factory=dict)


class PolicyData(_ApiModel):
    policies: list[list[str]] = Field(default_factory=list)


class UserRolesData(_ApiModel):
    user: str
    roles: list[str] = Field(default_factory=list)


class RoleUsersData(_ApiModel):
    role: str
    users: list[str] = Field(default_factory=list)


class RolePermissionsData(_ApiModel):
    role: str
    permissions: list[list[str]] = Field(default_factory=list)


class MenuItemData(_ApiModel):
    path: str
    title: str
    icon: str = ""
    order: int = 0


class MenuData(_ApiModel):
    menus: list[MenuItemData] = Field(default_factory=list)


class Envelope(_ApiModel):
    """
    Standard response wrapper: `{"data": ..., "message": ..., "error": ...}`.
    """

    data: Any = None
    message: str | None = None
    error: str | None = None


# --- Module Notes -----------------------------------------------------------
# Login/logout bodies are not wrapped in `data`; every /permissions endpoint is.
