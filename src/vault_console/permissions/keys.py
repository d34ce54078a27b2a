"""
vault_console.permissions.keys

Permission identifiers and the resource/action catalogue.

Responsibilities:
- Define `Permission` (resource/action pair) and `PermissionKey` (role-qualified pair).
- Provide the canonical string forms used as cache and result-map keys.
- Name every resource/action pair the console gates on.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Permission:
    resource: str
    action: str

    @property
    def key(self) -> str:
        return f"{self.resource}:{self.action}"

    @classmethod
    def parse(cls, key: str) -> Permission:
        resource, sep, action = key.partition(":")
        if not sep or not resource or not action:
            raise ValueError(f"invalid permission key: {key!r}")
        return cls(resource=resource, action=action)


@dataclass(frozen=True, slots=True)
class PermissionKey:
    role: str
    resource: str
    action: str

    @property
    def cache_key(self) -> str:
        return f"{self.role}:{self.resource}:{self.action}"


def role_prefix(role: str) -> str:
    return f"{role}:"


class Perms:
    """
    Catalogue of gated resource/action pairs, grouped by resource.
    """

    USER_CREATE = Permission("user", "create")
    USER_READ = Permission("user", "read")
    USER_UPDATE = Permission("user", "update")
    USER_DELETE = Permission("user", "delete")

    SECRET_CREATE = Permission("secret", "create")
    SECRET_READ = Permission("secret", "read")
    SECRET_UPDATE = Permission("secret", "update")
    SECRET_DELETE = Permission("secret", "delete")
    SECRET_REQUEST = Permission("secret", "request")
    SECRET_TEMP = Permission("secret", "temp")

    POLICY_CREATE = Permission("policy", "create")
    POLICY_READ = Permission("policy", "read")
    POLICY_UPDATE = Permission("policy", "update")
    POLICY_DELETE = Permission("policy", "delete")

    AUDIT_READ = Permission("audit", "read")

    DASHBOARD_READ = Permission("dashboard", "read")

    ACCESS_REQUEST_READ = Permission("access_request", "read")
    ACCESS_REQUEST_CREATE = Permission("access_request", "create")
    ACCESS_REQUEST_UPDATE = Permission("access_request", "update")
    ACCESS_REQUEST_APPROVE = Permission("access_request", "approve")
    ACCESS_REQUEST_REJECT = Permission("access_request", "reject")

    NOTIFICATION_READ = Permission("notification", "read")


# Button gates used by list/detail screens.
BUTTON_PERMISSIONS: dict[str, Permission] = {
    "USER_CREATE": Perms.USER_CREATE,
    "USER_EDIT": Perms.USER_UPDATE,
    "USER_DELETE": Perms.USER_DELETE,
    "SECRET_CREATE": Perms.SECRET_CREATE,
    "SECRET_EDIT": Perms.SECRET_UPDATE,
    "SECRET_DELETE": Perms.SECRET_DELETE,
    "SECRET_VIEW": Perms.SECRET_READ,
    "POLICY_CREATE": Perms.POLICY_CREATE,
    "POLICY_EDIT": Perms.POLICY_UPDATE,
    "POLICY_DELETE": Perms.POLICY_DELETE,
}


# --- Module Notes -----------------------------------------------------------
# Route path -> permission mapping lives with the route table (`routing.table`).
