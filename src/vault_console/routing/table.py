"""
vault_console.routing.table

Static route table for the console.

Responsibilities:
- Describe every screen: path, name, auth requirement, role allow-list, menu metadata.
- Map menu paths to the (resource, action) pair that gates them.
- Provide the per-page permission lists used to warm the cache on navigation.
"""

from __future__ import annotations

from dataclasses import dataclass

from vault_console.auth.models import AUDITOR, SECURITY_MANAGER, SUPER_ADMIN
from vault_console.permissions.keys import Permission, Perms


@dataclass(frozen=True, slots=True)
class MenuMeta:
    title: str
    icon: str | None = None
    # None means "unspecified"; menus fall back to the configured default order.
    order: int | None = None
    show_in_menu: bool = True


@dataclass(frozen=True, slots=True)
class Route:
    path: str
    name: str
    requires_auth: bool = True
    roles: tuple[str, ...] | None = None
    menu: MenuMeta | None = None


def _secret_routes(slug: str, prefix: str, title: str, icon: str, order: int | None) -> list[Route]:
    return [
        Route(f"/{slug}", f"{prefix}List", menu=MenuMeta(title=title, icon=icon, order=order)),
        Route(f"/{slug}/create", f"{prefix}Create"),
        Route(f"/{slug}/:id", f"{prefix}Detail"),
        Route(f"/{slug}/:id/edit", f"{prefix}Edit"),
    ]


ADMIN_ROLES = (SUPER_ADMIN, SECURITY_MANAGER)

ROUTES: list[Route] = [
    Route("/dashboard", "Dashboard", menu=MenuMeta(title="Dashboard", icon="LayoutDashboard", order=1)),
    Route("/users", "UserList", roles=ADMIN_ROLES, menu=MenuMeta(title="Users", icon="Users", order=1)),
    Route(
        "/policy",
        "PermissionManagement",
        roles=ADMIN_ROLES,
        menu=MenuMeta(title="Roles & Permissions", icon="Shield", order=3),
    ),
    Route(
        "/audit",
        "Audit",
        roles=(*ADMIN_ROLES, AUDITOR),
        menu=MenuMeta(title="Audit Logs", icon="FileText"),
    ),
    Route(
        "/access_requests",
        "AccessRequests",
        menu=MenuMeta(title="Access Requests", icon="UserCheck", order=4),
    ),
    Route("/notifications", "Notifications", menu=MenuMeta(title="Notifications", icon="Bell", order=5)),
    *_secret_routes("api_key", "ApiKey", "API Keys", "Key", None),
    *_secret_routes("access_key", "AccessKey", "Access Keys", "Cloud", 3),
    *_secret_routes("ssh_key", "SshKey", "SSH Keys", "KeyRound", 4),
    *_secret_routes("password", "Password", "Passwords", "Lock", 5),
    *_secret_routes("token", "Token", "Tokens", "Coins", 7),
    *_secret_routes("custom", "Custom", "Custom", "Braces", None),
    Route("/profile", "Profile", menu=MenuMeta(title="Profile", icon="Settings", order=5, show_in_menu=False)),
    Route("/login", "Login", requires_auth=False),
]

LOGIN_PATH = "/login"
HOME_PATH = "/dashboard"

# Paths absent from this map are not permission-gated.
MENU_PERMISSIONS: dict[str, Permission] = {
    "/dashboard": Perms.DASHBOARD_READ,
    "/users": Perms.USER_READ,
    "/audit": Perms.AUDIT_READ,
    "/policy": Perms.POLICY_READ,
    "/access_requests": Perms.ACCESS_REQUEST_READ,
    "/notifications": Perms.NOTIFICATION_READ,
    "/api_key": Perms.SECRET_READ,
    "/access_key": Perms.SECRET_READ,
    "/ssh_key": Perms.SECRET_READ,
    "/password": Perms.SECRET_READ,
    "/token": Perms.SECRET_READ,
    "/custom": Perms.SECRET_READ,
}

_SECRET_SLUGS = ("api_key", "access_key", "ssh_key", "password", "token", "custom")


def route_by_path(path: str) -> Route | None:
    for route in ROUTES:
        if route.path == path:
            return route
    return None


def page_permissions(path: str) -> list[Permission]:
    """
    Permissions a page will ask about, for cache warm-up before it renders.
    """

    if path.startswith("/users"):
        return [Perms.USER_READ, Perms.USER_CREATE, Perms.USER_UPDATE, Perms.USER_DELETE]
    if path.startswith("/policy"):
        return [Perms.POLICY_READ, Perms.POLICY_CREATE, Perms.POLICY_UPDATE, Perms.POLICY_DELETE]
    if path.startswith("/audit"):
        return [Perms.AUDIT_READ]
    if path.startswith("/access_requests"):
        return [
            Perms.ACCESS_REQUEST_READ,
            Perms.ACCESS_REQUEST_CREATE,
            Perms.ACCESS_REQUEST_APPROVE,
            Perms.ACCESS_REQUEST_REJECT,
        ]
    if any(slug in path for slug in _SECRET_SLUGS):
        return [Perms.SECRET_READ, Perms.SECRET_CREATE, Perms.SECRET_UPDATE, Perms.SECRET_DELETE]
    return [Perms.DASHBOARD_READ]


# --- Module Notes -----------------------------------------------------------
# Role allow-lists (`Route.roles`) and `MENU_PERMISSIONS` are independent gates; a menu
# entry is visible only when both pass.
