"""
vault_console.gating

Gating layer: turns permission decisions into UI affordances.

Responsibilities:
- Show/disable predicates for declarative element bindings (permission and role).
- Route and menu filtering with two independent gates: the route's role allow-list and
  the resource/action permission mapped to its path.
- Menu generation and ordering.
- `VisibilityWatcher`: recomputes a declared set of predicates whenever the permission
  cache or the session changes, and tells its subscribers what flipped.

All decisions here are synchronous and read the cache only (`check_sync`), so they are safe
to call from render paths.
"""

from __future__ import annotations

import enum
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from vault_console.auth.session import SessionEvent, SessionStore
from vault_console.observability.logging import get_logger
from vault_console.permissions.cache import CacheChange
from vault_console.permissions.evaluator import PermissionEvaluator
from vault_console.permissions.roles import RoleChecker
from vault_console.routing.table import MENU_PERMISSIONS, ROUTES, Route
from vault_console.settings import Settings

log = get_logger(__name__)


class GateMode(str, enum.Enum):
    hide = "hide"
    disable = "disable"


@dataclass(frozen=True, slots=True)
class PermissionBinding:
    resource: str
    action: str
    mode: GateMode = GateMode.hide


@dataclass(frozen=True, slots=True)
class GateDecision:
    visible: bool
    enabled: bool


SHOWN = GateDecision(visible=True, enabled=True)
HIDDEN = GateDecision(visible=False, enabled=True)
DISABLED = GateDecision(visible=True, enabled=False)


@dataclass(frozen=True, slots=True)
class MenuItem:
    path: str
    title: str
    icon: str | None = None
    order: int | None = None


def _binding_from(value: PermissionBinding | Mapping[str, Any] | None) -> PermissionBinding | None:
    if isinstance(value, PermissionBinding):
        return value if value.resource and value.action else None
    if not isinstance(value, Mapping):
        return None
    resource, action = value.get("resource"), value.get("action")
    if not resource or not action:
        return None
    try:
        mode = GateMode(value.get("mode") or GateMode.hide)
    except ValueError:
        log.warning("permission_binding_bad_mode", mode=value.get("mode"))
        mode = GateMode.hide
    return PermissionBinding(resource=str(resource), action=str(action), mode=mode)


class Gate:
    def __init__(
        self,
        *,
        evaluator: PermissionEvaluator,
        session: SessionStore,
        settings: Settings,
    ) -> None:
        self._evaluator = evaluator
        self._session = session
        self._roles = RoleChecker(session)
        self._default_order = settings.default_menu_order

    @property
    def roles(self) -> RoleChecker:
        return self._roles

    # --- element predicates -------------------------------------------------

    def should_show(self, resource: str, action: str) -> bool:
        return self._evaluator.check_sync(resource, action, fallback=False)

    def should_disable(self, resource: str, action: str) -> bool:
        return not self.should_show(resource, action)

    def evaluate_binding(
        self, value: PermissionBinding | Mapping[str, Any] | None
    ) -> GateDecision:
        """
        Decide how an element bound to a permission renders.

        A binding without resource/action is logged and left unrestricted, unlike a real
        denial which hides or disables the element.
        """

        if not self._session.is_authenticated:
            return HIDDEN

        binding = _binding_from(value)
        if binding is None:
            log.warning("permission_binding_incomplete", binding=repr(value))
            return SHOWN

        if self.should_show(binding.resource, binding.action):
            return SHOWN
        return DISABLED if binding.mode is GateMode.disable else HIDDEN

    def evaluate_role_binding(self, roles: str | Iterable[str] | None) -> GateDecision:
        if not self._session.is_authenticated or self._session.role is None:
            return HIDDEN
        if not roles:
            log.warning("role_binding_incomplete")
            return SHOWN
        return SHOWN if self._roles.has_role(roles) else HIDDEN

    # --- routes and menus ---------------------------------------------------

    def filter_routes_by_role(self, routes: Iterable[Route]) -> list[Route]:
        role = self._session.role
        if not role:
            return []
        return [r for r in routes if r.roles is None or role in r.roles]

    def check_route_permission(self, path: str) -> bool:
        permission = MENU_PERMISSIONS.get(path)
        if permission is None:
            return True
        return self.should_show(permission.resource, permission.action)

    def filter_menu_by_permission(self, items: Iterable[MenuItem]) -> list[MenuItem]:
        return [item for item in items if self.check_route_permission(item.path)]

    def accessible_menus(self, items: Iterable[MenuItem], routes: Iterable[Route] = ROUTES) -> list[MenuItem]:
        role = self._session.role
        if not role:
            return []
        allowed = {r.path: r for r in routes}
        by_role = [
            item
            for item in items
            if item.path not in allowed
            or allowed[item.path].roles is None
            or role in allowed[item.path].roles
        ]
        return self.filter_menu_by_permission(by_role)

    def menu_from_routes(self, routes: Iterable[Route] = ROUTES) -> list[MenuItem]:
        routes = list(routes)
        items = [
            MenuItem(
                path=r.path,
                title=r.menu.title,
                icon=r.menu.icon,
                order=r.menu.order if r.menu.order is not None else self._default_order,
            )
            for r in self.filter_routes_by_role(routes)
            if r.menu is not None and r.menu.show_in_menu
        ]
        items = self.accessible_menus(items, routes)
        # sorted() is stable: equal orders keep table order.
        return sorted(items, key=lambda m: m.order if m.order is not None else self._default_order)


def is_menu_active(menu_path: str, current_path: str) -> bool:
    if menu_path == current_path:
        return True
    return menu_path != "/" and current_path.startswith(menu_path)


VisibilityListener = Callable[[dict[str, bool]], None]


class VisibilityWatcher:
    """
    Named visibility predicates kept in sync with the permission cache and the session.
    Subscribers get only the entries whose value changed.
    """

    def __init__(self, *, gate: Gate, evaluator: PermissionEvaluator, session: SessionStore) -> None:
        self._gate = gate
        self._watched: dict[str, tuple[str, str]] = {}
        self._values: dict[str, bool] = {}
        self._listeners: list[VisibilityListener] = []
        self._unsubscribe = [
            evaluator.cache.subscribe(self._on_cache_change),
            session.subscribe(self._on_session_event),
        ]

    def watch(self, name: str, resource: str, action: str) -> bool:
        self._watched[name] = (resource, action)
        self._values[name] = self._gate.should_show(resource, action)
        return self._values[name]

    def unwatch(self, name: str) -> None:
        self._watched.pop(name, None)
        self._values.pop(name, None)

    def value(self, name: str) -> bool:
        return self._values.get(name, False)

    def snapshot(self) -> dict[str, bool]:
        return dict(self._values)

    def subscribe(self, listener: VisibilityListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def recompute(self) -> dict[str, bool]:
        changed: dict[str, bool] = {}
        for name, (resource, action) in self._watched.items():
            now = self._gate.should_show(resource, action)
            if self._values.get(name) != now:
                self._values[name] = now
                changed[name] = now
        if changed:
            for listener in list(self._listeners):
                try:
                    listener(changed)
                except Exception:
                    log.exception("visibility_listener_failed", names=sorted(changed))
        return changed

    def close(self) -> None:
        for unsubscribe in self._unsubscribe:
            unsubscribe()
        self._unsubscribe = []
        self._listeners.clear()

    def _on_cache_change(self, _: CacheChange) -> None:
        self.recompute()

    def _on_session_event(self, _: SessionEvent) -> None:
        self.recompute()


# --- Module Notes -----------------------------------------------------------
# The watcher is framework-neutral: a UI adapter subscribes and re-renders the elements
# named in the change set.
