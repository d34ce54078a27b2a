"""
vault_console.permissions.roles

Role-based checks that read identity directly (no permission cache involved).
"""

from __future__ import annotations

from collections.abc import Iterable

from vault_console.auth.session import SessionStore


class RoleChecker:
    def __init__(self, session: SessionStore) -> None:
        self._session = session

    @property
    def current_role(self) -> str | None:
        return self._session.role

    def has_role(self, role: str | Iterable[str]) -> bool:
        current = self._session.role
        if not current:
            return False
        if isinstance(role, str):
            return current == role
        return current in set(role)

    def has_any_role(self, roles: Iterable[str]) -> bool:
        return self.has_role(list(roles))


# --- Module Notes -----------------------------------------------------------
# Used by the role directive in `vault_console.gating` and by route allow-lists.
