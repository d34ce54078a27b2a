"""
vault_console.auth.models

Identity domain models.

Responsibilities:
- Define the role names known to the console.
- Define the signed-in identity (`Identity`) and the derived role flags.
"""

from __future__ import annotations

from dataclasses import dataclass

from vault_console.api_client.schemas import User

SUPER_ADMIN = "super_admin"
SECURITY_MANAGER = "sec_mgr"
DEVELOPER = "dev"
AUDITOR = "auditor"


@dataclass(frozen=True, slots=True)
class Identity:
    """
    Signed-in user plus the bearer token used for API calls.
    """

    token: str
    user: User

    @property
    def role(self) -> str:
        return self.user.role

    @property
    def is_admin(self) -> bool:
        return self.role == SUPER_ADMIN

    @property
    def is_security_manager(self) -> bool:
        return self.role == SECURITY_MANAGER

    @property
    def is_developer(self) -> bool:
        return self.role == DEVELOPER

    @property
    def is_auditor(self) -> bool:
        return self.role == AUDITOR


# --- Module Notes -----------------------------------------------------------
# Role flags deliberately read identity only; they never go through the permission cache.
