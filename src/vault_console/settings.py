"""
vault_console.settings

Central configuration model (Pydantic Settings).

Responsibilities:
- Provide strongly-typed, env-driven settings for the console client.
- Offer a cached settings instance for the composition root.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Env-driven configuration, defaults safe for local dev.
    One instance is handed to every component by `vault_console.console`.
    """

    model_config = SettingsConfigDict(env_prefix="VAULT_CONSOLE_", case_sensitive=False)

    env: Literal["dev", "test", "prod"] = "dev"
    service_name: str = "vault-console"
    log_level: str = "INFO"

    # Remote API
    api_base_url: str = "http://localhost:8080/api/v1"
    request_timeout_s: float = Field(default=10.0, gt=0)

    # Permissions
    bypass_role: str = "super_admin"

    # Menus without an explicit order sort after everything else.
    default_menu_order: int = 999


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


# --- Module Notes -----------------------------------------------------------
# Tests construct `Settings(env="test", ...)` directly instead of going through the cache.
