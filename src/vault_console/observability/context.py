"""
vault_console.observability.context

Session-scoped logging context.

Responsibilities:
- Bind the signed-in identity into structlog contextvars on login.
- Clear it on logout so log lines never carry a previous user's identity.
"""

from __future__ import annotations

import structlog


def bind_identity(*, username: str, role: str) -> None:
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(user=username, role=role)


def clear_identity() -> None:
    structlog.contextvars.clear_contextvars()


# --- Module Notes -----------------------------------------------------------
# Counterpart of a per-request middleware in a server: here the "request" is a session.
