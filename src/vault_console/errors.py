"""
vault_console.errors

Error taxonomy for calls against the remote console API.

Responsibilities:
- Give callers one base type (`ApiError`) to catch for any remote failure.
- Distinguish auth expiry (401) and transport failures (timeouts, connection errors).
"""

from __future__ import annotations


class ApiError(Exception):
    """
    Remote call failed. `status_code` is None when no HTTP response was received.
    """

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    def __repr__(self) -> str:
        return f"{type(self).__name__}(status_code={self.status_code!r}, message={self.message!r})"


class UnauthorizedError(ApiError):
    pass


class ApiTransportError(ApiError):
    pass


# --- Module Notes -----------------------------------------------------------
# Permission reads never let these escape (see `permissions.evaluator`); initialization
# and policy writes propagate them for UI-level error display.
