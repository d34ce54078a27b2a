"""
vault_console.auth.session

Session/identity store.

Responsibilities:
- Hold the signed-in identity (token + user) and expose the current role.
- Run the login/logout calls against the remote API.
- Publish lifecycle events (login, logout, role change) to subscribers such as the
  permission evaluator, which must drop cached decisions when identity changes.
"""

from __future__ import annotations

import enum
from collections.abc import Callable
from dataclasses import dataclass

from vault_console.api_client.auth import AuthApi
from vault_console.api_client.schemas import User
from vault_console.auth.jwt import is_token_expired
from vault_console.auth.models import Identity
from vault_console.errors import ApiError
from vault_console.observability.context import bind_identity, clear_identity
from vault_console.observability.logging import get_logger

log = get_logger(__name__)

DEFAULT_LOGIN_ERROR = "login failed"


class SessionEventKind(str, enum.Enum):
    login = "login"
    logout = "logout"
    role_changed = "role_changed"


@dataclass(frozen=True, slots=True)
class SessionEvent:
    kind: SessionEventKind
    role: str | None
    previous_role: str | None = None


@dataclass(frozen=True, slots=True)
class LoginResult:
    success: bool
    message: str = ""


SessionListener = Callable[[SessionEvent], None]


class SessionStore:
    """
    Single owner of identity state. Listeners are invoked synchronously, in subscription
    order, after the state change is applied.
    """

    def __init__(self, *, auth_api: AuthApi) -> None:
        self._auth_api = auth_api
        self._identity: Identity | None = None
        self._listeners: list[SessionListener] = []
        self.loading = False

    # --- state --------------------------------------------------------------

    @property
    def identity(self) -> Identity | None:
        return self._identity

    @property
    def token(self) -> str | None:
        return self._identity.token if self._identity else None

    @property
    def user(self) -> User | None:
        return self._identity.user if self._identity else None

    @property
    def role(self) -> str | None:
        return self._identity.role if self._identity else None

    @property
    def is_authenticated(self) -> bool:
        token = self.token
        return bool(token) and not is_token_expired(token)

    @property
    def is_admin(self) -> bool:
        return bool(self._identity and self._identity.is_admin)

    @property
    def is_security_manager(self) -> bool:
        return bool(self._identity and self._identity.is_security_manager)

    @property
    def is_developer(self) -> bool:
        return bool(self._identity and self._identity.is_developer)

    @property
    def is_auditor(self) -> bool:
        return bool(self._identity and self._identity.is_auditor)

    # --- observers ----------------------------------------------------------

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _emit(self, event: SessionEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                log.exception("session_listener_failed", event=event.kind.value)

    # --- lifecycle ----------------------------------------------------------

    async def login(self, email: str, password: str) -> LoginResult:
        self.loading = True
        try:
            resp = await self._auth_api.login(email=email, password=password)
        except ApiError as e:
            log.warning("login_failed", status_code=e.status_code, error=e.message)
            return LoginResult(success=False, message=e.message or DEFAULT_LOGIN_ERROR)
        finally:
            self.loading = False

        self.set_auth(resp.token, resp.user)
        log.info("login_succeeded")
        return LoginResult(success=True, message=resp.message)

    async def logout(self) -> None:
        try:
            if self._identity is not None:
                await self._auth_api.logout()
        except ApiError as e:
            # Local sign-out still happens; the server session simply expires.
            log.warning("logout_request_failed", status_code=e.status_code, error=e.message)
        finally:
            self.clear()

    def set_auth(self, token: str, user: User | None) -> None:
        """
        Install (or restore) identity. An empty token or missing user signs out.
        """

        if not token or user is None:
            self.clear()
            return

        previous = self._identity
        self._identity = Identity(token=token, user=user)
        bind_identity(username=user.email or user.name, role=user.role)

        if previous is None:
            self._emit(SessionEvent(kind=SessionEventKind.login, role=user.role))
        elif previous.role != user.role:
            self._emit(
                SessionEvent(
                    kind=SessionEventKind.role_changed,
                    role=user.role,
                    previous_role=previous.role,
                )
            )

    def clear(self) -> None:
        previous = self._identity
        self._identity = None
        clear_identity()
        if previous is not None:
            self._emit(
                SessionEvent(kind=SessionEventKind.logout, role=None, previous_role=previous.role)
            )


# --- Module Notes -----------------------------------------------------------
# `clear` is also installed as the transport's 401 hook by `vault_console.console`.
