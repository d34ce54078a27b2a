"""
vault_console.console

Composition root for the console client.

Responsibilities:
- Build the HTTP transport, API wrappers, session store, permission evaluator, gate, and
  navigation guard from one `Settings` object.
- Wire identity lifecycle to the permission cache (login warms it, logout and role changes
  invalidate it, a 401 drops identity).
- Own and dispose the shared `httpx.AsyncClient`.
"""

from __future__ import annotations

import asyncio
from types import TracebackType

import httpx

from vault_console.api_client.auth import AuthApi
from vault_console.api_client.http import ApiTransport, create_http_client
from vault_console.api_client.permissions import PermissionApi
from vault_console.api_client.schemas import User
from vault_console.auth.session import LoginResult, SessionEvent, SessionEventKind, SessionStore
from vault_console.errors import ApiError
from vault_console.gating import Gate, VisibilityWatcher
from vault_console.observability.logging import configure_logging, get_logger
from vault_console.permissions.evaluator import PermissionEvaluator
from vault_console.routing.guard import NavigationGuard
from vault_console.settings import Settings, get_settings

log = get_logger(__name__)


class Console:
    def __init__(self, *, settings: Settings, http: httpx.AsyncClient, owns_http: bool = True) -> None:
        self.settings = settings
        self._http = http
        self._owns_http = owns_http

        self.transport = ApiTransport(http=http)
        self.auth_api = AuthApi(self.transport)
        self.permission_api = PermissionApi(self.transport)

        self.session = SessionStore(auth_api=self.auth_api)
        self.transport.set_token_provider(lambda: self.session.token)
        self.transport.on_unauthorized(self.session.clear)

        self._warmups: set[asyncio.Task[None]] = set()
        self.evaluator = PermissionEvaluator(
            session=self.session, api=self.permission_api, settings=settings
        )
        # Subscribed before any UI watcher so the cache is already invalidated when
        # watchers recompute on the same event.
        self.session.subscribe(self.evaluator.on_session_event)
        self.session.subscribe(self._on_session_event)

        self.gate = Gate(evaluator=self.evaluator, session=self.session, settings=settings)
        self.guard = NavigationGuard(session=self.session, evaluator=self.evaluator)

    async def login(self, email: str, password: str) -> LoginResult:
        result = await self.session.login(email, password)
        if result.success:
            await self._settle_cache()
        return result

    async def restore(self, token: str, user: User | None) -> None:
        """
        Reinstall persisted identity (app start, role change pushed by the server).
        """

        self.session.set_auth(token, user)
        if self.session.is_authenticated:
            await self._settle_cache()

    async def _settle_cache(self) -> None:
        if self._warmups:
            # A role change already scheduled the load; wait for it instead of fetching twice.
            await asyncio.gather(*self._warmups, return_exceptions=True)
        else:
            await self._warm_cache()

    async def logout(self) -> None:
        await self.session.logout()

    def watcher(self) -> VisibilityWatcher:
        return VisibilityWatcher(gate=self.gate, evaluator=self.evaluator, session=self.session)

    def _on_session_event(self, event: SessionEvent) -> None:
        """
        Reload the new role's decisions after a role switch. Listeners are synchronous, so
        the load runs as a task; without a running loop it is left to the next check.
        """

        if event.kind is not SessionEventKind.role_changed:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            log.warning("permission_warmup_skipped", role=event.role, reason="no_running_loop")
            return
        task = loop.create_task(self._warm_cache())
        self._warmups.add(task)
        task.add_done_callback(self._warmups.discard)

    async def _warm_cache(self) -> None:
        try:
            await self.evaluator.initialize_from_server()
        except ApiError as e:
            # Sign-in still succeeds; permissions load incrementally instead.
            log.warning("permission_warmup_failed", status_code=e.status_code, error=e.message)

    async def aclose(self) -> None:
        for task in list(self._warmups):
            task.cancel()
        if self._warmups:
            await asyncio.gather(*self._warmups, return_exceptions=True)
        self.evaluator.clear_cache()
        if self._owns_http:
            await self._http.aclose()

    async def __aenter__(self) -> Console:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()


def create_console(
    *, settings: Settings | None = None, http: httpx.AsyncClient | None = None
) -> Console:
    """
    Without explicit `settings`, configuration comes from `VAULT_CONSOLE_*` env vars.
    """

    settings = settings or get_settings()
    configure_logging(settings)
    log.info("console_created", env=settings.env, api_base_url=settings.api_base_url)
    if http is None:
        return Console(settings=settings, http=create_http_client(settings))
    return Console(settings=settings, http=http, owns_http=False)


# --- Module Notes -----------------------------------------------------------
# This file is intentionally small: wiring stays here; behavior stays in the
# session/permissions/gating modules.
