"""
vault_console.permissions.cache

In-memory permission decision cache.

Responsibilities:
- Store boolean decisions keyed by `"{role}:{resource}:{action}"`.
- Track per-key pending state (`checking` / `loaded`) so duplicate checks can be skipped.
- Notify subscribers on every mutation (set, bulk load, clear, role clear).

Entries never expire; they live until `clear()` or `clear_for_role()`. `None` from `get()`
means "never checked", which is distinct from a cached `False`.
"""

from __future__ import annotations

import enum
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass

from vault_console.observability.logging import get_logger
from vault_console.permissions.keys import Permission, PermissionKey, role_prefix

log = get_logger(__name__)


class PendingState(str, enum.Enum):
    checking = "checking"
    loaded = "loaded"


class ChangeKind(str, enum.Enum):
    set = "set"
    bulk = "bulk"
    clear = "clear"
    clear_role = "clear_role"


@dataclass(frozen=True, slots=True)
class CacheChange:
    kind: ChangeKind
    role: str | None = None
    keys: tuple[str, ...] = ()


@dataclass(slots=True)
class CacheStats:
    hits: int = 0
    misses: int = 0
    invalidations: int = 0
    entries: int = 0

    def as_dict(self) -> dict[str, int]:
        return {
            "hits": self.hits,
            "misses": self.misses,
            "invalidations": self.invalidations,
            "entries": self.entries,
        }


CacheListener = Callable[[CacheChange], None]


class PermissionCache:
    def __init__(self) -> None:
        self._entries: dict[str, bool] = {}
        self._states: dict[str, PendingState] = {}
        self._listeners: list[CacheListener] = []
        self._stats = CacheStats()

    # --- lookups ------------------------------------------------------------

    def get(self, role: str, resource: str, action: str) -> bool | None:
        return self._entries.get(PermissionKey(role, resource, action).cache_key)

    def lookup(self, role: str, resource: str, action: str) -> bool | None:
        # Same as `get`, but counted in `stats()`.
        value = self.get(role, resource, action)
        if value is None:
            self._stats.misses += 1
        else:
            self._stats.hits += 1
        return value

    def state(self, key: str) -> PendingState | None:
        return self._states.get(key)

    def keys(self) -> list[str]:
        return list(self._entries)

    @property
    def is_empty(self) -> bool:
        return not self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._entries))

    def stats(self) -> CacheStats:
        self._stats.entries = len(self._entries)
        return self._stats

    # --- pending state ------------------------------------------------------

    def mark_checking(self, key: str) -> None:
        self._states[key] = PendingState.checking

    def mark_loaded(self, key: str) -> None:
        self._states[key] = PendingState.loaded

    def discard_state(self, key: str) -> None:
        self._states.pop(key, None)

    # --- mutations ----------------------------------------------------------

    def set(self, role: str, resource: str, action: str, value: bool) -> None:
        key = PermissionKey(role, resource, action).cache_key
        self._entries[key] = bool(value)
        self._states[key] = PendingState.loaded
        self._notify(CacheChange(kind=ChangeKind.set, role=role, keys=(key,)))

    def bulk_set(self, role: str, permissions: Mapping[str, bool]) -> list[str]:
        """
        Load `{"resource:action": bool}` for one role in a single step. Malformed keys are
        skipped and logged. Returns the cache keys written.
        """

        written: list[str] = []
        for perm_key, value in permissions.items():
            try:
                perm = Permission.parse(perm_key)
            except ValueError:
                log.warning("permission_key_skipped", key=perm_key, role=role)
                continue
            key = PermissionKey(role, perm.resource, perm.action).cache_key
            self._entries[key] = bool(value)
            self._states[key] = PendingState.loaded
            written.append(key)
        self._notify(CacheChange(kind=ChangeKind.bulk, role=role, keys=tuple(written)))
        return written

    def clear(self) -> None:
        removed = tuple(self._entries)
        self._entries.clear()
        self._states.clear()
        self._stats.invalidations += len(removed)
        self._notify(CacheChange(kind=ChangeKind.clear, keys=removed))

    def clear_for_role(self, role: str) -> list[str]:
        prefix = role_prefix(role)
        removed = [k for k in self._entries if k.startswith(prefix)]
        for k in removed:
            del self._entries[k]
        # Pending markers are dropped too, including ones for keys never loaded.
        for k in [k for k in self._states if k.startswith(prefix)]:
            del self._states[k]
        self._stats.invalidations += len(removed)
        self._notify(CacheChange(kind=ChangeKind.clear_role, role=role, keys=tuple(removed)))
        return removed

    # --- observers ----------------------------------------------------------

    def subscribe(self, listener: CacheListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self, change: CacheChange) -> None:
        for listener in list(self._listeners):
            try:
                listener(change)
            except Exception:
                log.exception("cache_listener_failed", change=change.kind.value)


# --- Module Notes -----------------------------------------------------------
# The cache is owned by `PermissionEvaluator`; other components read it through the
# evaluator and observe it through `subscribe`.
