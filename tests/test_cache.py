"""
tests.test_cache

Permission cache: absent vs denied, role-scoped invalidation, bulk load, observers, stats.
"""

from __future__ import annotations

from vault_console.permissions.cache import ChangeKind, PendingState, PermissionCache


def test_absent_is_distinct_from_denied() -> None:
    cache = PermissionCache()
    assert cache.get("dev", "secret", "read") is None

    cache.set("dev", "secret", "read", False)
    assert cache.get("dev", "secret", "read") is False
    assert cache.state("dev:secret:read") is PendingState.loaded


def test_roles_cache_independently() -> None:
    cache = PermissionCache()
    cache.set("dev", "secret", "read", True)
    assert cache.get("auditor", "secret", "read") is None
    assert "dev:secret:read" in cache


def test_clear_wipes_entries_and_pending_state() -> None:
    cache = PermissionCache()
    cache.set("dev", "secret", "read", True)
    cache.mark_checking("dev:secret:create")

    cache.clear()

    assert cache.is_empty
    assert cache.get("dev", "secret", "read") is None
    assert cache.state("dev:secret:create") is None


def test_clear_for_role_only_touches_that_prefix() -> None:
    cache = PermissionCache()
    cache.set("dev", "secret", "read", True)
    cache.set("dev", "user", "read", False)
    cache.set("developer", "secret", "read", True)
    cache.set("auditor", "audit", "read", True)

    removed = cache.clear_for_role("dev")

    assert sorted(removed) == ["dev:secret:read", "dev:user:read"]
    assert cache.get("developer", "secret", "read") is True
    assert cache.get("auditor", "audit", "read") is True
    assert len(cache) == 2


def test_bulk_set_skips_malformed_keys() -> None:
    cache = PermissionCache()
    written = cache.bulk_set("dev", {"secret:read": True, "user:create": False, "broken": True})

    assert sorted(written) == ["dev:secret:read", "dev:user:create"]
    assert cache.get("dev", "secret", "read") is True
    assert cache.get("dev", "user", "create") is False
    assert len(cache) == 2


def test_subscribers_see_every_mutation_and_bad_listener_is_isolated() -> None:
    cache = PermissionCache()
    seen = []

    def boom(_change) -> None:
        raise RuntimeError("listener bug")

    cache.subscribe(boom)
    unsubscribe = cache.subscribe(seen.append)

    cache.set("dev", "secret", "read", True)
    cache.bulk_set("dev", {"user:read": True})
    cache.clear_for_role("dev")
    cache.clear()
    unsubscribe()
    cache.set("dev", "secret", "read", True)

    assert [c.kind for c in seen] == [
        ChangeKind.set,
        ChangeKind.bulk,
        ChangeKind.clear_role,
        ChangeKind.clear,
    ]
    assert seen[0].keys == ("dev:secret:read",)
    # The failing listener did not stop the write.
    assert cache.get("dev", "secret", "read") is True


def test_get_is_uncounted_and_lookup_is_counted() -> None:
    cache = PermissionCache()
    cache.set("dev", "secret", "read", True)

    cache.get("dev", "secret", "read")
    assert cache.stats().hits == 0

    cache.lookup("dev", "secret", "read")
    cache.lookup("dev", "secret", "delete")
    cache.clear()

    stats = cache.stats().as_dict()
    assert stats == {"hits": 1, "misses": 1, "invalidations": 1, "entries": 0}
