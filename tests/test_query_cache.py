from __future__ import annotations

import asyncio

from ads_manager.services.query_cache import (
    ACCOUNTS,
    CAMPAIGN,
    CAMPAIGNS,
    QueryCache,
    QueryCacheRegistry,
    make_key,
)


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def test_make_key_ignores_param_order_and_none_values():
    assert make_key(CAMPAIGNS, {"status": "ACTIVE", "account": "a1"}) == make_key(
        CAMPAIGNS, {"account": "a1", "status": "ACTIVE", "search": None}
    )
    assert make_key(CAMPAIGNS, {"status": None}) == make_key(CAMPAIGNS)
    assert make_key(CAMPAIGNS, {"status": "ACTIVE"}) != make_key(CAMPAIGNS, {"status": "PAUSED"})


def test_fetch_loads_once_until_invalidated():
    cache = QueryCache(ttl_seconds=60)
    loads = []

    async def loader():
        loads.append(1)
        return ["campaign"]

    async def run():
        key = make_key(CAMPAIGNS)
        await cache.fetch(key, loader)
        await cache.fetch(key, loader)
        assert len(loads) == 1

        cache.invalidate(CAMPAIGNS)
        await cache.fetch(key, loader)
        assert len(loads) == 2

    asyncio.run(run())


def test_invalidate_drops_every_key_of_an_entity_only():
    cache = QueryCache(ttl_seconds=60)
    cache.set(make_key(CAMPAIGNS), [1])
    cache.set(make_key(CAMPAIGNS, {"status": "ACTIVE"}), [2])
    cache.set(make_key(CAMPAIGN, {"id": "c1"}), {"id": "c1"})
    cache.set(make_key(ACCOUNTS), [])

    assert cache.invalidate(CAMPAIGNS) == 2
    assert make_key(CAMPAIGN, {"id": "c1"}) in cache
    assert len(cache) == 2


def test_entries_expire_after_ttl():
    clock = FakeClock()
    cache = QueryCache(ttl_seconds=10, clock=clock)
    cache.set(make_key(ACCOUNTS), ["a1"])

    clock.now = 5
    assert cache.get(make_key(ACCOUNTS)) == ["a1"]
    clock.now = 11
    assert cache.get(make_key(ACCOUNTS)) is None


def test_registry_scopes_caches_per_user():
    registry = QueryCacheRegistry(ttl_seconds=60)
    registry.for_user("u1").set(make_key(ACCOUNTS), ["a1"])

    assert make_key(ACCOUNTS) not in registry.for_user("u2")
    assert registry.for_user("u1") is registry.for_user("u1")

    registry.drop("u1")
    assert make_key(ACCOUNTS) not in registry.for_user("u1")


def test_set_sweeps_expired_entries():
    clock = FakeClock()
    cache = QueryCache(ttl_seconds=10, clock=clock)
    cache.set(make_key("metrics", {"start": "2026-10-01"}), [1])
    cache.set(make_key("metrics", {"start": "2026-10-02"}), [2])

    clock.now = 20
    cache.set(make_key("metrics", {"start": "2026-10-03"}), [3])
    assert len(cache) == 1


def test_registry_drops_idle_caches_after_ttl():
    clock = FakeClock()
    registry = QueryCacheRegistry(ttl_seconds=60, clock=clock)
    for i in range(1000):
        registry.for_user(f"user-{i}").set(make_key(ACCOUNTS), [i])
    assert len(registry) == 1000

    clock.now = 3600
    assert registry.sweep() == 1000
    assert len(registry) == 0


def test_registry_sweeps_while_serving_other_users():
    clock = FakeClock()
    registry = QueryCacheRegistry(ttl_seconds=60, clock=clock)
    registry.for_user("idle").set(make_key(ACCOUNTS), ["a1"])

    clock.now = 30
    registry.for_user("active").set(make_key(ACCOUNTS), ["a2"])
    clock.now = 80
    registry.for_user("active")

    assert len(registry) == 1
    assert make_key(ACCOUNTS) in registry.for_user("active")


def test_registry_evicts_least_recently_used_user():
    registry = QueryCacheRegistry(ttl_seconds=60, max_users=2)
    first = registry.for_user("u1")
    first.set(make_key(ACCOUNTS), ["a1"])
    registry.for_user("u2")
    registry.for_user("u1")
    registry.for_user("u3")

    assert len(registry) == 2
    assert registry.for_user("u1") is first
