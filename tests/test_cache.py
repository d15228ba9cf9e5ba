"""Tests for cache coherence and the in-process caches."""

import asyncio
from unittest.mock import patch

import pytest

from conftest import PausingStore, Post, User
from rolegate import (
    Ability,
    Gate,
    InMemoryGrantStore,
    MemoryGrantCache,
    NullGrantCache,
    PrincipalRef,
    ResolvedGrants,
    Role,
)


@pytest.fixture
def alice():
    return PrincipalRef("User", "1")


@pytest.fixture
def resolved():
    return ResolvedGrants(roles=(Role("editor"),), abilities=(Ability("edit"),))


class TestMemoryGrantCache:
    """MemoryGrantCache behaviour."""

    @pytest.mark.asyncio
    async def test_put_get_invalidate(self, alice, resolved):
        cache = MemoryGrantCache()

        assert await cache.get(alice) is None
        await cache.put(alice, resolved)
        assert await cache.get(alice) == resolved
        assert len(cache) == 1

        await cache.invalidate(alice)
        assert await cache.get(alice) is None

    @pytest.mark.asyncio
    async def test_clear(self, alice, resolved):
        cache = MemoryGrantCache()
        await cache.put(alice, resolved)
        await cache.put(PrincipalRef("User", "2"), resolved)

        await cache.clear()

        assert len(cache) == 0

    @pytest.mark.asyncio
    async def test_ttl_expiry(self, alice, resolved):
        cache = MemoryGrantCache(ttl_seconds=30)

        with patch("rolegate.cache.memory_cache.time.monotonic", return_value=100.0):
            await cache.put(alice, resolved)
        with patch("rolegate.cache.memory_cache.time.monotonic", return_value=129.0):
            assert await cache.get(alice) == resolved
        with patch("rolegate.cache.memory_cache.time.monotonic", return_value=131.0):
            assert await cache.get(alice) is None

        assert len(cache) == 0

    @pytest.mark.asyncio
    async def test_null_cache_never_stores(self, alice, resolved):
        cache = NullGrantCache()
        await cache.put(alice, resolved)

        assert await cache.get(alice) is None


class TestCacheCoherence:
    """Resolved grants are reused until a mutation invalidates them."""

    @pytest.mark.asyncio
    async def test_repeated_checks_walk_once(self, gate, store, user1):
        await gate.allow(user1).to("edit")

        await gate.can(user1, "edit")
        await gate.can(user1, "delete")
        await gate.is_(user1, "admin")
        await gate.list_abilities(user1)

        assert store.walks == 1

    @pytest.mark.asyncio
    async def test_direct_grant_invalidates(self, gate, user1):
        assert await gate.can(user1, "edit") is False

        await gate.allow(user1).to("edit")

        assert await gate.can(user1, "edit") is True

    @pytest.mark.asyncio
    async def test_role_grant_invalidates_every_holder(self, gate, user1, user2):
        await gate.assign("editor").to([user1, user2])
        assert await gate.can(user1, "edit") is False
        assert await gate.can(user2, "edit") is False

        await gate.allow("editor").to("edit")

        assert await gate.can(user1, "edit") is True
        assert await gate.can(user2, "edit") is True

    @pytest.mark.asyncio
    async def test_role_grant_leaves_other_entries(self, gate, store, user1, user2):
        await gate.assign("editor").to(user1)
        await gate.can(user1, "edit")
        await gate.can(user2, "edit")
        walks = store.walks

        await gate.allow("editor").to("edit")
        await gate.can(user2, "edit")

        assert store.walks == walks

    @pytest.mark.asyncio
    async def test_refresh(self, gate, store, cache, user1):
        await gate.can(user1, "edit")
        await gate.refresh()
        await gate.can(user1, "edit")

        assert store.walks == 2
        assert len(cache) == 1

    @pytest.mark.asyncio
    async def test_refresh_for(self, gate, cache, user1, user2):
        await gate.can(user1, "edit")
        await gate.can(user2, "edit")

        await gate.refresh_for(user1)

        assert len(cache) == 1
        assert await cache.get(PrincipalRef("User", "2")) is not None

    @pytest.mark.asyncio
    async def test_failed_write_still_invalidates(self, cache, user1):
        class FailingStore(InMemoryGrantStore):
            async def grant(self, holder, ability):
                await super().grant(holder, ability)
                raise RuntimeError("connection lost after commit")

        gate = Gate(store=FailingStore(), cache=cache)
        assert await gate.can(user1, "edit") is False

        with pytest.raises(RuntimeError):
            await gate.allow(user1).to("edit")

        assert await gate.can(user1, "edit") is True

    @pytest.mark.asyncio
    async def test_without_cache(self, user1, post):
        gate = Gate(cache=NullGrantCache())

        await gate.allow(user1).to("edit", Post)

        assert await gate.can(user1, "edit", post) is True


class SlowStore(InMemoryGrantStore):
    """Store whose grant blocks until released."""

    def __init__(self):
        super().__init__()
        self.entered = asyncio.Event()
        self.release = asyncio.Event()

    async def grant(self, holder, ability):
        self.entered.set()
        await self.release.wait()
        return await super().grant(holder, ability)


class TestConcurrency:
    """Readers racing mutations."""

    @pytest.mark.asyncio
    async def test_reader_waits_for_inflight_mutation(self, user1, user2):
        store = SlowStore()
        gate = Gate(store=store)

        writer = asyncio.create_task(gate.allow(user1).to("edit"))
        await store.entered.wait()

        reader = asyncio.create_task(gate.can(user1, "edit"))
        await asyncio.sleep(0.01)
        assert not reader.done()

        # unrelated principals are not blocked
        assert await gate.can(user2, "edit") is False

        store.release.set()
        await writer

        assert await reader is True
        assert await gate.can(user1, "edit") is True

    @pytest.mark.asyncio
    async def test_role_mutation_blocks_its_holders(self, user1, user2):
        store = SlowStore()
        gate = Gate(store=store)
        await gate.assign("editor").to(user1)

        writer = asyncio.create_task(gate.allow("editor").to("edit"))
        await store.entered.wait()

        holder = asyncio.create_task(gate.can(user1, "edit"))
        await asyncio.sleep(0.01)
        assert not holder.done()
        assert await gate.can(user2, "edit") is False

        store.release.set()
        await writer

        assert await holder is True

    @pytest.mark.asyncio
    async def test_concurrent_mutations_apply_all(self, gate, user1):
        names = [f"ability-{index}" for index in range(20)]

        await asyncio.gather(*(gate.allow(user1).to(name) for name in names))

        assert await gate.can_all(user1, names) is True
        assert len(await gate.list_abilities(user1)) == 20


class TestMemoryGrantCacheBounds:
    """Size bound and generation checks."""

    @pytest.mark.asyncio
    async def test_evicts_least_recently_used(self, resolved):
        cache = MemoryGrantCache(max_size=2)
        first, second, third = (PrincipalRef("User", str(index)) for index in range(3))

        await cache.put(first, resolved)
        await cache.put(second, resolved)
        await cache.get(first)
        await cache.put(third, resolved)

        assert len(cache) == 2
        assert await cache.get(first) == resolved
        assert await cache.get(second) is None
        assert await cache.get(third) == resolved

    @pytest.mark.asyncio
    async def test_put_rejected_after_invalidation(self, alice, resolved):
        cache = MemoryGrantCache()
        generation = await cache.generation(alice)

        await cache.invalidate(PrincipalRef("User", "2"))

        assert await cache.put(alice, resolved, generation) is False
        assert await cache.get(alice) is None
        assert await cache.put(alice, resolved, await cache.generation(alice)) is True


class TestSharedCache:
    """Two gates over one store and one cache, as two host processes would be."""

    @pytest.mark.asyncio
    async def test_result_resolved_before_mutation_is_not_cached(self):
        store = PausingStore()
        cache = MemoryGrantCache()
        process_a = Gate(store=store, cache=cache)
        process_b = Gate(store=store, cache=cache)
        user = User(id=1)
        await process_a.allow("admin").to("ban-users")

        store.pause_next = True
        reader = asyncio.create_task(process_b.can(user, "ban-users"))
        await store.paused.wait()

        await process_a.assign("admin").to(user)
        store.resume.set()

        assert await reader is False
        assert await process_a.can(user, "ban-users") is True
        assert await process_b.can(user, "ban-users") is True

    @pytest.mark.asyncio
    async def test_failed_invalidation_reaches_remaining_holders(self, user2):
        class FlakyCache(MemoryGrantCache):
            async def invalidate(self, principal):
                await super().invalidate(principal)
                if principal.id == "1":
                    raise RuntimeError("cache unavailable")

        gate = Gate(cache=FlakyCache())
        # the failing holder is first in the fan-out
        await gate.store.assign(PrincipalRef("User", "1"), Role("editor"))
        await gate.assign("editor").to(user2)
        assert await gate.can(user2, "edit") is False

        with pytest.raises(RuntimeError, match="cache unavailable"):
            await gate.allow("editor").to("edit")

        assert await gate.can(user2, "edit") is True
