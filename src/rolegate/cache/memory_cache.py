"""In-process GrantCache implementation."""

import logging
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Optional

from ..entities import PrincipalRef, ResolvedGrants

logger = logging.getLogger(__name__)


@dataclass
class MemoryCacheEntry:
    """Cached grants with an optional expiry."""
    value: ResolvedGrants
    expires_at: Optional[float] = None

    @property
    def is_expired(self) -> bool:
        if self.expires_at is None:
            return False
        return time.monotonic() > self.expires_at


class MemoryGrantCache:
    """Dict-backed GrantCache with LRU eviction.

    Entries live until invalidated or evicted; ``ttl_seconds`` additionally
    bounds how long an entry may be served. The generation is one counter
    for the whole cache, so any invalidation rejects every put that was
    resolved before it.
    """

    def __init__(self, ttl_seconds: Optional[int] = None, max_size: int = 10000):
        self.ttl_seconds = ttl_seconds
        self.max_size = max_size
        self._entries: "OrderedDict[PrincipalRef, MemoryCacheEntry]" = OrderedDict()
        self._generation = 0

    async def get(self, principal: PrincipalRef) -> Optional[ResolvedGrants]:
        entry = self._entries.get(principal)
        if entry is None:
            return None

        if entry.is_expired:
            self._entries.pop(principal, None)
            logger.debug(f"Expired cached grants for {principal}")
            return None

        self._entries.move_to_end(principal)
        return entry.value

    async def generation(self, principal: PrincipalRef) -> Any:
        return self._generation

    async def put(
        self,
        principal: PrincipalRef,
        resolved: ResolvedGrants,
        generation: Any = None
    ) -> bool:
        if generation is not None and generation != self._generation:
            return False

        expires_at = None
        if self.ttl_seconds:
            expires_at = time.monotonic() + self.ttl_seconds

        self._entries[principal] = MemoryCacheEntry(resolved, expires_at)
        self._entries.move_to_end(principal)

        while len(self._entries) > self.max_size:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug(f"Evicted cached grants for {evicted}")
        return True

    async def invalidate(self, principal: PrincipalRef) -> None:
        self._generation += 1
        self._entries.pop(principal, None)

    async def clear(self) -> None:
        self._generation += 1
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class NullGrantCache:
    """GrantCache that never stores anything."""

    async def get(self, principal: PrincipalRef) -> Optional[ResolvedGrants]:
        return None

    async def generation(self, principal: PrincipalRef) -> Any:
        return 0

    async def put(
        self,
        principal: PrincipalRef,
        resolved: ResolvedGrants,
        generation: Any = None
    ) -> bool:
        return False

    async def invalidate(self, principal: PrincipalRef) -> None:
        return None

    async def clear(self) -> None:
        return None
