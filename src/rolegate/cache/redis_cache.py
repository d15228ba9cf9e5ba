"""Redis-backed GrantCache implementation.

Lets several processes share resolved grants. Entries are JSON documents
keyed by ``{prefix}:{principal type}:{principal id}``. Each principal also
has a generation counter under ``{prefix}-gen:{principal type}:{principal id}``.
Invalidation increments it and deletes the entry in one transaction. A
conditional put WATCHes the counter, so a result resolved in one process
before another process committed a mutation is never stored.
"""

import json
import logging
from typing import Any, Optional

from redis.asyncio import Redis
from redis.exceptions import WatchError

from ..core.exceptions import RoleGateError
from ..entities import PrincipalRef, ResolvedGrants

logger = logging.getLogger(__name__)


def _as_generation(raw: Any) -> int:
    if raw is None:
        return 0
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8")
    return int(raw)


class RedisGrantCache:
    """GrantCache backed by a redis.asyncio client."""

    def __init__(
        self,
        redis_client: Redis,
        key_prefix: str = "rolegate:grants",
        ttl_seconds: Optional[int] = None
    ):
        self.redis = redis_client
        self.key_prefix = key_prefix
        self.ttl_seconds = ttl_seconds

    @classmethod
    def from_url(
        cls,
        url: str,
        key_prefix: str = "rolegate:grants",
        ttl_seconds: Optional[int] = None
    ) -> "RedisGrantCache":
        return cls(Redis.from_url(url), key_prefix, ttl_seconds)

    def _key(self, principal: PrincipalRef) -> str:
        return f"{self.key_prefix}:{principal.key}"

    def _generation_key(self, principal: PrincipalRef) -> str:
        return f"{self.key_prefix}-gen:{principal.key}"

    async def get(self, principal: PrincipalRef) -> Optional[ResolvedGrants]:
        raw = await self.redis.get(self._key(principal))
        if raw is None:
            return None

        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")

        try:
            return ResolvedGrants.from_dict(json.loads(raw))
        except (ValueError, KeyError, TypeError, RoleGateError) as e:
            # unreadable entries are dropped and recomputed
            logger.warning(f"Discarding corrupt cached grants for {principal}: {e}")
            await self.redis.delete(self._key(principal))
            return None

    async def generation(self, principal: PrincipalRef) -> Any:
        return _as_generation(await self.redis.get(self._generation_key(principal)))

    async def put(
        self,
        principal: PrincipalRef,
        resolved: ResolvedGrants,
        generation: Any = None
    ) -> bool:
        payload = json.dumps(resolved.to_dict())
        ttl = self.ttl_seconds or None

        if generation is None:
            await self.redis.set(self._key(principal), payload, ex=ttl)
            return True

        generation_key = self._generation_key(principal)
        async with self.redis.pipeline(transaction=True) as pipe:
            try:
                await pipe.watch(generation_key)
                current = _as_generation(await pipe.get(generation_key))
                if current != generation:
                    await pipe.unwatch()
                    logger.debug(f"Grants for {principal} changed while resolving; not caching")
                    return False

                pipe.multi()
                pipe.set(self._key(principal), payload, ex=ttl)
                await pipe.execute()
            except WatchError:
                logger.debug(f"Grants for {principal} changed while caching; not caching")
                return False
        return True

    async def invalidate(self, principal: PrincipalRef) -> None:
        async with self.redis.pipeline(transaction=True) as pipe:
            pipe.incr(self._generation_key(principal))
            pipe.delete(self._key(principal))
            await pipe.execute()

    async def clear(self) -> None:
        keys = [key async for key in self.redis.scan_iter(match=f"{self.key_prefix}:*")]
        if keys:
            await self.redis.delete(*keys)
        logger.info(f"Cleared {len(keys)} cached grant entries")
