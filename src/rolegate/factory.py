"""
Gate factory for rolegate.

Builds a Gate from settings, creating the asyncpg pool or Redis client
when the caller does not supply one.
"""
import logging
from typing import Optional

import asyncpg
from redis.asyncio import Redis

from .cache import MemoryGrantCache, NullGrantCache, RedisGrantCache
from .config import RoleGateSettings, get_settings
from .core.exceptions import ConfigurationError
from .entities import GrantCache, GrantStore
from .repositories import AsyncPGGrantStore, InMemoryGrantStore
from .services import Gate

logger = logging.getLogger(__name__)


async def create_grant_store(
    settings: RoleGateSettings,
    pool: Optional[asyncpg.Pool] = None
) -> GrantStore:
    """Create the GrantStore selected by ``settings.store_backend``."""
    if settings.store_backend == "memory":
        return InMemoryGrantStore()

    if pool is None:
        if not settings.database_dsn:
            raise ConfigurationError(
                "database_dsn is required for the postgres store backend",
                details={"store_backend": settings.store_backend},
            )
        pool = await asyncpg.create_pool(
            settings.database_dsn,
            min_size=settings.db_pool_min_size,
            max_size=settings.db_pool_max_size,
        )

    store = AsyncPGGrantStore(pool, schema=settings.db_schema)
    if settings.create_schema:
        await store.create_schema()
    return store


def create_grant_cache(
    settings: RoleGateSettings,
    redis_client: Optional[Redis] = None
) -> GrantCache:
    """Create the GrantCache selected by ``settings.cache_backend``."""
    if settings.cache_backend == "none":
        return NullGrantCache()

    if settings.cache_backend == "memory":
        return MemoryGrantCache(
            ttl_seconds=settings.cache_ttl_seconds,
            max_size=settings.cache_max_size,
        )

    if redis_client is None:
        if not settings.redis_url:
            raise ConfigurationError(
                "redis_url is required for the redis cache backend",
                details={"cache_backend": settings.cache_backend},
            )
        redis_client = Redis.from_url(settings.redis_url)

    return RedisGrantCache(
        redis_client,
        key_prefix=settings.cache_key_prefix,
        ttl_seconds=settings.cache_ttl_seconds,
    )


async def create_gate(
    settings: Optional[RoleGateSettings] = None,
    pool: Optional[asyncpg.Pool] = None,
    redis_client: Optional[Redis] = None
) -> Gate:
    """
    Create a Gate with backends chosen by settings.

    Args:
        settings: Optional settings (defaults to environment settings)
        pool: Optional asyncpg pool for the postgres store backend
        redis_client: Optional Redis client for the redis cache backend

    Returns:
        Configured Gate instance

    Raises:
        ConfigurationError: If a selected backend lacks its connection settings
    """
    settings = settings or get_settings()

    store = await create_grant_store(settings, pool)
    cache = create_grant_cache(settings, redis_client)

    logger.info(
        f"Created gate with {settings.store_backend} store "
        f"and {settings.cache_backend} cache"
    )
    return Gate(store=store, cache=cache)
