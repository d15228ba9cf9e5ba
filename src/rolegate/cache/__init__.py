"""GrantCache implementations."""

from .memory_cache import MemoryGrantCache, NullGrantCache
from .redis_cache import RedisGrantCache

__all__ = [
    "MemoryGrantCache",
    "NullGrantCache",
    "RedisGrantCache",
]
