"""GrantStore implementations."""

from .memory_store import InMemoryGrantStore
from .asyncpg_store import AsyncPGGrantStore, SCHEMA_SQL

__all__ = [
    "InMemoryGrantStore",
    "AsyncPGGrantStore",
    "SCHEMA_SQL",
]
