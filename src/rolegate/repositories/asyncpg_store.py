"""AsyncPG-based GrantStore implementation.

Stores roles, abilities, grants and role assignments in PostgreSQL. Each
mutating call runs as a single transaction; persistence errors are logged
and propagated unchanged to the caller.
"""

import logging
import re
from typing import List, Optional

import asyncpg

from ..core.exceptions import ConfigurationError
from ..entities import Ability, Holder, PrincipalRef, Role

logger = logging.getLogger(__name__)

_SCHEMA_NAME = re.compile(r"^[a-z_][a-z0-9_]{0,62}$")

SCHEMA_SQL = """
CREATE SCHEMA IF NOT EXISTS {schema};

CREATE TABLE IF NOT EXISTS {schema}.roles (
    id BIGSERIAL PRIMARY KEY,
    name TEXT NOT NULL UNIQUE,
    title TEXT,
    created_at TIMESTAMPTZ NOT NULL DEFAULT now()
);

CREATE TABLE IF NOT EXISTS {schema}.abilities (
    id BIGSERIAL PRIMARY KEY,
    name TEXT NOT NULL,
    entity_type TEXT,
    entity_id TEXT,
    title TEXT,
    created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
    CHECK (entity_id IS NULL OR entity_type IS NOT NULL)
);

CREATE UNIQUE INDEX IF NOT EXISTS abilities_identity_idx
    ON {schema}.abilities (name, (COALESCE(entity_type, '')), (COALESCE(entity_id, '')));

CREATE TABLE IF NOT EXISTS {schema}.grants (
    seq BIGSERIAL PRIMARY KEY,
    ability_id BIGINT NOT NULL REFERENCES {schema}.abilities (id) ON DELETE CASCADE,
    holder_kind TEXT NOT NULL CHECK (holder_kind IN ('role', 'principal')),
    holder_type TEXT NOT NULL,
    holder_id TEXT NOT NULL,
    UNIQUE (ability_id, holder_kind, holder_type, holder_id)
);

CREATE INDEX IF NOT EXISTS grants_holder_idx
    ON {schema}.grants (holder_kind, holder_type, holder_id);

CREATE TABLE IF NOT EXISTS {schema}.assigned_roles (
    seq BIGSERIAL PRIMARY KEY,
    role_id BIGINT NOT NULL REFERENCES {schema}.roles (id) ON DELETE CASCADE,
    principal_type TEXT NOT NULL,
    principal_id TEXT NOT NULL,
    UNIQUE (role_id, principal_type, principal_id)
);

CREATE INDEX IF NOT EXISTS assigned_roles_principal_idx
    ON {schema}.assigned_roles (principal_type, principal_id);
"""


def _holder_columns(holder: Holder):
    """(holder_kind, holder_type, holder_id) for a grant holder."""
    if isinstance(holder, Role):
        return ("role", "", holder.name)
    return ("principal", holder.type, holder.id)


def _affected_rows(status: str) -> int:
    """Row count from an asyncpg command status such as ``INSERT 0 1``."""
    try:
        return int(status.rsplit(" ", 1)[-1])
    except (AttributeError, ValueError):
        return 0


class AsyncPGGrantStore:
    """AsyncPG implementation of the GrantStore protocol."""

    def __init__(self, pool: asyncpg.Pool, schema: str = "rolegate"):
        """Initialize with a connection pool and a validated schema name."""
        self.pool = pool
        self.schema = self._validate_schema_name(schema)

    def _validate_schema_name(self, schema: str) -> str:
        """Validate schema name to prevent SQL injection."""
        if not isinstance(schema, str) or not _SCHEMA_NAME.match(schema):
            raise ConfigurationError(f"Invalid schema name: {schema!r}")
        return schema

    async def create_schema(self) -> None:
        """Create the rolegate tables if they do not exist."""
        async with self.pool.acquire() as conn:
            await conn.execute(SCHEMA_SQL.format(schema=self.schema))
        logger.info(f"Ensured rolegate schema {self.schema}")

    def _build_role_from_row(self, row) -> Role:
        return Role(name=row["name"], title=row["title"], id=row["id"])

    def _build_ability_from_row(self, row) -> Ability:
        return Ability(
            name=row["name"],
            entity_type=row["entity_type"],
            entity_id=row["entity_id"],
            title=row["title"],
            id=row["id"],
        )

    async def _upsert_role(self, conn, role: Role):
        query = f"""
            INSERT INTO {self.schema}.roles (name, title)
            VALUES ($1, $2)
            ON CONFLICT (name) DO UPDATE SET name = EXCLUDED.name
            RETURNING id, name, title
        """
        return await conn.fetchrow(query, role.name, role.title)

    async def _upsert_ability(self, conn, ability: Ability):
        # scope columns are identity and are never updated
        query = f"""
            INSERT INTO {self.schema}.abilities (name, entity_type, entity_id, title)
            VALUES ($1, $2, $3, $4)
            ON CONFLICT (name, (COALESCE(entity_type, '')), (COALESCE(entity_id, '')))
            DO UPDATE SET name = EXCLUDED.name
            RETURNING id, name, entity_type, entity_id, title
        """
        return await conn.fetchrow(
            query, ability.name, ability.entity_type, ability.entity_id, ability.title
        )

    # Identity

    async def find_role(self, name: str) -> Optional[Role]:
        query = f"SELECT id, name, title FROM {self.schema}.roles WHERE name = $1"
        try:
            async with self.pool.acquire() as conn:
                row = await conn.fetchrow(query, name)
        except Exception as e:
            logger.error(f"Failed to get role {name}: {e}")
            raise
        return self._build_role_from_row(row) if row else None

    async def find_or_create_role(self, role: Role) -> Role:
        try:
            async with self.pool.acquire() as conn:
                row = await self._upsert_role(conn, role)
        except Exception as e:
            logger.error(f"Failed to upsert role {role.name}: {e}")
            raise
        return self._build_role_from_row(row)

    async def find_ability(self, ability: Ability) -> Optional[Ability]:
        query = f"""
            SELECT id, name, entity_type, entity_id, title
            FROM {self.schema}.abilities
            WHERE name = $1
              AND entity_type IS NOT DISTINCT FROM $2
              AND entity_id IS NOT DISTINCT FROM $3
        """
        try:
            async with self.pool.acquire() as conn:
                row = await conn.fetchrow(
                    query, ability.name, ability.entity_type, ability.entity_id
                )
        except Exception as e:
            logger.error(f"Failed to get ability {ability}: {e}")
            raise
        return self._build_ability_from_row(row) if row else None

    async def find_or_create_ability(self, ability: Ability) -> Ability:
        try:
            async with self.pool.acquire() as conn:
                row = await self._upsert_ability(conn, ability)
        except Exception as e:
            logger.error(f"Failed to upsert ability {ability}: {e}")
            raise
        return self._build_ability_from_row(row)

    # Edges

    async def grant(self, holder: Holder, ability: Ability) -> bool:
        holder_kind, holder_type, holder_id = _holder_columns(holder)
        query = f"""
            INSERT INTO {self.schema}.grants (ability_id, holder_kind, holder_type, holder_id)
            VALUES ($1, $2, $3, $4)
            ON CONFLICT (ability_id, holder_kind, holder_type, holder_id) DO NOTHING
        """
        try:
            async with self.pool.acquire() as conn:
                async with conn.transaction():
                    if isinstance(holder, Role):
                        await self._upsert_role(conn, holder)
                    row = await self._upsert_ability(conn, ability)
                    status = await conn.execute(
                        query, row["id"], holder_kind, holder_type, holder_id
                    )
        except Exception as e:
            logger.error(f"Failed to grant {ability} to {holder}: {e}")
            raise
        return _affected_rows(status) > 0

    async def revoke(self, holder: Holder, ability: Ability) -> bool:
        holder_kind, holder_type, holder_id = _holder_columns(holder)
        query = f"""
            DELETE FROM {self.schema}.grants g
            USING {self.schema}.abilities a
            WHERE g.ability_id = a.id
              AND a.name = $1
              AND a.entity_type IS NOT DISTINCT FROM $2
              AND a.entity_id IS NOT DISTINCT FROM $3
              AND g.holder_kind = $4
              AND g.holder_type = $5
              AND g.holder_id = $6
        """
        try:
            async with self.pool.acquire() as conn:
                status = await conn.execute(
                    query,
                    ability.name,
                    ability.entity_type,
                    ability.entity_id,
                    holder_kind,
                    holder_type,
                    holder_id,
                )
        except Exception as e:
            logger.error(f"Failed to revoke {ability} from {holder}: {e}")
            raise
        return _affected_rows(status) > 0

    async def assign(self, principal: PrincipalRef, role: Role) -> bool:
        query = f"""
            INSERT INTO {self.schema}.assigned_roles (role_id, principal_type, principal_id)
            VALUES ($1, $2, $3)
            ON CONFLICT (role_id, principal_type, principal_id) DO NOTHING
        """
        try:
            async with self.pool.acquire() as conn:
                async with conn.transaction():
                    row = await self._upsert_role(conn, role)
                    status = await conn.execute(
                        query, row["id"], principal.type, principal.id
                    )
        except Exception as e:
            logger.error(f"Failed to assign role {role.name} to {principal}: {e}")
            raise
        return _affected_rows(status) > 0

    async def unassign(self, principal: PrincipalRef, role: Role) -> bool:
        query = f"""
            DELETE FROM {self.schema}.assigned_roles ar
            USING {self.schema}.roles r
            WHERE ar.role_id = r.id
              AND r.name = $1
              AND ar.principal_type = $2
              AND ar.principal_id = $3
        """
        try:
            async with self.pool.acquire() as conn:
                status = await conn.execute(query, role.name, principal.type, principal.id)
        except Exception as e:
            logger.error(f"Failed to retract role {role.name} from {principal}: {e}")
            raise
        return _affected_rows(status) > 0

    # Queries

    async def roles_of(self, principal: PrincipalRef) -> List[Role]:
        query = f"""
            SELECT r.id, r.name, r.title
            FROM {self.schema}.assigned_roles ar
            JOIN {self.schema}.roles r ON r.id = ar.role_id
            WHERE ar.principal_type = $1 AND ar.principal_id = $2
            ORDER BY ar.seq
        """
        try:
            async with self.pool.acquire() as conn:
                rows = await conn.fetch(query, principal.type, principal.id)
        except Exception as e:
            logger.error(f"Failed to load roles of {principal}: {e}")
            raise
        return [self._build_role_from_row(row) for row in rows]

    async def direct_abilities_of(self, holder: Holder) -> List[Ability]:
        holder_kind, holder_type, holder_id = _holder_columns(holder)
        query = f"""
            SELECT a.id, a.name, a.entity_type, a.entity_id, a.title
            FROM {self.schema}.grants g
            JOIN {self.schema}.abilities a ON a.id = g.ability_id
            WHERE g.holder_kind = $1 AND g.holder_type = $2 AND g.holder_id = $3
            ORDER BY g.seq
        """
        try:
            async with self.pool.acquire() as conn:
                rows = await conn.fetch(query, holder_kind, holder_type, holder_id)
        except Exception as e:
            logger.error(f"Failed to load abilities of {holder}: {e}")
            raise
        return [self._build_ability_from_row(row) for row in rows]

    async def principals_with_role(self, role: Role) -> List[PrincipalRef]:
        query = f"""
            SELECT ar.principal_type, ar.principal_id
            FROM {self.schema}.assigned_roles ar
            JOIN {self.schema}.roles r ON r.id = ar.role_id
            WHERE r.name = $1
            ORDER BY ar.seq
        """
        try:
            async with self.pool.acquire() as conn:
                rows = await conn.fetch(query, role.name)
        except Exception as e:
            logger.error(f"Failed to load holders of role {role.name}: {e}")
            raise
        return [
            PrincipalRef(type=row["principal_type"], id=row["principal_id"])
            for row in rows
        ]

    async def list_roles(self) -> List[Role]:
        query = f"SELECT id, name, title FROM {self.schema}.roles ORDER BY id"
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(query)
        return [self._build_role_from_row(row) for row in rows]

    async def list_abilities(self) -> List[Ability]:
        query = f"""
            SELECT id, name, entity_type, entity_id, title
            FROM {self.schema}.abilities
            ORDER BY id
        """
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(query)
        return [self._build_ability_from_row(row) for row in rows]
