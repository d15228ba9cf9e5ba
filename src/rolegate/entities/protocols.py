"""Protocol interfaces for rolegate collaborators.

GrantStore is the persistence collaborator (identity upserts plus the
three edge relations). GrantCache memoizes a principal's resolved grants.
"""

from abc import abstractmethod
from typing import Any, List, Optional, Protocol, runtime_checkable

from .ability import Ability
from .principal import Holder, PrincipalRef
from .resolved import ResolvedGrants
from .role import Role


@runtime_checkable
class GrantStore(Protocol):
    """Protocol for role/ability persistence."""

    @abstractmethod
    async def find_role(self, name: str) -> Optional[Role]:
        """Get a role by name without creating it."""
        ...

    @abstractmethod
    async def find_or_create_role(self, role: Role) -> Role:
        """Upsert a role by name and return the stored entity."""
        ...

    @abstractmethod
    async def find_ability(self, ability: Ability) -> Optional[Ability]:
        """Get an ability by identity without creating it."""
        ...

    @abstractmethod
    async def find_or_create_ability(self, ability: Ability) -> Ability:
        """Upsert an ability by identity and return the stored entity."""
        ...

    @abstractmethod
    async def grant(self, holder: Holder, ability: Ability) -> bool:
        """Add a grant edge. Returns False if it already existed."""
        ...

    @abstractmethod
    async def revoke(self, holder: Holder, ability: Ability) -> bool:
        """Remove a grant edge. Returns False if it did not exist."""
        ...

    @abstractmethod
    async def assign(self, principal: PrincipalRef, role: Role) -> bool:
        """Add an assignment edge. Returns False if it already existed."""
        ...

    @abstractmethod
    async def unassign(self, principal: PrincipalRef, role: Role) -> bool:
        """Remove an assignment edge. Returns False if it did not exist."""
        ...

    @abstractmethod
    async def roles_of(self, principal: PrincipalRef) -> List[Role]:
        """Roles assigned to a principal, in assignment order."""
        ...

    @abstractmethod
    async def direct_abilities_of(self, holder: Holder) -> List[Ability]:
        """Abilities granted directly to a holder, in grant order."""
        ...

    @abstractmethod
    async def principals_with_role(self, role: Role) -> List[PrincipalRef]:
        """Principals currently assigned a role."""
        ...

    @abstractmethod
    async def list_roles(self) -> List[Role]:
        """Every stored role."""
        ...

    @abstractmethod
    async def list_abilities(self) -> List[Ability]:
        """Every stored ability."""
        ...


@runtime_checkable
class GrantCache(Protocol):
    """Protocol for per-principal resolved grant caching.

    Every invalidation advances the principal's generation. A reader
    records the generation before walking the grant graph and hands it to
    ``put``, which stores nothing if the generation moved in between. This
    keeps results computed before a mutation out of the cache even when
    the reader and the writer run in different processes.
    """

    @abstractmethod
    async def get(self, principal: PrincipalRef) -> Optional[ResolvedGrants]:
        """Get cached grants, or None on a miss."""
        ...

    @abstractmethod
    async def generation(self, principal: PrincipalRef) -> Any:
        """Current invalidation generation for a principal."""
        ...

    @abstractmethod
    async def put(
        self,
        principal: PrincipalRef,
        resolved: ResolvedGrants,
        generation: Any = None
    ) -> bool:
        """Cache resolved grants for a principal.

        Args:
            principal: Principal the grants were resolved for
            resolved: Resolved grants
            generation: Value of ``generation()`` read before resolving;
                None stores unconditionally

        Returns:
            True if the entry was stored
        """
        ...

    @abstractmethod
    async def invalidate(self, principal: PrincipalRef) -> None:
        """Drop a principal's cached grants and advance its generation."""
        ...

    @abstractmethod
    async def clear(self) -> None:
        """Drop every cached entry."""
        ...
