"""Gate: the authorization engine instance.

A Gate wires one GrantStore and one GrantCache to the identity service,
grant graph, resolver and mutation builders. Hosts construct one per
process (or per unit of work) and pass it to whatever needs decisions;
there is no module-level singleton.

Usage:
    gate = Gate()
    await gate.allow("admin").to("ban-users")
    await gate.assign("admin").to(user)
    await gate.can(user, "ban-users")        # True
    await gate.allow(user).to("edit", Post)
    await gate.can(user, "edit", post)       # True for any Post instance
"""

import logging
from typing import Any, Iterable, List, Optional, Union

from ..cache import MemoryGrantCache
from ..entities import Ability, GrantCache, GrantStore, Role, as_principal
from ..repositories import InMemoryGrantStore
from .grant_graph import GrantGraph
from .identity import AbilityLike, IdentityService, RoleLike
from .locks import LockRegistry
from .mutations import (
    AllowsAbilities,
    AssignsRoles,
    DisallowsAbilities,
    RetractsRoles,
    SyncsGrants,
)
from .resolver import Resolver

logger = logging.getLogger(__name__)

RolesArg = Union[RoleLike, Iterable[RoleLike]]


class Gate:
    """Role and ability authorization engine."""

    def __init__(
        self,
        store: Optional[GrantStore] = None,
        cache: Optional[GrantCache] = None
    ):
        """
        Initialize the gate.

        Args:
            store: Persistence collaborator (defaults to InMemoryGrantStore)
            cache: Resolved-grant cache (defaults to MemoryGrantCache)
        """
        self.store = store if store is not None else InMemoryGrantStore()
        self.cache = cache if cache is not None else MemoryGrantCache()
        self.locks = LockRegistry()

        self.identity = IdentityService(self.store)
        self.graph = GrantGraph(self.store, self.cache, self.locks)
        self.resolver = Resolver(self.graph, self.cache, self.locks)

        logger.debug(
            f"Initialized Gate with {type(self.store).__name__} "
            f"and {type(self.cache).__name__}"
        )

    # Mutations

    def allow(self, holder: Any) -> AllowsAbilities:
        """Start granting abilities to a principal, a Role, or a role name."""
        return AllowsAbilities(self.identity, self.graph, holder)

    def disallow(self, holder: Any) -> DisallowsAbilities:
        """Start removing abilities from a principal, a Role, or a role name."""
        return DisallowsAbilities(self.identity, self.graph, holder)

    def assign(self, roles: RolesArg) -> AssignsRoles:
        """Start assigning one or more roles."""
        return AssignsRoles(self.identity, self.graph, roles)

    def retract(self, roles: RolesArg) -> RetractsRoles:
        """Start retracting one or more roles."""
        return RetractsRoles(self.identity, self.graph, roles)

    def sync(self, holder: Any) -> SyncsGrants:
        """Start replacing a holder's roles or direct abilities."""
        return SyncsGrants(self.identity, self.graph, holder)

    # Entity creation

    async def role(self, name: str, title: Optional[str] = None) -> Role:
        """Get or create a role, with an optional display title."""
        return await self.identity.find_or_create_role(name, title)

    async def ability(
        self,
        name: str,
        target: Any = None,
        title: Optional[str] = None
    ) -> Ability:
        """Get or create an ability, with an optional display title."""
        return await self.identity.find_or_create_ability(name, target, title)

    # Queries

    async def can(self, principal: Any, ability: AbilityLike, target: Any = None) -> bool:
        """Decision hook: True allows, False means "no opinion"."""
        return await self.resolver.can(principal, ability, target)

    async def cannot(self, principal: Any, ability: AbilityLike, target: Any = None) -> bool:
        return not await self.resolver.can(principal, ability, target)

    async def can_any(self, principal: Any, abilities: Iterable[str], target: Any = None) -> bool:
        return await self.resolver.can_any(principal, abilities, target)

    async def can_all(self, principal: Any, abilities: Iterable[str], target: Any = None) -> bool:
        return await self.resolver.can_all(principal, abilities, target)

    async def is_(self, principal: Any, roles: RolesArg, mode: str = "any") -> bool:
        return await self.resolver.is_(principal, roles, mode)

    async def is_a(self, principal: Any, *roles: RoleLike) -> bool:
        return await self.resolver.is_(principal, roles, "any")

    is_an = is_a

    async def is_all(self, principal: Any, *roles: RoleLike) -> bool:
        return await self.resolver.is_(principal, roles, "all")

    async def is_not(self, principal: Any, *roles: RoleLike) -> bool:
        return not await self.resolver.is_(principal, roles, "any")

    async def list_abilities(self, principal: Any) -> List[Ability]:
        return await self.resolver.list_abilities(principal)

    async def list_roles(self, principal: Any) -> List[Role]:
        return await self.resolver.list_roles(principal)

    # Cache management

    async def refresh(self) -> None:
        """Drop every cached resolution."""
        await self.cache.clear()
        logger.info("Cleared all cached grants")

    async def refresh_for(self, principal: Any) -> None:
        """Drop one principal's cached resolution."""
        ref = as_principal(principal)
        async with self.locks.hold(principals=[ref]):
            await self.cache.invalidate(ref)
        logger.info(f"Cleared cached grants for {ref}")
