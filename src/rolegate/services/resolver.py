"""Resolver: allow/deny decisions over the grant graph.

The model is purely additive. A principal can do something iff one of its
direct abilities, or one of the abilities of a role it holds, matches the
query name and scope. There are no deny grants and so no precedence rules
beyond the scope matching in Ability.matches.
"""

import logging
from typing import Any, Dict, Iterable, List, Union

from ..core.exceptions import InvalidArgumentError, InvalidNameError
from ..entities import (
    Ability,
    GrantCache,
    PrincipalRef,
    ResolvedGrants,
    Role,
    as_principal,
    resolve_target,
)
from .grant_graph import GrantGraph
from .locks import LockRegistry

logger = logging.getLogger(__name__)

ROLE_MODES = ("any", "all")


def _role_names(roles: Union[str, Role, Iterable[Union[str, Role]]]) -> List[str]:
    if isinstance(roles, (str, Role)):
        roles = [roles]

    names = []
    for role in roles:
        name = role.name if isinstance(role, Role) else role
        if not isinstance(name, str) or not name.strip():
            raise InvalidNameError("Role", name)
        names.append(name)
    return names


class Resolver:
    """Answers can/is queries from cached or freshly walked grants."""

    def __init__(self, graph: GrantGraph, cache: GrantCache, locks: LockRegistry):
        self.graph = graph
        self.cache = cache
        self.locks = locks

    async def _walk(self, principal: PrincipalRef) -> ResolvedGrants:
        roles = await self.graph.roles_of(principal)

        abilities: Dict[tuple, Ability] = {}
        for ability in await self.graph.direct_abilities_of(principal):
            abilities.setdefault(ability.key, ability)
        for role in roles:
            for ability in await self.graph.direct_abilities_of(role):
                abilities.setdefault(ability.key, ability)

        return ResolvedGrants(roles=tuple(roles), abilities=tuple(abilities.values()))

    async def resolve(self, principal: Any) -> ResolvedGrants:
        """Get a principal's roles and deduplicated abilities, cache first."""
        principal = as_principal(principal)

        cached = await self.cache.get(principal)
        if cached is not None:
            logger.debug(f"Cache hit for {principal} grants")
            return cached

        # populate under the principal lock so a half-applied mutation is never cached
        async with self.locks.hold(principals=[principal]):
            cached = await self.cache.get(principal)
            if cached is not None:
                return cached

            # a mutation in another process between here and the put bumps the generation
            generation = await self.cache.generation(principal)
            resolved = await self._walk(principal)
            if not await self.cache.put(principal, resolved, generation):
                logger.debug(f"Resolved grants for {principal} were not cached")

        logger.debug(
            f"Resolved {len(resolved.abilities)} abilities and "
            f"{len(resolved.roles)} roles for {principal}"
        )
        return resolved

    async def can(self, principal: Any, ability: Union[str, Ability], target: Any = None) -> bool:
        """Check if a principal holds an ability, optionally on a target.

        Args:
            principal: Principal object or PrincipalRef
            ability: Ability name, or an Ability entity carrying its own scope
            target: None, a type tag, a model class, or a model instance

        Returns:
            True if at least one resolved ability matches

        Raises:
            InvalidTargetError: If the target's scope cannot be determined
        """
        if isinstance(ability, Ability):
            if target is not None:
                raise InvalidArgumentError(
                    "An Ability entity already carries its scope; do not pass a target",
                    "INVALID_ARGUMENT",
                    {"ability": str(ability)},
                )
            name, scope = ability.name, ability.scope
        else:
            if not isinstance(ability, str) or not ability.strip():
                raise InvalidNameError("Ability", ability)
            name, scope = ability, resolve_target(target)

        resolved = await self.resolve(principal)
        for granted in resolved.abilities:
            if granted.matches(name, scope):
                logger.debug(f"Allowed {name} on {scope} via {granted}")
                return True

        return False

    async def can_any(self, principal: Any, abilities: Iterable[str], target: Any = None) -> bool:
        for ability in abilities:
            if await self.can(principal, ability, target):
                return True
        return False

    async def can_all(self, principal: Any, abilities: Iterable[str], target: Any = None) -> bool:
        for ability in abilities:
            if not await self.can(principal, ability, target):
                return False
        return True

    async def is_(
        self,
        principal: Any,
        roles: Union[str, Role, Iterable[Union[str, Role]]],
        mode: str = "any"
    ) -> bool:
        """Check role membership.

        Args:
            principal: Principal object or PrincipalRef
            roles: One role name or several
            mode: "any" (at least one held) or "all" (every one held)
        """
        if mode not in ROLE_MODES:
            raise InvalidArgumentError(
                f"mode must be one of {ROLE_MODES}, got: {mode!r}",
                "INVALID_ARGUMENT",
                {"mode": mode},
            )

        names = _role_names(roles)
        held = (await self.resolve(principal)).role_names

        if mode == "all":
            return all(name in held for name in names)
        return any(name in held for name in names)

    async def list_abilities(self, principal: Any) -> List[Ability]:
        """Abilities a principal holds, direct grants first, deduplicated."""
        return list((await self.resolve(principal)).abilities)

    async def list_roles(self, principal: Any) -> List[Role]:
        """Roles assigned to a principal, in assignment order."""
        return list((await self.resolve(principal)).roles)
