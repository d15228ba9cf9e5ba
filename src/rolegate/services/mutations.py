"""Mutation API: fluent allow/disallow/assign/retract/sync builders.

Each builder is returned by a Gate method and captures its subject; the
terminal coroutine (``to``, ``from_``, ``everything``...) performs the
writes through the identity service and the grant graph. Missing roles
and abilities are created on grant and ignored on removal.
"""

import logging
from typing import Any, Iterable, List, Optional, Union

from ..entities import (
    Ability,
    PrincipalRef,
    Role,
    WILDCARD,
    as_holder,
    as_principal,
    resolve_target,
)
from .grant_graph import GrantGraph
from .identity import AbilityLike, IdentityService, RoleLike, ability_value, role_value

logger = logging.getLogger(__name__)


def _as_list(value: Any, single_types: tuple) -> List[Any]:
    """Wrap a single item in a list; materialize any other iterable."""
    if isinstance(value, single_types) or isinstance(value, (str, bytes)):
        return [value]
    if isinstance(value, Iterable):
        return list(value)
    return [value]


def _everything() -> Ability:
    return Ability(name=WILDCARD, entity_type=WILDCARD)


def _manage(target: Any) -> Ability:
    return Ability.for_scope(WILDCARD, resolve_target(target))


class _HolderMutation:
    def __init__(self, identity: IdentityService, graph: GrantGraph, holder: Any):
        self.identity = identity
        self.graph = graph
        self.holder = as_holder(holder)


class AllowsAbilities(_HolderMutation):
    """``gate.allow(holder)``: grant abilities to a principal or a role."""

    async def _resolve_holder(self):
        if isinstance(self.holder, Role):
            return await self.identity.find_or_create_role(self.holder)
        return self.holder

    async def _grant(self, abilities: List[Ability]) -> List[Ability]:
        holder = await self._resolve_holder()
        granted = []
        for value in abilities:
            ability = await self.identity.find_or_create_ability(value)
            await self.graph.grant(holder, ability)
            granted.append(ability)
        return granted

    async def to(
        self,
        abilities: Union[AbilityLike, Iterable[AbilityLike]],
        target: Any = None
    ) -> List[Ability]:
        """Grant one or more abilities, optionally scoped to a target.

        Args:
            abilities: Ability name(s) or Ability entities
            target: None, a type tag, a model class, or a model instance

        Returns:
            The stored abilities that are now granted
        """
        values = [
            ability_value(item, target)
            for item in _as_list(abilities, (str, Ability))
        ]
        return await self._grant(values)

    async def to_manage(self, target: Any) -> List[Ability]:
        """Grant every ability on a model type or instance."""
        return await self._grant([_manage(target)])

    async def everything(self) -> List[Ability]:
        """Grant every ability on everything."""
        return await self._grant([_everything()])


class DisallowsAbilities(_HolderMutation):
    """``gate.disallow(holder)``: remove exact grants from a principal or a role."""

    async def _resolve_holder(self):
        if isinstance(self.holder, Role):
            return await self.identity.find_role(self.holder)
        return self.holder

    async def _revoke(self, abilities: List[Ability]) -> List[Ability]:
        holder = await self._resolve_holder()
        if holder is None:
            logger.debug(f"Role {self.holder.name} does not exist; nothing to disallow")
            return []

        revoked = []
        for value in abilities:
            ability = await self.identity.find_ability(value)
            if ability is None:
                logger.debug(f"Ability {value} was never created; nothing to disallow")
                continue
            if await self.graph.revoke(holder, ability):
                revoked.append(ability)
        return revoked

    async def to(
        self,
        abilities: Union[AbilityLike, Iterable[AbilityLike]],
        target: Any = None
    ) -> List[Ability]:
        """Remove the grants with exactly this name and scope.

        Role-granted copies of the same ability are untouched.

        Returns:
            The abilities whose grant edge was actually removed
        """
        values = [
            ability_value(item, target)
            for item in _as_list(abilities, (str, Ability))
        ]
        return await self._revoke(values)

    async def to_manage(self, target: Any) -> List[Ability]:
        return await self._revoke([_manage(target)])

    async def everything(self) -> List[Ability]:
        return await self._revoke([_everything()])


class AssignsRoles:
    """``gate.assign(roles)``: attach roles to principals."""

    def __init__(
        self,
        identity: IdentityService,
        graph: GrantGraph,
        roles: Union[RoleLike, Iterable[RoleLike]]
    ):
        self.identity = identity
        self.graph = graph
        self.roles = [role_value(role) for role in _as_list(roles, (str, Role))]

    async def to(self, principals: Any) -> List[Role]:
        """Assign the roles to one principal or a list of principals."""
        refs = [as_principal(item) for item in _as_list(principals, ())]

        assigned = []
        for value in self.roles:
            role = await self.identity.find_or_create_role(value)
            for principal in refs:
                await self.graph.assign(principal, role)
            assigned.append(role)
        return assigned


class RetractsRoles:
    """``gate.retract(roles)``: detach roles from principals."""

    def __init__(
        self,
        identity: IdentityService,
        graph: GrantGraph,
        roles: Union[RoleLike, Iterable[RoleLike]]
    ):
        self.identity = identity
        self.graph = graph
        self.roles = [role_value(role) for role in _as_list(roles, (str, Role))]

    async def from_(self, principals: Any) -> List[Role]:
        """Retract the roles from one principal or a list of principals.

        Only the assignment edge is removed; the role and its abilities
        stay in place for everyone else holding it.
        """
        refs = [as_principal(item) for item in _as_list(principals, ())]

        retracted = []
        for value in self.roles:
            role = await self.identity.find_role(value)
            if role is None:
                logger.debug(f"Role {value.name} does not exist; nothing to retract")
                continue
            for principal in refs:
                await self.graph.unassign(principal, role)
            retracted.append(role)
        return retracted


class SyncsGrants(_HolderMutation):
    """``gate.sync(holder)``: make a holder's edges exactly a given set."""

    async def roles(self, roles: Union[RoleLike, Iterable[RoleLike]]) -> List[Role]:
        """Assign missing roles and retract every other role.

        Returns:
            The roles the principal holds afterwards
        """
        principal: PrincipalRef = as_principal(self.holder)

        wanted = []
        for value in _as_list(roles, (str, Role)):
            wanted.append(await self.identity.find_or_create_role(value))
        wanted_names = {role.name for role in wanted}

        for role in await self.graph.roles_of(principal):
            if role.name not in wanted_names:
                await self.graph.unassign(principal, role)
        for role in wanted:
            await self.graph.assign(principal, role)

        return wanted

    async def abilities(
        self,
        abilities: Union[AbilityLike, Iterable[AbilityLike]],
        target: Optional[Any] = None
    ) -> List[Ability]:
        """Grant missing abilities and revoke every other direct grant.

        Role-inherited abilities are not affected.
        """
        holder = self.holder
        if isinstance(holder, Role):
            holder = await self.identity.find_or_create_role(holder)

        wanted = []
        for item in _as_list(abilities, (str, Ability)):
            wanted.append(
                await self.identity.find_or_create_ability(ability_value(item, target))
            )
        wanted_keys = {ability.key for ability in wanted}

        for ability in await self.graph.direct_abilities_of(holder):
            if ability.key not in wanted_keys:
                await self.graph.revoke(holder, ability)
        for ability in wanted:
            await self.graph.grant(holder, ability)

        return wanted


__all__ = [
    "AllowsAbilities",
    "DisallowsAbilities",
    "AssignsRoles",
    "RetractsRoles",
    "SyncsGrants",
]
