"""In-memory GrantStore implementation.

Keeps roles, abilities and the three edge relations in insertion-ordered
dicts. Suitable for tests, single-process hosts and as a reference for
other backends.
"""

import itertools
import logging
from typing import Dict, List, Optional, Tuple

from ..entities import Ability, Holder, PrincipalRef, Role

logger = logging.getLogger(__name__)

AbilityKey = Tuple[str, Optional[str], Optional[str]]
HolderKey = Tuple[str, str]


def _holder_key(holder: Holder) -> HolderKey:
    if isinstance(holder, Role):
        return ("role", holder.name)
    return ("principal", holder.key)


class InMemoryGrantStore:
    """Dict-backed implementation of the GrantStore protocol."""

    def __init__(self):
        self._roles: Dict[str, Role] = {}
        self._abilities: Dict[AbilityKey, Ability] = {}
        self._grants: Dict[HolderKey, Dict[AbilityKey, None]] = {}
        self._assignments: Dict[PrincipalRef, Dict[str, None]] = {}
        self._ids = itertools.count(1)

    # Identity

    async def find_role(self, name: str) -> Optional[Role]:
        return self._roles.get(name)

    async def find_or_create_role(self, role: Role) -> Role:
        existing = self._roles.get(role.name)
        if existing is not None:
            return existing

        stored = Role(name=role.name, title=role.title, id=next(self._ids))
        self._roles[role.name] = stored
        logger.debug(f"Created role {stored.name}")
        return stored

    async def find_ability(self, ability: Ability) -> Optional[Ability]:
        return self._abilities.get(ability.key)

    async def find_or_create_ability(self, ability: Ability) -> Ability:
        existing = self._abilities.get(ability.key)
        if existing is not None:
            return existing

        stored = Ability(
            name=ability.name,
            entity_type=ability.entity_type,
            entity_id=ability.entity_id,
            title=ability.title,
            id=next(self._ids),
        )
        self._abilities[ability.key] = stored
        logger.debug(f"Created ability {stored}")
        return stored

    # Edges

    async def grant(self, holder: Holder, ability: Ability) -> bool:
        if ability.key not in self._abilities:
            await self.find_or_create_ability(ability)
        if isinstance(holder, Role) and holder.name not in self._roles:
            await self.find_or_create_role(holder)

        edges = self._grants.setdefault(_holder_key(holder), {})
        if ability.key in edges:
            return False
        edges[ability.key] = None
        return True

    async def revoke(self, holder: Holder, ability: Ability) -> bool:
        edges = self._grants.get(_holder_key(holder))
        if not edges or ability.key not in edges:
            return False
        del edges[ability.key]
        return True

    async def assign(self, principal: PrincipalRef, role: Role) -> bool:
        if role.name not in self._roles:
            await self.find_or_create_role(role)

        edges = self._assignments.setdefault(principal, {})
        if role.name in edges:
            return False
        edges[role.name] = None
        return True

    async def unassign(self, principal: PrincipalRef, role: Role) -> bool:
        edges = self._assignments.get(principal)
        if not edges or role.name not in edges:
            return False
        del edges[role.name]
        return True

    # Queries

    async def roles_of(self, principal: PrincipalRef) -> List[Role]:
        names = self._assignments.get(principal, {})
        return [self._roles[name] for name in names]

    async def direct_abilities_of(self, holder: Holder) -> List[Ability]:
        keys = self._grants.get(_holder_key(holder), {})
        return [self._abilities[key] for key in keys]

    async def principals_with_role(self, role: Role) -> List[PrincipalRef]:
        return [
            principal
            for principal, names in self._assignments.items()
            if role.name in names
        ]

    async def list_roles(self) -> List[Role]:
        return list(self._roles.values())

    async def list_abilities(self) -> List[Ability]:
        return list(self._abilities.values())
