"""Identity store operations: role and ability upserts by identity."""

import logging
from typing import Any, Optional, Union

from ..core.exceptions import InvalidArgumentError
from ..entities import Ability, GrantStore, Role, resolve_target

logger = logging.getLogger(__name__)

RoleLike = Union[str, Role]
AbilityLike = Union[str, Ability]


def role_value(role: RoleLike, title: Optional[str] = None) -> Role:
    """Build an unsaved Role from a name, or pass a Role through."""
    if isinstance(role, Role):
        return role
    return Role(name=role, title=title)


def ability_value(
    ability: AbilityLike,
    target: Any = None,
    title: Optional[str] = None
) -> Ability:
    """Build an unsaved Ability from a name and target, or pass an Ability through.

    Raises:
        InvalidArgumentError: If an Ability entity is combined with a target
        InvalidTargetError: If the target's scope cannot be determined
    """
    if isinstance(ability, Ability):
        if target is not None:
            raise InvalidArgumentError(
                "An Ability entity already carries its scope; do not pass a target",
                "INVALID_ARGUMENT",
                {"ability": str(ability)},
            )
        return ability
    return Ability.for_scope(ability, resolve_target(target), title=title)


class IdentityService:
    """Upserts roles and abilities keyed by their identity."""

    def __init__(self, store: GrantStore):
        self.store = store

    async def find_or_create_role(self, role: RoleLike, title: Optional[str] = None) -> Role:
        """Get the stored role with this name, creating it on first reference."""
        value = role_value(role, title)
        if value.id is not None:
            return value
        return await self.store.find_or_create_role(value)

    async def find_role(self, role: RoleLike) -> Optional[Role]:
        """Get the stored role with this name, or None."""
        value = role_value(role)
        if value.id is not None:
            return value
        return await self.store.find_role(value.name)

    async def find_or_create_ability(
        self,
        ability: AbilityLike,
        target: Any = None,
        title: Optional[str] = None
    ) -> Ability:
        """Get the stored ability with this identity, creating it on first reference."""
        value = ability_value(ability, target, title)
        if value.id is not None:
            return value
        return await self.store.find_or_create_ability(value)

    async def find_ability(self, ability: AbilityLike, target: Any = None) -> Optional[Ability]:
        """Get the stored ability with exactly this identity, or None."""
        value = ability_value(ability, target)
        if value.id is not None:
            return value
        return await self.store.find_ability(value)
