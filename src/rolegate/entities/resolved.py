"""Resolved grant set cached per principal."""

from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Tuple

from .ability import Ability
from .role import Role


@dataclass(frozen=True)
class ResolvedGrants:
    """Roles and the deduplicated union of abilities one principal holds."""

    roles: Tuple[Role, ...] = ()
    abilities: Tuple[Ability, ...] = ()

    @property
    def role_names(self) -> FrozenSet[str]:
        return frozenset(role.name for role in self.roles)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "roles": [role.to_dict() for role in self.roles],
            "abilities": [ability.to_dict() for ability in self.abilities],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ResolvedGrants":
        return cls(
            roles=tuple(Role.from_dict(item) for item in data.get("roles", [])),
            abilities=tuple(
                Ability.from_dict(item) for item in data.get("abilities", [])
            ),
        )
