"""Ability domain entity.

An ability is a named permission, optionally scoped to a model type or to
a single model instance. Identity is the (name, entity_type, entity_id)
triple; title and storage id are descriptive only.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from ..core.exceptions import InvalidNameError
from .target import Scope
from .titles import WILDCARD, ability_title


@dataclass(frozen=True)
class Ability:
    """Immutable ability value object."""

    name: str
    entity_type: Optional[str] = None
    entity_id: Optional[str] = None
    title: Optional[str] = field(default=None, compare=False)
    id: Optional[int] = field(default=None, compare=False)

    def __post_init__(self):
        """Validate the name and normalize the instance id."""
        if not isinstance(self.name, str) or not self.name.strip():
            raise InvalidNameError("Ability", self.name)

        # Scope() rejects an instance id without a type tag
        scope = Scope(self.entity_type, self.entity_id)
        object.__setattr__(self, "entity_id", scope.entity_id)

        if self.title is None:
            object.__setattr__(
                self,
                "title",
                ability_title(self.name, self.entity_type, self.entity_id),
            )

    @classmethod
    def for_scope(
        cls,
        name: str,
        scope: Scope,
        title: Optional[str] = None,
        id: Optional[int] = None
    ) -> "Ability":
        return cls(
            name=name,
            entity_type=scope.entity_type,
            entity_id=scope.entity_id,
            title=title,
            id=id,
        )

    @property
    def key(self) -> Tuple[str, Optional[str], Optional[str]]:
        """Identity triple."""
        return (self.name, self.entity_type, self.entity_id)

    @property
    def scope(self) -> Scope:
        return Scope(self.entity_type, self.entity_id)

    def is_wildcard(self) -> bool:
        """Check if the name or the type carries the wildcard marker."""
        return self.name == WILDCARD or self.entity_type == WILDCARD

    def covers(self, scope: Scope) -> bool:
        """Check if this grant's scope satisfies a query scope.

        A type-only grant satisfies queries on the type and on any instance
        of it. An instance grant satisfies only queries on that instance.
        A ``*`` type satisfies every scope.
        """
        if self.entity_type == WILDCARD:
            return True

        if scope.entity_type is None:
            return self.entity_type is None

        if self.entity_type != scope.entity_type:
            return False

        if self.entity_id is None:
            return True

        return self.entity_id == scope.entity_id

    def matches(self, name: str, scope: Scope) -> bool:
        """Check if this grant satisfies a query for ``name`` on ``scope``."""
        if self.name != WILDCARD and self.name != name:
            return False
        return self.covers(scope)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "title": self.title,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Ability":
        return cls(
            name=data["name"],
            entity_type=data.get("entity_type"),
            entity_id=data.get("entity_id"),
            title=data.get("title"),
            id=data.get("id"),
        )

    def __str__(self) -> str:
        if self.entity_type is None:
            return self.name
        return f"{self.name}@{self.scope}"
