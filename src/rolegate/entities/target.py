"""Target scope resolution.

A query or a grant may be aimed at nothing, at a model type, or at one
model instance. Everything a caller can pass as ``target`` is reduced to
a Scope here, and anything whose type tag cannot be determined is
rejected instead of silently widened.
"""

from dataclasses import dataclass
from typing import Any, Optional

from ..core.exceptions import InvalidTargetError
from .titles import WILDCARD


@dataclass(frozen=True)
class Scope:
    """Immutable (entity_type, entity_id) pair describing a target."""

    entity_type: Optional[str] = None
    entity_id: Optional[str] = None

    def __post_init__(self):
        if self.entity_id is not None and self.entity_type is None:
            raise InvalidTargetError(self, "an instance scope needs a type tag")
        if self.entity_id is not None and self.entity_type == WILDCARD:
            raise InvalidTargetError(self, "the wildcard type has no instances")
        if self.entity_id is not None and not isinstance(self.entity_id, str):
            object.__setattr__(self, "entity_id", str(self.entity_id))

    @classmethod
    def none(cls) -> "Scope":
        return cls()

    @classmethod
    def of_type(cls, entity_type: str) -> "Scope":
        return cls(entity_type=entity_type)

    @classmethod
    def of_instance(cls, entity_type: str, entity_id: Any) -> "Scope":
        return cls(entity_type=entity_type, entity_id=str(entity_id))

    @property
    def kind(self) -> str:
        """One of "none", "type" or "instance"."""
        if self.entity_type is None:
            return "none"
        if self.entity_id is None:
            return "type"
        return "instance"

    def __str__(self) -> str:
        if self.entity_type is None:
            return "<unscoped>"
        if self.entity_id is None:
            return self.entity_type
        return f"{self.entity_type}#{self.entity_id}"


def type_tag_of(cls: type) -> str:
    """Type tag for a model class: ``__ability_type__`` if set, else its name."""
    return getattr(cls, "__ability_type__", None) or cls.__name__


def resolve_target(target: Any) -> Scope:
    """Reduce a caller-supplied target to a Scope.

    Args:
        target: None, a Scope, a type tag string, a model class, a
            ``(type_tag, id)`` tuple, or a model instance exposing ``id``

    Returns:
        The resolved Scope

    Raises:
        InvalidTargetError: If no type tag can be determined
    """
    if target is None:
        return Scope.none()

    if isinstance(target, Scope):
        return target

    if isinstance(target, str):
        if not target.strip():
            raise InvalidTargetError(target, "empty type tag")
        return Scope.of_type(target)

    if isinstance(target, type):
        return Scope.of_type(type_tag_of(target))

    if isinstance(target, tuple):
        if len(target) != 2:
            raise InvalidTargetError(target, "expected a (type_tag, id) pair")
        entity_type, entity_id = target
        if not isinstance(entity_type, str) or not entity_type.strip():
            raise InvalidTargetError(target, "type tag must be a non-empty string")
        if entity_id is None:
            return Scope.of_type(entity_type)
        return Scope.of_instance(entity_type, entity_id)

    # bool/int/float/dict/list carry no type tag of their own
    if isinstance(target, (bool, int, float, dict, list, set, frozenset, bytes)):
        raise InvalidTargetError(target, "not a model type or model instance")

    if not hasattr(target, "id"):
        raise InvalidTargetError(target, "instance has no id attribute")

    entity_type = type_tag_of(type(target))
    entity_id = getattr(target, "id")
    if entity_id is None:
        # unsaved model: checked against its type
        return Scope.of_type(entity_type)
    return Scope.of_instance(entity_type, entity_id)
