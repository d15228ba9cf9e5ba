"""Principal references.

The engine never stores host objects. Any object that can hold roles or
abilities is reduced to a PrincipalRef carrying its type tag and a
stable id.
"""

from dataclasses import dataclass
from typing import Any, Protocol, Union, runtime_checkable

from ..core.exceptions import InvalidPrincipalError
from .role import Role


@runtime_checkable
class Principal(Protocol):
    """Anything with a stable id can hold roles and abilities."""

    id: Any


@dataclass(frozen=True)
class PrincipalRef:
    """Immutable (type, id) identity of a principal."""

    type: str
    id: str

    def __post_init__(self):
        if not isinstance(self.type, str) or not self.type:
            raise InvalidPrincipalError(self, "empty type tag")
        if self.id is None:
            raise InvalidPrincipalError(self)
        if not isinstance(self.id, str):
            object.__setattr__(self, "id", str(self.id))

    @property
    def key(self) -> str:
        return f"{self.type}:{self.id}"

    @classmethod
    def from_key(cls, key: str) -> "PrincipalRef":
        entity_type, _, entity_id = key.partition(":")
        return cls(type=entity_type, id=entity_id)

    def __str__(self) -> str:
        return self.key


Holder = Union[PrincipalRef, Role]


def principal_type_of(obj: Any) -> str:
    """Type tag for a principal: ``__principal_type__`` if set, else the class name."""
    return getattr(obj, "__principal_type__", None) or type(obj).__name__


def as_principal(obj: Any) -> PrincipalRef:
    """Reduce a host object to its PrincipalRef.

    Raises:
        InvalidPrincipalError: If the object has no usable id
    """
    if isinstance(obj, PrincipalRef):
        return obj

    if isinstance(obj, (str, Role)):
        raise InvalidPrincipalError(obj, "roles cannot be assigned to roles")

    if not isinstance(obj, Principal) or obj.id is None:
        raise InvalidPrincipalError(obj)

    return PrincipalRef(type=principal_type_of(obj), id=str(obj.id))


def as_holder(obj: Any) -> Holder:
    """Reduce a grant holder: a Role, a role name, or a principal."""
    if isinstance(obj, Role):
        return obj
    if isinstance(obj, str):
        return Role(name=obj)
    return as_principal(obj)
