"""Domain entities and protocols for rolegate."""

from .ability import Ability
from .role import Role
from .principal import Principal, PrincipalRef, Holder, as_principal, as_holder
from .target import Scope, resolve_target, type_tag_of
from .resolved import ResolvedGrants
from .titles import WILDCARD
from .protocols import GrantStore, GrantCache

__all__ = [
    # Entities
    "Ability",
    "Role",
    "Principal",
    "PrincipalRef",
    "Holder",
    "Scope",
    "ResolvedGrants",
    "WILDCARD",

    # Helpers
    "as_principal",
    "as_holder",
    "resolve_target",
    "type_tag_of",

    # Protocols
    "GrantStore",
    "GrantCache",
]
