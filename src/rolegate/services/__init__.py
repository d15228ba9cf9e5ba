"""Services: identity upserts, grant graph, resolver, mutations and the Gate."""

from .gate import Gate
from .grant_graph import GrantGraph
from .identity import IdentityService
from .locks import LockRegistry
from .mutations import (
    AllowsAbilities,
    AssignsRoles,
    DisallowsAbilities,
    RetractsRoles,
    SyncsGrants,
)
from .resolver import Resolver

__all__ = [
    "Gate",
    "GrantGraph",
    "IdentityService",
    "LockRegistry",
    "Resolver",
    "AllowsAbilities",
    "DisallowsAbilities",
    "AssignsRoles",
    "RetractsRoles",
    "SyncsGrants",
]
