"""rolegate - role and ability authorization engine.

Decides whether a principal may perform an ability, optionally on a model
type or model instance, from abilities granted directly or through roles.
"""

from .__version__ import __version__

from .core.exceptions import (
    RoleGateError,
    ConfigurationError,
    InvalidArgumentError,
    InvalidTargetError,
    InvalidNameError,
    InvalidPrincipalError,
)

from .entities import (
    Ability,
    Role,
    Principal,
    PrincipalRef,
    Scope,
    ResolvedGrants,
    WILDCARD,
    GrantStore,
    GrantCache,
)

from .repositories import InMemoryGrantStore, AsyncPGGrantStore
from .cache import MemoryGrantCache, NullGrantCache, RedisGrantCache
from .services import Gate
from .config import RoleGateSettings, get_settings, setup_logging
from .factory import create_gate

__all__ = [
    "__version__",

    # Engine
    "Gate",
    "create_gate",

    # Entities
    "Ability",
    "Role",
    "Principal",
    "PrincipalRef",
    "Scope",
    "ResolvedGrants",
    "WILDCARD",

    # Protocols and backends
    "GrantStore",
    "GrantCache",
    "InMemoryGrantStore",
    "AsyncPGGrantStore",
    "MemoryGrantCache",
    "NullGrantCache",
    "RedisGrantCache",

    # Configuration
    "RoleGateSettings",
    "get_settings",
    "setup_logging",

    # Exceptions
    "RoleGateError",
    "ConfigurationError",
    "InvalidArgumentError",
    "InvalidTargetError",
    "InvalidNameError",
    "InvalidPrincipalError",
]
