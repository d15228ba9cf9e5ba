"""Exception hierarchy for rolegate."""

from .base import RoleGateError
from .domain import (
    ConfigurationError,
    InvalidArgumentError,
    InvalidTargetError,
    InvalidNameError,
    InvalidPrincipalError,
)

__all__ = [
    "RoleGateError",
    "ConfigurationError",
    "InvalidArgumentError",
    "InvalidTargetError",
    "InvalidNameError",
    "InvalidPrincipalError",
]
