"""Core building blocks shared by every rolegate layer."""

from .exceptions import (
    RoleGateError,
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
