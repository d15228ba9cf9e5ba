"""Domain exceptions for rolegate.

Caller contract violations surface as InvalidArgumentError subclasses.
Removing something that was never granted is a silent no-op, so there
is no NotFound exception here.
"""

from typing import Any, Optional

from .base import RoleGateError


class ConfigurationError(RoleGateError):
    """Raised when settings describe an unusable backend combination."""
    pass


class InvalidArgumentError(RoleGateError):
    """Base class for caller contract violations."""
    pass


class InvalidTargetError(InvalidArgumentError):
    """Raised when a target's type tag cannot be determined."""

    def __init__(self, target: Any, reason: Optional[str] = None):
        message = f"Cannot determine the scope of target {target!r}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(
            message,
            "INVALID_TARGET",
            {"target_type": type(target).__name__, "reason": reason},
        )


class InvalidNameError(InvalidArgumentError):
    """Raised when a role or ability name is empty or not a string."""

    def __init__(self, kind: str, name: Any):
        super().__init__(
            f"{kind} name must be a non-empty string, got: {name!r}",
            "INVALID_NAME",
            {"kind": kind},
        )


class InvalidPrincipalError(InvalidArgumentError):
    """Raised when a holder has no stable identity."""

    def __init__(self, principal: Any, reason: str = "missing id"):
        super().__init__(
            f"Cannot use {type(principal).__name__} as a principal: {reason}",
            "INVALID_PRINCIPAL",
            {"principal_type": type(principal).__name__, "reason": reason},
        )
