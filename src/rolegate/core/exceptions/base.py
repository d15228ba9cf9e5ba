"""Base exceptions for rolegate.

All exceptions raised by the library inherit from RoleGateError and carry
a machine-readable error code plus structured details for host logging.
"""

from typing import Any, Dict, Optional


class RoleGateError(Exception):
    """Base exception for all rolegate errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        *args,
        **kwargs
    ):
        super().__init__(message, *args, **kwargs)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Render the error as a structured payload."""
        return {
            "error": {
                "code": self.error_code,
                "message": self.message,
                "details": self.details,
                "type": self.__class__.__name__,
            }
        }
