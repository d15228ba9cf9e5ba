"""Configuration and logging setup for rolegate."""

from .settings import RoleGateSettings, get_settings
from .logging_config import LoggingConfig, LogVerbosity, setup_logging

__all__ = [
    "RoleGateSettings",
    "get_settings",
    "LoggingConfig",
    "LogVerbosity",
    "setup_logging",
]
