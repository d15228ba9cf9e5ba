"""Logging configuration for rolegate hosts.

The library itself only creates module loggers; hosts that want rolegate's
console output call ``setup_logging`` once at startup.
"""

import logging
import logging.config
from enum import Enum
from typing import Any, Dict, Optional

from .settings import RoleGateSettings


class LogVerbosity(str, Enum):
    """Log verbosity modes."""
    QUIET = "QUIET"      # Only errors and critical
    NORMAL = "NORMAL"    # Warnings and above
    VERBOSE = "VERBOSE"  # Info level logging
    DEBUG = "DEBUG"      # Full debug logging


_VERBOSITY_LEVELS = {
    LogVerbosity.QUIET: "ERROR",
    LogVerbosity.NORMAL: "WARNING",
    LogVerbosity.VERBOSE: "INFO",
    LogVerbosity.DEBUG: "DEBUG",
}

_FORMATS = {
    "json": '{"time":"%(asctime)s","level":"%(levelname)s","module":"%(name)s","message":"%(message)s"}',
    "detailed": "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s",
    "simple": "%(asctime)s - %(levelname)s - %(message)s",
}


def get_log_level_from_verbosity(verbosity: str) -> str:
    """Map verbosity mode to log level."""
    return _VERBOSITY_LEVELS.get(LogVerbosity(verbosity.upper()), "WARNING")


class LoggingConfig:
    """Builds and applies the dictConfig for the ``rolegate`` logger tree."""

    # Third-party loggers that should only report errors
    ERROR_ONLY_MODULES = [
        "asyncpg",
        "redis",
    ]

    @classmethod
    def build(cls, settings: RoleGateSettings) -> Dict[str, Any]:
        """Build a dictConfig mapping from settings."""
        verbosity_level = get_log_level_from_verbosity(settings.log_verbosity)
        # the stricter of log_level and verbosity wins
        effective_level = max(
            logging.getLevelName(verbosity_level),
            logging.getLevelName(settings.log_level),
        )
        level_name = logging.getLevelName(effective_level)

        config: Dict[str, Any] = {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "format": _FORMATS[settings.log_format],
                    "datefmt": "%Y-%m-%d %H:%M:%S",
                },
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "level": level_name,
                    "formatter": "default",
                    "stream": "ext://sys.stdout",
                },
            },
            "loggers": {
                "rolegate": {
                    "level": level_name,
                    "handlers": ["console"],
                    "propagate": False,
                },
            },
        }

        for module in cls.ERROR_ONLY_MODULES:
            config["loggers"][module] = {
                "level": "ERROR",
                "handlers": ["console"],
                "propagate": False,
            }

        return config

    @classmethod
    def configure(cls, settings: Optional[RoleGateSettings] = None) -> None:
        """Apply logging configuration."""
        settings = settings or RoleGateSettings()
        config = cls.build(settings)
        logging.config.dictConfig(config)

        logger = logging.getLogger(__name__)
        logger.debug(f"Logging configured: level={config['loggers']['rolegate']['level']}")


def setup_logging(settings: Optional[RoleGateSettings] = None) -> None:
    """Setup logging configuration. Call once at application startup."""
    LoggingConfig.configure(settings)
