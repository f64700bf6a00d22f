"""Centralized logging configuration for reflectdoc.

This module provides logging configuration management. It supports both
YAML-based configuration and programmatic setup with sensible defaults.

Key features:
- YAML configuration file support
- Environment variable overrides
- Component-specific log levels
- A diagnostic counter so callers can tell whether a run logged errors

Usage:
    >>> from reflectdoc.logging import get_logger
    >>> logger = get_logger(__name__)
    >>> logger.info("Conversion started")

Environment variables:
    REFLECTDOC_LOGGING_CONFIG: Path to custom logging.yml
    REFLECTDOC_LOG_LEVEL: Default log level (INFO, DEBUG, etc.)
"""

import logging
import logging.config
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from reflectdoc.logging.diagnostics import DiagnosticCounter

# Default log levels for different components
DEFAULT_LOG_LEVELS = {
    "reflectdoc": "INFO",
    "reflectdoc.converter": "INFO",
    "reflectdoc.semantic": "INFO",
    "reflectdoc.serialization": "INFO",
}

_diagnostics = DiagnosticCounter()


class LoggingConfig:
    """Manages logging configuration for reflectdoc.

    LoggingConfig provides centralized management of logging settings,
    supporting both file-based and programmatic configuration.

    Attributes:
        config_path: Path to YAML configuration file.
        _config: Cached configuration dictionary.

    Configuration precedence:
        1. Explicit config_path parameter
        2. REFLECTDOC_LOGGING_CONFIG environment variable
        3. Default configuration

    Example:
        >>> config = LoggingConfig()
        >>> config.apply()
        >>>
        >>> config = LoggingConfig(Path("custom_logging.yml"))
        >>> config.apply()

    Note:
        Configuration is lazy-loaded and cached after first access.
    """

    def __init__(self, config_path: Optional[Path] = None):
        """Initialize logging configuration.

        Args:
            config_path: Optional path to YAML configuration file.
                        If None, checks the environment and falls back to
                        the default configuration.
        """
        self.config_path = config_path or self._get_default_config_path()
        self._config: Optional[Dict[str, Any]] = None

    @staticmethod
    def _get_default_config_path() -> Optional[Path]:
        """Get default config path from REFLECTDOC_LOGGING_CONFIG, if set."""
        if env_path := os.environ.get("REFLECTDOC_LOGGING_CONFIG"):
            return Path(env_path)
        return None

    def load_config(self) -> Dict[str, Any]:
        """Load logging configuration from file or defaults.

        Returns:
            Dictionary in logging.config.dictConfig format.

        Note:
            Configuration is cached after first load. Create a new
            LoggingConfig instance to reload from disk.
        """
        if self._config is None:
            if self.config_path and self.config_path.exists():
                with open(self.config_path, "r") as f:
                    self._config = yaml.safe_load(f)
            else:
                self._config = self._get_default_config()
        assert self._config is not None
        return self._config

    @staticmethod
    def _get_default_config() -> Dict[str, Any]:
        """Get default logging configuration.

        Default format:
            "HH:MM:SS.mmm | LEVEL | logger.name - message"

        Environment variables:
            REFLECTDOC_LOG_LEVEL: Override default log level
        """
        return {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "standard": {
                    "format": "%(asctime)s.%(msecs)03d | %(levelname)-7s | %(name)s - %(message)s",
                    "datefmt": "%H:%M:%S",
                },
                "detailed": {
                    "format": ("%(asctime)s | %(levelname)-7s | %(name)s | %(funcName)s:%(lineno)d - %(message)s"),
                    "datefmt": "%Y-%m-%d %H:%M:%S",
                },
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "standard",
                    "stream": "ext://sys.stderr",
                },
            },
            "loggers": {
                "reflectdoc": {
                    "level": os.environ.get("REFLECTDOC_LOG_LEVEL", "INFO"),
                    "handlers": ["console"],
                    "propagate": False,
                },
            },
            "root": {
                "level": "WARNING",
                "handlers": ["console"],
            },
        }

    def apply(self):
        """Apply the configuration and attach the diagnostic counter.

        dictConfig replaces the handlers of configured loggers, so the
        counter is re-attached after every apply.
        """
        config = self.load_config()
        logging.config.dictConfig(config)
        root = logging.getLogger("reflectdoc")
        if _diagnostics not in root.handlers:
            root.addHandler(_diagnostics)


# Global configuration instance
_logging_config: Optional[LoggingConfig] = None


def setup_logging(config_path: Optional[Path] = None, level: Optional[str] = None):
    """Setup logging for reflectdoc.

    Args:
        config_path: Optional path to YAML logging configuration file.
                    If None, uses environment variables or defaults.
        level: Optional log level override (INFO, DEBUG, WARNING, etc.).

    Example:
        >>> setup_logging()
        >>> setup_logging(level="DEBUG")
    """
    global _logging_config

    _logging_config = LoggingConfig(config_path)
    _logging_config.apply()

    if level:
        for logger_name in DEFAULT_LOG_LEVELS:
            logging.getLogger(logger_name).setLevel(level.upper())


def get_logger(name: str) -> logging.Logger:
    """Get a logger for reflectdoc components.

    Automatically initializes logging if not already configured.

    Args:
        name: Logger name, typically __name__.
    """
    if _logging_config is None:
        setup_logging()

    return logging.getLogger(name)


def get_diagnostics() -> DiagnosticCounter:
    """Return the process-wide counter of warnings and errors logged by reflectdoc."""
    return _diagnostics
