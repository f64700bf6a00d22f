"""Logging infrastructure for reflectdoc.

Key components:
    get_logger: Factory function for creating reflectdoc loggers
    setup_logging: Initialize logging configuration from YAML
    LoggingConfig: Configuration class for logging settings
    DiagnosticCounter: Handler counting warnings/errors of a run

Example:
    >>> from reflectdoc.logging import get_logger
    >>>
    >>> logger = get_logger(__name__)
    >>> logger.info("Processing started")

Note:
    Always use get_logger() so the reflectdoc configuration is applied
    before the first record is emitted.
"""

from .diagnostics import DiagnosticCounter
from .logging_config import LoggingConfig, get_diagnostics, get_logger, setup_logging

__all__ = [
    "DiagnosticCounter",
    "LoggingConfig",
    "get_diagnostics",
    "get_logger",
    "setup_logging",
]
