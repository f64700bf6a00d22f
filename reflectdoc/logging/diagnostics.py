"""Logging handler that counts warnings and errors.

Recoverable conversion problems are reported through logging without
changing control flow; this counter lets the application decide afterwards
whether a run was clean.
"""

import logging


class DiagnosticCounter(logging.Handler):
    """Counts WARNING and ERROR records passing through the reflectdoc logger."""

    def __init__(self) -> None:
        super().__init__(level=logging.WARNING)
        self.warnings = 0
        self.errors = 0

    def emit(self, record: logging.LogRecord) -> None:
        if record.levelno >= logging.ERROR:
            self.errors += 1
        elif record.levelno >= logging.WARNING:
            self.warnings += 1

    def has_errors(self) -> bool:
        return self.errors > 0

    def has_warnings(self) -> bool:
        return self.warnings > 0

    def reset(self) -> None:
        """Forget previous counts; called before every rebuild in watch mode."""
        self.warnings = 0
        self.errors = 0
