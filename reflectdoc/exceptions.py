"""Exception hierarchy for reflectdoc.

All exceptions inherit from ReflectDocError. Only fatal conditions are raised;
recoverable problems (unresolved links, external types, malformed tags) are
logged and the model degrades instead.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from reflectdoc.semantic.protocol import Diagnostic


class ReflectDocError(Exception):
    """Base exception for all reflectdoc errors."""


class ConversionError(ReflectDocError):
    """Raised when conversion cannot produce a project."""


class SemanticDiagnosticsError(ConversionError):
    """Raised when the analyzed program has pre-existing errors.

    Converting on top of incomplete semantic information would silently
    corrupt the model, so conversion aborts before any reflection is created.
    """

    def __init__(self, diagnostics: "list[Diagnostic]"):
        self.diagnostics = diagnostics
        super().__init__(f"Analyzed program has {len(diagnostics)} error(s)")


class EntryPointError(ConversionError):
    """Raised when none of the requested entry points can be located."""


class ModelInvariantError(ReflectDocError):
    """Raised when the reflection graph would break an internal invariant.

    Duplicate ids and cyclic ownership are unreachable by construction;
    seeing this exception means a bug in reflectdoc, not in the input.
    """


class SerializationError(ReflectDocError):
    """Raised when a value cannot be written to the interchange format."""
