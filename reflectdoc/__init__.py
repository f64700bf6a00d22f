"""reflectdoc - API documentation generator for Python packages.

reflectdoc reads Python sources with ``ast``, builds a typed reflection graph
(modules, classes, functions, signatures, type parameters and type
expressions), resolves inheritance and cross references, and writes the
result as JSON or Markdown pages.

Pipeline:
    - **SemanticProvider**: declarations, types and diagnostics of the program
    - **Converter**: builds reflections per entry point and emits events
    - **ReferenceResolver**: copies inherited members and resolves ``{@link}``
    - **Serializer**: JSON interchange form with per-kind hooks
    - **MarkdownRenderer**: one page per module plus an index

Quick Start:
    >>> from reflectdoc import Application
    >>>
    >>> app = Application.bootstrap(entry_points=["src/shapes"], out_dir="docs/api")
    >>> project = app.convert()
    >>> if project is not None:
    ...     app.generate_docs(project)

Environment Variables:
    - REFLECTDOC_ENTRY_POINTS: JSON list of files or directories
    - REFLECTDOC_LOG_LEVEL: Log level applied at bootstrap
"""

from reflectdoc.application import Application
from reflectdoc.converter import (
    Context,
    Converter,
    ConverterEvent,
    ConverterEvents,
    ReferenceResolver,
    SerializerEvent,
    SerializerEvents,
    TypeConverter,
)
from reflectdoc.exceptions import (
    ConversionError,
    EntryPointError,
    ModelInvariantError,
    ReflectDocError,
    SemanticDiagnosticsError,
    SerializationError,
)
from reflectdoc.logging import get_logger, setup_logging
from reflectdoc.models import (
    DeclarationReflection,
    ProjectReflection,
    ReferenceReflection,
    Reflection,
    ReflectionFlag,
    ReflectionKind,
    SignatureReflection,
)
from reflectdoc.output import MarkdownRenderer
from reflectdoc.semantic import PythonSemanticProvider, SemanticProvider
from reflectdoc.serialization import Serializer
from reflectdoc.settings import Settings

__version__ = "0.1.0"

__all__ = [
    "Application",
    "Context",
    "ConversionError",
    "Converter",
    "ConverterEvent",
    "ConverterEvents",
    "DeclarationReflection",
    "EntryPointError",
    "MarkdownRenderer",
    "ModelInvariantError",
    "ProjectReflection",
    "PythonSemanticProvider",
    "ReferenceReflection",
    "ReferenceResolver",
    "Reflection",
    "ReflectDocError",
    "ReflectionFlag",
    "ReflectionKind",
    "SemanticDiagnosticsError",
    "SemanticProvider",
    "SerializationError",
    "Serializer",
    "SerializerEvent",
    "SerializerEvents",
    "Settings",
    "SignatureReflection",
    "TypeConverter",
    "get_logger",
    "setup_logging",
]
