"""Contract between the converter and a semantic analysis engine.

The converter never inspects source text itself. A provider enumerates
declarations, gives each a symbol that is stable for the run (used to merge
repeated declarations), and describes type expressions on demand as
``TypeDescription`` trees.

Type expressions on a ``Declaration`` are opaque provider handles; a provider
may also hand out an already built ``TypeDescription`` in their place, which
the converter uses as-is.
"""

from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path
from typing import Any, Protocol

from reflectdoc.models.types import LiteralValue


class DeclarationKind(StrEnum):
    MODULE = "module"
    CLASS = "class"
    INTERFACE = "interface"
    ENUM = "enum"
    ENUM_MEMBER = "enum_member"
    FUNCTION = "function"
    METHOD = "method"
    CONSTRUCTOR = "constructor"
    PROPERTY = "property"
    ACCESSOR = "accessor"
    VARIABLE = "variable"
    TYPE_ALIAS = "type_alias"
    ALIAS = "alias"


class Modifier(StrEnum):
    STATIC = "static"
    ABSTRACT = "abstract"
    READONLY = "readonly"
    OPTIONAL = "optional"
    ASYNC = "async"
    OVERLOAD = "overload"
    SETTER = "setter"


class DiagnosticCategory(StrEnum):
    ERROR = "error"
    WARNING = "warning"


class TypeDescriptionKind(StrEnum):
    INTRINSIC = "intrinsic"
    REFERENCE = "reference"
    TYPE_PARAMETER = "type_parameter"
    UNION = "union"
    INTERSECTION = "intersection"
    ARRAY = "array"
    TUPLE = "tuple"
    OBJECT = "object"
    CONDITIONAL = "conditional"
    INDEXED_ACCESS = "indexed_access"
    MAPPED = "mapped"
    LITERAL = "literal"
    INFERRED = "inferred"
    UNKNOWN = "unknown"


@dataclass(frozen=True, slots=True)
class SourceLocation:
    file: str
    line: int
    column: int


@dataclass(frozen=True, slots=True)
class Diagnostic:
    message: str
    file: str
    line: int = 0
    column: int = 0
    category: DiagnosticCategory = DiagnosticCategory.ERROR

    def __str__(self) -> str:
        return f"{self.file}:{self.line}:{self.column} - {self.category}: {self.message}"


@dataclass(frozen=True, slots=True)
class EntryPoint:
    """A module nominated as a traversal root.

    ``display_name`` names the module reflection; ``module`` is the provider's
    symbol for the module itself.
    """

    display_name: str
    path: Path
    module: str
    comment: str | None = None
    location: SourceLocation | None = None


@dataclass(frozen=True)
class ParameterInfo:
    name: str
    type: Any = None
    default_value: str | None = None
    optional: bool = False
    rest: bool = False
    keyword_only: bool = False


@dataclass(frozen=True)
class TypeParameterInfo:
    name: str
    constraint: Any = None
    default: Any = None


@dataclass(frozen=True)
class CallSignatureInfo:
    parameters: tuple[ParameterInfo, ...] = ()
    returns: Any = None


@dataclass(frozen=True)
class TypeDescription:
    """Structural description of one type expression.

    Only the fields relevant to ``kind`` are populated. ``text`` is the
    source rendering and the fallback for unknown types.
    """

    kind: TypeDescriptionKind
    name: str = ""
    text: str = ""
    symbol: str | None = None
    qualified_name: str | None = None
    arguments: "tuple[TypeDescription, ...]" = ()
    value: LiteralValue = None
    members: "tuple[Declaration, ...]" = ()
    call_signatures: tuple[CallSignatureInfo, ...] = ()
    check_type: "TypeDescription | None" = None
    extends_type: "TypeDescription | None" = None
    true_type: "TypeDescription | None" = None
    false_type: "TypeDescription | None" = None
    object_type: "TypeDescription | None" = None
    index_type: "TypeDescription | None" = None
    parameter: str | None = None
    parameter_type: "TypeDescription | None" = None
    template_type: "TypeDescription | None" = None
    readonly_modifier: str | None = None
    optional_modifier: str | None = None


@dataclass(frozen=True)
class Declaration:
    """One syntactic declaration as seen by the provider.

    Several declarations may share a ``symbol`` (overloads, getter and
    setter, a class defined in both branches of an ``if``); the converter
    merges them into a single reflection.
    """

    symbol: str
    name: str
    kind: DeclarationKind
    location: SourceLocation
    exported: bool = True
    private: bool = False
    comment: str | None = None
    modifiers: frozenset[Modifier] = frozenset()
    type: Any = None
    default_value: str | None = None
    parameters: tuple[ParameterInfo, ...] = ()
    returns: Any = None
    type_parameters: tuple[TypeParameterInfo, ...] = ()
    bases: tuple[Any, ...] = ()
    implements: tuple[Any, ...] = ()
    alias_target: str | None = None
    scope: Any = field(default=None, compare=False, repr=False)
    node: Any = field(default=None, compare=False, repr=False)

    def has(self, modifier: Modifier) -> bool:
        return modifier in self.modifiers


class SemanticProvider(Protocol):
    """What the converter needs from a semantic analysis engine."""

    def get_diagnostics(self) -> list[Diagnostic]:
        """Pre-existing problems of the analyzed program."""
        ...

    def get_entry_point(self, path: Path) -> EntryPoint | None:
        """Locate a module by path; None when it is not part of the program."""
        ...

    def get_declarations(self, entry_point: EntryPoint) -> list[Declaration]:
        """Top-level declarations of a module, in source order."""
        ...

    def get_members(self, declaration: Declaration) -> list[Declaration]:
        """Members of a class-like or module declaration, in source order."""
        ...

    def describe_type(self, declaration: Declaration, expression: Any) -> TypeDescription:
        """Describe a type expression found on ``declaration``."""
        ...

    def resolve_alias(self, declaration: Declaration) -> Declaration | None:
        """Follow a re-export to the declaration it names, or None if unknown."""
        ...
