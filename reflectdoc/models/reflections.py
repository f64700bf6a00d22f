"""Reflection graph: the documentation model of one generation run.

Every reflection lives in the project's arena, keyed by an integer id that is
allocated once from a monotonically increasing counter. Only parent -> child
edges (children, signatures, parameters, type parameters, inline type
declarations) are ownership edges. Every other relation stores ids.
"""

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import TypeVar

from reflectdoc.exceptions import ModelInvariantError
from reflectdoc.models.comments import Comment
from reflectdoc.models.kinds import ReflectionFlag, ReflectionFlags, ReflectionKind
from reflectdoc.models.types import ReferenceType, Type

R = TypeVar("R", bound="Reflection")


@dataclass(frozen=True, slots=True)
class SourceReference:
    file_name: str
    line: int
    character: int


@dataclass(eq=False, kw_only=True)
class Reflection:
    """Base node of the documentation model."""

    id: int
    name: str
    kind: ReflectionKind
    flags: ReflectionFlags = field(default_factory=ReflectionFlags)
    parent: "Reflection | None" = field(default=None, repr=False)
    children: "list[DeclarationReflection]" = field(default_factory=list, repr=False)
    comment: Comment | None = None
    sources: list[SourceReference] = field(default_factory=list)

    def has_flag(self, flag: ReflectionFlag) -> bool:
        return flag in self.flags

    def get_child_by_name(self, name: str) -> "DeclarationReflection | None":
        for child in self.children:
            if child.name == name:
                return child
        return None

    def ancestors(self) -> Iterator["Reflection"]:
        """Parent, grandparent, ... up to and including the project."""
        current = self.parent
        while current is not None:
            yield current
            current = current.parent

    def get_full_name(self) -> str:
        """Dotted name from the module down, e.g. ``shapes.Circle.area``."""
        parts = [self.name]
        for ancestor in self.ancestors():
            if ancestor.kind == ReflectionKind.PROJECT:
                break
            parts.append(ancestor.name)
        return ".".join(reversed(parts))

    def owned(self) -> "Iterator[Reflection]":
        """Directly owned reflections, in serialization order."""
        yield from self.children


@dataclass(eq=False, kw_only=True)
class TypeParameterReflection(Reflection):
    constraint: Type | None = None
    default: Type | None = None


@dataclass(eq=False, kw_only=True)
class ParameterReflection(Reflection):
    type: Type | None = None
    default_value: str | None = None


@dataclass(eq=False, kw_only=True)
class SignatureReflection(Reflection):
    parameters: list[ParameterReflection] = field(default_factory=list)
    type_parameters: list[TypeParameterReflection] = field(default_factory=list)
    type: Type | None = None
    inherited_from: int | None = None
    overwrites: int | None = None

    def owned(self) -> Iterator[Reflection]:
        yield from self.type_parameters
        yield from self.parameters


@dataclass(eq=False, kw_only=True)
class DeclarationReflection(Reflection):
    type: Type | None = None
    default_value: str | None = None
    extended_types: list[ReferenceType] = field(default_factory=list)
    implemented_types: list[ReferenceType] = field(default_factory=list)
    extended_by: list[int] = field(default_factory=list)
    implemented_by: list[int] = field(default_factory=list)
    type_parameters: list[TypeParameterReflection] = field(default_factory=list)
    signatures: list[SignatureReflection] = field(default_factory=list)
    inherited_from: int | None = None
    overwrites: int | None = None

    def owned(self) -> Iterator[Reflection]:
        yield from self.type_parameters
        yield from self.signatures
        yield from self.children

    def get_signature(self, kind: ReflectionKind) -> SignatureReflection | None:
        for signature in self.signatures:
            if signature.kind == kind:
                return signature
        return None


@dataclass(eq=False, kw_only=True)
class ReferenceReflection(DeclarationReflection):
    """A re-export of another reflection under this name; ``target`` is its id."""

    target: int


@dataclass(eq=False, kw_only=True)
class ProjectReflection(Reflection):
    """Root of one generation run.

    Owns the id arena and the symbol index used to merge repeated
    declarations of the same symbol into one reflection.
    """

    id: int = 0
    kind: ReflectionKind = ReflectionKind.PROJECT
    reflections: dict[int, Reflection] = field(default_factory=dict, repr=False)
    symbol_to_id: dict[str, int] = field(default_factory=dict, repr=False)
    _next_id: int = field(default=1, init=False, repr=False)

    def __post_init__(self) -> None:
        self.reflections[self.id] = self

    def create(self, cls: type[R], *, name: str, kind: ReflectionKind, parent: Reflection, symbol: str | None = None, **fields) -> R:
        """Allocate a fresh id and register a new reflection under ``parent``.

        The new reflection is not appended to any owning list; the caller
        places it (children, signatures, parameters, ...) so that merge and
        ordering decisions stay with the converter.
        """
        if parent.id not in self.reflections:
            raise ModelInvariantError(f"Parent {parent.name!r} ({parent.id}) is not registered in this project")
        reflection = cls(id=self._next_id, name=name, kind=kind, parent=parent, **fields)
        self._next_id += 1
        self.register(reflection, symbol)
        return reflection

    def register(self, reflection: Reflection, symbol: str | None = None) -> None:
        if reflection.id in self.reflections and self.reflections[reflection.id] is not reflection:
            raise ModelInvariantError(f"Duplicate reflection id {reflection.id}")
        self.reflections[reflection.id] = reflection
        if symbol is not None:
            self.symbol_to_id.setdefault(symbol, reflection.id)

    def add_child(self, parent: Reflection, child: "DeclarationReflection") -> None:
        """Append ``child`` to ``parent.children`` keeping ownership acyclic."""
        if child is parent or any(a is child for a in parent.ancestors()):
            raise ModelInvariantError(f"Attaching {child.name!r} under {parent.name!r} would create an ownership cycle")
        child.parent = parent
        parent.children.append(child)

    def get_reflection(self, reflection_id: int) -> Reflection | None:
        return self.reflections.get(reflection_id)

    def get_id_from_symbol(self, symbol: str) -> int | None:
        return self.symbol_to_id.get(symbol)

    def get_reflection_from_symbol(self, symbol: str) -> Reflection | None:
        reflection_id = self.symbol_to_id.get(symbol)
        return None if reflection_id is None else self.reflections.get(reflection_id)

    def get_reflections_by_name(self, name: str) -> list[Reflection]:
        return [r for r in self.reflections.values() if r.name == name and r is not self]

    def get_reflections_by_kind(self, *kinds: ReflectionKind) -> list[Reflection]:
        """Reflections of the given kinds, in id order."""
        return [r for _, r in sorted(self.reflections.items()) if r.kind in kinds]
