"""Structural type model.

Types form a closed set of variants discriminated by the ``type`` class
attribute. Consumers dispatch with ``match`` on the concrete class.

Reference types never own their target: they keep the target's symbol (or an
explicit id) and resolve through the project's index when asked, so a
reference created before its target is converted still resolves later.
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, ClassVar

if TYPE_CHECKING:
    from reflectdoc.models.reflections import DeclarationReflection, ProjectReflection, Reflection

LiteralValue = str | int | float | bool | None


@dataclass
class Type:
    type: ClassVar[str]


@dataclass
class IntrinsicType(Type):
    type: ClassVar[str] = "intrinsic"
    name: str

    def __str__(self) -> str:
        return self.name


@dataclass
class ReferenceType(Type):
    """Reference to a declared entity, inside or outside the project.

    ``target`` resolves, in order, the explicit ``target_id`` and then the
    symbol through the project index. External references have neither and
    only carry display and qualified names.
    """

    type: ClassVar[str] = "reference"
    name: str
    type_arguments: list[Type] = field(default_factory=list)
    symbol: str | None = None
    qualified_name: str | None = None
    refers_to_type_parameter: bool = False
    target_id: int | None = None
    project: "ProjectReflection | None" = field(default=None, repr=False, compare=False)

    @property
    def target(self) -> int | None:
        if self.target_id is not None:
            return self.target_id
        if self.symbol is not None and self.project is not None:
            return self.project.get_id_from_symbol(self.symbol)
        return None

    @property
    def reflection(self) -> "Reflection | None":
        target = self.target
        if target is None or self.project is None:
            return None
        return self.project.get_reflection(target)

    @property
    def package(self) -> str | None:
        if self.qualified_name and "." in self.qualified_name:
            return self.qualified_name.split(".", 1)[0]
        return None

    def __str__(self) -> str:
        if self.type_arguments:
            return f"{self.name}[{', '.join(str(a) for a in self.type_arguments)}]"
        return self.name


@dataclass
class UnionType(Type):
    type: ClassVar[str] = "union"
    types: list[Type]

    def __str__(self) -> str:
        return " | ".join(str(t) for t in self.types)


@dataclass
class IntersectionType(Type):
    type: ClassVar[str] = "intersection"
    types: list[Type]

    def __str__(self) -> str:
        return " & ".join(str(t) for t in self.types)


@dataclass
class ArrayType(Type):
    type: ClassVar[str] = "array"
    element_type: Type

    def __str__(self) -> str:
        return f"list[{self.element_type}]"


@dataclass
class TupleType(Type):
    type: ClassVar[str] = "tuple"
    elements: list[Type]

    def __str__(self) -> str:
        return f"tuple[{', '.join(str(e) for e in self.elements)}]"


@dataclass
class ReflectionType(Type):
    """Inline object or callable type; owns an anonymous type literal declaration."""

    type: ClassVar[str] = "reflection"
    declaration: "DeclarationReflection" = field(compare=False)

    def __str__(self) -> str:
        signatures = self.declaration.signatures
        if signatures:
            sig = signatures[0]
            params = ", ".join(str(p.type) if p.type else "Any" for p in sig.parameters)
            return f"Callable[[{params}], {sig.type or 'Any'}]"
        return "{" + ", ".join(c.name for c in self.declaration.children) + "}"


@dataclass
class ConditionalType(Type):
    type: ClassVar[str] = "conditional"
    check_type: Type
    extends_type: Type
    true_type: Type
    false_type: Type

    def __str__(self) -> str:
        return f"{self.check_type} extends {self.extends_type} ? {self.true_type} : {self.false_type}"


@dataclass
class IndexedAccessType(Type):
    type: ClassVar[str] = "indexed_access"
    object_type: Type
    index_type: Type

    def __str__(self) -> str:
        return f"{self.object_type}[{self.index_type}]"


@dataclass
class MappedType(Type):
    type: ClassVar[str] = "mapped"
    parameter: str
    parameter_type: Type
    template_type: Type
    readonly_modifier: str | None = None
    optional_modifier: str | None = None
    name_type: Type | None = None

    def __str__(self) -> str:
        return f"{{ [{self.parameter} in {self.parameter_type}]: {self.template_type} }}"


@dataclass
class LiteralType(Type):
    type: ClassVar[str] = "literal"
    value: LiteralValue

    def __str__(self) -> str:
        return repr(self.value)


@dataclass
class InferredType(Type):
    type: ClassVar[str] = "inferred"
    name: str

    def __str__(self) -> str:
        return f"infer {self.name}"


@dataclass
class UnknownType(Type):
    """Fallback for anything the semantic provider could not describe."""

    type: ClassVar[str] = "unknown"
    name: str

    def __post_init__(self) -> None:
        if not self.name:
            self.name = "unknown"

    def __str__(self) -> str:
        return self.name


def substitute(
    type_: Type,
    bindings: Mapping[str, Type],
    on_declaration: "Callable[[DeclarationReflection], DeclarationReflection] | None" = None,
) -> Type:
    """Return ``type_`` with type-parameter references replaced from ``bindings``.

    The input is never mutated. Inline declarations are passed to
    ``on_declaration`` (usually a cloning function) and kept as-is otherwise.
    """
    if not bindings and on_declaration is None:
        return type_

    def sub(t: Type) -> Type:
        return substitute(t, bindings, on_declaration)

    match type_:
        case ReferenceType(refers_to_type_parameter=True, name=name) if name in bindings:
            return bindings[name]
        case ReferenceType():
            return replace(type_, type_arguments=[sub(a) for a in type_.type_arguments])
        case UnionType(types=types):
            return UnionType([sub(t) for t in types])
        case IntersectionType(types=types):
            return IntersectionType([sub(t) for t in types])
        case ArrayType(element_type=element):
            return ArrayType(sub(element))
        case TupleType(elements=elements):
            return TupleType([sub(e) for e in elements])
        case ReflectionType(declaration=declaration):
            return ReflectionType(on_declaration(declaration) if on_declaration else declaration)
        case ConditionalType():
            return ConditionalType(
                sub(type_.check_type),
                sub(type_.extends_type),
                sub(type_.true_type),
                sub(type_.false_type),
            )
        case IndexedAccessType():
            return IndexedAccessType(sub(type_.object_type), sub(type_.index_type))
        case MappedType():
            inner = {k: v for k, v in bindings.items() if k != type_.parameter}
            return replace(
                type_,
                parameter_type=sub(type_.parameter_type),
                template_type=substitute(type_.template_type, inner, on_declaration),
                name_type=substitute(type_.name_type, inner, on_declaration) if type_.name_type else None,
            )
        case _:
            return type_
