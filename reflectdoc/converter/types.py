"""Structural conversion of provider type descriptions into Type trees."""

from typing import TYPE_CHECKING

from reflectdoc.converter.context import Context
from reflectdoc.logging import get_logger
from reflectdoc.models import (
    ArrayType,
    ConditionalType,
    DeclarationReflection,
    IndexedAccessType,
    InferredType,
    IntersectionType,
    IntrinsicType,
    LiteralType,
    MappedType,
    ProjectReflection,
    ReferenceType,
    Reflection,
    ReflectionKind,
    ReflectionType,
    TupleType,
    Type,
    TypeParameterReflection,
    UnionType,
    UnknownType,
)
from reflectdoc.semantic import Declaration, TypeDescription, TypeDescriptionKind

if TYPE_CHECKING:
    from reflectdoc.converter.converter import Converter

logger = get_logger(__name__)


class TypeConverter:
    """Maps a ``TypeDescription`` onto the closed set of ``Type`` variants.

    Constituents are converted in the order the provider emitted them and
    never re-sorted. Inline object types need the converter to build their
    members, hence the back reference.
    """

    def __init__(self, converter: "Converter"):
        self._converter = converter

    def convert(self, context: Context, description: TypeDescription | None, origin: Declaration | None = None) -> Type:
        """Convert one description; never raises for unsupported input.

        Args:
            context: Active traversal context. Its type-parameter bindings
                     replace parameter references.
            description: The provider's description, None when missing.
            origin: Declaration the type was found on, used to describe
                    nested provider expressions (call signature parameters).
        """
        if description is None:
            return UnknownType("unknown")

        def sub(item: TypeDescription | None) -> Type:
            return self.convert(context, item, origin)

        match description.kind:
            case TypeDescriptionKind.INTRINSIC:
                return IntrinsicType(description.name or description.text)
            case TypeDescriptionKind.LITERAL:
                return LiteralType(description.value)
            case TypeDescriptionKind.INFERRED:
                return InferredType(description.name)
            case TypeDescriptionKind.TYPE_PARAMETER:
                bound = context.type_parameters.get(description.name)
                if bound is not None:
                    return bound
                return ReferenceType(description.name, refers_to_type_parameter=True, project=context.project)
            case TypeDescriptionKind.REFERENCE:
                return ReferenceType(
                    description.name or description.text,
                    type_arguments=[sub(a) for a in description.arguments],
                    symbol=description.symbol,
                    qualified_name=description.qualified_name,
                    project=context.project,
                )
            case TypeDescriptionKind.UNION:
                return UnionType([sub(t) for t in description.arguments])
            case TypeDescriptionKind.INTERSECTION:
                return IntersectionType([sub(t) for t in description.arguments])
            case TypeDescriptionKind.ARRAY:
                element = description.arguments[0] if description.arguments else None
                return ArrayType(sub(element))
            case TypeDescriptionKind.TUPLE:
                return TupleType([sub(t) for t in description.arguments])
            case TypeDescriptionKind.CONDITIONAL:
                return ConditionalType(
                    sub(description.check_type),
                    sub(description.extends_type),
                    sub(description.true_type),
                    sub(description.false_type),
                )
            case TypeDescriptionKind.INDEXED_ACCESS:
                return IndexedAccessType(sub(description.object_type), sub(description.index_type))
            case TypeDescriptionKind.MAPPED:
                return self._convert_mapped(context, description, origin)
            case TypeDescriptionKind.OBJECT:
                return self._convert_object(context, description, origin)
            case _:
                text = description.text or description.name or "unknown"
                logger.warning("Unable to describe type %r; keeping it as unknown", text)
                return UnknownType(text)

    def _convert_mapped(self, context: Context, description: TypeDescription, origin: Declaration | None) -> MappedType:
        parameter = description.parameter or "K"
        # The mapped parameter shadows any outer binding of the same name
        inner = context.with_type_parameters(
            {parameter: ReferenceType(parameter, refers_to_type_parameter=True, project=context.project)}
        )
        return MappedType(
            parameter=parameter,
            parameter_type=self.convert(context, description.parameter_type, origin),
            template_type=self.convert(inner, description.template_type, origin),
            readonly_modifier=description.readonly_modifier,
            optional_modifier=description.optional_modifier,
        )

    def _convert_object(self, context: Context, description: TypeDescription, origin: Declaration | None) -> ReflectionType:
        project = context.project
        literal = project.create(DeclarationReflection, name="__type", kind=ReflectionKind.TYPE_LITERAL, parent=context.scope)
        self._converter.created(context, literal)
        inner = context.with_scope(literal)
        for member in description.members:
            self._converter.convert_declaration(inner, member)
        for info in description.call_signatures:
            self._converter.add_call_signature(inner, literal, info, origin)
        return ReflectionType(literal)


def type_parameter_reference(project: ProjectReflection, parameter: TypeParameterReflection) -> ReferenceType:
    return ReferenceType(parameter.name, refers_to_type_parameter=True, target_id=parameter.id, project=project)


def constructed_type(project: ProjectReflection, owner: Reflection) -> ReferenceType:
    """Return type of a constructor: the class, applied to its own type parameters."""
    arguments: list[Type] = []
    if isinstance(owner, DeclarationReflection):
        arguments = [type_parameter_reference(project, tp) for tp in owner.type_parameters]
    return ReferenceType(owner.name, type_arguments=arguments, target_id=owner.id, project=project)
