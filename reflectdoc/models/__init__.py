"""Documentation model: reflections, types and comments."""

from reflectdoc.models.comments import BlockTag, Comment, CommentBlock, CommentPart, InlineTagPart, TextPart
from reflectdoc.models.kinds import (
    CALLABLE_KINDS,
    CLASS_LIKE_KINDS,
    CONTAINER_KINDS,
    SIGNATURE_KINDS,
    ReflectionFlag,
    ReflectionFlags,
    ReflectionKind,
)
from reflectdoc.models.reflections import (
    DeclarationReflection,
    ParameterReflection,
    ProjectReflection,
    ReferenceReflection,
    Reflection,
    SignatureReflection,
    SourceReference,
    TypeParameterReflection,
)
from reflectdoc.models.types import (
    ArrayType,
    ConditionalType,
    IndexedAccessType,
    InferredType,
    IntersectionType,
    IntrinsicType,
    LiteralType,
    MappedType,
    ReferenceType,
    ReflectionType,
    TupleType,
    Type,
    UnionType,
    UnknownType,
    substitute,
)

__all__ = [
    "CALLABLE_KINDS",
    "CLASS_LIKE_KINDS",
    "CONTAINER_KINDS",
    "SIGNATURE_KINDS",
    "ArrayType",
    "BlockTag",
    "Comment",
    "CommentBlock",
    "CommentPart",
    "ConditionalType",
    "DeclarationReflection",
    "IndexedAccessType",
    "InferredType",
    "InlineTagPart",
    "IntersectionType",
    "IntrinsicType",
    "LiteralType",
    "MappedType",
    "ParameterReflection",
    "ProjectReflection",
    "ReferenceReflection",
    "ReferenceType",
    "Reflection",
    "ReflectionFlag",
    "ReflectionFlags",
    "ReflectionKind",
    "ReflectionType",
    "SignatureReflection",
    "SourceReference",
    "TextPart",
    "TupleType",
    "Type",
    "TypeParameterReflection",
    "UnionType",
    "UnknownType",
    "substitute",
]
