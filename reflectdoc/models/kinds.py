"""Reflection kinds and flags."""

from enum import StrEnum


class ReflectionKind(StrEnum):
    """Discriminant of every reflection in the documentation model."""

    PROJECT = "project"
    MODULE = "module"
    NAMESPACE = "namespace"
    CLASS = "class"
    INTERFACE = "interface"
    TYPE_ALIAS = "type_alias"
    ENUM = "enum"
    ENUM_MEMBER = "enum_member"
    VARIABLE = "variable"
    FUNCTION = "function"
    METHOD = "method"
    PROPERTY = "property"
    ACCESSOR = "accessor"
    CONSTRUCTOR = "constructor"
    TYPE_PARAMETER = "type_parameter"
    PARAMETER = "parameter"
    SIGNATURE = "signature"
    GET_SIGNATURE = "get_signature"
    SET_SIGNATURE = "set_signature"
    TYPE_LITERAL = "type_literal"
    REFERENCE = "reference"


CALLABLE_KINDS: frozenset[ReflectionKind] = frozenset({
    ReflectionKind.FUNCTION,
    ReflectionKind.METHOD,
    ReflectionKind.CONSTRUCTOR,
    ReflectionKind.ACCESSOR,
    ReflectionKind.TYPE_LITERAL,
})

CLASS_LIKE_KINDS: frozenset[ReflectionKind] = frozenset({
    ReflectionKind.CLASS,
    ReflectionKind.INTERFACE,
})

CONTAINER_KINDS: frozenset[ReflectionKind] = frozenset({
    ReflectionKind.PROJECT,
    ReflectionKind.MODULE,
    ReflectionKind.NAMESPACE,
    ReflectionKind.CLASS,
    ReflectionKind.INTERFACE,
    ReflectionKind.ENUM,
    ReflectionKind.TYPE_LITERAL,
})

SIGNATURE_KINDS: frozenset[ReflectionKind] = frozenset({
    ReflectionKind.SIGNATURE,
    ReflectionKind.GET_SIGNATURE,
    ReflectionKind.SET_SIGNATURE,
})


class ReflectionFlag(StrEnum):
    PRIVATE = "private"
    PROTECTED = "protected"
    STATIC = "static"
    ABSTRACT = "abstract"
    OPTIONAL = "optional"
    READONLY = "readonly"
    EXTERNAL = "external"
    REST = "rest"
    KEYWORD_ONLY = "keyword_only"
    ASYNC = "async"
    OVERLOAD = "overload"
    EXPORTED = "exported"

    @property
    def json_key(self) -> str:
        """``keyword_only`` -> ``isKeywordOnly``."""
        return "is" + "".join(part.capitalize() for part in self.value.split("_"))


class ReflectionFlags(set[ReflectionFlag]):
    """Set of flags with a stable, ordered JSON form."""

    def to_object(self) -> dict[str, bool]:
        return {flag.json_key: True for flag in ReflectionFlag if flag in self}
