"""Immutable traversal scope threaded through every conversion call."""

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType

from reflectdoc.models import ProjectReflection, Reflection, ReflectionFlag, ReflectionKind, Type
from reflectdoc.semantic import EntryPoint


@dataclass(frozen=True)
class Context:
    """Where the converter currently is.

    ``scope`` is the reflection new children are attached to; ``type_parameters``
    maps generic parameter names to the Type they stand for inside this
    subtree. Derive a new context instead of changing one: sibling subtrees
    must never see each other's bindings.
    """

    project: ProjectReflection
    scope: Reflection
    module: Reflection | None = None
    entry_point: EntryPoint | None = None
    type_parameters: Mapping[str, Type] = field(default_factory=lambda: MappingProxyType({}))
    flags: frozenset[ReflectionFlag] = frozenset()

    def with_scope(self, scope: Reflection) -> "Context":
        module = scope if scope.kind == ReflectionKind.MODULE else self.module
        return replace(self, scope=scope, module=module)

    def with_type_parameters(self, bindings: Mapping[str, Type]) -> "Context":
        """New context whose bindings are this one's overlaid with ``bindings``."""
        if not bindings:
            return self
        return replace(self, type_parameters=MappingProxyType({**self.type_parameters, **bindings}))

    def with_flags(self, *flags: ReflectionFlag) -> "Context":
        return replace(self, flags=self.flags | frozenset(flags))
