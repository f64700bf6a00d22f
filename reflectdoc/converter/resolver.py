"""Post-conversion pass: inheritance flattening and comment cross references.

Runs once after every entry point has been converted. Running it again on
the same project changes nothing.
"""

import copy
from dataclasses import fields
from typing import Any

from reflectdoc.converter.types import constructed_type, type_parameter_reference
from reflectdoc.logging import get_logger
from reflectdoc.models import (
    CLASS_LIKE_KINDS,
    Comment,
    DeclarationReflection,
    ProjectReflection,
    ReferenceReflection,
    ReferenceType,
    Reflection,
    ReflectionFlags,
    ReflectionKind,
    Type,
    TypeParameterReflection,
    substitute,
)

logger = get_logger(__name__)

_OWNED = ("signatures", "parameters", "children")
_IDENTITY = ("id", "name", "kind", "parent", "type_parameters", *_OWNED)
_BACK_REFERENCES = ("extended_by", "implemented_by")
_NOT_LINKABLE = frozenset({
    ReflectionKind.PARAMETER,
    ReflectionKind.TYPE_PARAMETER,
    ReflectionKind.TYPE_LITERAL,
    ReflectionKind.SIGNATURE,
    ReflectionKind.GET_SIGNATURE,
    ReflectionKind.SET_SIGNATURE,
})


class ReferenceResolver:
    def resolve(self, project: ProjectReflection) -> None:
        self.flatten_inheritance(project)
        self.resolve_links(project)

    # ------------------------------------------------------------------
    # Inheritance
    # ------------------------------------------------------------------

    def flatten_inheritance(self, project: ProjectReflection) -> None:
        """Copy inherited members into every class-like reflection.

        Bases are completed before their subtypes, nested classes included,
        so copies are taken from finished members and are never resolved
        themselves. The resolution stack breaks inheritance cycles: an edge
        back onto the stack is skipped, so the classes involved just miss
        those inherited members.
        """
        resolved: set[int] = set()
        for reflection in project.get_reflections_by_kind(*CLASS_LIKE_KINDS):
            if isinstance(reflection, DeclarationReflection) and not _is_inherited_copy(reflection):
                self._resolve_class(project, reflection, [], resolved)

    def _resolve_class(self, project: ProjectReflection, reflection: DeclarationReflection, stack: list[int], resolved: set[int]) -> None:
        if reflection.id in resolved or _is_inherited_copy(reflection):
            return
        stack.append(reflection.id)
        try:
            for types, back_reference in ((reflection.extended_types, "extended_by"), (reflection.implemented_types, "implemented_by")):
                for reference in types:
                    base = reference.reflection
                    if not isinstance(base, DeclarationReflection) or base.kind not in CLASS_LIKE_KINDS:
                        continue
                    if base.id in stack:
                        logger.warning("Circular inheritance between %s and %s; not inheriting along this edge", reflection.get_full_name(), base.get_full_name())
                        continue
                    self._resolve_class(project, base, stack, resolved)
                    back_ids: list[int] = getattr(base, back_reference)
                    if reflection.id not in back_ids:
                        back_ids.append(reflection.id)
                    self._inherit(project, reflection, base, reference)
        finally:
            stack.pop()
        resolved.add(reflection.id)
        for child in reflection.children:
            if isinstance(child, DeclarationReflection) and child.kind in CLASS_LIKE_KINDS and child.id not in stack:
                self._resolve_class(project, child, stack, resolved)

    def _inherit(self, project: ProjectReflection, reflection: DeclarationReflection, base: DeclarationReflection, reference: ReferenceType) -> None:
        bindings: dict[str, Type] = {tp.name: arg for tp, arg in zip(base.type_parameters, reference.type_arguments)}
        for member in list(base.children):
            current = reflection.get_child_by_name(member.name)
            if current is None:
                copied = self._clone(project, member, reflection, bindings)
                copied.inherited_from = member.id
                copied.overwrites = None
                for source, target in zip(member.signatures, copied.signatures):
                    target.inherited_from = source.id
                    target.overwrites = None
                if copied.kind == ReflectionKind.CONSTRUCTOR:
                    for signature in copied.signatures:
                        signature.type = constructed_type(project, reflection)
                project.add_child(reflection, copied)
            elif current.inherited_from is None and current.overwrites is None:
                current.overwrites = member.id
                for own, inherited in zip(current.signatures, member.signatures):
                    own.overwrites = inherited.id

    def _clone(self, project: ProjectReflection, source: Reflection, parent: Reflection, bindings: dict[str, Type]) -> Any:
        """Deep copy ``source`` under ``parent`` with fresh ids.

        Copies are registered in the arena but not in the symbol index, so
        symbol lookups keep pointing at the original. Subtypes of the source
        are not subtypes of the copy.
        """
        plain: dict[str, Any] = {}
        typed: dict[str, Any] = {}
        for f in fields(source):
            if not f.init or f.name in _IDENTITY or f.name in _BACK_REFERENCES:
                continue
            value = getattr(source, f.name)
            if isinstance(value, Type) or (isinstance(value, list) and value and all(isinstance(v, Type) for v in value)):
                typed[f.name] = value
            elif isinstance(value, ReflectionFlags):
                plain[f.name] = ReflectionFlags(value)
            elif isinstance(value, Comment):
                plain[f.name] = copy.deepcopy(value)
            elif isinstance(value, list):
                plain[f.name] = list(value)
            else:
                plain[f.name] = value
        clone = project.create(type(source), name=source.name, kind=source.kind, parent=parent, **plain)

        type_parameters: list[TypeParameterReflection] = getattr(source, "type_parameters", [])
        if type_parameters:
            clone.type_parameters = [self._clone(project, tp, clone, bindings) for tp in type_parameters]
            bindings = {
                **bindings,
                **{tp.name: type_parameter_reference(project, tp) for tp in clone.type_parameters},
            }

        def on_declaration(declaration: DeclarationReflection) -> DeclarationReflection:
            return self._clone(project, declaration, clone, bindings)

        for name, value in typed.items():
            if isinstance(value, list):
                setattr(clone, name, [substitute(v, bindings, on_declaration) for v in value])
            else:
                setattr(clone, name, substitute(value, bindings, on_declaration))
        for name in _OWNED:
            if hasattr(source, name):
                setattr(clone, name, [self._clone(project, item, clone, bindings) for item in getattr(source, name)])
        return clone

    # ------------------------------------------------------------------
    # Comment links
    # ------------------------------------------------------------------

    def resolve_links(self, project: ProjectReflection) -> None:
        for _, reflection in sorted(project.reflections.items()):
            if reflection.comment is None:
                continue
            for part in reflection.comment.inline_parts():
                if part.target is not None:
                    continue
                target = self.lookup(project, reflection, part.target_name)
                if target is None:
                    logger.warning("Unresolved link %r in the documentation of %s", part.target_name, reflection.get_full_name())
                else:
                    part.target = target.id

    def lookup(self, project: ProjectReflection, origin: Reflection, name: str) -> Reflection | None:
        """Find the reflection ``name`` refers to, as seen from ``origin``.

        Tries the origin's own members, then each enclosing scope, then a
        project-wide search that must be unambiguous. Re-exports stand for
        the reflection they point at.
        """
        parts = [p for p in name.removesuffix("()").split(".") if p]
        if not parts:
            return None
        for scope in (origin, *origin.ancestors()):
            if scope.name == name and scope is not project:
                return scope
            found = _descend(project, scope, parts)
            if found is not None:
                return found

        candidates = {
            target.id: target
            for target in (
                _follow(project, r)
                for r in project.reflections.values()
                if r.name == parts[0] and r.kind not in _NOT_LINKABLE and getattr(r, "inherited_from", None) is None and r is not project
            )
        }
        matches = {m.id: m for m in (_descend(project, c, parts[1:]) for c in candidates.values()) if m is not None}
        if len(matches) > 1:
            logger.warning("Link %r is ambiguous (%d candidates)", name, len(matches))
            return None
        return next(iter(matches.values()), None)


def _is_inherited_copy(reflection: Reflection) -> bool:
    return any(getattr(r, "inherited_from", None) is not None for r in (reflection, *reflection.ancestors()))


def _follow(project: ProjectReflection, reflection: Reflection) -> Reflection:
    if isinstance(reflection, ReferenceReflection):
        return project.get_reflection(reflection.target) or reflection
    return reflection


def _descend(project: ProjectReflection, scope: Reflection, parts: list[str]) -> Reflection | None:
    """Follow dotted ``parts`` through children; module names may contain dots."""
    if not parts:
        return _follow(project, scope)
    for i in range(len(parts), 0, -1):
        child = scope.get_child_by_name(".".join(parts[:i]))
        if child is not None:
            found = _descend(project, _follow(project, child), parts[i:])
            if found is not None:
                return found
    return None
