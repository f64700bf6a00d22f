"""Depth-first conversion of provider declarations into the reflection graph.

The converter walks every entry point in order, creating one reflection per
distinct symbol. A symbol seen again in the same scope grows the existing
reflection (overloads, a setter next to its getter, a class defined in both
branches of an ``if``); seen from a different scope it becomes a reference.
After the last entry point the resolver flattens inheritance and links
comment references.
"""

import copy
from dataclasses import replace
from pathlib import Path
from typing import Any

from reflectdoc.comments import parse_comment
from reflectdoc.converter.context import Context
from reflectdoc.converter.events import ConverterEvent, ConverterEvents, EventHub, Hook
from reflectdoc.converter.resolver import ReferenceResolver
from reflectdoc.converter.types import TypeConverter, constructed_type, type_parameter_reference
from reflectdoc.exceptions import EntryPointError, SemanticDiagnosticsError
from reflectdoc.logging import get_logger
from reflectdoc.models import (
    CLASS_LIKE_KINDS,
    Comment,
    DeclarationReflection,
    IntrinsicType,
    ParameterReflection,
    ProjectReflection,
    ReferenceReflection,
    ReferenceType,
    Reflection,
    ReflectionFlag,
    ReflectionKind,
    SignatureReflection,
    SourceReference,
    Type,
    TypeParameterReflection,
)
from reflectdoc.semantic import (
    CallSignatureInfo,
    Declaration,
    DeclarationKind,
    DiagnosticCategory,
    EntryPoint,
    Modifier,
    ParameterInfo,
    SemanticProvider,
    TypeDescription,
    TypeDescriptionKind,
    TypeParameterInfo,
)
from reflectdoc.settings import Settings

logger = get_logger(__name__)

_KINDS: dict[DeclarationKind, ReflectionKind] = {
    DeclarationKind.MODULE: ReflectionKind.NAMESPACE,
    DeclarationKind.CLASS: ReflectionKind.CLASS,
    DeclarationKind.INTERFACE: ReflectionKind.INTERFACE,
    DeclarationKind.ENUM: ReflectionKind.ENUM,
    DeclarationKind.ENUM_MEMBER: ReflectionKind.ENUM_MEMBER,
    DeclarationKind.FUNCTION: ReflectionKind.FUNCTION,
    DeclarationKind.METHOD: ReflectionKind.METHOD,
    DeclarationKind.CONSTRUCTOR: ReflectionKind.CONSTRUCTOR,
    DeclarationKind.PROPERTY: ReflectionKind.PROPERTY,
    DeclarationKind.ACCESSOR: ReflectionKind.ACCESSOR,
    DeclarationKind.VARIABLE: ReflectionKind.VARIABLE,
    DeclarationKind.TYPE_ALIAS: ReflectionKind.TYPE_ALIAS,
}

_MODIFIER_FLAGS: dict[Modifier, ReflectionFlag] = {
    Modifier.STATIC: ReflectionFlag.STATIC,
    Modifier.ABSTRACT: ReflectionFlag.ABSTRACT,
    Modifier.READONLY: ReflectionFlag.READONLY,
    Modifier.OPTIONAL: ReflectionFlag.OPTIONAL,
    Modifier.ASYNC: ReflectionFlag.ASYNC,
}

IGNORE_TAGS = ("@ignore", "@hidden")


class Converter:
    """Builds a ``ProjectReflection`` from a ``SemanticProvider``.

    Example:
        >>> converter = Converter(Settings(exclude_private=False))
        >>> converter.on(ConverterEvents.REFLECTION_CREATED, lambda e: print(e.reflection.name))
        >>> project = converter.convert(provider, [Path("shapes.py")])
    """

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or Settings()
        self.events = EventHub()
        self.types = TypeConverter(self)
        self.resolver = ReferenceResolver()
        self._provider: SemanticProvider | None = None
        self._entry_files: set[str] = set()

    def on(self, event: ConverterEvents, hook: Hook) -> Hook:
        return self.events.on(event, hook)

    def convert(self, provider: SemanticProvider, entry_points: list[EntryPoint | Path | str], name: str = "") -> ProjectReflection:
        """Convert the entry points into a new project.

        Raises:
            SemanticDiagnosticsError: The provider reported error diagnostics.
            EntryPointError: None of the entry points could be located.
        """
        errors = [d for d in provider.get_diagnostics() if d.category == DiagnosticCategory.ERROR]
        if errors:
            for diagnostic in errors:
                logger.error("%s", diagnostic)
            raise SemanticDiagnosticsError(errors)

        located = self._locate(provider, entry_points)
        project = ProjectReflection(name=name or self.settings.name or "Documentation")
        self._provider = provider
        self._entry_files = {ep.location.file for ep in located if ep.location is not None}
        try:
            self._emit(ConverterEvents.BEGIN, project)
            context = Context(project=project, scope=project)
            for entry_point in located:
                self._convert_entry_point(context, entry_point)
            self._emit(ConverterEvents.RESOLVE_BEGIN, project)
            self.resolver.resolve(project)
            self._emit(ConverterEvents.RESOLVE_END, project)
            self._emit(ConverterEvents.END, project)
        finally:
            self._provider = None
        logger.info("Converted %d entry point(s) into %d reflection(s)", len(located), len(project.reflections))
        return project

    def _locate(self, provider: SemanticProvider, entry_points: list[EntryPoint | Path | str]) -> list[EntryPoint]:
        located: list[EntryPoint] = []
        for entry in entry_points:
            entry_point = entry if isinstance(entry, EntryPoint) else provider.get_entry_point(Path(entry))
            if entry_point is None:
                logger.warning("Unable to locate entry point %s; skipping it", entry)
                continue
            located.append(entry_point)
        if not located:
            raise EntryPointError("None of the entry points could be located")
        return located

    def _emit(self, event: ConverterEvents, project: ProjectReflection, reflection: Reflection | None = None, entry_point: EntryPoint | None = None) -> None:
        self.events.emit(event, ConverterEvent(name=event, project=project, reflection=reflection, entry_point=entry_point))

    def created(self, context: Context, reflection: Reflection) -> None:
        self._emit(ConverterEvents.REFLECTION_CREATED, context.project, reflection, context.entry_point)

    # ------------------------------------------------------------------
    # Traversal
    # ------------------------------------------------------------------

    def _convert_entry_point(self, context: Context, entry_point: EntryPoint) -> None:
        project = context.project
        module = project.get_reflection_from_symbol(entry_point.module)
        if module is None or module.kind != ReflectionKind.MODULE:
            module = project.create(DeclarationReflection, name=entry_point.display_name, kind=ReflectionKind.MODULE, parent=project, symbol=entry_point.module)
            if entry_point.comment:
                module.comment = _non_empty(parse_comment(entry_point.comment))
            if entry_point.location is not None:
                module.sources.append(SourceReference(entry_point.location.file, entry_point.location.line, entry_point.location.column))
            project.add_child(project, module)
            self.created(context, module)

        self._emit(ConverterEvents.ENTRY_POINT_BEGIN, project, module, entry_point)
        scoped = replace(context, entry_point=entry_point).with_scope(module)
        for declaration in self._provider.get_declarations(entry_point):
            self.convert_declaration(scoped, declaration)
        self._emit(ConverterEvents.ENTRY_POINT_END, project, module, entry_point)

    def convert_declaration(self, context: Context, declaration: Declaration) -> Reflection | None:
        """Convert or merge one declaration under ``context.scope``.

        Returns the reflection that now represents the declaration, or None
        when it was skipped.
        """
        if declaration.kind == DeclarationKind.ALIAS:
            return self._convert_alias(context, declaration)

        comment = parse_comment(declaration.comment) if declaration.comment else None
        if self._is_excluded(declaration, comment):
            logger.debug("Skipping %s", declaration.symbol)
            return None

        existing = context.project.get_reflection_from_symbol(declaration.symbol)
        if existing is None:
            return self._create(context, declaration, comment)
        if existing.parent is context.scope:
            self._merge(context, existing, declaration, comment)
            return existing
        return self._add_reference(context, declaration.name, existing, declaration)

    def _is_excluded(self, declaration: Declaration, comment: Comment | None) -> bool:
        if not declaration.exported:
            return True
        if declaration.private and self.settings.exclude_private:
            return True
        if comment is None:
            return False
        if any(comment.has_tag(tag) for tag in IGNORE_TAGS):
            return True
        return self.settings.exclude_internal and comment.has_tag("@internal")

    def _flags(self, context: Context, declaration: Declaration) -> set[ReflectionFlag]:
        flags = set(context.flags)
        flags.update(flag for modifier, flag in _MODIFIER_FLAGS.items() if declaration.has(modifier))
        if declaration.private:
            flags.add(ReflectionFlag.PRIVATE)
        if context.scope.kind in (ReflectionKind.MODULE, ReflectionKind.NAMESPACE) and declaration.exported:
            flags.add(ReflectionFlag.EXPORTED)
        return flags

    def _create(self, context: Context, declaration: Declaration, comment: Comment | None) -> DeclarationReflection:
        project = context.project
        reflection = project.create(
            DeclarationReflection,
            name=declaration.name,
            kind=_KINDS[declaration.kind],
            parent=context.scope,
            symbol=declaration.symbol,
        )
        reflection.flags.update(self._flags(context, declaration))
        reflection.sources.append(_source(declaration))
        project.add_child(context.scope, reflection)
        self.created(context, reflection)

        match reflection.kind:
            case ReflectionKind.NAMESPACE:
                reflection.comment = _non_empty(comment)
                self._convert_members(context.with_scope(reflection), declaration)
            case ReflectionKind.CLASS | ReflectionKind.INTERFACE | ReflectionKind.ENUM:
                self._populate_class(context, reflection, declaration, comment)
            case ReflectionKind.FUNCTION | ReflectionKind.METHOD | ReflectionKind.CONSTRUCTOR:
                self._add_signature(context, reflection, declaration, comment)
            case ReflectionKind.ACCESSOR:
                self._add_accessor_signature(context, reflection, declaration, comment)
            case ReflectionKind.TYPE_ALIAS:
                reflection.comment = _non_empty(comment)
                type_parameters, bindings = self._type_parameters(context, reflection, declaration.type_parameters, declaration, comment)
                reflection.type_parameters = type_parameters
                reflection.type = self._convert_type(context.with_scope(reflection).with_type_parameters(bindings), declaration, declaration.type)
            case _:
                reflection.comment = _non_empty(comment)
                reflection.type = self._convert_type(context.with_scope(reflection), declaration, declaration.type)
                reflection.default_value = declaration.default_value
        return reflection

    def _merge(self, context: Context, existing: Reflection, declaration: Declaration, comment: Comment | None) -> None:
        """Grow ``existing`` with another declaration of the same symbol."""
        source = _source(declaration)
        if source not in existing.sources:
            existing.sources.append(source)
        existing.flags.update(self._flags(context, declaration))
        if not isinstance(existing, DeclarationReflection):
            return
        if _KINDS[declaration.kind] != existing.kind:
            logger.warning("Conflicting declarations of %s (%s and %s); keeping the first", declaration.symbol, existing.kind, declaration.kind)
            return

        match existing.kind:
            case ReflectionKind.FUNCTION | ReflectionKind.METHOD | ReflectionKind.CONSTRUCTOR:
                has_overloads = any(s.has_flag(ReflectionFlag.OVERLOAD) for s in existing.signatures)
                if has_overloads and not declaration.has(Modifier.OVERLOAD):
                    # Implementation of an overload set: documentation only
                    if comment is not None and not any(s.comment for s in existing.signatures):
                        for signature in existing.signatures:
                            _attach_signature_comment(signature, copy.deepcopy(comment))
                    return
                self._add_signature(context, existing, declaration, comment)
            case ReflectionKind.ACCESSOR:
                self._add_accessor_signature(context, existing, declaration, comment)
            case ReflectionKind.CLASS | ReflectionKind.INTERFACE | ReflectionKind.ENUM:
                if existing.comment is None:
                    existing.comment = _non_empty(comment)
                inner = self._class_context(context, existing)
                self._convert_heritage(inner, existing, declaration)
                self._convert_members(inner, declaration)
            case ReflectionKind.NAMESPACE:
                if existing.comment is None:
                    existing.comment = _non_empty(comment)
                self._convert_members(context.with_scope(existing), declaration)
            case _:
                if existing.comment is None:
                    existing.comment = _non_empty(comment)
                if existing.type is None:
                    existing.type = self._convert_type(context.with_scope(existing), declaration, declaration.type)
                if existing.default_value is None:
                    existing.default_value = declaration.default_value

    def _convert_members(self, context: Context, declaration: Declaration) -> None:
        for member in self._provider.get_members(declaration):
            self.convert_declaration(context, member)

    def _populate_class(self, context: Context, reflection: DeclarationReflection, declaration: Declaration, comment: Comment | None) -> None:
        type_parameters, bindings = self._type_parameters(context, reflection, declaration.type_parameters, declaration, comment)
        reflection.type_parameters = type_parameters
        reflection.comment = _non_empty(comment)
        inner = context.with_scope(reflection).with_type_parameters(bindings)
        self._convert_heritage(inner, reflection, declaration)
        self._convert_members(inner, declaration)

    def _class_context(self, context: Context, reflection: DeclarationReflection) -> Context:
        bindings = {tp.name: type_parameter_reference(context.project, tp) for tp in reflection.type_parameters}
        return context.with_scope(reflection).with_type_parameters(bindings)

    def _convert_heritage(self, context: Context, reflection: DeclarationReflection, declaration: Declaration) -> None:
        for expressions, target in ((declaration.bases, reflection.extended_types), (declaration.implements, reflection.implemented_types)):
            for expression in expressions:
                description = self._describe(declaration, expression)
                if description.kind != TypeDescriptionKind.REFERENCE:
                    logger.warning("Base %s of %s is not a class reference; ignoring it", description.text or description.kind, declaration.symbol)
                    continue
                converted = self._convert_type(context, declaration, description)
                if not isinstance(converted, ReferenceType):
                    continue
                if all(existing != converted for existing in target):
                    target.append(converted)

    # ------------------------------------------------------------------
    # Aliases
    # ------------------------------------------------------------------

    def _convert_alias(self, context: Context, declaration: Declaration) -> Reflection | None:
        if declaration.private and self.settings.exclude_private:
            return None
        original = self._provider.resolve_alias(declaration)
        if original is None:
            logger.warning("Unable to follow re-export %s of %s; skipping it", declaration.symbol, declaration.alias_target)
            return None

        existing = context.project.get_reflection_from_symbol(original.symbol)
        if existing is not None:
            return self._add_reference(context, declaration.name, existing, declaration)

        # Not converted yet: the original is documented here, under the exported name
        inner = context
        if original.location.file not in self._entry_files:
            inner = context.with_flags(ReflectionFlag.EXTERNAL)
        return self.convert_declaration(inner, replace(original, name=declaration.name, exported=True, private=declaration.private))

    def _add_reference(self, context: Context, name: str, target: Reflection, declaration: Declaration) -> Reflection:
        current = context.scope.get_child_by_name(name)
        if current is target:
            return target
        if isinstance(current, ReferenceReflection) and current.target == target.id:
            return current
        project = context.project
        reference = project.create(ReferenceReflection, name=name, kind=ReflectionKind.REFERENCE, parent=context.scope, target=target.id)
        reference.flags.update(self._flags(context, declaration))
        reference.sources.append(_source(declaration))
        project.add_child(context.scope, reference)
        self.created(context, reference)
        return reference

    # ------------------------------------------------------------------
    # Signatures, parameters, type parameters
    # ------------------------------------------------------------------

    def _add_accessor_signature(self, context: Context, reflection: DeclarationReflection, declaration: Declaration, comment: Comment | None) -> None:
        kind = ReflectionKind.SET_SIGNATURE if declaration.has(Modifier.SETTER) else ReflectionKind.GET_SIGNATURE
        if reflection.get_signature(kind) is not None:
            return
        self._add_signature(context, reflection, declaration, comment, kind)

    def _add_signature(
        self,
        context: Context,
        reflection: DeclarationReflection,
        declaration: Declaration,
        comment: Comment | None,
        kind: ReflectionKind = ReflectionKind.SIGNATURE,
    ) -> SignatureReflection:
        project = context.project
        signature = project.create(SignatureReflection, name=reflection.name, kind=kind, parent=reflection)
        signature.sources.append(_source(declaration))
        if declaration.has(Modifier.OVERLOAD):
            signature.flags.add(ReflectionFlag.OVERLOAD)
        reflection.signatures.append(signature)
        self.created(context, signature)

        type_parameters, bindings = self._type_parameters(context, signature, declaration.type_parameters, declaration, None)
        signature.type_parameters = type_parameters
        inner = context.with_scope(signature).with_type_parameters(bindings)

        for info in declaration.parameters:
            self._add_parameter(inner, signature, info, declaration)

        if reflection.kind == ReflectionKind.CONSTRUCTOR and reflection.parent.kind in CLASS_LIKE_KINDS:
            signature.type = constructed_type(project, reflection.parent)
        elif kind == ReflectionKind.SET_SIGNATURE:
            signature.type = IntrinsicType("None")
        else:
            signature.type = self._convert_type(inner, declaration, declaration.returns)

        if comment is not None:
            _attach_signature_comment(signature, comment)
        return signature

    def add_call_signature(self, context: Context, literal: DeclarationReflection, info: CallSignatureInfo, origin: Declaration | None) -> SignatureReflection:
        """Signature of an inline callable type (``Callable[[int], str]``)."""
        project = context.project
        signature = project.create(SignatureReflection, name=literal.name, kind=ReflectionKind.SIGNATURE, parent=literal)
        literal.signatures.append(signature)
        self.created(context, signature)
        inner = context.with_scope(signature)
        for parameter in info.parameters:
            self._add_parameter(inner, signature, parameter, origin)
        signature.type = self._convert_type(inner, origin, info.returns)
        return signature

    def _add_parameter(self, context: Context, signature: SignatureReflection, info: ParameterInfo, declaration: Declaration | None) -> None:
        project = context.project
        parameter = project.create(ParameterReflection, name=info.name, kind=ReflectionKind.PARAMETER, parent=signature)
        if info.optional:
            parameter.flags.add(ReflectionFlag.OPTIONAL)
        if info.rest:
            parameter.flags.add(ReflectionFlag.REST)
        if info.keyword_only:
            parameter.flags.add(ReflectionFlag.KEYWORD_ONLY)
        parameter.type = self._convert_type(context.with_scope(parameter), declaration, info.type)
        parameter.default_value = info.default_value
        signature.parameters.append(parameter)
        self.created(context, parameter)

    def _type_parameters(
        self,
        context: Context,
        owner: Reflection,
        infos: tuple[TypeParameterInfo, ...],
        declaration: Declaration,
        comment: Comment | None,
    ) -> tuple[list[TypeParameterReflection], dict[str, Type]]:
        project = context.project
        created: list[TypeParameterReflection] = []
        bindings: dict[str, Type] = {}
        for info in infos:
            parameter = project.create(TypeParameterReflection, name=info.name, kind=ReflectionKind.TYPE_PARAMETER, parent=owner)
            if comment is not None:
                _attach_type_parameter_comment(parameter, comment)
            created.append(parameter)
            bindings[info.name] = type_parameter_reference(project, parameter)
            self.created(context, parameter)
        # Constraints may mention sibling parameters, so bind all of them first
        inner = context.with_scope(owner).with_type_parameters(bindings)
        for info, parameter in zip(infos, created):
            if info.constraint is not None:
                parameter.constraint = self._convert_type(inner, declaration, info.constraint)
            if info.default is not None:
                parameter.default = self._convert_type(inner, declaration, info.default)
        return created, bindings

    def _convert_type(self, context: Context, declaration: Declaration | None, expression: Any) -> Type | None:
        if expression is None:
            return None
        return self.types.convert(context, self._describe(declaration, expression), declaration)

    def _describe(self, declaration: Declaration | None, expression: Any) -> TypeDescription:
        if isinstance(expression, TypeDescription):
            return expression
        if declaration is None or self._provider is None:
            return TypeDescription(TypeDescriptionKind.UNKNOWN, text=str(expression))
        return self._provider.describe_type(declaration, expression)


def _source(declaration: Declaration) -> SourceReference:
    location = declaration.location
    return SourceReference(location.file, location.line, location.column)


def _non_empty(comment: Comment | None) -> Comment | None:
    if comment is None or comment.is_empty():
        return None
    return comment


def _attach_signature_comment(signature: SignatureReflection, comment: Comment) -> None:
    """Move ``@param`` content onto the parameters and keep the rest on the signature."""
    for parameter in signature.parameters:
        tags = comment.remove_tags("@param", parameter.name)
        if tags and parameter.comment is None:
            parameter.comment = Comment(summary=[tags[0].content])
    for type_parameter in signature.type_parameters:
        _attach_type_parameter_comment(type_parameter, comment)
    signature.comment = _non_empty(comment)


def _attach_type_parameter_comment(parameter: TypeParameterReflection, comment: Comment) -> None:
    tags = comment.remove_tags("@typeParam", parameter.name) + comment.remove_tags("@template", parameter.name)
    if tags and parameter.comment is None:
        parameter.comment = Comment(summary=[tags[0].content])


