"""JSON interchange form of the reflection graph.

Owned relations (children, signatures, parameters, type parameters, inline
type declarations) are nested. Every other relation is written as a bare id,
so the output is a tree even though the graph has cycles.
"""

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

from reflectdoc.converter.events import EventHub, SerializerEvent, SerializerEvents
from reflectdoc.exceptions import SerializationError
from reflectdoc.logging import get_logger
from reflectdoc.models import (
    ArrayType,
    BlockTag,
    Comment,
    CommentBlock,
    ConditionalType,
    DeclarationReflection,
    IndexedAccessType,
    InferredType,
    InlineTagPart,
    IntersectionType,
    IntrinsicType,
    LiteralType,
    MappedType,
    ParameterReflection,
    ProjectReflection,
    ReferenceReflection,
    ReferenceType,
    Reflection,
    ReflectionKind,
    ReflectionType,
    SignatureReflection,
    TextPart,
    TupleType,
    Type,
    TypeParameterReflection,
    UnionType,
    UnknownType,
)

logger = get_logger(__name__)

SerializerHook = Callable[[Reflection, dict[str, Any]], None]

JSON_SCHEMA_VERSION = "1.0"


class Serializer:
    """Turns a project into plain ``dict``/``list`` values ready for ``json``.

    Hooks registered with ``add_hook`` receive the reflection and the object
    being built. Pre hooks run before the default fields are written (a
    default field of the same name replaces theirs), post hooks after.

    Example:
        >>> serializer = Serializer()
        >>> serializer.add_hook(ReflectionKind.CLASS, post=lambda r, obj: obj.update(url=f"{r.name}.md"))
        >>> text = serializer.to_json(project)
    """

    def __init__(self) -> None:
        self.events = EventHub()
        self._pre: dict[ReflectionKind, list[SerializerHook]] = {}
        self._post: dict[ReflectionKind, list[SerializerHook]] = {}

    def add_hook(self, kind: ReflectionKind, pre: SerializerHook | None = None, post: SerializerHook | None = None) -> None:
        if pre is not None:
            self._pre.setdefault(kind, []).append(pre)
        if post is not None:
            self._post.setdefault(kind, []).append(post)

    def project_to_object(self, project: ProjectReflection, output: Path | None = None) -> dict[str, Any]:
        event_args = {
            "project": project,
            "output_file": output.name if output else None,
            "output_directory": str(output.parent) if output else None,
        }
        self.events.emit(SerializerEvents.BEGIN, SerializerEvent(name=SerializerEvents.BEGIN, **event_args))
        result = {"schemaVersion": JSON_SCHEMA_VERSION, **self.to_object(project)}
        self.events.emit(SerializerEvents.END, SerializerEvent(name=SerializerEvents.END, **event_args))
        logger.debug("Serialized project %s (%d reflections)", project.name, len(project.reflections))
        return result

    def to_json(self, project: ProjectReflection, pretty: bool = True, output: Path | None = None) -> str:
        data = self.project_to_object(project, output)
        try:
            return json.dumps(data, indent=2 if pretty else None, ensure_ascii=False, allow_nan=False)
        except (TypeError, ValueError) as exc:
            raise SerializationError(f"Project {project.name!r} cannot be written as JSON: {exc}") from exc

    # ------------------------------------------------------------------
    # Reflections
    # ------------------------------------------------------------------

    def to_object(self, reflection: Reflection) -> dict[str, Any]:
        obj: dict[str, Any] = {}
        for hook in self._pre.get(reflection.kind, []):
            hook(reflection, obj)

        obj["id"] = reflection.id
        obj["name"] = reflection.name
        obj["kind"] = str(reflection.kind)
        obj["flags"] = reflection.flags.to_object()
        if reflection.comment is not None:
            obj["comment"] = self.comment_to_object(reflection.comment)

        match reflection:
            case ReferenceReflection():
                obj["target"] = reflection.target
            case DeclarationReflection():
                self._write_declaration(reflection, obj)
            case SignatureReflection():
                self._write_list(obj, "typeParameters", reflection.type_parameters)
                self._write_list(obj, "parameters", reflection.parameters)
                if reflection.type is not None:
                    obj["type"] = self.type_to_object(reflection.type)
                self._write_ids(obj, inheritedFrom=reflection.inherited_from, overwrites=reflection.overwrites)
            case ParameterReflection():
                if reflection.type is not None:
                    obj["type"] = self.type_to_object(reflection.type)
                if reflection.default_value is not None:
                    obj["defaultValue"] = reflection.default_value
            case TypeParameterReflection():
                if reflection.constraint is not None:
                    obj["type"] = self.type_to_object(reflection.constraint)
                if reflection.default is not None:
                    obj["default"] = self.type_to_object(reflection.default)

        if reflection.sources:
            obj["sources"] = [{"fileName": s.file_name, "line": s.line, "character": s.character} for s in reflection.sources]
        if reflection.children:
            obj["children"] = [self.to_object(child) for child in reflection.children]

        for hook in self._post.get(reflection.kind, []):
            hook(reflection, obj)
        return obj

    def _write_declaration(self, reflection: DeclarationReflection, obj: dict[str, Any]) -> None:
        self._write_list(obj, "typeParameters", reflection.type_parameters)
        if reflection.type is not None:
            obj["type"] = self.type_to_object(reflection.type)
        if reflection.default_value is not None:
            obj["defaultValue"] = reflection.default_value
        self._write_list(obj, "signatures", reflection.signatures)
        if reflection.extended_types:
            obj["extendedTypes"] = [self.type_to_object(t) for t in reflection.extended_types]
        if reflection.implemented_types:
            obj["implementedTypes"] = [self.type_to_object(t) for t in reflection.implemented_types]
        if reflection.extended_by:
            obj["extendedBy"] = list(reflection.extended_by)
        if reflection.implemented_by:
            obj["implementedBy"] = list(reflection.implemented_by)
        self._write_ids(obj, inheritedFrom=reflection.inherited_from, overwrites=reflection.overwrites)

    def _write_list(self, obj: dict[str, Any], key: str, reflections: list[Any]) -> None:
        if reflections:
            obj[key] = [self.to_object(r) for r in reflections]

    @staticmethod
    def _write_ids(obj: dict[str, Any], **ids: int | None) -> None:
        for key, value in ids.items():
            if value is not None:
                obj[key] = value

    # ------------------------------------------------------------------
    # Comments and types
    # ------------------------------------------------------------------

    def comment_to_object(self, comment: Comment) -> dict[str, Any]:
        obj: dict[str, Any] = {"summary": [self._block(block) for block in comment.summary]}
        if comment.block_tags:
            obj["blockTags"] = [self._block_tag(tag) for tag in comment.block_tags]
        return obj

    def _block_tag(self, tag: BlockTag) -> dict[str, Any]:
        obj: dict[str, Any] = {"tag": tag.tag}
        if tag.param_name is not None:
            obj["name"] = tag.param_name
        obj["content"] = self._block(tag.content)
        return obj

    @staticmethod
    def _block(block: CommentBlock) -> list[dict[str, Any]]:
        parts: list[dict[str, Any]] = []
        for part in block:
            match part:
                case TextPart(text=text):
                    parts.append({"kind": "text", "text": text})
                case InlineTagPart():
                    inline: dict[str, Any] = {"kind": "inline-tag", "tag": part.tag, "text": part.text, "targetName": part.target_name}
                    if part.target is not None:
                        inline["target"] = part.target
                    parts.append(inline)
        return parts

    def type_to_object(self, type_: Type) -> dict[str, Any]:
        match type_:
            case IntrinsicType(name=name):
                return {"type": type_.type, "name": name}
            case ReferenceType():
                return self._reference_to_object(type_)
            case UnionType(types=types) | IntersectionType(types=types):
                return {"type": type_.type, "types": [self.type_to_object(t) for t in types]}
            case ArrayType(element_type=element):
                return {"type": type_.type, "elementType": self.type_to_object(element)}
            case TupleType(elements=elements):
                return {"type": type_.type, "elements": [self.type_to_object(e) for e in elements]}
            case ReflectionType(declaration=declaration):
                return {"type": type_.type, "declaration": self.to_object(declaration)}
            case ConditionalType():
                return {
                    "type": type_.type,
                    "checkType": self.type_to_object(type_.check_type),
                    "extendsType": self.type_to_object(type_.extends_type),
                    "trueType": self.type_to_object(type_.true_type),
                    "falseType": self.type_to_object(type_.false_type),
                }
            case IndexedAccessType():
                return {"type": type_.type, "objectType": self.type_to_object(type_.object_type), "indexType": self.type_to_object(type_.index_type)}
            case MappedType():
                obj: dict[str, Any] = {
                    "type": type_.type,
                    "parameter": type_.parameter,
                    "parameterType": self.type_to_object(type_.parameter_type),
                    "templateType": self.type_to_object(type_.template_type),
                }
                if type_.readonly_modifier:
                    obj["readonlyModifier"] = type_.readonly_modifier
                if type_.optional_modifier:
                    obj["optionalModifier"] = type_.optional_modifier
                if type_.name_type is not None:
                    obj["nameType"] = self.type_to_object(type_.name_type)
                return obj
            case LiteralType(value=value):
                return {"type": type_.type, "value": value}
            case InferredType(name=name) | UnknownType(name=name):
                return {"type": type_.type, "name": name}
            case _:
                raise SerializationError(f"Unsupported type node {type(type_).__name__}")

    def _reference_to_object(self, reference: ReferenceType) -> dict[str, Any]:
        obj: dict[str, Any] = {"type": reference.type, "name": reference.name}
        target = reference.target
        if target is not None and reference.reflection is not None:
            obj["target"] = target
        elif reference.qualified_name:
            obj["qualifiedName"] = reference.qualified_name
            if reference.package:
                obj["package"] = reference.package
        if reference.type_arguments:
            obj["typeArguments"] = [self.type_to_object(a) for a in reference.type_arguments]
        if reference.refers_to_type_parameter:
            obj["refersToTypeParameter"] = True
        return obj
