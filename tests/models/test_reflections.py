"""Tests for the reflection arena, flags and the type model."""

import pytest

from reflectdoc.exceptions import ModelInvariantError
from reflectdoc.models import (
    ArrayType,
    Comment,
    DeclarationReflection,
    IntrinsicType,
    MappedType,
    ProjectReflection,
    ReferenceType,
    ReflectionFlag,
    ReflectionFlags,
    ReflectionKind,
    TextPart,
    UnionType,
    UnknownType,
    substitute,
)
from reflectdoc.models.comments import BlockTag


def _module(project: ProjectReflection, name: str = "shapes") -> DeclarationReflection:
    module = project.create(DeclarationReflection, name=name, kind=ReflectionKind.MODULE, parent=project, symbol=name)
    project.add_child(project, module)
    return module


# ---------------------------------------------------------------------------
# Arena
# ---------------------------------------------------------------------------


def test_ids_are_unique_and_increasing():
    project = ProjectReflection(name="p")
    module = _module(project)
    cls = project.create(DeclarationReflection, name="Circle", kind=ReflectionKind.CLASS, parent=module, symbol="shapes.Circle")

    assert project.id == 0
    assert (module.id, cls.id) == (1, 2)
    assert project.get_reflection(2) is cls


def test_symbol_index_keeps_first_registration():
    project = ProjectReflection(name="p")
    module = _module(project)
    first = project.create(DeclarationReflection, name="A", kind=ReflectionKind.CLASS, parent=module, symbol="m.A")
    project.create(DeclarationReflection, name="A", kind=ReflectionKind.CLASS, parent=module, symbol="m.A")

    assert project.get_reflection_from_symbol("m.A") is first
    assert project.get_id_from_symbol("missing") is None


def test_create_under_unregistered_parent_fails():
    project = ProjectReflection(name="p")
    stray = DeclarationReflection(id=99, name="stray", kind=ReflectionKind.MODULE)

    with pytest.raises(ModelInvariantError):
        project.create(DeclarationReflection, name="x", kind=ReflectionKind.VARIABLE, parent=stray)


def test_duplicate_id_rejected():
    project = ProjectReflection(name="p")
    module = _module(project)

    with pytest.raises(ModelInvariantError):
        project.register(DeclarationReflection(id=module.id, name="other", kind=ReflectionKind.MODULE))


def test_add_child_rejects_ownership_cycle():
    project = ProjectReflection(name="p")
    module = _module(project)
    ns = project.create(DeclarationReflection, name="ns", kind=ReflectionKind.NAMESPACE, parent=module)
    project.add_child(module, ns)

    with pytest.raises(ModelInvariantError):
        project.add_child(ns, module)


def test_full_name_and_ancestors():
    project = ProjectReflection(name="p")
    module = _module(project, "pkg/shapes")
    cls = project.create(DeclarationReflection, name="Circle", kind=ReflectionKind.CLASS, parent=module)
    project.add_child(module, cls)

    assert cls.get_full_name() == "pkg/shapes.Circle"
    assert [a.id for a in cls.ancestors()] == [module.id, project.id]
    assert module.get_child_by_name("Circle") is cls


def test_reflections_by_kind_in_id_order():
    project = ProjectReflection(name="p")
    module = _module(project)
    b = project.create(DeclarationReflection, name="B", kind=ReflectionKind.CLASS, parent=module)
    a = project.create(DeclarationReflection, name="A", kind=ReflectionKind.CLASS, parent=module)

    assert project.get_reflections_by_kind(ReflectionKind.CLASS) == [b, a]


# ---------------------------------------------------------------------------
# Flags and comments
# ---------------------------------------------------------------------------


def test_flags_serialize_in_declaration_order():
    flags = ReflectionFlags({ReflectionFlag.KEYWORD_ONLY, ReflectionFlag.PRIVATE})
    assert flags.to_object() == {"isPrivate": True, "isKeywordOnly": True}


def test_comment_remove_tags_by_param_name():
    comment = Comment(
        summary=[[TextPart("Summary")]],
        block_tags=[
            BlockTag("@param", [TextPart("first")], "a"),
            BlockTag("@param", [TextPart("second")], "b"),
            BlockTag("@returns", [TextPart("value")]),
        ],
    )

    removed = comment.remove_tags("@param", "b")

    assert [t.param_name for t in removed] == ["b"]
    assert [t.tag for t in comment.block_tags] == ["@param", "@returns"]
    assert comment.summary_text() == "Summary"


# ---------------------------------------------------------------------------
# Types
# ---------------------------------------------------------------------------


def test_reference_resolves_through_symbol_index_lazily():
    project = ProjectReflection(name="p")
    reference = ReferenceType("Circle", symbol="shapes.Circle", project=project)
    assert reference.target is None

    module = _module(project)
    cls = project.create(DeclarationReflection, name="Circle", kind=ReflectionKind.CLASS, parent=module, symbol="shapes.Circle")

    assert reference.target == cls.id
    assert reference.reflection is cls


def test_external_reference_package():
    reference = ReferenceType("Path", qualified_name="pathlib.Path")
    assert reference.target is None
    assert reference.package == "pathlib"


def test_substitute_replaces_type_parameters_without_mutating():
    original = UnionType([ReferenceType("T", refers_to_type_parameter=True), ArrayType(ReferenceType("T", refers_to_type_parameter=True))])

    result = substitute(original, {"T": IntrinsicType("int")})

    assert str(result) == "int | list[int]"
    assert str(original) == "T | list[T]"


def test_substitute_respects_mapped_parameter_shadowing():
    mapped = MappedType(
        parameter="K",
        parameter_type=ReferenceType("K", refers_to_type_parameter=True),
        template_type=ReferenceType("K", refers_to_type_parameter=True),
    )

    result = substitute(mapped, {"K": IntrinsicType("str")})

    assert str(result.parameter_type) == "str"
    assert str(result.template_type) == "K"


def test_unknown_type_never_has_empty_name():
    assert UnknownType("").name == "unknown"
