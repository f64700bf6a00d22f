"""Tests for inheritance flattening and comment link resolution."""

from reflectdoc.converter import ReferenceResolver
from reflectdoc.models import IntrinsicType, ReferenceReflection, ReferenceType, ReflectionKind
from reflectdoc.serialization import Serializer


def _child(reflection, *names):
    for name in names:
        reflection = reflection.get_child_by_name(name)
        assert reflection is not None, name
    return reflection


# ---------------------------------------------------------------------------
# Inheritance
# ---------------------------------------------------------------------------


def test_generic_base_members_are_specialized(convert_sources):
    project = convert_sources({
        "store.py": """
            from typing import Generic, TypeVar

            T = TypeVar("T")

            class Store(Generic[T]):
                def get(self, key: str) -> T: ...

            class IntStore(Store[int]):
                pass
        """
    })

    store = _child(project, "store", "Store")
    int_store = _child(project, "store", "IntStore")
    inherited = _child(int_store, "get")

    assert inherited.id != _child(store, "get").id
    assert inherited.inherited_from == _child(store, "get").id
    assert inherited.parent is int_store
    assert inherited.signatures[0].type == IntrinsicType("int")
    # The base keeps its own parameterized signature
    assert _child(store, "get").signatures[0].type.refers_to_type_parameter
    assert store.extended_by == [int_store.id]


def test_constructor_copy_returns_subclass(convert_sources):
    project = convert_sources({
        "animals.py": """
            class Animal:
                def __init__(self, name: str) -> None: ...

            class Dog(Animal):
                pass
        """
    })

    dog = _child(project, "animals", "Dog")
    constructor = _child(dog, "__init__")
    assert constructor.kind == ReflectionKind.CONSTRUCTOR
    assert isinstance(constructor.signatures[0].type, ReferenceType)
    assert constructor.signatures[0].type.reflection is dog


def test_multi_level_inheritance(convert_sources):
    project = convert_sources({
        "levels.py": """
            class A:
                def a(self) -> None: ...

            class B(A):
                def b(self) -> None: ...

            class C(B):
                def a(self) -> None: ...
        """
    })

    a, b, c = (_child(project, "levels", n) for n in "ABC")
    assert [m.name for m in c.children] == ["a", "b"]
    assert _child(c, "a").overwrites == _child(b, "a").id
    assert _child(c, "b").inherited_from == _child(b, "b").id
    assert _child(b, "a").inherited_from == _child(a, "a").id


def test_inheritance_cycle_is_broken(convert_sources, log_records):
    project = convert_sources({
        "cycle.py": """
            class A(B):
                x: int = 1

            class B(A):
                y: int = 2
        """
    })

    a = _child(project, "cycle", "A")
    b = _child(project, "cycle", "B")
    assert [m.name for m in a.children] == ["x", "y"]
    assert [m.name for m in b.children] == ["y"]
    assert any("Circular inheritance" in m for m in log_records.messages())


def test_external_base_is_left_alone(convert_sources):
    project = convert_sources({"errors.py": "class AppError(Exception):\n    code: int = 1\n"})

    error = _child(project, "errors", "AppError")
    assert error.extended_types[0].qualified_name == "builtins.Exception"
    assert error.extended_types[0].target is None
    assert [m.name for m in error.children] == ["code"]


def test_resolve_is_idempotent(shapes_project):
    serializer = Serializer()
    before = serializer.to_json(shapes_project)

    ReferenceResolver().resolve(shapes_project)

    assert serializer.to_json(shapes_project) == before


NESTED = """
class Root:
    def r(self) -> None: ...

class Base:
    class Inner(Root):
        pass

class Derived(Base):
    pass
"""


def test_inherited_nested_class_is_complete(convert_sources):
    project = convert_sources({"nested.py": NESTED})

    root = _child(project, "nested", "Root")
    inner = _child(project, "nested", "Base", "Inner")
    copied = _child(project, "nested", "Derived", "Inner")

    assert copied.inherited_from == inner.id
    assert [m.name for m in copied.children] == ["r"]
    assert _child(copied, "r").overwrites is None
    assert copied.extended_by == []
    assert root.extended_by == [inner.id]


def test_resolve_with_nested_classes_is_idempotent(convert_sources):
    project = convert_sources({"nested.py": NESTED})
    serializer = Serializer()
    before = serializer.to_json(project)

    ReferenceResolver().resolve(project)

    assert serializer.to_json(project) == before


def test_inherited_copy_does_not_claim_an_override(convert_sources):
    project = convert_sources({
        "chain.py": """
            class A:
                def a(self) -> None: ...

            class B(A):
                def a(self) -> None: ...

            class C(B):
                pass
        """
    })

    a, b, c = (_child(project, "chain", n) for n in "ABC")
    assert _child(b, "a").overwrites == _child(a, "a").id
    copied = _child(c, "a")
    assert copied.inherited_from == _child(b, "a").id
    assert copied.overwrites is None
    assert copied.signatures[0].overwrites is None


# ---------------------------------------------------------------------------
# Links
# ---------------------------------------------------------------------------


LINKS = '''
class Circle:
    """See {@link Circle.area} and {@link radius}."""

    radius: float = 1.0

    def area(self) -> float:
        """Compare with [[Square.area]] and {@link Missing}."""
        ...


class Square:
    def area(self) -> float: ...
'''


def test_links_resolve_through_scopes(convert_sources, log_records):
    project = convert_sources({"geo.py": LINKS})

    circle = _child(project, "geo", "Circle")
    square = _child(project, "geo", "Square")
    own, member = circle.comment.inline_parts()
    assert own.target == _child(circle, "area").id
    assert member.target == _child(circle, "radius").id

    dotted, missing = _child(circle, "area").signatures[0].comment.inline_parts()
    assert dotted.target == _child(square, "area").id
    assert missing.target is None
    assert any("Missing" in m for m in log_records.messages())


def test_ambiguous_project_wide_link_stays_unresolved(convert_sources, log_records):
    project = convert_sources({
        "a.py": "class Item: ...\n",
        "b.py": "class Item: ...\n",
        "c.py": 'def use() -> None:\n    """Uses {@link Item}."""\n',
    })

    [part] = _child(project, "c", "use").signatures[0].comment.inline_parts()
    assert part.target is None
    assert any("ambiguous" in m for m in log_records.messages())


def test_link_to_reexported_class_is_not_ambiguous(convert_sources, log_records):
    project = convert_sources({
        "pkg/__init__.py": "from pkg.shapes import Circle\n\n__all__ = ['Circle']\n",
        "pkg/shapes.py": "class Circle: ...\n",
        "pkg/draw.py": 'def draw() -> None:\n    """Draws a {@link Circle}."""\n',
    })

    circle = _child(project, "pkg", "Circle")
    assert isinstance(_child(project, "pkg.shapes", "Circle"), ReferenceReflection)
    [part] = _child(project, "pkg.draw", "draw").signatures[0].comment.inline_parts()
    assert part.target == circle.id
    assert not any("ambiguous" in m for m in log_records.messages())


def test_module_qualified_link(convert_sources):
    project = convert_sources({
        "a.py": "class Item: ...\n",
        "b.py": 'def use() -> None:\n    """Uses {@link a.Item}."""\n',
    })

    [part] = _child(project, "b", "use").signatures[0].comment.inline_parts()
    assert part.target == _child(project, "a", "Item").id
