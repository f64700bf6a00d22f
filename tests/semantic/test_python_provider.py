"""Tests for the ast-backed semantic provider."""

from pathlib import Path

import pytest

from reflectdoc.semantic import (
    DeclarationKind,
    Modifier,
    PythonSemanticProvider,
    TypeDescriptionKind,
    is_public_name,
)


@pytest.fixture
def provider_for(write_tree):
    def build(files: dict[str, str]) -> tuple[PythonSemanticProvider, Path]:
        root = write_tree(files)
        return PythonSemanticProvider.from_paths([root / f for f in files]), root

    return build


def _declarations(provider: PythonSemanticProvider, path: Path):
    return {d.name: d for d in provider.get_declarations(provider.get_entry_point(path))}


# ---------------------------------------------------------------------------
# Program and entry points
# ---------------------------------------------------------------------------


def test_module_names_follow_packages(provider_for):
    provider, root = provider_for({"pkg/__init__.py": "", "pkg/sub/__init__.py": "", "pkg/sub/leaf.py": "", "tool.py": ""})

    assert provider.module_names == ["pkg", "pkg.sub", "pkg.sub.leaf", "tool"]
    entry = provider.get_entry_point(root / "pkg/sub/leaf.py")
    assert entry.module == "pkg.sub.leaf"
    assert entry.location.file == "pkg/sub/leaf.py"


def test_syntax_error_becomes_diagnostic(provider_for):
    provider, root = provider_for({"good.py": "x = 1\n", "bad.py": "def broken(:\n"})

    diagnostics = provider.get_diagnostics()
    assert len(diagnostics) == 1
    assert diagnostics[0].file == "bad.py"
    assert diagnostics[0].line == 1
    assert provider.get_entry_point(root / "bad.py") is None
    assert provider.get_entry_point(root / "good.py") is not None


def test_unknown_path_is_not_an_entry_point(provider_for, tmp_path):
    provider, _ = provider_for({"a.py": ""})
    assert provider.get_entry_point(tmp_path / "elsewhere.py") is None


def test_is_public_name():
    assert is_public_name("area")
    assert is_public_name("__init__")
    assert not is_public_name("_cache")
    assert not is_public_name("__secret")


# ---------------------------------------------------------------------------
# Declarations
# ---------------------------------------------------------------------------


def test_exports_follow_dunder_all(provider_for):
    provider, root = provider_for({
        "m.py": """
            __all__ = ["public"]

            def public() -> None: ...
            def also_public_name() -> None: ...
            def _private() -> None: ...
        """
    })

    declarations = _declarations(provider, root / "m.py")
    assert declarations["public"].exported
    assert not declarations["also_public_name"].exported
    assert declarations["_private"].private


def test_without_dunder_all_private_names_are_exported_but_private(provider_for):
    provider, root = provider_for({"m.py": "def public() -> None: ...\ndef _helper() -> None: ...\n"})

    declarations = _declarations(provider, root / "m.py")
    assert declarations["public"].exported
    assert not declarations["public"].private
    assert declarations["_helper"].exported
    assert declarations["_helper"].private
    assert declarations["_helper"].location.line == 2


def test_class_kinds(provider_for):
    provider, root = provider_for({
        "kinds.py": """
            from abc import ABC
            from enum import Enum
            from typing import Protocol, TypedDict

            class Shape(Protocol): ...
            class Options(TypedDict): ...
            class Color(Enum):
                RED = 1
            class Base(ABC): ...
            class Circle(Base, Shape): ...
        """
    })

    declarations = _declarations(provider, root / "kinds.py")
    assert declarations["Shape"].kind == DeclarationKind.INTERFACE
    assert declarations["Options"].kind == DeclarationKind.INTERFACE
    assert declarations["Color"].kind == DeclarationKind.ENUM
    assert declarations["Base"].has(Modifier.ABSTRACT)
    circle = declarations["Circle"]
    assert circle.kind == DeclarationKind.CLASS
    assert [b.id for b in circle.bases] == ["Base"]
    assert [b.id for b in circle.implements] == ["Shape"]


def test_class_members(provider_for):
    provider, root = provider_for({
        "shapes.py": '''
            from functools import cached_property
            from typing import ClassVar, overload

            class Circle:
                """A circle."""

                sides: ClassVar[int] = 0
                """Number of straight sides."""

                def __init__(self, radius: float, *, unit: str = "m") -> None:
                    self.radius: float = radius

                @property
                def diameter(self) -> float:
                    return self.radius * 2

                @diameter.setter
                def diameter(self, value: float) -> None:
                    self.radius = value / 2

                @diameter.deleter
                def diameter(self) -> None: ...

                @cached_property
                def area(self) -> float: ...

                @staticmethod
                def unit() -> "Circle": ...

                async def refresh(self) -> None: ...
        '''
    })

    circle = _declarations(provider, root / "shapes.py")["Circle"]
    members = provider.get_members(circle)
    assert [(m.name, m.kind) for m in members] == [
        ("sides", DeclarationKind.PROPERTY),
        ("__init__", DeclarationKind.CONSTRUCTOR),
        ("radius", DeclarationKind.PROPERTY),
        ("diameter", DeclarationKind.ACCESSOR),
        ("diameter", DeclarationKind.ACCESSOR),
        ("area", DeclarationKind.ACCESSOR),
        ("unit", DeclarationKind.METHOD),
        ("refresh", DeclarationKind.METHOD),
    ]
    sides, init, _, getter, setter, _, unit, refresh = members
    assert sides.has(Modifier.STATIC)
    assert sides.comment == "Number of straight sides."
    assert [p.name for p in init.parameters] == ["radius", "unit"]
    assert init.parameters[1].keyword_only and init.parameters[1].optional
    assert init.parameters[1].default_value == "'m'"
    assert not getter.has(Modifier.SETTER) and setter.has(Modifier.SETTER)
    assert getter.symbol == setter.symbol == "shapes.Circle.diameter"
    assert unit.has(Modifier.STATIC) and unit.parameters == ()
    assert refresh.has(Modifier.ASYNC)


def test_definitions_in_both_branches_share_a_symbol(provider_for):
    provider, root = provider_for({
        "compat.py": """
            import sys

            if sys.version_info >= (3, 12):
                class Config: ...
            else:
                class Config: ...
        """
    })

    configs = [d for d in provider.get_declarations(provider.get_entry_point(root / "compat.py")) if d.name == "Config"]
    assert len(configs) == 2
    assert configs[0].symbol == configs[1].symbol == "compat.Config"
    assert configs[0].location.line != configs[1].location.line


def test_values_and_type_aliases(provider_for):
    provider, root = provider_for({
        "values.py": '''
            from typing import Final, NewType, TypeAlias

            MAX_SIZE = 10
            """Upper bound."""
            ratio: Final = 0.5
            Vector: TypeAlias = list[float]
            UserId = NewType("UserId", int)
            type Pair[T] = tuple[T, T]
        '''
    })

    declarations = _declarations(provider, root / "values.py")
    assert declarations["MAX_SIZE"].kind == DeclarationKind.VARIABLE
    assert declarations["MAX_SIZE"].has(Modifier.READONLY)
    assert declarations["MAX_SIZE"].comment == "Upper bound."
    assert declarations["MAX_SIZE"].default_value == "10"
    assert declarations["ratio"].has(Modifier.READONLY)
    assert declarations["Vector"].kind == DeclarationKind.TYPE_ALIAS
    assert declarations["UserId"].kind == DeclarationKind.TYPE_ALIAS
    assert [tp.name for tp in declarations["Pair"].type_parameters] == ["T"]


def test_reexports_become_aliases(provider_for):
    provider, root = provider_for({
        "pkg/__init__.py": """
            from pkg.core import Engine
            from pkg.util import helper as helper
            from pkg.util import hidden

            __all__ = ["Engine"]
        """,
        "pkg/core.py": "class Engine: ...\n",
        "pkg/util.py": "def helper() -> None: ...\ndef hidden() -> None: ...\n",
    })

    aliases = _declarations(provider, root / "pkg/__init__.py")
    assert set(aliases) == {"Engine", "helper"}
    engine = provider.resolve_alias(aliases["Engine"])
    assert engine.symbol == "pkg.core.Engine"
    assert engine.kind == DeclarationKind.CLASS


def test_alias_to_missing_module_is_unresolved(provider_for):
    provider, root = provider_for({"m.py": "from elsewhere import Thing\n__all__ = ['Thing']\n"})

    alias = _declarations(provider, root / "m.py")["Thing"]
    assert provider.resolve_alias(alias) is None


# ---------------------------------------------------------------------------
# Type descriptions
# ---------------------------------------------------------------------------


def _param_types(provider, declaration):
    return {p.name: provider.describe_type(declaration, p.type) for p in declaration.parameters}


def test_describe_types(provider_for):
    provider, root = provider_for({
        "api.py": """
            from collections.abc import Callable
            from pathlib import Path
            from typing import Literal, Optional, Union

            class Shape: ...

            def f(
                a: int,
                b: Optional[str],
                c: list[Shape],
                d: tuple[int, ...],
                e: tuple[int, str],
                g: Literal["r", "w"],
                h: Callable[[int], str],
                i: Path,
                j: "Shape",
                k: Union[int, None],
                m: dict[str, int],
                n: int | str,
                o: 3 + 4,
            ) -> None: ...
        """
    })

    f = _declarations(provider, root / "api.py")["f"]
    types = _param_types(provider, f)
    assert types["a"].kind == TypeDescriptionKind.INTRINSIC and types["a"].name == "int"
    assert types["b"].kind == TypeDescriptionKind.UNION
    assert [t.name for t in types["b"].arguments] == ["str", "None"]
    assert types["c"].kind == TypeDescriptionKind.ARRAY
    assert types["c"].arguments[0].symbol == "api.Shape"
    assert types["d"].kind == TypeDescriptionKind.ARRAY
    assert types["e"].kind == TypeDescriptionKind.TUPLE
    assert [t.value for t in types["g"].arguments] == ["r", "w"]
    assert types["h"].kind == TypeDescriptionKind.OBJECT
    assert len(types["h"].call_signatures) == 1
    assert types["i"].kind == TypeDescriptionKind.REFERENCE
    assert types["i"].symbol is None and types["i"].qualified_name == "pathlib.Path"
    assert types["j"].symbol == "api.Shape"
    assert types["k"].kind == TypeDescriptionKind.UNION
    assert types["m"].qualified_name == "builtins.dict" and len(types["m"].arguments) == 2
    assert [t.name for t in types["n"].arguments] == ["int", "str"]
    assert types["o"].kind == TypeDescriptionKind.UNKNOWN
    assert types["o"].text == "3 + 4"


def test_type_variables(provider_for):
    provider, root = provider_for({
        "generic.py": """
            from typing import Generic, TypeVar

            T = TypeVar("T", bound="Base")
            N = TypeVar("N", int, float)

            class Base: ...

            class Box(Generic[T]):
                def get(self) -> T: ...

            def first(items: list[N]) -> N: ...

            class Pair[K, V: str]:
                pass
        """
    })

    declarations = _declarations(provider, root / "generic.py")
    assert "T" not in declarations

    box = declarations["Box"]
    assert [tp.name for tp in box.type_parameters] == ["T"]
    assert box.bases == ()
    assert provider.describe_type(box, box.type_parameters[0].constraint).symbol == "generic.Base"
    get = provider.get_members(box)[0]
    assert get.type_parameters == ()
    assert provider.describe_type(get, get.returns).kind == TypeDescriptionKind.TYPE_PARAMETER

    first = declarations["first"]
    assert [tp.name for tp in first.type_parameters] == ["N"]
    assert provider.describe_type(first, first.type_parameters[0].constraint).kind == TypeDescriptionKind.UNION

    pair = declarations["Pair"]
    assert [tp.name for tp in pair.type_parameters] == ["K", "V"]
    assert pair.type_parameters[0].constraint is None
