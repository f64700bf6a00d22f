"""Semantic provider for Python sources, backed by the ``ast`` module.

The provider parses a fixed set of files (the "program"), indexes the
top-level definitions and imports of every module, and answers the converter's
questions from those indexes:

- symbols are dotted qualified names (``shapes.Circle.area``);
- a module's exports follow ``__all__`` when present, otherwise every name
  the module defines (underscore names stay private); imported names are
  only exported when listed in ``__all__`` or written as ``import x as x``;
- names are resolved through imports inside the program; anything outside
  the program is an external reference, never an error;
- classes deriving from ``Protocol`` or ``TypedDict`` are interfaces, from
  an ``Enum`` family base enums.

Nothing is inferred beyond literal values; this is not a type checker.
"""

import ast
import builtins
from collections.abc import Iterator
from dataclasses import dataclass, field, replace
from functools import reduce
from pathlib import Path
from typing import Any

from reflectdoc.logging import get_logger
from reflectdoc.semantic.protocol import (
    CallSignatureInfo,
    Declaration,
    DeclarationKind,
    Diagnostic,
    EntryPoint,
    Modifier,
    ParameterInfo,
    SourceLocation,
    TypeDescription,
    TypeDescriptionKind,
    TypeParameterInfo,
)

logger = get_logger(__name__)

INTRINSICS: dict[str, str] = {
    "builtins.int": "int",
    "builtins.str": "str",
    "builtins.float": "float",
    "builtins.bool": "bool",
    "builtins.bytes": "bytes",
    "builtins.bytearray": "bytearray",
    "builtins.complex": "complex",
    "builtins.object": "object",
    "builtins.None": "None",
    "typing.Any": "Any",
    "typing.NoReturn": "NoReturn",
    "typing.Never": "Never",
    "typing.LiteralString": "LiteralString",
    "typing.Self": "Self",
}

_PROTOCOL_BASES = frozenset({"typing.Protocol", "typing.TypedDict"})
_ENUM_BASES = frozenset({"enum.Enum", "enum.IntEnum", "enum.StrEnum", "enum.Flag", "enum.IntFlag"})
_MARKER_BASES = frozenset({"typing.Protocol", "typing.Generic", "builtins.object", "abc.ABC", "typing.TypedDict"}) | _ENUM_BASES
_WRAPPERS = frozenset({"typing.Annotated", "typing.ClassVar", "typing.Final", "typing.Required", "typing.NotRequired", "typing.ReadOnly"})
_TYPE_VAR_FACTORIES = frozenset({"TypeVar", "ParamSpec", "TypeVarTuple"})
_PROPERTY_DECORATORS = frozenset({"property", "cached_property"})


def is_public_name(name: str) -> bool:
    """Determine if a symbol is public based on Python naming convention."""
    if name.startswith("__") and name.endswith("__"):
        return True
    return not name.startswith("_")


@dataclass(frozen=True, slots=True)
class _Scope:
    module: str
    type_parameters: frozenset[str] = frozenset()


@dataclass
class _ModuleIndex:
    name: str
    path: Path
    file: str
    tree: ast.Module
    is_package: bool
    all_names: set[str] | None = None
    definitions: dict[str, list[ast.stmt]] = field(default_factory=dict)
    imports: dict[str, tuple[str, str | None]] = field(default_factory=dict)
    reexports: set[str] = field(default_factory=set)
    type_vars: dict[str, ast.Call] = field(default_factory=dict)


class PythonSemanticProvider:
    """``SemanticProvider`` over a set of Python files.

    Build it with ``from_paths``; files that fail to parse are reported as
    error diagnostics and left out of the program.
    """

    def __init__(self, modules: dict[str, _ModuleIndex], diagnostics: list[Diagnostic]):
        self._modules = modules
        self._diagnostics = diagnostics

    @classmethod
    def from_paths(cls, paths: list[Path], root: Path | None = None) -> "PythonSemanticProvider":
        files = sorted({p.resolve() for p in paths})
        if root is None:
            root = _package_root(files)
        modules: dict[str, _ModuleIndex] = {}
        diagnostics: list[Diagnostic] = []
        for path in files:
            display = _relative(path, root)
            try:
                tree = ast.parse(path.read_text(encoding="utf-8"), filename=str(path))
            except SyntaxError as exc:
                diagnostics.append(Diagnostic(message=exc.msg, file=display, line=exc.lineno or 0, column=exc.offset or 0))
                continue
            except (OSError, UnicodeDecodeError) as exc:
                diagnostics.append(Diagnostic(message=str(exc), file=display))
                continue
            name = _module_name(path, root)
            modules[name] = _index_module(name, path, display, tree)
        logger.debug("Indexed %d module(s) under %s", len(modules), root)
        return cls(modules, diagnostics)

    @property
    def module_names(self) -> list[str]:
        return sorted(self._modules)

    # ------------------------------------------------------------------
    # SemanticProvider
    # ------------------------------------------------------------------

    def get_diagnostics(self) -> list[Diagnostic]:
        return list(self._diagnostics)

    def get_entry_point(self, path: Path) -> EntryPoint | None:
        resolved = path.resolve()
        for index in self._modules.values():
            if index.path == resolved:
                return EntryPoint(
                    display_name=index.name,
                    path=index.path,
                    module=index.name,
                    comment=ast.get_docstring(index.tree),
                    location=SourceLocation(index.file, 1, 0),
                )
        return None

    def get_declarations(self, entry_point: EntryPoint) -> list[Declaration]:
        index = self._modules.get(entry_point.module)
        if index is None:
            return []
        return self._module_declarations(index)

    def get_members(self, declaration: Declaration) -> list[Declaration]:
        if declaration.kind == DeclarationKind.MODULE:
            return self._module_declarations(self._modules[declaration.symbol])
        if declaration.kind in (DeclarationKind.CLASS, DeclarationKind.INTERFACE, DeclarationKind.ENUM):
            index, node = declaration.node
            return self._class_members(index, node, declaration)
        return []

    def describe_type(self, declaration: Declaration, expression: Any) -> TypeDescription:
        if isinstance(expression, TypeDescription):
            return expression
        scope = declaration.scope if isinstance(declaration.scope, _Scope) else _Scope(declaration.symbol.rsplit(".", 1)[0])
        return self._describe(scope, expression)

    def resolve_alias(self, declaration: Declaration) -> Declaration | None:
        if declaration.kind != DeclarationKind.ALIAS:
            return declaration
        return self._follow_alias(declaration, set())

    # ------------------------------------------------------------------
    # Declarations
    # ------------------------------------------------------------------

    def _module_declarations(self, index: _ModuleIndex) -> list[Declaration]:
        declarations: list[Declaration] = []
        scope = _Scope(index.name)
        for stmt, following in _walk_body(index.tree.body):
            match stmt:
                case ast.ClassDef():
                    declarations.append(self._class_declaration(index, stmt, index.name, scope))
                case ast.FunctionDef() | ast.AsyncFunctionDef():
                    declarations.append(self._function_declaration(index, stmt, index.name, scope, DeclarationKind.FUNCTION))
                case ast.Import() | ast.ImportFrom():
                    declarations.extend(self._alias_declarations(index, stmt))
                case _:
                    if (value := self._value_declaration(index, stmt, following, scope)) is not None:
                        declarations.append(value)
        return declarations

    def _module_declaration(self, index: _ModuleIndex, name: str | None = None) -> Declaration:
        return Declaration(
            symbol=index.name,
            name=name or index.name.rsplit(".", 1)[-1],
            kind=DeclarationKind.MODULE,
            location=SourceLocation(index.file, 1, 0),
            comment=ast.get_docstring(index.tree),
            scope=_Scope(index.name),
        )

    def _base_declaration(self, index: _ModuleIndex, stmt: ast.stmt, symbol: str, name: str, kind: DeclarationKind, **fields) -> Declaration:
        parent_is_module = symbol.rsplit(".", 1)[0] == index.name
        exported = _is_exported(index, name) if parent_is_module else True
        return Declaration(
            symbol=symbol,
            name=name,
            kind=kind,
            location=SourceLocation(index.file, stmt.lineno, stmt.col_offset),
            exported=exported,
            private=not is_public_name(name),
            **fields,
        )

    def _class_declaration(self, index: _ModuleIndex, node: ast.ClassDef, parent_symbol: str, outer: _Scope) -> Declaration:
        symbol = f"{parent_symbol}.{node.name}"
        kind = self._class_kind(index, node, set())
        type_parameters = self._class_type_parameters(index, node)
        scope = replace(outer, type_parameters=outer.type_parameters | {tp.name for tp in type_parameters})

        bases: list[ast.expr] = []
        implements: list[ast.expr] = []
        modifiers: set[Modifier] = set()
        for base in node.bases:
            qualified = self._qualified(index.name, _head(base))
            if qualified == "abc.ABC":
                modifiers.add(Modifier.ABSTRACT)
            if qualified in _MARKER_BASES:
                continue
            target = self._find_class(qualified) if qualified else None
            if kind == DeclarationKind.CLASS and target is not None and self._class_kind(*target, set()) == DeclarationKind.INTERFACE:
                implements.append(base)
            else:
                bases.append(base)
        for keyword in node.keywords:
            if keyword.arg == "metaclass" and self._qualified(index.name, keyword.value) == "abc.ABCMeta":
                modifiers.add(Modifier.ABSTRACT)

        return self._base_declaration(
            index,
            node,
            symbol,
            node.name,
            kind,
            comment=ast.get_docstring(node),
            modifiers=frozenset(modifiers),
            type_parameters=type_parameters,
            bases=tuple(bases),
            implements=tuple(implements),
            scope=scope,
            node=(index, node),
        )

    def _function_declaration(
        self,
        index: _ModuleIndex,
        node: ast.FunctionDef | ast.AsyncFunctionDef,
        parent_symbol: str,
        outer: _Scope,
        kind: DeclarationKind,
        name: str | None = None,
        extra_modifiers: frozenset[Modifier] = frozenset(),
    ) -> Declaration:
        name = name or node.name
        decorators = {_decorator_name(d) for d in node.decorator_list}
        modifiers = set(extra_modifiers)
        if isinstance(node, ast.AsyncFunctionDef):
            modifiers.add(Modifier.ASYNC)
        if "overload" in decorators:
            modifiers.add(Modifier.OVERLOAD)
        if decorators & {"staticmethod", "classmethod"}:
            modifiers.add(Modifier.STATIC)
        if "abstractmethod" in decorators:
            modifiers.add(Modifier.ABSTRACT)

        type_parameters = self._function_type_parameters(index, node, outer)
        scope = replace(outer, type_parameters=outer.type_parameters | {tp.name for tp in type_parameters})
        drop_first = kind != DeclarationKind.FUNCTION and "staticmethod" not in decorators
        return self._base_declaration(
            index,
            node,
            f"{parent_symbol}.{name}",
            name,
            kind,
            comment=ast.get_docstring(node),
            modifiers=frozenset(modifiers),
            parameters=_parameters(node.args, drop_first),
            returns=node.returns,
            type_parameters=type_parameters,
            scope=scope,
            node=(index, node),
        )

    def _value_declaration(self, index: _ModuleIndex, stmt: ast.stmt, following: ast.stmt | None, scope: _Scope) -> Declaration | None:
        """Module-level variable or type alias; None for anything else."""
        comment = _attribute_docstring(following)
        if isinstance(stmt, ast.TypeAlias):
            params = tuple(_pep695_type_parameter(p) for p in stmt.type_params)
            inner = replace(scope, type_parameters=scope.type_parameters | {p.name for p in params})
            name = stmt.name.id
            return self._base_declaration(
                index, stmt, f"{index.name}.{name}", name, DeclarationKind.TYPE_ALIAS, comment=comment, type=stmt.value, type_parameters=params, scope=inner
            )
        if isinstance(stmt, ast.AnnAssign) and isinstance(stmt.target, ast.Name):
            name = stmt.target.id
            symbol = f"{index.name}.{name}"
            if self._qualified(index.name, stmt.annotation) == "typing.TypeAlias" and stmt.value is not None:
                return self._base_declaration(index, stmt, symbol, name, DeclarationKind.TYPE_ALIAS, comment=comment, type=stmt.value, scope=scope)
            annotation, modifiers = self._unwrap_annotation(index.name, stmt.annotation)
            if annotation is None and stmt.value is not None:
                annotation = _describe_value(stmt.value)
            return self._base_declaration(
                index,
                stmt,
                symbol,
                name,
                DeclarationKind.VARIABLE,
                comment=comment,
                modifiers=modifiers,
                type=annotation,
                default_value=ast.unparse(stmt.value) if stmt.value is not None else None,
                scope=scope,
            )
        if isinstance(stmt, ast.Assign) and len(stmt.targets) == 1 and isinstance(stmt.targets[0], ast.Name):
            name = stmt.targets[0].id
            if name == "__all__" or name in index.type_vars:
                return None
            symbol = f"{index.name}.{name}"
            if isinstance(stmt.value, ast.Call) and _call_name(stmt.value) == "NewType" and len(stmt.value.args) == 2:
                return self._base_declaration(index, stmt, symbol, name, DeclarationKind.TYPE_ALIAS, comment=comment, type=stmt.value.args[1], scope=scope)
            modifiers = frozenset({Modifier.READONLY}) if name.isupper() else frozenset()
            return self._base_declaration(
                index,
                stmt,
                symbol,
                name,
                DeclarationKind.VARIABLE,
                comment=comment,
                modifiers=modifiers,
                type=_describe_value(stmt.value),
                default_value=ast.unparse(stmt.value),
                scope=scope,
            )
        return None

    def _alias_declarations(self, index: _ModuleIndex, stmt: ast.Import | ast.ImportFrom) -> list[Declaration]:
        aliases: list[Declaration] = []
        for alias in stmt.names:
            if alias.name == "*":
                continue
            local = alias.asname or alias.name.split(".")[0]
            listed = index.all_names is not None and local in index.all_names
            if not listed and local not in index.reexports:
                continue
            target_module, attr = index.imports[local]
            aliases.append(
                Declaration(
                    symbol=f"{index.name}.{local}",
                    name=local,
                    kind=DeclarationKind.ALIAS,
                    location=SourceLocation(index.file, stmt.lineno, stmt.col_offset),
                    exported=True,
                    private=not is_public_name(local),
                    alias_target=f"{target_module}.{attr}" if attr else target_module,
                    scope=_Scope(index.name),
                    node=(index.name, local),
                )
            )
        return aliases

    def _class_members(self, index: _ModuleIndex, node: ast.ClassDef, owner: Declaration) -> list[Declaration]:
        members: list[Declaration] = []
        scope: _Scope = owner.scope
        is_enum = owner.kind == DeclarationKind.ENUM
        is_typed_dict = any(self._qualified(index.name, _head(b)) == "typing.TypedDict" for b in node.bases)
        for stmt, following in _walk_body(node.body):
            match stmt:
                case ast.ClassDef():
                    members.append(self._class_declaration(index, stmt, owner.symbol, scope))
                case ast.FunctionDef() | ast.AsyncFunctionDef():
                    members.extend(self._method_declarations(index, stmt, owner, scope))
                case ast.AnnAssign(target=ast.Name(id=name)) if not is_enum:
                    annotation, modifiers = self._unwrap_annotation(index.name, stmt.annotation)
                    if is_typed_dict and self._qualified(index.name, _head(stmt.annotation)) == "typing.NotRequired":
                        modifiers |= {Modifier.OPTIONAL}
                    if annotation is None and stmt.value is not None:
                        annotation = _describe_value(stmt.value)
                    members.append(
                        self._base_declaration(
                            index,
                            stmt,
                            f"{owner.symbol}.{name}",
                            name,
                            DeclarationKind.PROPERTY,
                            comment=_attribute_docstring(following),
                            modifiers=modifiers,
                            type=annotation,
                            default_value=ast.unparse(stmt.value) if stmt.value is not None else None,
                            scope=scope,
                        )
                    )
                case ast.Assign(targets=[ast.Name(id=name)]) if not (name.startswith("__") and name.endswith("__")):
                    kind = DeclarationKind.ENUM_MEMBER if is_enum else DeclarationKind.PROPERTY
                    value_type = _literal_description(stmt.value) if is_enum else _describe_value(stmt.value)
                    members.append(
                        self._base_declaration(
                            index,
                            stmt,
                            f"{owner.symbol}.{name}",
                            name,
                            kind,
                            comment=_attribute_docstring(following),
                            modifiers=frozenset({Modifier.READONLY}) if is_enum else frozenset(),
                            type=value_type,
                            default_value=ast.unparse(stmt.value),
                            scope=scope,
                        )
                    )
        return members

    def _method_declarations(
        self, index: _ModuleIndex, node: ast.FunctionDef | ast.AsyncFunctionDef, owner: Declaration, scope: _Scope
    ) -> list[Declaration]:
        accessor = _accessor_role(node)
        if accessor == "deleter":
            return []
        if accessor is not None:
            name = node.name if accessor == "getter" else _accessor_owner(node) or node.name
            extra = frozenset({Modifier.SETTER}) if accessor == "setter" else frozenset()
            return [self._function_declaration(index, node, owner.symbol, scope, DeclarationKind.ACCESSOR, name=name, extra_modifiers=extra)]

        kind = DeclarationKind.CONSTRUCTOR if node.name == "__init__" else DeclarationKind.METHOD
        declarations = [self._function_declaration(index, node, owner.symbol, scope, kind)]
        if kind == DeclarationKind.CONSTRUCTOR:
            declarations.extend(self._instance_attributes(index, node, owner, scope))
        return declarations

    def _instance_attributes(self, index: _ModuleIndex, node: ast.FunctionDef | ast.AsyncFunctionDef, owner: Declaration, scope: _Scope) -> list[Declaration]:
        """Annotated ``self.x: T = ...`` assignments in ``__init__``."""
        attributes: list[Declaration] = []
        for stmt, following in _walk_body(node.body):
            if not (
                isinstance(stmt, ast.AnnAssign)
                and isinstance(stmt.target, ast.Attribute)
                and isinstance(stmt.target.value, ast.Name)
                and stmt.target.value.id == "self"
            ):
                continue
            name = stmt.target.attr
            annotation, modifiers = self._unwrap_annotation(index.name, stmt.annotation)
            attributes.append(
                self._base_declaration(
                    index,
                    stmt,
                    f"{owner.symbol}.{name}",
                    name,
                    DeclarationKind.PROPERTY,
                    comment=_attribute_docstring(following),
                    modifiers=modifiers,
                    type=annotation,
                    scope=scope,
                )
            )
        return attributes

    def _follow_alias(self, declaration: Declaration, visited: set[str]) -> Declaration | None:
        if declaration.symbol in visited:
            logger.warning("Circular re-export of %s", declaration.symbol)
            return None
        visited.add(declaration.symbol)
        module_name, local = declaration.node
        target_module, attr = self._modules[module_name].imports[local]
        if attr is None or f"{target_module}.{attr}" in self._modules:
            module = target_module if attr is None else f"{target_module}.{attr}"
            index = self._modules.get(module)
            return self._module_declaration(index, declaration.name) if index else None
        index = self._modules.get(target_module)
        if index is None:
            return None
        for candidate in self._module_declarations(index):
            if candidate.name != attr:
                continue
            if candidate.kind == DeclarationKind.ALIAS:
                return self._follow_alias(candidate, visited)
            return candidate
        # Imported but not re-exported from the intermediate module
        if attr in index.imports:
            next_module, next_attr = index.imports[attr]
            return self._find_declaration(next_module, next_attr, visited)
        return None

    def _find_declaration(self, module: str, attr: str | None, visited: set[str]) -> Declaration | None:
        if attr is None:
            index = self._modules.get(module)
            return self._module_declaration(index) if index else None
        index = self._modules.get(module)
        if index is None:
            return None
        key = f"{module}.{attr}"
        if key in visited:
            return None
        visited.add(key)
        for candidate in self._module_declarations(index):
            if candidate.name == attr and candidate.kind != DeclarationKind.ALIAS:
                return candidate
        if attr in index.imports:
            return self._find_declaration(*index.imports[attr], visited)
        return None

    # ------------------------------------------------------------------
    # Classes and type parameters
    # ------------------------------------------------------------------

    def _find_class(self, symbol: str) -> tuple[_ModuleIndex, ast.ClassDef] | None:
        module, _, name = symbol.rpartition(".")
        index = self._modules.get(module)
        if index is None:
            return None
        for stmt in index.definitions.get(name, []):
            if isinstance(stmt, ast.ClassDef):
                return index, stmt
        return None

    def _class_kind(self, index: _ModuleIndex, node: ast.ClassDef, visited: set[str]) -> DeclarationKind:
        key = f"{index.name}.{node.name}"
        if key in visited:
            return DeclarationKind.CLASS
        visited.add(key)
        for base in node.bases:
            qualified = self._qualified(index.name, _head(base))
            if qualified in _PROTOCOL_BASES:
                return DeclarationKind.INTERFACE
            if qualified in _ENUM_BASES:
                return DeclarationKind.ENUM
            target = self._find_class(qualified) if qualified else None
            if target is not None and self._class_kind(*target, visited) == DeclarationKind.ENUM:
                return DeclarationKind.ENUM
        return DeclarationKind.CLASS

    def _class_type_parameters(self, index: _ModuleIndex, node: ast.ClassDef) -> tuple[TypeParameterInfo, ...]:
        if node.type_params:
            return tuple(_pep695_type_parameter(p) for p in node.type_params)
        explicit: list[str] = []
        implicit: list[str] = []
        for base in node.bases:
            if not isinstance(base, ast.Subscript):
                continue
            names = [n.id for n in ast.walk(base.slice) if isinstance(n, ast.Name) and n.id in index.type_vars]
            if self._qualified(index.name, base.value) in ("typing.Generic", "typing.Protocol"):
                explicit.extend(names)
            else:
                implicit.extend(names)
        ordered = explicit or implicit
        return tuple(self._type_var_parameter(index, name) for name in dict.fromkeys(ordered))

    def _function_type_parameters(self, index: _ModuleIndex, node: ast.FunctionDef | ast.AsyncFunctionDef, outer: _Scope) -> tuple[TypeParameterInfo, ...]:
        if node.type_params:
            return tuple(_pep695_type_parameter(p) for p in node.type_params)
        annotations = [a.annotation for a in _all_arguments(node.args) if a.annotation is not None]
        if node.returns is not None:
            annotations.append(node.returns)
        names: list[str] = []
        for annotation in annotations:
            for n in ast.walk(annotation):
                if isinstance(n, ast.Name) and n.id in index.type_vars and n.id not in outer.type_parameters:
                    names.append(n.id)
        return tuple(self._type_var_parameter(index, name) for name in dict.fromkeys(names))

    def _type_var_parameter(self, index: _ModuleIndex, name: str) -> TypeParameterInfo:
        call = index.type_vars[name]
        constraint: ast.expr | None = None
        default: ast.expr | None = None
        for keyword in call.keywords:
            if keyword.arg == "bound":
                constraint = keyword.value
            elif keyword.arg == "default":
                default = keyword.value
        if constraint is None and len(call.args) > 2:
            constraint = reduce(lambda left, right: ast.BinOp(left=left, op=ast.BitOr(), right=right), call.args[1:])
        return TypeParameterInfo(name=name, constraint=constraint, default=default)

    def _unwrap_annotation(self, module: str, annotation: ast.expr) -> tuple[ast.expr | None, frozenset[Modifier]]:
        """Strip ClassVar/Final wrappers into modifiers; bare ``Final`` leaves no type."""
        modifiers: set[Modifier] = set()
        current: ast.expr | None = annotation
        while current is not None:
            qualified = self._qualified(module, _head(current))
            if qualified == "typing.ClassVar":
                modifiers.add(Modifier.STATIC)
            elif qualified == "typing.Final":
                modifiers.add(Modifier.READONLY)
            else:
                break
            current = current.slice if isinstance(current, ast.Subscript) else None
        return current, frozenset(modifiers)

    # ------------------------------------------------------------------
    # Name resolution
    # ------------------------------------------------------------------

    def _qualified(self, module: str, expr: ast.expr | None) -> str | None:
        """Canonical dotted name of a Name/Attribute expression, following imports."""
        qualified, _ = self._resolve(module, expr)
        return qualified

    def _resolve(self, module: str, expr: ast.expr | None) -> tuple[str | None, bool]:
        """Return (qualified name, declared inside the program)."""
        if isinstance(expr, ast.Name):
            return self._resolve_name(module, expr.id, set())
        if isinstance(expr, ast.Attribute):
            owner, in_program = self._resolve(module, expr.value)
            if owner is None:
                return None, False
            if owner in self._modules:
                return self._lookup(owner, expr.attr, set())
            return _normalize(f"{owner}.{expr.attr}"), in_program
        return None, False

    def _resolve_name(self, module: str, name: str, visited: set[str]) -> tuple[str | None, bool]:
        index = self._modules.get(module)
        if index is not None:
            if name in index.definitions:
                return f"{module}.{name}", True
            if name in index.imports:
                target_module, attr = index.imports[name]
                if attr is None:
                    return target_module, target_module in self._modules
                return self._lookup(target_module, attr, visited)
        if hasattr(builtins, name) or name == "None":
            return f"builtins.{name}", False
        return None, False

    def _lookup(self, module: str, attr: str, visited: set[str]) -> tuple[str | None, bool]:
        key = f"{module}.{attr}"
        if key in self._modules:
            return key, True
        if module not in self._modules or key in visited:
            return _normalize(key), False
        visited.add(key)
        return self._resolve_name(module, attr, visited) if attr in self._modules[module].imports else (key, attr in self._modules[module].definitions)

    # ------------------------------------------------------------------
    # Type descriptions
    # ------------------------------------------------------------------

    def _describe(self, scope: _Scope, expr: ast.expr | None) -> TypeDescription:
        match expr:
            case None | ast.Constant(value=None):
                return TypeDescription(TypeDescriptionKind.INTRINSIC, name="None", text="None")
            case ast.Constant(value=str() as text):
                try:
                    parsed = ast.parse(text, mode="eval").body
                except SyntaxError:
                    return _unknown(text)
                return self._describe(scope, parsed)
            case ast.Name() | ast.Attribute():
                return self._describe_name(scope, expr)
            case ast.Subscript():
                return self._describe_subscript(scope, expr)
            case ast.BinOp(op=ast.BitOr()):
                return TypeDescription(
                    TypeDescriptionKind.UNION, text=ast.unparse(expr), arguments=tuple(self._describe(scope, e) for e in _flatten_union(expr))
                )
            case _:
                return _unknown(ast.unparse(expr))

    def _describe_name(self, scope: _Scope, expr: ast.Name | ast.Attribute) -> TypeDescription:
        text = ast.unparse(expr)
        index = self._modules.get(scope.module)
        if isinstance(expr, ast.Name) and (expr.id in scope.type_parameters or (index is not None and expr.id in index.type_vars)):
            return TypeDescription(TypeDescriptionKind.TYPE_PARAMETER, name=expr.id, text=text)
        qualified, in_program = self._resolve(scope.module, expr)
        if qualified is None:
            return TypeDescription(TypeDescriptionKind.REFERENCE, name=text, text=text)
        if qualified in INTRINSICS:
            return TypeDescription(TypeDescriptionKind.INTRINSIC, name=INTRINSICS[qualified], text=text)
        if in_program:
            return TypeDescription(TypeDescriptionKind.REFERENCE, name=text, text=text, symbol=qualified, qualified_name=qualified)
        return TypeDescription(TypeDescriptionKind.REFERENCE, name=text, text=text, qualified_name=qualified)

    def _describe_subscript(self, scope: _Scope, expr: ast.Subscript) -> TypeDescription:
        text = ast.unparse(expr)
        head = self._qualified(scope.module, expr.value)
        args = list(expr.slice.elts) if isinstance(expr.slice, ast.Tuple) else [expr.slice]

        def describe_all(items: list[ast.expr]) -> tuple[TypeDescription, ...]:
            return tuple(self._describe(scope, item) for item in items)

        match head:
            case "typing.Union":
                return TypeDescription(TypeDescriptionKind.UNION, text=text, arguments=describe_all(args))
            case "typing.Optional":
                return TypeDescription(TypeDescriptionKind.UNION, text=text, arguments=(*describe_all(args[:1]), self._describe(scope, None)))
            case "builtins.list" | "typing.List":
                return TypeDescription(TypeDescriptionKind.ARRAY, text=text, arguments=describe_all(args[:1]))
            case "builtins.tuple" | "typing.Tuple":
                if len(args) == 2 and isinstance(args[1], ast.Constant) and args[1].value is Ellipsis:
                    return TypeDescription(TypeDescriptionKind.ARRAY, text=text, arguments=describe_all(args[:1]))
                if isinstance(expr.slice, ast.Tuple) and not expr.slice.elts:
                    return TypeDescription(TypeDescriptionKind.TUPLE, text=text)
                return TypeDescription(TypeDescriptionKind.TUPLE, text=text, arguments=describe_all(args))
            case "typing.Literal":
                literals = tuple(self._describe_literal(scope, a) for a in args)
                if len(literals) == 1:
                    return literals[0]
                return TypeDescription(TypeDescriptionKind.UNION, text=text, arguments=literals)
            case "typing.Callable":
                return self._describe_callable(scope, args, text)
            case wrapper if wrapper in _WRAPPERS:
                return self._describe(scope, args[0])

        if isinstance(expr.value, (ast.Name, ast.Attribute)):
            base = self._describe_name(scope, expr.value)
        else:
            base = _unknown(ast.unparse(expr.value))
        if base.kind != TypeDescriptionKind.REFERENCE:
            base = TypeDescription(TypeDescriptionKind.REFERENCE, name=base.text or base.name, text=base.text, qualified_name=head)
        return replace(base, text=text, arguments=describe_all(args))

    def _describe_literal(self, scope: _Scope, expr: ast.expr) -> TypeDescription:
        literal = _literal_description(expr)
        if literal is not None:
            return literal
        return self._describe(scope, expr)

    def _describe_callable(self, scope: _Scope, args: list[ast.expr], text: str) -> TypeDescription:
        parameters: tuple[ParameterInfo, ...]
        if args and isinstance(args[0], ast.List):
            parameters = tuple(ParameterInfo(name=f"arg{i}", type=self._describe(scope, a)) for i, a in enumerate(args[0].elts))
        else:
            any_type = TypeDescription(TypeDescriptionKind.INTRINSIC, name="Any", text="Any")
            parameters = (
                ParameterInfo(name="args", type=any_type, rest=True),
                ParameterInfo(name="kwargs", type=any_type, rest=True, keyword_only=True),
            )
        returns = self._describe(scope, args[1]) if len(args) > 1 else _unknown("...")
        return TypeDescription(
            TypeDescriptionKind.OBJECT,
            text=text,
            call_signatures=(CallSignatureInfo(parameters=parameters, returns=returns),),
        )


# ---------------------------------------------------------------------------
# Private helpers
# ---------------------------------------------------------------------------


def _package_root(files: list[Path]) -> Path:
    """Common directory of ``files``, lifted above any enclosing packages."""
    if not files:
        return Path.cwd()
    parents = [f.parent for f in files]
    root = parents[0]
    for parent in parents[1:]:
        while root not in (parent, *parent.parents):
            root = root.parent
    while (root / "__init__.py").exists() and root.parent != root:
        root = root.parent
    return root


def _relative(path: Path, root: Path) -> str:
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return path.as_posix()


def _module_name(path: Path, root: Path) -> str:
    try:
        parts = list(path.relative_to(root).with_suffix("").parts)
    except ValueError:
        parts = [path.stem]
    if parts and parts[-1] == "__init__" and len(parts) > 1:
        parts.pop()
    return ".".join(parts)


def _index_module(name: str, path: Path, file: str, tree: ast.Module) -> _ModuleIndex:
    is_package = path.name == "__init__.py"
    index = _ModuleIndex(name=name, path=path, file=file, tree=tree, is_package=is_package)
    package = name if is_package else name.rpartition(".")[0]
    for stmt, _ in _walk_body(tree.body):
        match stmt:
            case ast.ClassDef() | ast.FunctionDef() | ast.AsyncFunctionDef():
                index.definitions.setdefault(stmt.name, []).append(stmt)
            case ast.TypeAlias(name=ast.Name(id=alias_name)):
                index.definitions.setdefault(alias_name, []).append(stmt)
            case ast.AnnAssign(target=ast.Name(id=target)):
                index.definitions.setdefault(target, []).append(stmt)
            case ast.Assign(targets=[ast.Name(id="__all__")], value=ast.List() | ast.Tuple() as value):
                index.all_names = {e.value for e in value.elts if isinstance(e, ast.Constant) and isinstance(e.value, str)}
            case ast.Assign(targets=[ast.Name(id=target)], value=ast.Call() as call) if _call_name(call) in _TYPE_VAR_FACTORIES:
                index.type_vars[target] = call
            case ast.Assign(targets=[ast.Name(id=target)]):
                index.definitions.setdefault(target, []).append(stmt)
            case ast.Import():
                for alias in stmt.names:
                    if alias.asname:
                        index.imports[alias.asname] = (alias.name, None)
                        if alias.asname == alias.name:
                            index.reexports.add(alias.asname)
                    else:
                        head = alias.name.split(".")[0]
                        index.imports[head] = (head, None)
            case ast.ImportFrom():
                source = _absolute_module(package, stmt.module, stmt.level)
                for alias in stmt.names:
                    if alias.name == "*":
                        continue
                    local = alias.asname or alias.name
                    index.imports[local] = (source, alias.name)
                    if alias.asname == alias.name:
                        index.reexports.add(local)
    return index


def _absolute_module(package: str, module: str | None, level: int) -> str:
    if level == 0:
        return module or ""
    parts = package.split(".") if package else []
    if level > 1:
        parts = parts[: len(parts) - (level - 1)]
    if module:
        parts.append(module)
    return ".".join(parts)


def _walk_body(body: list[ast.stmt]) -> Iterator[tuple[ast.stmt, ast.stmt | None]]:
    """Statements in source order, descending into if/try/with blocks.

    Each statement comes with the one following it in the same block, so
    attribute docstrings can be picked up.
    """
    for i, stmt in enumerate(body):
        following = body[i + 1] if i + 1 < len(body) else None
        match stmt:
            case ast.If():
                yield from _walk_body(stmt.body)
                yield from _walk_body(stmt.orelse)
            case ast.Try() | ast.TryStar():
                yield from _walk_body(stmt.body)
                for handler in stmt.handlers:
                    yield from _walk_body(handler.body)
                yield from _walk_body(stmt.orelse)
                yield from _walk_body(stmt.finalbody)
            case ast.With():
                yield from _walk_body(stmt.body)
            case _:
                yield stmt, following


def _normalize(qualified: str) -> str:
    for prefix in ("typing_extensions.", "collections.abc.", "typing."):
        if qualified.startswith(prefix):
            return "typing." + qualified[len(prefix) :]
    return qualified


def _is_exported(index: _ModuleIndex, name: str) -> bool:
    if index.all_names is not None:
        return name in index.all_names
    return True


def _head(expr: ast.expr) -> ast.expr:
    return expr.value if isinstance(expr, ast.Subscript) else expr


def _decorator_name(decorator: ast.expr) -> str:
    if isinstance(decorator, ast.Call):
        return _decorator_name(decorator.func)
    if isinstance(decorator, ast.Attribute):
        return decorator.attr
    if isinstance(decorator, ast.Name):
        return decorator.id
    return ""


def _call_name(node: ast.Call) -> str:
    return _decorator_name(node.func)


def _accessor_role(node: ast.FunctionDef | ast.AsyncFunctionDef) -> str | None:
    """'getter', 'setter', 'deleter' or None for an ordinary method."""
    for decorator in node.decorator_list:
        if isinstance(decorator, ast.Attribute) and decorator.attr in ("setter", "deleter", "getter") and isinstance(decorator.value, ast.Name):
            return decorator.attr
        if _decorator_name(decorator) in _PROPERTY_DECORATORS:
            return "getter"
    return None


def _accessor_owner(node: ast.FunctionDef | ast.AsyncFunctionDef) -> str | None:
    for decorator in node.decorator_list:
        if isinstance(decorator, ast.Attribute) and isinstance(decorator.value, ast.Name):
            return decorator.value.id
    return None


def _all_arguments(args: ast.arguments) -> list[ast.arg]:
    extra = [a for a in (args.vararg, args.kwarg) if a is not None]
    return [*args.posonlyargs, *args.args, *args.kwonlyargs, *extra]


def _parameters(args: ast.arguments, drop_first: bool) -> tuple[ParameterInfo, ...]:
    positional = [*args.posonlyargs, *args.args]
    defaults: list[ast.expr | None] = [None] * (len(positional) - len(args.defaults)) + list(args.defaults)
    params: list[ParameterInfo] = []
    for i, (arg, default) in enumerate(zip(positional, defaults)):
        if drop_first and i == 0:
            continue
        params.append(_parameter(arg, default))
    if args.vararg is not None:
        params.append(ParameterInfo(name=args.vararg.arg, type=args.vararg.annotation, rest=True))
    for arg, default in zip(args.kwonlyargs, args.kw_defaults):
        params.append(_parameter(arg, default, keyword_only=True))
    if args.kwarg is not None:
        params.append(ParameterInfo(name=args.kwarg.arg, type=args.kwarg.annotation, rest=True, keyword_only=True))
    return tuple(params)


def _parameter(arg: ast.arg, default: ast.expr | None, keyword_only: bool = False) -> ParameterInfo:
    return ParameterInfo(
        name=arg.arg,
        type=arg.annotation,
        default_value=ast.unparse(default) if default is not None else None,
        optional=default is not None,
        keyword_only=keyword_only,
    )


def _pep695_type_parameter(param: ast.type_param) -> TypeParameterInfo:
    bound = getattr(param, "bound", None)
    default = getattr(param, "default_value", None)
    if isinstance(bound, ast.Tuple):
        bound = reduce(lambda left, right: ast.BinOp(left=left, op=ast.BitOr(), right=right), bound.elts)
    return TypeParameterInfo(name=param.name, constraint=bound, default=default)


def _attribute_docstring(following: ast.stmt | None) -> str | None:
    if isinstance(following, ast.Expr) and isinstance(following.value, ast.Constant) and isinstance(following.value.value, str):
        return following.value.value
    return None


def _flatten_union(expr: ast.expr) -> list[ast.expr]:
    if isinstance(expr, ast.BinOp) and isinstance(expr.op, ast.BitOr):
        return [*_flatten_union(expr.left), *_flatten_union(expr.right)]
    return [expr]


def _unknown(text: str) -> TypeDescription:
    return TypeDescription(TypeDescriptionKind.UNKNOWN, name=text or "unknown", text=text or "unknown")


def _literal_description(expr: ast.expr) -> TypeDescription | None:
    """Literal type for a constant expression (``-1`` included), else None."""
    if isinstance(expr, ast.UnaryOp) and isinstance(expr.op, ast.USub) and isinstance(expr.operand, ast.Constant):
        operand = expr.operand.value
        if isinstance(operand, (int, float)) and not isinstance(operand, bool):
            return TypeDescription(TypeDescriptionKind.LITERAL, value=-operand, text=ast.unparse(expr))
    if not isinstance(expr, ast.Constant) or expr.value is Ellipsis:
        return None
    value = expr.value
    if isinstance(value, (bytes, complex)):
        value = repr(value)
    return TypeDescription(TypeDescriptionKind.LITERAL, value=value, text=ast.unparse(expr))


def _describe_value(expr: ast.expr | None) -> TypeDescription | None:
    """Type of an unannotated value when it is a literal or a display."""
    match expr:
        case ast.Constant(value=bool()):
            name = "bool"
        case ast.Constant(value=int() | float() | str() | bytes() | complex() as value):
            name = type(value).__name__
        case ast.JoinedStr():
            name = "str"
        case ast.List() | ast.ListComp():
            return TypeDescription(TypeDescriptionKind.REFERENCE, name="list", text="list", qualified_name="builtins.list")
        case ast.Dict() | ast.DictComp():
            return TypeDescription(TypeDescriptionKind.REFERENCE, name="dict", text="dict", qualified_name="builtins.dict")
        case ast.Set() | ast.SetComp():
            return TypeDescription(TypeDescriptionKind.REFERENCE, name="set", text="set", qualified_name="builtins.set")
        case ast.Tuple():
            return TypeDescription(TypeDescriptionKind.REFERENCE, name="tuple", text="tuple", qualified_name="builtins.tuple")
        case _:
            return None
    return TypeDescription(TypeDescriptionKind.INTRINSIC, name=name, text=name)
