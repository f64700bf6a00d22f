"""Plain Markdown rendering of a finished project.

One page per module plus an ``INDEX.md`` with the reading order and a symbol
index. No templating: pages are assembled line by line.
"""

import re
from pathlib import Path

from reflectdoc.logging import get_logger
from reflectdoc.models import (
    CLASS_LIKE_KINDS,
    Comment,
    CommentBlock,
    DeclarationReflection,
    InlineTagPart,
    ParameterReflection,
    ProjectReflection,
    ReferenceReflection,
    Reflection,
    ReflectionFlag,
    ReflectionKind,
    SignatureReflection,
    TextPart,
)

logger = get_logger(__name__)

# Section title and kinds, in page order
_SECTIONS: list[tuple[str, frozenset[ReflectionKind]]] = [
    ("Namespaces", frozenset({ReflectionKind.NAMESPACE})),
    ("Interfaces", frozenset({ReflectionKind.INTERFACE})),
    ("Classes", frozenset({ReflectionKind.CLASS})),
    ("Enums", frozenset({ReflectionKind.ENUM})),
    ("Type Aliases", frozenset({ReflectionKind.TYPE_ALIAS})),
    ("Functions", frozenset({ReflectionKind.FUNCTION})),
    ("Variables", frozenset({ReflectionKind.VARIABLE})),
    ("References", frozenset({ReflectionKind.REFERENCE})),
]

_TAG_TITLES = {
    "@returns": "Returns",
    "@yields": "Yields",
    "@throws": "Raises",
    "@example": "Example",
    "@remarks": "Note",
    "@warning": "Warning",
    "@see": "See also",
    "@deprecated": "Deprecated",
    "@todo": "Todo",
}


class MarkdownRenderer:
    """Writes ``<module>.md`` pages and ``INDEX.md`` into an output directory."""

    def render(self, project: ProjectReflection, out_dir: Path) -> list[Path]:
        out_dir.mkdir(parents=True, exist_ok=True)
        written: list[Path] = []
        modules = [m for m in project.children if m.kind == ReflectionKind.MODULE]
        for module in modules:
            path = out_dir / page_name(module)
            path.write_text(_normalize_whitespace(render_module(project, module)), encoding="utf-8")
            written.append(path)
        index = out_dir / "INDEX.md"
        index.write_text(_normalize_whitespace(render_index(project, modules)), encoding="utf-8")
        written.append(index)
        logger.info("Wrote %d page(s) to %s", len(written), out_dir)
        return written


def page_name(module: Reflection) -> str:
    return module.name.replace("/", ".") + ".md"


def anchor(reflection: Reflection) -> str:
    return re.sub(r"[^a-z0-9_-]", "", reflection.get_full_name().lower().replace(".", "-"))


def render_module(project: ProjectReflection, module: Reflection) -> str:
    lines: list[str] = [f"# {module.name}", ""]
    if module.comment is not None:
        lines.extend(_render_comment(project, module.comment))

    for title, kinds in _SECTIONS:
        members = [c for c in module.children if c.kind in kinds]
        if not members:
            continue
        lines.extend([f"## {title}", ""])
        for member in members:
            lines.extend(_render_declaration(project, member, level=3))
    return "\n".join(lines)


def render_index(project: ProjectReflection, modules: list[Reflection]) -> str:
    """Render INDEX.md with reading order and symbol index."""
    lines: list[str] = [
        f"# {project.name}",
        "",
        "Generated API reference. Do not edit manually.",
        "",
        "## Modules",
        "",
    ]
    for i, module in enumerate(modules, 1):
        purpose = module.comment.summary_text().split("\n", 1)[0] if module.comment and module.comment.summary else ""
        desc = f" - {purpose}" if purpose else ""
        lines.append(f"{i}. [{module.name}]({page_name(module)}){desc}")

    symbols = [(child, module) for module in modules for child in module.children if child.kind != ReflectionKind.REFERENCE]
    if symbols:
        lines.extend([
            "",
            "## Symbol Index",
            "",
            "| Symbol | Kind | Module |",
            "| ------ | ---- | ------ |",
        ])
        for child, module in sorted(symbols, key=lambda pair: (pair[0].name.lower(), pair[1].name)):
            lines.append(f"| [{child.name}]({page_name(module)}#{anchor(child)}) | {child.kind} | {module.name} |")
    return "\n".join(lines)


def _render_declaration(project: ProjectReflection, reflection: Reflection, level: int) -> list[str]:
    heading = "#" * level
    lines: list[str] = [f'<a id="{anchor(reflection)}"></a>', ""]
    if isinstance(reflection, ReferenceReflection):
        target = project.get_reflection(reflection.target)
        link = _link(project, target, target.get_full_name()) if target else "?"
        lines.extend([f"{heading} {reflection.name}", "", f"Re-exports {link}", ""])
        return lines

    lines.extend([f"{heading} {_title(reflection)}", ""])
    if _flag_line(reflection):
        lines.extend([_flag_line(reflection), ""])
    if reflection.comment is not None:
        lines.extend(_render_comment(project, reflection.comment))

    if isinstance(reflection, DeclarationReflection):
        heritage = [("Extends", reflection.extended_types), ("Implements", reflection.implemented_types)]
        for label, types in heritage:
            if types:
                lines.extend([f"{label}: " + ", ".join(_type_link(project, t) for t in types), ""])
        for label, ids in (("Extended by", reflection.extended_by), ("Implemented by", reflection.implemented_by)):
            if ids:
                targets = [project.get_reflection(i) for i in ids]
                lines.extend([f"{label}: " + ", ".join(_link(project, t, t.name) for t in targets if t), ""])
        for signature in reflection.signatures:
            lines.extend(_render_signature(project, signature))

    if reflection.kind in CLASS_LIKE_KINDS or reflection.kind in (ReflectionKind.ENUM, ReflectionKind.NAMESPACE):
        own = [c for c in reflection.children if c.inherited_from is None]
        inherited = [c for c in reflection.children if c.inherited_from is not None]
        for child in own:
            lines.extend(_render_declaration(project, child, min(level + 1, 6)))
        if inherited:
            groups: dict[str, list[str]] = {}
            for child in inherited:
                source = project.get_reflection(child.inherited_from)
                owner = source.parent.name if source is not None and source.parent is not None else "unknown"
                groups.setdefault(owner, []).append(child.name)
            for owner, names in groups.items():
                lines.extend([f"Inherited from {owner}: " + ", ".join(f"`{n}`" for n in names), ""])
    return lines


def _title(reflection: Reflection) -> str:
    match reflection.kind:
        case ReflectionKind.CLASS | ReflectionKind.INTERFACE | ReflectionKind.ENUM:
            params = _type_parameter_list(reflection)
            return f"{reflection.kind} {reflection.name}{params}"
        case ReflectionKind.TYPE_ALIAS:
            return f"type {reflection.name}{_type_parameter_list(reflection)} = `{reflection.type}`"
        case ReflectionKind.VARIABLE | ReflectionKind.PROPERTY | ReflectionKind.ENUM_MEMBER:
            text = reflection.name
            if getattr(reflection, "type", None) is not None:
                text += f": {reflection.type}"
            if getattr(reflection, "default_value", None) is not None:
                text += f" = {reflection.default_value}"
            return f"`{text}`"
        case _:
            return reflection.name


def _type_parameter_list(reflection: Reflection) -> str:
    params = getattr(reflection, "type_parameters", [])
    return f"[{', '.join(p.name for p in params)}]" if params else ""


def _flag_line(reflection: Reflection) -> str:
    shown = [f for f in ReflectionFlag if f in reflection.flags and f not in (ReflectionFlag.EXPORTED, ReflectionFlag.OVERLOAD)]
    return " ".join(f"*{f}*" for f in shown)


def _render_signature(project: ProjectReflection, signature: SignatureReflection) -> list[str]:
    prefix = {ReflectionKind.GET_SIGNATURE: "get ", ReflectionKind.SET_SIGNATURE: "set "}.get(signature.kind, "")
    params = ", ".join(_parameter_text(p) for p in signature.parameters)
    returns = f" -> {signature.type}" if signature.type is not None else ""
    lines = ["```python", f"{prefix}{signature.name}{_type_parameter_list(signature)}({params}){returns}", "```", ""]
    if signature.comment is not None:
        lines.extend(_render_comment(project, signature.comment))
    documented = [p for p in signature.parameters if p.comment is not None]
    if documented:
        lines.extend(["Parameters:", ""])
        for parameter in documented:
            lines.append(f"- `{parameter.name}`: {_render_block(project, parameter.comment.summary[0]) if parameter.comment.summary else ''}")
        lines.append("")
    return lines


def _parameter_text(parameter: ParameterReflection) -> str:
    name = parameter.name
    if parameter.has_flag(ReflectionFlag.REST):
        name = ("**" if parameter.has_flag(ReflectionFlag.KEYWORD_ONLY) else "*") + name
    text = f"{name}: {parameter.type}" if parameter.type is not None else name
    if parameter.default_value is not None:
        text += f" = {parameter.default_value}"
    return text


def _render_comment(project: ProjectReflection, comment: Comment) -> list[str]:
    lines: list[str] = []
    for block in comment.summary:
        lines.extend([_render_block(project, block), ""])
    for tag in comment.block_tags:
        title = _TAG_TITLES.get(tag.tag, tag.tag.lstrip("@").capitalize())
        if tag.param_name:
            title = f"{title} `{tag.param_name}`"
        body = _render_block(project, tag.content)
        if tag.tag == "@example" and "```" not in body:
            lines.extend([f"**{title}:**", "", "```python", body, "```", ""])
        else:
            lines.extend([f"**{title}:** {body}".rstrip(), ""])
    return lines


def _render_block(project: ProjectReflection, block: CommentBlock) -> str:
    rendered: list[str] = []
    for part in block:
        match part:
            case TextPart(text=text):
                rendered.append(text)
            case InlineTagPart(target=None):
                rendered.append(f"`{part.text}`")
            case InlineTagPart():
                rendered.append(_link(project, project.get_reflection(part.target), part.text))
    return "".join(rendered)


def _link(project: ProjectReflection, target: Reflection | None, text: str) -> str:
    if target is None:
        return f"`{text}`"
    module = next((a for a in (target, *target.ancestors()) if a.kind == ReflectionKind.MODULE), None)
    if module is None:
        return f"`{text}`"
    if module is target:
        return f"[{text}]({page_name(module)})"
    return f"[{text}]({page_name(module)}#{anchor(target)})"


def _type_link(project: ProjectReflection, type_) -> str:
    reflection = getattr(type_, "reflection", None)
    return _link(project, reflection, str(type_)) if reflection is not None else f"`{type_}`"


def _normalize_whitespace(content: str) -> str:
    """Strip trailing whitespace and collapse runs of blank lines."""
    lines = [line.rstrip() for line in content.splitlines()]
    content = "\n".join(lines)
    content = re.sub(r"\n{3,}", "\n\n", content)
    return content.strip() + "\n"
