"""Docstring parsing into summary blocks and block tags.

Two tag syntaxes are understood and may be mixed in one docstring:

* ``@tag`` lines at the left margin (``@param name text``, ``@returns text``,
  ``@deprecated``, ``@ignore``, ...), each tag running until the next tag;
* Google-style sections (``Args:``, ``Returns:``, ``Raises:``, ``Example:``,
  ...), translated into the equivalent ``@tag`` entries.

Inline references (``{@link Target}``, ``{@link Target | text}``,
``[[Target]]``) are split out of prose into ``InlineTagPart`` entries.

Parsing never raises: anything that does not match a recognised form is kept
as prose.
"""

import inspect
import re
from dataclasses import dataclass, field

from reflectdoc.models.comments import BlockTag, Comment, CommentBlock, InlineTagPart, TextPart

PARAM_TAGS: frozenset[str] = frozenset({"@param", "@typeParam", "@template", "@property"})

_TAG_LINE = re.compile(r"^@([A-Za-z][\w-]*)(?=\s|$)(.*)$")
_PARAM_SPLIT = re.compile(r"^\s*(\*{0,2}[A-Za-z_]\w*)(?:\s+-\s*|\s+|$)(.*)$")
_SECTION_HEADER = re.compile(r"^([A-Z][A-Za-z]*(?: [A-Z][a-z]+)?):\s*$")
_SECTION_ITEM = re.compile(r"^(\*{0,2}[A-Za-z_][\w.]*)\s*(?:\(([^)]*)\))?\s*:\s*(.*)$")
_FENCE = re.compile(r"^\s*(```|~~~)")
_INLINE = re.compile(
    r"\{@(?P<tag>link|linkcode|linkplain)\s+(?P<target>[^\s|}]+)(?:\s*\|\s*(?P<pipe>[^}]*)|\s+(?P<text>[^}]*))?\}"
    r"|\[\[(?P<bracket>[^\s\]][^\]]*)\]\]"
)

# Google section -> (tag, whether each item names a parameter, whether items are split)
_SECTIONS: dict[str, tuple[str, bool, bool]] = {
    "Args": ("@param", True, True),
    "Arguments": ("@param", True, True),
    "Parameters": ("@param", True, True),
    "Params": ("@param", True, True),
    "Keyword Args": ("@param", True, True),
    "Attributes": ("@property", True, True),
    "Type Parameters": ("@typeParam", True, True),
    "Raises": ("@throws", False, True),
    "Returns": ("@returns", False, False),
    "Return": ("@returns", False, False),
    "Yields": ("@yields", False, False),
    "Example": ("@example", False, False),
    "Examples": ("@example", False, False),
    "Note": ("@remarks", False, False),
    "Notes": ("@remarks", False, False),
    "Warning": ("@warning", False, False),
    "Warnings": ("@warning", False, False),
    "See Also": ("@see", False, False),
    "Todo": ("@todo", False, False),
    "Deprecated": ("@deprecated", False, False),
}


@dataclass
class _PendingTag:
    tag: str
    param_name: str | None
    lines: list[str] = field(default_factory=list)

    def finish(self) -> BlockTag:
        return BlockTag(tag=self.tag, content=parse_inline(_join(self.lines)), param_name=self.param_name)


def parse_comment(text: str) -> Comment:
    """Parse raw docstring text into a Comment."""
    lines = inspect.cleandoc(text).splitlines() if text else []
    comment = Comment()
    summary_lines: list[str] = []
    pending: _PendingTag | None = None
    in_fence = False
    i = 0

    def flush() -> None:
        nonlocal pending
        if pending is not None:
            comment.block_tags.append(pending.finish())
            pending = None

    while i < len(lines):
        line = lines[i]
        if _FENCE.match(line):
            in_fence = not in_fence
        elif not in_fence and (tag_match := _TAG_LINE.match(line)):
            new_tag = _start_tag(tag_match)
            if new_tag is not None:
                flush()
                pending = new_tag
                i += 1
                continue
        elif not in_fence and (section := _section_at(lines, i)):
            flush()
            tag, takes_name, split_items = section
            body, i = _section_body(lines, i + 1)
            comment.block_tags.extend(_section_tags(tag, takes_name, split_items, body))
            continue

        if pending is not None:
            pending.lines.append(line)
        else:
            summary_lines.append(line)
        i += 1

    flush()
    comment.summary = [parse_inline(paragraph) for paragraph in _paragraphs(summary_lines)]
    return comment


def parse_inline(text: str) -> CommentBlock:
    """Split prose into text runs and inline reference parts."""
    parts: CommentBlock = []
    position = 0
    for match in _INLINE.finditer(text):
        if match.start() > position:
            parts.append(TextPart(text[position : match.start()]))
        if match.group("bracket") is not None:
            target = match.group("bracket").strip()
            parts.append(InlineTagPart(tag="@link", target_name=target, text=target))
        else:
            target = match.group("target")
            label = (match.group("pipe") or match.group("text") or "").strip()
            parts.append(InlineTagPart(tag=f"@{match.group('tag')}", target_name=target, text=label or target))
        position = match.end()
    if position < len(text):
        parts.append(TextPart(text[position:]))
    return parts


def _start_tag(match: re.Match[str]) -> _PendingTag | None:
    tag = f"@{match.group(1)}"
    rest = match.group(2)
    if tag not in PARAM_TAGS:
        return _PendingTag(tag, None, [rest.strip()] if rest.strip() else [])
    split = _PARAM_SPLIT.match(rest)
    if split is None:
        # "@param" without a name is not a tag we can attribute
        return None
    content = split.group(2).strip()
    return _PendingTag(tag, split.group(1).lstrip("*"), [content] if content else [])


def _section_at(lines: list[str], index: int) -> tuple[str, bool, bool] | None:
    """Recognise a Google-style header; it must be followed by an indented line."""
    match = _SECTION_HEADER.match(lines[index])
    if match is None or match.group(1) not in _SECTIONS:
        return None
    for following in lines[index + 1 :]:
        if following.strip():
            return _SECTIONS[match.group(1)] if _indent(following) > 0 else None
    return None


def _section_body(lines: list[str], start: int) -> tuple[list[str], int]:
    """Collect indented lines after a header; returns them dedented and the next index."""
    body: list[str] = []
    i = start
    while i < len(lines):
        line = lines[i]
        if line.strip() and _indent(line) == 0:
            break
        body.append(line)
        i += 1
    while body and not body[-1].strip():
        body.pop()
    return _dedent(body), i


def _section_tags(tag: str, takes_name: bool, split_items: bool, body: list[str]) -> list[BlockTag]:
    if not split_items:
        return [BlockTag(tag=tag, content=parse_inline(_join(body)))]

    items: list[_PendingTag] = []
    for line in body:
        if _indent(line) == 0 and line.strip():
            match = _SECTION_ITEM.match(line)
            if takes_name and match is not None:
                items.append(_PendingTag(tag, match.group(1).lstrip("*"), [match.group(3).strip()]))
                continue
            if not takes_name:
                items.append(_PendingTag(tag, None, [line.strip()]))
                continue
        if items:
            items[-1].lines.append(line.strip())
        else:
            # Item text before any "name: description" line stays with the section
            items.append(_PendingTag(tag, None, [line.strip()]))
    return [item.finish() for item in items]


def _paragraphs(lines: list[str]) -> list[str]:
    paragraphs: list[str] = []
    current: list[str] = []
    for line in lines:
        if line.strip():
            current.append(line)
        elif current:
            paragraphs.append(_join(current))
            current = []
    if current:
        paragraphs.append(_join(current))
    return [p for p in paragraphs if p]


def _join(lines: list[str]) -> str:
    return "\n".join(lines).strip()


def _indent(line: str) -> int:
    return len(line) - len(line.lstrip())


def _dedent(lines: list[str]) -> list[str]:
    indents = [_indent(line) for line in lines if line.strip()]
    if not indents:
        return []
    cut = min(indents)
    return [line[cut:] if line.strip() else "" for line in lines]
