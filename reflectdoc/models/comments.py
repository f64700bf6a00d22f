"""Parsed documentation comments.

A comment is a list of summary blocks plus an ordered list of block tags.
Blocks are lists of parts so inline references can sit between prose runs.
"""

from dataclasses import dataclass, field


@dataclass(slots=True)
class TextPart:
    text: str


@dataclass(slots=True)
class InlineTagPart:
    """An inline reference such as ``{@link Shape.area}`` or ``[[Shape]]``.

    ``target`` stays None until the resolver finds the named reflection.
    """

    tag: str
    target_name: str
    text: str
    target: int | None = None


CommentPart = TextPart | InlineTagPart
CommentBlock = list[CommentPart]


@dataclass(slots=True)
class BlockTag:
    tag: str
    content: CommentBlock
    param_name: str | None = None


@dataclass(slots=True)
class Comment:
    summary: list[CommentBlock] = field(default_factory=list)
    block_tags: list[BlockTag] = field(default_factory=list)

    def has_tag(self, tag: str) -> bool:
        return any(t.tag == tag for t in self.block_tags)

    def get_tags(self, tag: str) -> list[BlockTag]:
        """All tags with this name, in encounter order."""
        return [t for t in self.block_tags if t.tag == tag]

    def remove_tags(self, tag: str, param_name: str | None = None) -> list[BlockTag]:
        """Remove and return matching tags; ``param_name`` narrows by parameter."""
        removed = [t for t in self.block_tags if t.tag == tag and (param_name is None or t.param_name == param_name)]
        self.block_tags = [t for t in self.block_tags if t not in removed]
        return removed

    def is_empty(self) -> bool:
        return not self.summary and not self.block_tags

    def inline_parts(self) -> list[InlineTagPart]:
        """Every inline reference in summary and tag content, in document order."""
        parts: list[InlineTagPart] = []
        for block in [*self.summary, *(t.content for t in self.block_tags)]:
            parts.extend(p for p in block if isinstance(p, InlineTagPart))
        return parts

    def summary_text(self) -> str:
        """Plain text of the summary, inline references rendered as their text."""
        return "\n\n".join(block_text(block) for block in self.summary)


def block_text(block: CommentBlock) -> str:
    return "".join(part.text for part in block)
