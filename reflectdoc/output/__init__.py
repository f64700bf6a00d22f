"""Rendered documentation output."""

from pathlib import Path
from typing import Protocol

from reflectdoc.models import ProjectReflection
from reflectdoc.output.markdown import MarkdownRenderer


class Renderer(Protocol):
    """Consumes a finished project and writes documents; returns the files written."""

    def render(self, project: ProjectReflection, out_dir: Path) -> list[Path]: ...


__all__ = ["MarkdownRenderer", "Renderer"]
