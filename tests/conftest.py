"""Common test fixtures: source trees on disk and converted projects."""

import logging
import textwrap
from collections.abc import Callable
from pathlib import Path

import pytest

from reflectdoc.converter import Converter
from reflectdoc.logging import get_diagnostics
from reflectdoc.logging.logging_config import DEFAULT_LOG_LEVELS
from reflectdoc.models import ProjectReflection
from reflectdoc.semantic import PythonSemanticProvider
from reflectdoc.settings import Settings


class RecordingHandler(logging.Handler):
    """Keeps every record; the reflectdoc logger does not propagate to caplog."""

    def __init__(self) -> None:
        super().__init__(level=logging.DEBUG)
        self.records: list[logging.LogRecord] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)

    def messages(self, level: int = logging.WARNING) -> list[str]:
        return [r.getMessage() for r in self.records if r.levelno >= level]


@pytest.fixture(autouse=True)
def reset_logging_state():
    """Undo level changes made by other tests and start with zero diagnostics."""
    for name in DEFAULT_LOG_LEVELS:
        logging.getLogger(name).setLevel(logging.INFO)
    get_diagnostics().reset()
    yield
    get_diagnostics().reset()


@pytest.fixture
def log_records():
    handler = RecordingHandler()
    logger = logging.getLogger("reflectdoc")
    logger.addHandler(handler)
    yield handler
    logger.removeHandler(handler)


@pytest.fixture
def write_tree(tmp_path: Path) -> Callable[[dict[str, str]], Path]:
    """Write ``{relative path: source}`` under tmp_path and return tmp_path."""

    def write(files: dict[str, str]) -> Path:
        for relative, content in files.items():
            path = tmp_path / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(textwrap.dedent(content).lstrip("\n"), encoding="utf-8")
        return tmp_path

    return write


@pytest.fixture
def convert_sources(write_tree) -> Callable[..., ProjectReflection]:
    """Write sources, then convert them.

    ``entry`` lists the entry point files (all files by default); extra
    keyword arguments become Settings fields. Pass ``converter`` to use a
    pre-configured one (hooks registered, for example).
    """

    def convert(
        files: dict[str, str],
        entry: list[str] | None = None,
        converter: Converter | None = None,
        **settings,
    ) -> ProjectReflection:
        root = write_tree(files)
        provider = PythonSemanticProvider.from_paths([root / f for f in files])
        converter = converter or Converter(Settings(**settings))
        entry_points = [root / f for f in (entry if entry is not None else sorted(files))]
        return converter.convert(provider, entry_points, name="test")

    return convert


SHAPES = '''
"""Geometric shapes."""
from typing import Protocol


class Shape(Protocol):
    """Anything with an area."""

    def area(self) -> float:
        """Surface in square units."""
        ...

    def name(self) -> str: ...


class Circle(Shape):
    """A round {@link Shape}."""

    def __init__(self, radius: float) -> None:
        self.radius: float = radius

    def area(self) -> float:
        return 3.14159 * self.radius**2
'''


@pytest.fixture
def shapes_source() -> str:
    return SHAPES


@pytest.fixture
def shapes_project(convert_sources) -> ProjectReflection:
    return convert_sources({"shapes.py": SHAPES})
