"""Tests for the application: input expansion, outputs and watch mode."""

import asyncio
import json
from pathlib import Path
from unittest.mock import Mock, patch

import pytest

from reflectdoc.application import Application, compute_source_hash, display_name
from reflectdoc.exceptions import ReflectDocError
from reflectdoc.logging import get_diagnostics
from reflectdoc.settings import Settings

PACKAGE = {
    "pkg/__init__.py": '"""Demo package."""\nfrom pkg.core import Engine\n\n__all__ = ["Engine"]\n',
    "pkg/core.py": "class Engine:\n    def start(self) -> None: ...\n",
    "pkg/test_core.py": "def test_engine() -> None: ...\n",
}


def _app(root: Path, **overrides) -> Application:
    return Application(Settings(entry_points=[str(root / "pkg")], **overrides))


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------


def test_expand_input_files_applies_excludes(write_tree):
    root = write_tree(PACKAGE)
    app = _app(root, exclude=["test_*"])

    files = app.expand_input_files([root / "pkg"])
    assert [f.name for f in files] == ["__init__.py", "core.py"]


def test_explicit_files_are_never_excluded(write_tree):
    root = write_tree(PACKAGE)
    app = _app(root, exclude=["test_*"])

    files = app.expand_input_files([root / "pkg", root / "pkg/test_core.py"])
    assert [f.name for f in files] == ["__init__.py", "core.py", "test_core.py"]


def test_display_names(tmp_path: Path):
    tmp_path = tmp_path.resolve()
    assert display_name(tmp_path / "pkg/__init__.py", tmp_path) == "pkg"
    assert display_name(tmp_path / "pkg/core.py", tmp_path) == "pkg/core"
    assert display_name(tmp_path / "__init__.py", tmp_path) == tmp_path.name


def test_entry_points_are_named_by_relative_path(write_tree):
    root = write_tree(PACKAGE)
    app = _app(root, exclude=["test_*"])

    project = app.convert()

    assert project is not None
    assert [m.name for m in project.children] == ["pkg", "pkg/core"]
    assert project.name == "pkg"


def test_source_hash_tracks_content(write_tree):
    root = write_tree({"a.py": "x = 1\n"})
    before = compute_source_hash([root / "a.py"])
    assert compute_source_hash([root / "a.py", root / "missing.py"]) == before

    (root / "a.py").write_text("x = 2\n")
    assert compute_source_hash([root / "a.py"]) != before


# ---------------------------------------------------------------------------
# Conversion and outputs
# ---------------------------------------------------------------------------


def test_convert_returns_none_on_syntax_errors(write_tree):
    root = write_tree({"pkg/__init__.py": "", "pkg/broken.py": "def f(:\n"})

    assert _app(root).convert() is None
    assert get_diagnostics().has_errors()


def test_convert_without_inputs(tmp_path: Path):
    assert Application(Settings(entry_points=[])).convert() is None


def test_generate_json(write_tree):
    root = write_tree(PACKAGE)
    app = _app(root, exclude=["test_*"], json_out=root / "out/api.json")

    target = app.generate_json(app.convert())

    data = json.loads(target.read_text())
    assert target == root / "out/api.json"
    assert data["name"] == "pkg"
    assert [c["name"] for c in data["children"]] == ["pkg", "pkg/core"]


def test_generate_json_requires_a_target(write_tree):
    root = write_tree(PACKAGE)
    app = _app(root)

    with pytest.raises(ReflectDocError):
        app.generate_json(app.convert())


def test_generate_docs(write_tree, log_records):
    root = write_tree(PACKAGE)
    app = _app(root, exclude=["test_*"], out_dir=root / "docs")

    written = app.generate_docs(app.convert())

    assert sorted(p.name for p in written) == ["INDEX.md", "pkg.core.md", "pkg.md"]
    assert not any("could not be generated" in m for m in log_records.messages())


def test_generate_docs_reports_earlier_errors(write_tree, log_records):
    root = write_tree(PACKAGE)
    app = _app(root, out_dir=root / "docs")
    project = app.convert()
    get_diagnostics().errors += 1

    app.generate_docs(project)

    assert any("could not be generated" in m for m in log_records.messages())


def test_custom_renderer(write_tree):
    root = write_tree(PACKAGE)
    renderer = Mock()
    renderer.render.return_value = []
    app = Application(Settings(entry_points=[str(root / "pkg")], out_dir=root / "docs"), renderer=renderer)

    project = app.convert()
    app.generate_docs(project)

    renderer.render.assert_called_once_with(project, root / "docs")


@patch("reflectdoc.application.setup_logging")
def test_bootstrap_applies_overrides(mock_setup: Mock):
    app = Application.bootstrap(entry_points=["src"], log_level="debug")

    assert app.settings.entry_points == ["src"]
    mock_setup.assert_called_once_with(level="DEBUG")


# ---------------------------------------------------------------------------
# Watch mode
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_watch_rebuilds_on_change(write_tree):
    root = write_tree({"pkg/__init__.py": "def first() -> None: ...\n"})
    app = _app(root, watch_poll_interval=0.02)
    stop = asyncio.Event()
    projects = []

    def on_success(project):
        projects.append(project)
        if len(projects) == 1:
            (root / "pkg/__init__.py").write_text("def first() -> None: ...\ndef second() -> None: ...\n")
        else:
            stop.set()

    await asyncio.wait_for(app.convert_and_watch(on_success, stop), timeout=10)

    assert len(projects) == 2
    assert projects[0] is not projects[1]
    assert [c.name for c in projects[1].children[0].children] == ["first", "second"]


@pytest.mark.asyncio
async def test_watch_survives_broken_source(write_tree):
    root = write_tree({"pkg/__init__.py": "def first() -> None: ...\n"})
    app = _app(root, watch_poll_interval=0.02)
    stop = asyncio.Event()
    projects = []
    source = root / "pkg/__init__.py"
    broken_seen = []
    tasks = []

    async def fix_after_failure():
        while not get_diagnostics().has_errors():
            await asyncio.sleep(0.01)
        broken_seen.append(True)
        source.write_text("def fixed() -> None: ...\n")

    def on_success(project):
        projects.append(project)
        if len(projects) == 1:
            source.write_text("def broken(:\n")
            tasks.append(asyncio.get_running_loop().create_task(fix_after_failure()))
        else:
            stop.set()

    await asyncio.wait_for(app.convert_and_watch(on_success, stop), timeout=10)

    assert broken_seen
    assert len(projects) == 2
    assert [c.name for c in projects[-1].children[0].children] == ["fixed"]


@pytest.mark.asyncio
async def test_stale_rebuild_is_discarded(write_tree):
    root = write_tree({"pkg/__init__.py": "x = 1\n"})
    app = _app(root)
    project = app.convert()
    callback = Mock()

    assert await app._deliver(2, project, callback)
    assert not await app._deliver(1, project, callback)
    callback.assert_called_once_with(project)
