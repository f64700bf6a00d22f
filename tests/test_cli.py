"""Tests for the reflectdoc command line."""

import json
from unittest.mock import patch

import pytest

from reflectdoc.cli import main

SOURCES = {
    "pkg/__init__.py": '"""Demo package."""\n',
    "pkg/core.py": "class Engine:\n    def start(self) -> None: ...\n",
}


@pytest.fixture(autouse=True)
def keep_logging_config():
    """Leave the logging handlers installed for the test session in place."""
    with patch("reflectdoc.application.setup_logging"):
        yield


def test_json_output_file(write_tree):
    root = write_tree(SOURCES)
    target = root / "api.json"

    assert main([str(root / "pkg"), "--json", str(target), "--name", "Demo"]) == 0

    data = json.loads(target.read_text())
    assert data["name"] == "Demo"
    assert [c["name"] for c in data["children"]] == ["pkg", "pkg/core"]


def test_json_to_stdout_by_default(write_tree, capsys):
    root = write_tree(SOURCES)

    assert main([str(root / "pkg"), "--compact"]) == 0

    out = capsys.readouterr().out
    assert out.count("\n") == 1
    assert json.loads(out)["kind"] == "project"


def test_markdown_output(write_tree):
    root = write_tree(SOURCES)

    assert main([str(root / "pkg"), "--out", str(root / "docs")]) == 0

    assert sorted(p.name for p in (root / "docs").iterdir()) == ["INDEX.md", "pkg.core.md", "pkg.md"]


def test_include_private(write_tree):
    root = write_tree({"mod.py": "def _hidden() -> None: ...\n"})
    target = root / "api.json"

    assert main([str(root / "mod.py"), "--json", str(target), "--include-private"]) == 0

    [module] = json.loads(target.read_text())["children"]
    assert [c["name"] for c in module["children"]] == ["_hidden"]


def test_no_entry_points(monkeypatch, capsys):
    monkeypatch.delenv("REFLECTDOC_ENTRY_POINTS", raising=False)

    assert main([]) == 1
    assert "usage: reflectdoc" in capsys.readouterr().out


def test_syntax_error_fails(write_tree):
    root = write_tree({"pkg/__init__.py": "", "pkg/broken.py": "def f(:\n"})

    assert main([str(root / "pkg"), "--json", str(root / "api.json")]) == 1
    assert not (root / "api.json").exists()


def test_invalid_log_level(write_tree):
    root = write_tree(SOURCES)

    with pytest.raises(SystemExit) as excinfo:
        main([str(root / "pkg"), "--log-level", "LOUD"])
    assert excinfo.value.code == 2
