"""Command line interface: ``reflectdoc [options] ENTRY...``."""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Any

from reflectdoc.application import Application
from reflectdoc.exceptions import ReflectDocError
from reflectdoc.logging import get_diagnostics, get_logger
from reflectdoc.models import ProjectReflection

logger = get_logger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Entry point; returns the process exit code."""
    parser = argparse.ArgumentParser(prog="reflectdoc", description="API documentation generator for Python packages")
    parser.add_argument("entry_points", nargs="*", metavar="ENTRY", help="Files or directories to document")
    parser.add_argument("--name", help="Project name shown at the root of the output")
    parser.add_argument("--json", type=Path, dest="json_out", help="Write the JSON model to this file")
    parser.add_argument("--out", type=Path, dest="out_dir", help="Write Markdown pages into this directory")
    parser.add_argument("--exclude", action="append", default=None, metavar="GLOB", help="Skip matching files (repeatable)")
    parser.add_argument("--include-private", action="store_true", help="Document _private members too")
    parser.add_argument("--exclude-internal", action="store_true", help="Skip declarations tagged @internal")
    parser.add_argument("--compact", action="store_true", help="Do not indent the JSON output")
    parser.add_argument("--watch", action="store_true", help="Rebuild whenever an input file changes")
    parser.add_argument("--log-level", help="DEBUG, INFO, WARNING or ERROR")

    args = parser.parse_args(argv)
    try:
        app = Application.bootstrap(**_overrides(args))
    except ValueError as exc:
        parser.error(str(exc))
    if not app.settings.entry_points:
        parser.print_help()
        return 1

    if args.watch:
        return _run_watch(app)
    return _run_once(app)


def _overrides(args: argparse.Namespace) -> dict[str, Any]:
    """Only options given on the command line override the environment."""
    overrides: dict[str, Any] = {}
    if args.entry_points:
        overrides["entry_points"] = args.entry_points
    if args.exclude:
        overrides["exclude"] = args.exclude
    if args.include_private:
        overrides["exclude_private"] = False
    if args.exclude_internal:
        overrides["exclude_internal"] = True
    if args.compact:
        overrides["pretty"] = False
    for key in ("name", "json_out", "out_dir", "log_level"):
        value = getattr(args, key)
        if value is not None:
            overrides[key] = value
    return overrides


def _run_once(app: Application) -> int:
    project = app.convert()
    if project is None:
        return 1
    try:
        _write_outputs(app, project)
    except (OSError, ReflectDocError) as exc:
        logger.error("Failed to write output: %s", exc)
        return 1
    return 1 if get_diagnostics().has_errors() else 0


def _write_outputs(app: Application, project: ProjectReflection) -> None:
    if app.settings.json_out is None and app.settings.out_dir is None:
        sys.stdout.write(app.serializer.to_json(project, app.settings.pretty) + "\n")
        return
    if app.settings.json_out is not None:
        app.generate_json(project)
    if app.settings.out_dir is not None:
        app.generate_docs(project)


def _run_watch(app: Application) -> int:
    def on_success(project: ProjectReflection) -> None:
        try:
            _write_outputs(app, project)
        except (OSError, ReflectDocError) as exc:
            logger.error("Failed to write output: %s", exc)

    try:
        asyncio.run(app.convert_and_watch(on_success))
    except KeyboardInterrupt:
        logger.info("Stopped watching")
    return 0
