"""Application: wires settings, logging, provider, converter and outputs.

A single run converts once and writes the requested outputs. Watch mode polls
a fingerprint of the input files and reruns the whole pipeline on every
change; nothing is converted incrementally.

Example:
    >>> app = Application.bootstrap(entry_points=["src/shapes"], json_out="api.json")
    >>> project = app.convert()
    >>> if project is not None:
    ...     app.generate_json(project)
"""

import asyncio
import hashlib
import inspect
import os
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import replace
from fnmatch import fnmatch
from pathlib import Path
from typing import Any

from reflectdoc.converter import Converter
from reflectdoc.exceptions import ConversionError, ReflectDocError
from reflectdoc.logging import get_diagnostics, get_logger, setup_logging
from reflectdoc.models import ProjectReflection
from reflectdoc.output import MarkdownRenderer, Renderer
from reflectdoc.semantic import EntryPoint, PythonSemanticProvider, SemanticProvider
from reflectdoc.serialization import Serializer
from reflectdoc.settings import Settings

logger = get_logger(__name__)

ProviderFactory = Callable[[list[Path]], SemanticProvider]
SuccessCallback = Callable[[ProjectReflection], Awaitable[Any] | Any]


def compute_source_hash(files: Iterable[Path]) -> str:
    """SHA256 hash of the given files (sorted by path); missing files are skipped."""
    sha = hashlib.sha256()
    for path in sorted({Path(f) for f in files}, key=lambda p: p.as_posix()):
        if not path.is_file():
            continue
        sha.update(path.as_posix().encode())
        sha.update(path.read_bytes())
    return sha.hexdigest()


def common_directory(files: list[Path]) -> Path:
    if not files:
        return Path.cwd()
    return Path(os.path.commonpath([f.resolve().parent for f in files]))


def package_base(files: list[Path]) -> Path:
    """Common directory of ``files``, lifted above enclosing packages."""
    base = common_directory(files)
    while (base / "__init__.py").exists() and base.parent != base:
        base = base.parent
    return base


def display_name(path: Path, base: Path) -> str:
    """Module display name: path relative to ``base``, without ``.py`` or ``/__init__``."""
    try:
        relative = path.resolve().relative_to(base).with_suffix("").as_posix()
    except ValueError:
        relative = path.with_suffix("").name
    if relative == "__init__":
        return base.name
    return relative.removesuffix("/__init__")


class Application:
    """One documentation run (or a watch loop of runs) over ``settings``."""

    def __init__(
        self,
        settings: Settings | None = None,
        provider_factory: ProviderFactory | None = None,
        renderer: Renderer | None = None,
    ):
        self.settings = settings or Settings()
        self.converter = Converter(self.settings)
        self.serializer = Serializer()
        self.renderer: Renderer = renderer or MarkdownRenderer()
        self._provider_factory: ProviderFactory = provider_factory or PythonSemanticProvider.from_paths
        self._delivered_generation = 0

    @classmethod
    def bootstrap(cls, **overrides: Any) -> "Application":
        """Build settings from the environment plus ``overrides`` and set up logging."""
        settings = Settings(**overrides)
        setup_logging(level=settings.log_level)
        get_diagnostics().reset()
        return cls(settings)

    # ------------------------------------------------------------------
    # Inputs
    # ------------------------------------------------------------------

    def expand_input_files(self, paths: Iterable[str | Path]) -> list[Path]:
        """Expand directories into their ``.py`` files, dropping excluded ones.

        Explicitly named files are kept even when they match an exclude
        pattern. Paths that do not exist are passed through so the converter
        can report them.
        """
        files: list[Path] = []
        for raw in paths:
            path = Path(raw)
            if path.is_dir():
                for candidate in sorted(path.rglob("*.py")):
                    relative = candidate.relative_to(path).as_posix()
                    if self._is_excluded(relative):
                        logger.debug("Excluding %s", candidate)
                        continue
                    files.append(candidate)
            else:
                files.append(path)
        return list(dict.fromkeys(files))

    def _is_excluded(self, relative: str) -> bool:
        name = relative.rsplit("/", 1)[-1]
        return any(fnmatch(relative, pattern) or fnmatch(name, pattern) for pattern in self.settings.exclude)

    def get_entry_points_for_paths(self, paths: list[Path], provider: SemanticProvider | None = None) -> list[EntryPoint]:
        """Locate each file in the provider and give it a display name.

        Files the provider does not know are logged and skipped.
        """
        provider = provider or self._provider_factory(paths)
        base = package_base([p for p in paths if p.exists()])
        entry_points: list[EntryPoint] = []
        for path in paths:
            entry_point = provider.get_entry_point(path)
            if entry_point is None:
                logger.warning("Unable to locate entry point %s; skipping it", path)
                continue
            entry_points.append(replace(entry_point, display_name=display_name(path, base)))
        return entry_points

    # ------------------------------------------------------------------
    # Conversion
    # ------------------------------------------------------------------

    def convert(self) -> ProjectReflection | None:
        """Run the conversion once; None when documentation could not be produced."""
        files = self.expand_input_files(self.settings.entry_points)
        if not files:
            logger.error("No input files given; nothing to document")
            return None
        existing = [f for f in files if f.exists()]
        provider = self._provider_factory(existing)
        name = self.settings.name or common_directory(existing).name
        try:
            entry_points = self.get_entry_points_for_paths(files, provider)
            return self.converter.convert(provider, entry_points, name=name)
        except ConversionError as exc:
            logger.error("Documentation could not be generated: %s", exc)
            return None

    async def convert_and_watch(self, success: SuccessCallback, stop_event: asyncio.Event | None = None) -> None:
        """Rebuild on every change of the input files until ``stop_event`` is set.

        Each rebuild starts from a fresh project. A rebuild that finishes
        after a newer one was already delivered is discarded. ``success`` may
        be sync or async; while it runs no new rebuild starts, and changes
        made meanwhile trigger one rebuild afterwards.
        """
        stop = stop_event or asyncio.Event()
        last_fingerprint: str | None = None
        generation = 0
        logger.info("Watching %s for changes", ", ".join(self.settings.entry_points))
        while not stop.is_set():
            fingerprint = compute_source_hash(self.expand_input_files(self.settings.entry_points))
            if fingerprint != last_fingerprint:
                last_fingerprint = fingerprint
                generation += 1
                get_diagnostics().reset()
                project = await asyncio.to_thread(self.convert)
                if project is None:
                    logger.error("Documentation could not be generated; waiting for the next change")
                else:
                    await self._deliver(generation, project, success)
            try:
                await asyncio.wait_for(stop.wait(), timeout=self.settings.watch_poll_interval)
            except TimeoutError:
                pass

    async def _deliver(self, generation: int, project: ProjectReflection, success: SuccessCallback) -> bool:
        if generation <= self._delivered_generation:
            logger.debug("Discarding stale rebuild %d", generation)
            return False
        self._delivered_generation = generation
        result = success(project)
        if inspect.isawaitable(result):
            await result
        return True

    # ------------------------------------------------------------------
    # Outputs
    # ------------------------------------------------------------------

    def generate_json(self, project: ProjectReflection, out: Path | None = None) -> Path:
        target = out or self.settings.json_out
        if target is None:
            raise ReflectDocError("No JSON output path configured")
        target = Path(target)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(self.serializer.to_json(project, self.settings.pretty, target) + "\n", encoding="utf-8")
        logger.info("JSON written to %s", target)
        return target

    def generate_docs(self, project: ProjectReflection, out: Path | None = None) -> list[Path]:
        target = out or self.settings.out_dir
        if target is None:
            raise ReflectDocError("No output directory configured")
        written = self.renderer.render(project, Path(target))
        if get_diagnostics().has_errors():
            logger.error("Documentation could not be generated due to the errors above")
        else:
            logger.info("Documentation generated at %s", target)
        return written
