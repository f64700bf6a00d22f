"""Configuration settings for documentation runs.

Settings are loaded from environment variables (prefix ``REFLECTDOC_``) with
.env file support via pydantic-settings. Keyword overrides passed to
``Application.bootstrap`` take precedence over the environment.

Environment variables:
    REFLECTDOC_NAME: Project name shown at the root of the output
    REFLECTDOC_ENTRY_POINTS: JSON list of files or directories to document
    REFLECTDOC_EXCLUDE: JSON list of glob patterns skipped while expanding directories
    REFLECTDOC_EXCLUDE_PRIVATE: Skip ``_private`` members (default true)
    REFLECTDOC_EXCLUDE_INTERNAL: Skip declarations tagged ``@internal``
    REFLECTDOC_PRETTY: Indent the JSON output
    REFLECTDOC_LOG_LEVEL: Log level applied at bootstrap

Example:
    >>> from reflectdoc.settings import Settings
    >>> s = Settings(entry_points=["src/shapes.py"], exclude_private=False)
    >>> s.exclude_private
    False

Note:
    Settings are frozen after initialization. Derive a new instance with
    ``model_copy(update=...)`` instead of mutating.
"""

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Options of a single documentation run.

    Attributes:
        name: Project name; defaults to the name of the common source directory.
        entry_points: Files or directories nominated as traversal roots.
        exclude: Glob patterns; matching files found while expanding a
                 directory entry point are skipped. Explicit entry points
                 are never excluded.
        exclude_private: Skip members whose name starts with an underscore.
        exclude_internal: Skip declarations carrying an ``@internal`` tag.
        pretty: Indent JSON output.
        json_out: Where ``generate_json`` writes when no path is given.
        out_dir: Where ``generate_docs`` writes when no path is given.
        log_level: Level applied to reflectdoc loggers at bootstrap.
        watch_poll_interval: Seconds between fingerprint checks in watch mode.
    """

    model_config = SettingsConfigDict(
        env_prefix="REFLECTDOC_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    name: str = ""
    entry_points: list[str] = Field(default_factory=list)
    exclude: list[str] = Field(default_factory=list)
    exclude_private: bool = True
    exclude_internal: bool = False
    pretty: bool = True
    json_out: Path | None = None
    out_dir: Path | None = None
    log_level: str = "INFO"
    watch_poll_interval: float = 0.5

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level {value!r}")
        return level

    @field_validator("watch_poll_interval")
    @classmethod
    def validate_poll_interval(cls, value: float) -> float:
        if value <= 0:
            raise ValueError(f"watch_poll_interval must be > 0, got {value}")
        return value
