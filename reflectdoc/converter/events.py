"""Lifecycle notifications with ordered, explicitly registered hooks."""

from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import Any


class ConverterEvents(StrEnum):
    BEGIN = "begin"
    ENTRY_POINT_BEGIN = "entry_point_begin"
    REFLECTION_CREATED = "reflection_created"
    ENTRY_POINT_END = "entry_point_end"
    RESOLVE_BEGIN = "resolve_begin"
    RESOLVE_END = "resolve_end"
    END = "end"


class SerializerEvents(StrEnum):
    BEGIN = "begin"
    END = "end"


@dataclass(frozen=True, slots=True)
class ConverterEvent:
    name: str
    project: Any
    reflection: Any = None
    entry_point: Any = None


@dataclass(frozen=True, slots=True)
class SerializerEvent:
    name: str
    project: Any
    output_file: str | None = None
    output_directory: str | None = None


Hook = Callable[[Any], None]


class EventHub:
    """Per-event hook lists owned by the host object.

    Hooks run synchronously in registration order. An exception raised by a
    hook propagates to whoever emitted the event.
    """

    def __init__(self) -> None:
        self._hooks: dict[str, list[Hook]] = {}

    def on(self, event: str, hook: Hook) -> Hook:
        self._hooks.setdefault(event, []).append(hook)
        return hook

    def off(self, event: str, hook: Hook) -> None:
        hooks = self._hooks.get(event, [])
        if hook in hooks:
            hooks.remove(hook)

    def hooks(self, event: str) -> list[Hook]:
        return list(self._hooks.get(event, []))

    def emit(self, event: str, payload: Any) -> None:
        for hook in self.hooks(event):
            hook(payload)
