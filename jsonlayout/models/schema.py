"""Data model for rendering log events to JSON lines."""

import enum
import logging
from collections.abc import Iterable, Iterator, Mapping, MutableMapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Protocol, runtime_checkable

from jsonlayout.errors import ConfigurationError
from jsonlayout.validation import validate_property_name

TRACE = 5
logging.addLevelName(TRACE, "TRACE")


class Level(str, enum.Enum):
    trace = "Trace"
    debug = "Debug"
    info = "Info"
    warn = "Warn"
    error = "Error"
    fatal = "Fatal"


def level_from_levelno(levelno: int) -> Level:
    """Map a stdlib logging level number onto the emitted level names."""
    if levelno >= logging.CRITICAL:
        return Level.fatal
    if levelno >= logging.ERROR:
        return Level.error
    if levelno >= logging.WARNING:
        return Level.warn
    if levelno >= logging.INFO:
        return Level.info
    if levelno >= logging.DEBUG:
        return Level.debug
    return Level.trace


def level_name(level) -> str:
    return level.value if isinstance(level, Level) else str(level)


@dataclass(frozen=True)
class LogEvent:
    level: str
    logger_name: str
    message: str
    timestamp: datetime | None = None


# ---------------------------------------------------------------------------
# Time sources
# ---------------------------------------------------------------------------

@runtime_checkable
class TimeSource(Protocol):
    def now(self) -> datetime: ...


class SystemTimeSource:
    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedTimeSource:
    """Time source that always returns the same instant."""

    def __init__(self, time: datetime | None = None):
        self.time = time or datetime(2017, 1, 2, 3, 4, 5, 678000, tzinfo=timezone.utc)

    def now(self) -> datetime:
        return self.time


# ---------------------------------------------------------------------------
# Variables
# ---------------------------------------------------------------------------

class VariableStore(MutableMapping):
    """Name -> string mapping backing ``${var:name}`` markers.

    Writes are expected between renders, not during one. Values are coerced
    to ``str`` on assignment.
    """

    def __init__(self, initial: Mapping[str, object] | None = None):
        self._values: dict[str, str] = {}
        if initial:
            self.update(initial)

    def __getitem__(self, name: str) -> str:
        return self._values[name]

    def __setitem__(self, name: str, value: object) -> None:
        self._values[name] = str(value)

    def __delitem__(self, name: str) -> None:
        del self._values[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)


# ---------------------------------------------------------------------------
# Templates and properties
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RenderContext:
    event: LogEvent
    variables: Mapping[str, str] = field(default_factory=dict)
    time_source: TimeSource = field(default_factory=SystemTimeSource)

    def timestamp(self) -> datetime:
        return self.event.timestamp or self.time_source.now()


@runtime_checkable
class Template(Protocol):
    """Anything that turns a render context into text, or raises."""

    def render(self, context: RenderContext) -> str: ...


@dataclass(frozen=True)
class PropertyDescriptor:
    name: str
    template: Template

    def __post_init__(self):
        validate_property_name(self.name)
        if isinstance(self.template, str):
            from jsonlayout.services.templates import SimpleTemplate

            object.__setattr__(self, "template", SimpleTemplate(self.template))
        elif not isinstance(self.template, Template):
            raise ConfigurationError(
                f"Property {self.name!r} template must be a str or Template, "
                f"got {type(self.template).__name__}"
            )


class PropertyList(Sequence):
    """Append-only, insertion-ordered list of property descriptors."""

    def __init__(self, properties: Iterable[PropertyDescriptor] = ()):
        self._items: list[PropertyDescriptor] = []
        self._frozen = False
        self.extend(properties)

    def add(self, prop: PropertyDescriptor) -> PropertyDescriptor:
        if self._frozen:
            raise ConfigurationError("Property list is frozen; configure properties before rendering")
        if not isinstance(prop, PropertyDescriptor):
            raise ConfigurationError(f"Expected PropertyDescriptor, got {type(prop).__name__}")
        self._items.append(prop)
        return prop

    def extend(self, properties: Iterable[PropertyDescriptor]) -> None:
        for prop in properties:
            self.add(prop)

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def names(self) -> list[str]:
        return [p.name for p in self._items]

    def __getitem__(self, index):
        return self._items[index]

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"PropertyList({self._items!r})"


@dataclass(frozen=True)
class RenderedField:
    key: str
    value: str
    failed: bool = False
