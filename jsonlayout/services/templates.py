"""Template evaluation for property values.

A template is literal text with ``${facility}`` or ``${facility:arg}``
markers. Facilities without an argument report ambient facts about the
process or the event; ``var`` and ``environment`` look values up by name and
render missing names as empty text. Arguments may themselves contain
markers, which are evaluated first.

Faults never escape ``evaluate_property``: the property is rendered as a
``Render failed: <Kind> <message>`` diagnostic instead.
"""

import os
import socket
import sys
import threading
from dataclasses import dataclass
from datetime import timezone
from functools import lru_cache
from pathlib import Path
from typing import Callable

from jsonlayout.errors import TemplateError
from jsonlayout.internal_log import internal_logger
from jsonlayout.metrics import PROPERTY_RENDER_FAILURES_TOTAL
from jsonlayout.models.schema import PropertyDescriptor, RenderContext, RenderedField, level_name

MARKER_OPEN = "${"
MARKER_CLOSE = "}"

Facility = Callable[[RenderContext, str | None], str]


# ---------------------------------------------------------------------------
# Facilities
# ---------------------------------------------------------------------------

def _utc(context: RenderContext):
    ts = context.timestamp()
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def _machine_name(context, arg):
    return socket.gethostname()


def _process_id(context, arg):
    return str(os.getpid())


def _process_name(context, arg):
    return Path(sys.executable).stem if sys.executable else "python"


def _thread_id(context, arg):
    return str(threading.get_ident())


def _thread_name(context, arg):
    return threading.current_thread().name


def _level(context, arg):
    return level_name(context.event.level)


def _logger(context, arg):
    return context.event.logger_name


def _message(context, arg):
    return context.event.message


def _newline(context, arg):
    return "\n"


def _long_date(context, arg):
    """Event time in the machine's local zone, ``YYYY-MM-DD hh:mm:ss.ffff``."""
    ts = _utc(context).astimezone()
    return ts.strftime("%Y-%m-%d %H:%M:%S.") + f"{ts.microsecond // 100:04d}"


def _date(context, arg):
    ts = _utc(context)
    if arg:
        return ts.strftime(arg)
    return ts.strftime("%Y/%m/%d %H:%M:%S.") + f"{ts.microsecond // 1000:03d}"


def _var(context, arg):
    if arg is None:
        raise TemplateError("${var} requires a variable name")
    return context.variables.get(arg, "")


def _environment(context, arg):
    if arg is None:
        raise TemplateError("${environment} requires a variable name")
    return os.environ.get(arg, "")


FACILITIES: dict[str, Facility] = {
    "machinename": _machine_name,
    "processid": _process_id,
    "processname": _process_name,
    "threadid": _thread_id,
    "threadname": _thread_name,
    "level": _level,
    "logger": _logger,
    "message": _message,
    "newline": _newline,
    "longdate": _long_date,
    "date": _date,
    "var": _var,
    "environment": _environment,
}


def register_facility(name: str, func: Facility) -> None:
    """Make ``${name}`` / ``${name:arg}`` available to every template.

    Call during configuration, before rendering starts.
    """
    FACILITIES[name.lower()] = func


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Marker:
    facility: str
    # parsed argument: literal strings and nested Markers
    arg: tuple | None = None


def _find_close(text: str, start: int) -> int:
    """Index of the ``}`` closing the marker opened at ``start``, or -1."""
    depth = 1
    i = start + len(MARKER_OPEN)
    while i < len(text):
        if text.startswith(MARKER_OPEN, i):
            depth += 1
            i += len(MARKER_OPEN)
            continue
        if text[i] == MARKER_CLOSE:
            depth -= 1
            if depth == 0:
                return i
        i += 1
    return -1


@lru_cache(maxsize=256)
def parse_template(text: str) -> tuple:
    """Split template text into literal strings and Markers.

    Arguments may hold nested markers, e.g. ``${var:${var:name}}``.
    """
    parts: list = []
    pos = 0
    while True:
        start = text.find(MARKER_OPEN, pos)
        if start < 0:
            if pos < len(text):
                parts.append(text[pos:])
            break
        if start > pos:
            parts.append(text[pos:start])
        end = _find_close(text, start)
        if end < 0:
            raise TemplateError(f"Unterminated marker at position {start}: {text[start:]!r}")
        body = text[start + len(MARKER_OPEN):end]
        facility, sep, arg = body.partition(":")
        if MARKER_OPEN in facility:
            raise TemplateError(f"Marker inside facility name at position {start}: {body!r}")
        facility = facility.strip().lower()
        if not facility:
            raise TemplateError(f"Empty marker at position {start}")
        parts.append(Marker(facility, parse_template(arg) if sep else None))
        pos = end + len(MARKER_CLOSE)
    return tuple(parts)


def render_parts(parts: tuple, context: RenderContext) -> str:
    out = []
    for part in parts:
        if isinstance(part, str):
            out.append(part)
            continue
        func = FACILITIES.get(part.facility)
        if func is None:
            raise TemplateError(f"Unknown facility: {part.facility}")
        arg = render_parts(part.arg, context) if part.arg is not None else None
        out.append(func(context, arg))
    return "".join(out)


class SimpleTemplate:
    """Template over the ``${facility[:arg]}`` marker syntax.

    Parsing is deferred to the first render so that malformed text is
    reported through the per-property failure path.
    """

    def __init__(self, text: str):
        self.text = text

    def render(self, context: RenderContext) -> str:
        return render_parts(parse_template(self.text), context)

    def __repr__(self) -> str:
        return f"SimpleTemplate({self.text!r})"

    def __eq__(self, other) -> bool:
        return isinstance(other, SimpleTemplate) and other.text == self.text

    def __hash__(self) -> int:
        return hash(self.text)


# ---------------------------------------------------------------------------
# Per-property evaluation
# ---------------------------------------------------------------------------

def render_failure_message(exc: BaseException) -> str:
    return f"Render failed: {type(exc).__name__} {exc}"


def evaluate_property(prop: PropertyDescriptor, key: str, context: RenderContext) -> RenderedField:
    """Render one property under its resolved key, containing any fault."""
    try:
        value = prop.template.render(context)
        value = "" if value is None else str(value)
    except Exception as exc:
        PROPERTY_RENDER_FAILURES_TOTAL.labels(fault=type(exc).__name__).inc()
        internal_logger.warning(
            "Property render failed: name=%s key=%s err=%s: %s",
            prop.name, key, type(exc).__name__, exc,
        )
        return RenderedField(key=key, value=render_failure_message(exc), failed=True)

    return RenderedField(key=key, value=value)
