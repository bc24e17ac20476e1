"""Render one log event as a JSON line of standard fields plus properties.

The layout holds configuration only. Variables and the time source are
passed to each render call; nothing is written between calls.
"""

import time
from collections.abc import Iterable, Mapping

from jsonlayout.metrics import LINES_RENDERED_TOTAL, RENDER_DURATION
from jsonlayout.models.schema import (
    LogEvent,
    PropertyDescriptor,
    PropertyList,
    RenderContext,
    RenderedField,
    SystemTimeSource,
    TimeSource,
    level_name,
)
from jsonlayout.services.json_line import build_json_line, format_timestamp
from jsonlayout.services.names import PROPERTY_NAME_PREFIX, resolve_names
from jsonlayout.services.templates import evaluate_property
from jsonlayout.validation import validate_prefix


class JsonWithPropertiesLayout:
    PropertyNamePrefix = PROPERTY_NAME_PREFIX

    def __init__(
        self,
        properties: Iterable[PropertyDescriptor] = (),
        prefix: str = PROPERTY_NAME_PREFIX,
        variables: Mapping[str, str] | None = None,
        time_source: TimeSource | None = None,
    ):
        self.properties = PropertyList(properties)
        self.prefix = validate_prefix(prefix)
        self.variables = variables if variables is not None else {}
        self.time_source = time_source or SystemTimeSource()

    def add_property(self, name: str, template) -> PropertyDescriptor:
        return self.properties.add(PropertyDescriptor(name, template))

    def standard_fields(self, event: LogEvent, context: RenderContext) -> list[tuple[str, str]]:
        return [
            ("TimeStamp", format_timestamp(context.timestamp())),
            ("Level", level_name(event.level)),
            ("LoggerName", str(event.logger_name)),
            ("Message", str(event.message)),
        ]

    def render_properties(self, context: RenderContext) -> list[RenderedField]:
        keys = resolve_names(self.properties.names(), prefix=self.prefix)
        return [
            evaluate_property(prop, key, context)
            for prop, key in zip(self.properties, keys)
        ]

    def render(
        self,
        event: LogEvent,
        variables: Mapping[str, str] | None = None,
        time_source: TimeSource | None = None,
    ) -> str:
        """Render ``event`` to one JSON line.

        ``variables`` and ``time_source`` default to the ones the layout was
        built with. Properties rendering to empty text are left out.
        """
        start = time.perf_counter()
        context = RenderContext(
            event=event,
            variables=self.variables if variables is None else variables,
            time_source=time_source or self.time_source,
        )

        pairs = self.standard_fields(event, context)
        for rendered in self.render_properties(context):
            if rendered.value == "" and not rendered.failed:
                continue
            pairs.append((rendered.key, rendered.value))

        line = build_json_line(pairs)

        LINES_RENDERED_TOTAL.inc()
        RENDER_DURATION.observe(time.perf_counter() - start)
        return line
