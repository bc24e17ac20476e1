"""stdlib logging integration for the JSON layout."""

import logging
import logging.config
from collections.abc import Iterable, Mapping
from datetime import datetime, timezone

from jsonlayout.config import PropertyConfig, Settings
from jsonlayout.internal_log import configure_internal_logger
from jsonlayout.models.schema import (
    LogEvent,
    PropertyDescriptor,
    TimeSource,
    VariableStore,
    level_from_levelno,
)
from jsonlayout.services.layout import JsonWithPropertiesLayout
from jsonlayout.services.names import PROPERTY_NAME_PREFIX


def _descriptors(properties: Iterable) -> list[PropertyDescriptor]:
    out = []
    for prop in properties:
        if isinstance(prop, PropertyDescriptor):
            out.append(prop)
        elif isinstance(prop, PropertyConfig):
            out.append(PropertyDescriptor(prop.name, prop.template))
        elif isinstance(prop, Mapping):
            cfg = PropertyConfig.model_validate(prop)
            out.append(PropertyDescriptor(cfg.name, cfg.template))
        else:
            name, template = prop
            out.append(PropertyDescriptor(name, template))
    return out


class JsonWithPropertiesFormatter(logging.Formatter):
    """Emit each log record as a single-line JSON object.

    Standard fields:
        TimeStamp  - UTC, millisecond precision
        Level      - Trace / Debug / Info / Warn / Error / Fatal
        LoggerName - logger name
        Message    - formatted message, traceback appended when present

    followed by the configured properties. ``properties`` accepts
    PropertyDescriptor objects, ``{"name": ..., "template": ...}`` mappings
    or ``(name, template)`` pairs, so the formatter can be built from a
    ``dictConfig`` dictionary.
    """

    def __init__(
        self,
        properties: Iterable = (),
        variables: Mapping[str, str] | None = None,
        prefix: str = PROPERTY_NAME_PREFIX,
        time_source: TimeSource | None = None,
        use_record_time: bool = True,
        layout: JsonWithPropertiesLayout | None = None,
    ):
        super().__init__()
        if layout is None:
            layout = JsonWithPropertiesLayout(
                _descriptors(properties),
                prefix=prefix,
                variables=VariableStore(variables) if variables is not None else None,
                time_source=time_source,
            )
        self.layout = layout
        self.use_record_time = use_record_time
        # no properties can be added once records are flowing
        self.layout.properties.freeze()

    def to_event(self, record: logging.LogRecord) -> LogEvent:
        message = record.getMessage()
        if record.exc_info and not record.exc_text:
            record.exc_text = self.formatException(record.exc_info)
        if record.exc_text:
            message = f"{message}\n{record.exc_text}"
        if record.stack_info:
            message = f"{message}\n{self.formatStack(record.stack_info)}"

        timestamp = None
        if self.use_record_time:
            timestamp = datetime.fromtimestamp(record.created, tz=timezone.utc)

        return LogEvent(
            level=level_from_levelno(record.levelno),
            logger_name=record.name,
            message=message,
            timestamp=timestamp,
        )

    def format(self, record: logging.LogRecord) -> str:
        return self.layout.render(self.to_event(record))


# ---------------------------------------------------------------------------
# Process-wide setup
# ---------------------------------------------------------------------------

def build_layout(settings: Settings) -> JsonWithPropertiesLayout:
    return JsonWithPropertiesLayout(
        _descriptors(settings.properties),
        prefix=settings.property_name_prefix,
        variables=VariableStore(settings.variables),
    )


def build_logging_config(settings: Settings) -> dict:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {
                "()": "jsonlayout.logging_setup.JsonWithPropertiesFormatter",
                "properties": [p.model_dump() for p in settings.properties],
                "variables": dict(settings.variables),
                "prefix": settings.property_name_prefix,
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "json",
            },
        },
        "root": {
            "level": settings.log_level.upper(),
            "handlers": ["console"],
        },
    }


def configure_logging(settings: Settings | None = None) -> None:
    if settings is None:
        from jsonlayout.config import settings
    logging.config.dictConfig(build_logging_config(settings))
    if settings.internal_log_file or settings.internal_log_to_stderr:
        configure_internal_logger(settings.internal_log_level, settings.internal_log_file or None)
