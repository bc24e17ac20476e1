"""Tests for the logging.Formatter integration."""

import io
import json
import logging
import uuid

import pytest

from jsonlayout.config import Settings
from jsonlayout.errors import ConfigurationError
from jsonlayout.logging_setup import (
    JsonWithPropertiesFormatter,
    build_layout,
    build_logging_config,
)
from jsonlayout.models.schema import TRACE, FixedTimeSource, Level, level_from_levelno


@pytest.fixture
def capture():
    """Yield (logger, stream, attach) where attach(formatter) wires the handler."""
    stream = io.StringIO()
    logger = logging.getLogger(f"test.{uuid.uuid4().hex}")
    logger.setLevel(TRACE)
    logger.propagate = False
    handler = logging.StreamHandler(stream)

    def attach(formatter):
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    yield logger, stream, attach
    logger.removeHandler(handler)


def lines(stream):
    return [json.loads(line) for line in stream.getvalue().splitlines()]


class TestLevelMapping:
    def test_stdlib_levels(self):
        assert level_from_levelno(TRACE) is Level.trace
        assert level_from_levelno(logging.DEBUG) is Level.debug
        assert level_from_levelno(logging.INFO) is Level.info
        assert level_from_levelno(logging.WARNING) is Level.warn
        assert level_from_levelno(logging.ERROR) is Level.error
        assert level_from_levelno(logging.CRITICAL) is Level.fatal


class TestFormatter:
    def test_one_line_per_record(self, capture):
        logger, stream, attach = capture
        attach(JsonWithPropertiesFormatter(
            properties=[{"name": "One", "template": "Property One"}],
            time_source=FixedTimeSource(),
            use_record_time=False,
        ))

        logger.log(TRACE, "This is the test message.")

        out = stream.getvalue()
        assert out == (
            '{"TimeStamp":"2017-01-02T03:04:05.678Z","Level":"Trace",'
            f'"LoggerName":"{logger.name}","Message":"This is the test message.",'
            '"One":"Property One"}\n'
        )

    def test_message_args_interpolated(self, capture):
        logger, stream, attach = capture
        attach(JsonWithPropertiesFormatter())
        logger.info("user %s logged in", "alice")
        assert lines(stream)[0]["Message"] == "user alice logged in"
        assert lines(stream)[0]["Level"] == "Info"

    def test_record_time_used_by_default(self, capture):
        logger, stream, attach = capture
        attach(JsonWithPropertiesFormatter(time_source=FixedTimeSource()))
        logger.warning("w")
        assert not lines(stream)[0]["TimeStamp"].startswith("2017-01-02")

    def test_exception_appended_to_message(self, capture):
        logger, stream, attach = capture
        attach(JsonWithPropertiesFormatter())
        try:
            raise ValueError("boom")
        except ValueError:
            logger.exception("failed")
        message = lines(stream)[0]["Message"]
        assert message.startswith("failed\nTraceback")
        assert "ValueError: boom" in message

    def test_variables_and_tuple_properties(self, capture):
        logger, stream, attach = capture
        attach(JsonWithPropertiesFormatter(
            properties=[("env", "${var:env}"), ("Level", "${level}")],
            variables={"env": "prod"},
        ))
        logger.error("e")
        obj = lines(stream)[0]
        assert obj["env"] == "prod"
        assert obj["Level"] == "Error"
        assert obj["properties_Level"] == "Error"

    def test_failing_property_does_not_break_logging(self, capture):
        logger, stream, attach = capture

        class Failing:
            def render(self, context):
                raise KeyError("gone")

        attach(JsonWithPropertiesFormatter(properties=[("bad", Failing()), ("ok", "yes")]))
        logger.info("still logged")
        obj = lines(stream)[0]
        assert obj["bad"] == "Render failed: KeyError 'gone'"
        assert obj["ok"] == "yes"

    def test_properties_frozen_after_construction(self):
        formatter = JsonWithPropertiesFormatter(properties=[("a", "1")])
        with pytest.raises(ConfigurationError, match="frozen"):
            formatter.layout.add_property("b", "2")


class TestProcessSetup:
    def test_build_layout_from_settings(self):
        settings = Settings(
            properties=[{"name": "app", "template": "${var:app}"}],
            variables={"app": "billing"},
        )
        layout = build_layout(settings)
        assert [p.name for p in layout.properties] == ["app"]
        assert layout.variables["app"] == "billing"

    def test_dict_config_wires_formatter(self):
        settings = Settings(
            log_level="debug",
            properties=[{"name": "svc", "template": "${var:svc}"}],
            variables={"svc": "api"},
        )
        config = build_logging_config(settings)
        assert config["root"]["level"] == "DEBUG"

        formatter_cfg = dict(config["formatters"]["json"])
        factory = formatter_cfg.pop("()")
        assert factory == "jsonlayout.logging_setup.JsonWithPropertiesFormatter"
        formatter = JsonWithPropertiesFormatter(**formatter_cfg)

        record = logging.LogRecord("svc.logger", logging.INFO, __file__, 1, "hi", None, None)
        obj = json.loads(formatter.format(record))
        assert obj["svc"] == "api"
        assert obj["LoggerName"] == "svc.logger"

    def test_configure_logging_writes_internal_log(self, tmp_path):
        from jsonlayout.internal_log import internal_logger
        from jsonlayout.logging_setup import configure_logging
        from jsonlayout.models.schema import LogEvent, PropertyDescriptor, RenderContext
        from jsonlayout.services.templates import evaluate_property

        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        log_file = tmp_path / "internal.log"
        try:
            configure_logging(Settings(_env_file=None, internal_log_file=str(log_file)))
            context = RenderContext(event=LogEvent(level="Info", logger_name="x", message="m"))
            evaluate_property(PropertyDescriptor("bad", "${nosuch}"), "bad", context)
            for handler in internal_logger.handlers:
                handler.flush()
            assert "Property render failed: name=bad" in log_file.read_text(encoding="utf-8")
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)
            for handler in list(internal_logger.handlers):
                if not isinstance(handler, logging.NullHandler):
                    internal_logger.removeHandler(handler)
                    handler.close()
