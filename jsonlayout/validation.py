"""Input validation utilities."""

import re

from jsonlayout.errors import ConfigurationError

CONTROL_CHARS_RE = re.compile(r"[\x00-\x1f\x7f]")

STANDARD_FIELD_NAMES = ("TimeStamp", "Level", "LoggerName", "Message")


def is_valid_property_name(name: str) -> bool:
    return bool(name) and not CONTROL_CHARS_RE.search(name)


def validate_property_name(name: str) -> str:
    """Validate and return a property name, raising ConfigurationError if invalid."""
    if not isinstance(name, str):
        raise ConfigurationError(f"Property name must be a string, got {type(name).__name__}")
    if not is_valid_property_name(name):
        raise ConfigurationError(f"Invalid property name: {name!r}")
    return name


def validate_prefix(prefix: str) -> str:
    if not prefix or CONTROL_CHARS_RE.search(prefix):
        raise ConfigurationError(f"Invalid property name prefix: {prefix!r}")
    return prefix
