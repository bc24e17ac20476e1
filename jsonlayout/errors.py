"""Exception types raised by the JSON layout."""


class JsonLayoutError(Exception):
    """Base class for layout errors."""


class TemplateError(JsonLayoutError):
    """A template could not be evaluated (unknown facility, bad marker)."""


class ConfigurationError(JsonLayoutError, ValueError):
    """Invalid layout configuration."""
