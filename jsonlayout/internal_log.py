"""Diagnostics logger for the layout itself.

Records written here never propagate into the application's logging tree,
so a failing property cannot feed back into the formatter that reported it.
"""

import logging

INTERNAL_LOGGER_NAME = "jsonlayout.internal"

internal_logger = logging.getLogger(INTERNAL_LOGGER_NAME)
internal_logger.propagate = False
internal_logger.addHandler(logging.NullHandler())


def configure_internal_logger(level: str = "WARNING", log_file: str | None = None) -> logging.Logger:
    """Attach a plain-text handler to the internal logger.

    With no ``log_file`` the records go to stderr.
    """
    for handler in list(internal_logger.handlers):
        if not isinstance(handler, logging.NullHandler):
            internal_logger.removeHandler(handler)
            handler.close()

    handler: logging.Handler
    if log_file:
        handler = logging.FileHandler(log_file, encoding="utf-8")
    else:
        handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s"))
    internal_logger.addHandler(handler)
    internal_logger.setLevel(level.upper())
    return internal_logger
