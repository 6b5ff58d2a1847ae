from __future__ import annotations

import logging
import sys

"""Console logging for the importer.

Every line carries one label (INFO|WARN|ERROR|SUMMARY) followed by the
message. Modules log through ``logging.getLogger(__name__)``; those loggers
are children of the package logger configured here, so one setup call covers
the whole package and the level is switched on that logger only.
"""

__all__ = [
    "LOGGER_NAME",
    "SUMMARY_LEVEL",
    "LabeledFormatter",
    "log_summary",
    "reset_logging",
    "set_debug",
    "setup_logging",
]

LOGGER_NAME = "t212_import"

# between INFO=20 and WARNING=30 so the run summary survives a WARN filter
SUMMARY_LEVEL = 25

_LABELS = {
    logging.DEBUG: "DEBUG",
    logging.INFO: "INFO",
    SUMMARY_LEVEL: "SUMMARY",
    logging.WARNING: "WARN",
    logging.ERROR: "ERROR",
}

_logger: logging.Logger | None = None


class LabeledFormatter(logging.Formatter):
    """Render ``<LABEL> <message>``; unknown levels fall back to their level name."""

    def format(self, record: logging.LogRecord) -> str:
        return f"{_LABELS.get(record.levelno, record.levelname)} {record.getMessage()}"


def setup_logging() -> logging.Logger:
    """Attach the stdout handler to the package logger once and return it.

    The logger does not propagate, so records never reach the root logger
    twice. Its level starts at INFO; see set_debug().
    """
    global _logger
    if _logger is None:
        logging.addLevelName(SUMMARY_LEVEL, "SUMMARY")
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(LabeledFormatter())
        _logger = logging.getLogger(LOGGER_NAME)
        _logger.addHandler(handler)
        _logger.setLevel(logging.INFO)
        _logger.propagate = False
    return _logger


def set_debug(enabled: bool = True) -> None:
    setup_logging().setLevel(logging.DEBUG if enabled else logging.INFO)


def log_summary(message: str) -> None:
    """Emit the run summary at SUMMARY level (the label is added by the formatter)."""
    setup_logging().log(SUMMARY_LEVEL, message)


def reset_logging() -> None:
    """Detach the handler and hand the package logger back to the root (tests)."""
    global _logger
    if _logger is not None:
        _logger.handlers.clear()
        _logger.propagate = True
        _logger.setLevel(logging.NOTSET)
    _logger = None
