"""
Logging configuration.

Two output formats:
- console: human-readable lines for development
- json: one JSON object per line for log aggregation

LOG_LEVEL and LOG_FORMAT come from Settings.
"""

import json
import logging
import logging.config
from datetime import datetime, timezone

from ledger_poster.config import get_settings


STANDARD_ATTRS = {
    "name", "msg", "args", "levelname", "levelno", "pathname",
    "filename", "module", "lineno", "funcName", "created",
    "msecs", "relativeCreated", "thread", "threadName",
    "processName", "process", "exc_info", "exc_text", "stack_info",
    "message", "taskName",
}


def get_logging_config(level: str = "INFO", fmt: str = "console") -> dict:
    """Build a dictConfig mapping for the given level and format."""
    if fmt == "json":
        formatters = {
            "json": {"()": "ledger_poster.logging_config.JsonFormatter"},
        }
        formatter = "json"
    else:
        formatters = {
            "verbose": {
                "format": "[{asctime}] {levelname} {name} {message}",
                "style": "{",
            },
        }
        formatter = "verbose"

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": formatters,
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": formatter,
                "stream": "ext://sys.stdout",
            },
        },
        "loggers": {
            "": {
                "handlers": ["console"],
                "level": level,
            },
            "ledger_poster": {
                "handlers": ["console"],
                "level": level,
                "propagate": False,
            },
            "sqlalchemy.engine": {
                "handlers": ["console"],
                "level": "WARNING",
                "propagate": False,
            },
        },
    }


def configure_logging() -> None:
    """Apply logging configuration from the current settings."""
    settings = get_settings()
    level = "DEBUG" if settings.DEBUG else settings.LOG_LEVEL.upper()
    logging.config.dictConfig(get_logging_config(level, settings.LOG_FORMAT))


class JsonFormatter(logging.Formatter):
    """
    JSON log formatter.

    Extra fields passed through ``extra=`` (event kind, source id,
    ledger name...) are emitted under "extra".
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        extras = {}
        for key, value in record.__dict__.items():
            if key in STANDARD_ATTRS:
                continue
            try:
                json.dumps(value)
                extras[key] = value
            except (TypeError, ValueError):
                extras[key] = str(value)

        if extras:
            log_entry["extra"] = extras

        return json.dumps(log_entry, default=str)
