"""
Logging configuration.

Console output for interactive use, JSON lines when RECEIVABLES_LOG_FORMAT=json.
Context passed through ``extra=`` (endpoint, status, party_id, ...) is kept
in both formats.
"""
import json
import logging
import logging.config
import os

# Attributes every LogRecord has; anything else came in through extra=
_RESERVED = set(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


def _extra_fields(record: logging.LogRecord) -> dict:
    return {k: v for k, v in vars(record).items() if k not in _RESERVED}


class JsonFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record):
        payload = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(_extra_fields(record))
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


class ConsoleFormatter(logging.Formatter):
    """Human readable line with extra context appended as key=value."""

    def format(self, record):
        line = super().format(record)
        extra = _extra_fields(record)
        if extra:
            line += " " + " ".join(f"{k}={v}" for k, v in sorted(extra.items()))
        return line


def get_logging_config(level: str = "INFO", fmt: str = "") -> dict:
    fmt = fmt or os.environ.get("RECEIVABLES_LOG_FORMAT", "console")
    formatter = (
        {"()": JsonFormatter}
        if fmt == "json"
        else {"()": ConsoleFormatter, "fmt": "[%(asctime)s] %(levelname)s %(name)s %(message)s"}
    )
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"default": formatter},
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "stream": "ext://sys.stderr",
            },
        },
        "loggers": {
            "receivables": {"handlers": ["console"], "level": level.upper(), "propagate": False},
            "httpx": {"handlers": ["console"], "level": "WARNING", "propagate": False},
        },
    }


def configure_logging(level: str = "INFO", fmt: str = "") -> None:
    logging.config.dictConfig(get_logging_config(level, fmt))
