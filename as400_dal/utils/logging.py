"""
Logging setup for the AS400 data-access layer.

Modules log through standard library loggers named after themselves
(``as400_dal.infrastructure.connection`` and so on). `configure_logging`
installs one stream handler on the root logger that renders either a console
line or one JSON object per record; structured fields passed with ``extra=``
become JSON keys.

Every executed statement is logged at INFO by the ``as400_dal.utils.profiler``
logger, which can be turned down on its own:

    from as400_dal.utils.logging import configure_logging, get_logger

    configure_logging(level="INFO", json_logs=True, log_queries=False)
    log = get_logger(__name__)
    log.info("Schema mapping updated", extra={"schema_mapping": {"DSALES": "SALES"}})

Driver messages sometimes echo the connection string; ``PWD=`` and
``PASSWORD=`` values are masked by both formatters.
"""

from __future__ import annotations

import json
import logging
import logging.config
import re
from typing import Any, Dict, Optional

QUERY_LOGGER = "as400_dal.utils.profiler"

# Attributes every LogRecord carries; anything else arrived through `extra=`.
_RESERVED = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}

_SECRET_RE = re.compile(r"\b(PWD|PASSWORD)=[^;]*", re.IGNORECASE)


def redact(text: str) -> str:
    """Mask credential values in ODBC connection-string fragments."""
    return _SECRET_RE.sub(lambda match: f"{match.group(1)}=********", text)


def _payload(record: logging.LogRecord) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "level": record.levelname,
        "logger": record.name,
        "message": redact(record.getMessage()),
    }
    payload.update((k, v) for k, v in vars(record).items() if k not in _RESERVED)

    # log.info(..., extra={"extra": {...}}) nests the fields one level down
    nested = payload.get("extra")
    if isinstance(nested, dict):
        del payload["extra"]
        payload.update(nested)

    if record.exc_info:
        payload["exc_info"] = redact(logging.Formatter().formatException(record.exc_info))
    return payload


class JsonFormatter(logging.Formatter):
    """One JSON object per record; values JSON cannot encode are stringified."""

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        return json.dumps(_payload(record), default=str)


class ConsoleFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        return redact(super().format(record))


def configure_logging(
    level: str = "INFO",
    json_logs: bool = False,
    log_queries: bool = True,
) -> None:
    """
    Configure root logging.

    Parameters
    ----------
    level : str
        Logging level name (e.g., "DEBUG", "INFO", "WARNING").
    json_logs : bool
        Emit one JSON object per record instead of console lines.
    log_queries : bool
        When False, per-statement SQL logging is raised to WARNING.
    """
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "console": {
                    "()": ConsoleFormatter,
                    "fmt": "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
                    "datefmt": "%Y-%m-%d %H:%M:%S",
                },
                "json": {"()": JsonFormatter},
            },
            "handlers": {
                "default": {
                    "class": "logging.StreamHandler",
                    "formatter": "json" if json_logs else "console",
                    "level": level,
                }
            },
            "loggers": {
                QUERY_LOGGER: {"level": level if log_queries else "WARNING"},
            },
            "root": {"handlers": ["default"], "level": level},
        }
    )


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Module logger; the root logger when `name` is None."""
    return logging.getLogger(name)


__all__ = [
    "ConsoleFormatter",
    "JsonFormatter",
    "QUERY_LOGGER",
    "configure_logging",
    "get_logger",
    "redact",
]
