"""
Logging setup for the remediation jobs.

One call to `configure_logging` at CLI start wires the root logger for every
batch run. Records carry their remediation context (job type, record id,
resolver strategy) as `extra=` fields; the console format keeps lines short
for operators watching a run, while `LOG_JSON=true` promotes those fields to
top-level JSON keys so a job log row can be correlated with its log lines.

HTTP and pool internals (urllib3, psycopg_pool) are held at WARNING unless the
run itself is at DEBUG, so a batch log is not drowned by per-request chatter.

Usage:
    from remediation.utils.logging import configure_logging, get_logger, job_logger

    configure_logging(level="INFO", json_logs=False)
    log = job_logger(get_logger(__name__), "avatar-correction")
    log.info("Avatar activated", extra={"record_id": "c-1"})
"""

from __future__ import annotations

import json
import logging
import logging.config
from typing import Any, Dict, MutableMapping, Optional, Tuple

NOISY_LOGGERS = ("urllib3", "psycopg_pool")

# Attributes every LogRecord carries; anything else came in through `extra=`.
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None)).keys()
) | {"message", "asctime", "extra"}


def _json_formatter(record: logging.LogRecord) -> str:
    """Render a log record as a JSON object with its remediation context."""
    payload: Dict[str, Any] = {
        "level": record.levelname,
        "logger": record.name,
        "message": record.getMessage(),
    }
    for key, value in vars(record).items():
        if key not in _RESERVED_ATTRS and not key.startswith("_"):
            payload[key] = value
    if record.exc_info:
        payload["exc_info"] = logging.Formatter().formatException(record.exc_info)
    if hasattr(record, "extra") and isinstance(record.extra, dict):
        payload.update(record.extra)
    return json.dumps(payload, default=str)


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        return _json_formatter(record)


class JobLoggerAdapter(logging.LoggerAdapter):
    """
    Stamps `job_type` on every record of one batch run.

    Per-call `extra` wins over the bound context, so an executor can still
    add `record_id` or override the job type for a single line.
    """

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> Tuple[Any, MutableMapping[str, Any]]:
        kwargs["extra"] = {**(self.extra or {}), **(kwargs.get("extra") or {})}
        return msg, kwargs


def job_logger(logger: logging.Logger, job_type: str) -> JobLoggerAdapter:
    return JobLoggerAdapter(logger, {"job_type": job_type})


def configure_logging(
    level: str = "INFO",
    json_logs: bool = False,
) -> None:
    """
    Configure root logging for a remediation run.

    Parameters
    ----------
    level : str
        Logging level name (e.g., "DEBUG", "INFO", "WARNING").
    json_logs : bool
        Emit one JSON object per line instead of the console format.
    """
    level = level.upper()
    noisy_level = "DEBUG" if level == "DEBUG" else "WARNING"

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "console": {
                    "format": "%(asctime)s | %(levelname)-7s | %(name)s | %(message)s",
                    "datefmt": "%Y-%m-%d %H:%M:%S",
                },
                "json": {
                    "()": JsonFormatter,
                },
            },
            "handlers": {
                "default": {
                    "class": "logging.StreamHandler",
                    "formatter": "json" if json_logs else "console",
                    "level": level,
                }
            },
            "loggers": {name: {"level": noisy_level} for name in NOISY_LOGGERS},
            "root": {
                "handlers": ["default"],
                "level": level,
            },
        }
    )


def get_logger(name: Optional[str] = None) -> logging.Logger:
    return logging.getLogger(name)


__all__ = [
    "JobLoggerAdapter",
    "JsonFormatter",
    "NOISY_LOGGERS",
    "configure_logging",
    "get_logger",
    "job_logger",
]
