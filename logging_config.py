"""Service logging: one stream handler, UTC timestamps, ``extra=`` context appended."""

from __future__ import annotations

import logging
import time
from logging.config import dictConfig
from typing import Any, Dict, Iterable, Optional

from settings import get_settings

CONTEXT_KEYS = (
    "channel",
    "device_id",
    "state",
    "reason",
    "age_seconds",
    "endpoint",
    "status_code",
)

_configured = False


class ContextualFormatter(logging.Formatter):
    """Appends ``key=value`` for each known context field set on the record."""

    converter = time.gmtime

    def __init__(
        self,
        fmt: Optional[str] = None,
        datefmt: Optional[str] = None,
        style: str = "%",
        extra_keys: Optional[Iterable[str]] = None,
    ) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt, style=style)
        self.extra_keys = tuple(extra_keys) if extra_keys else CONTEXT_KEYS

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        fields = record.__dict__
        context = " ".join(
            f"{key}={fields[key]}" for key in self.extra_keys if fields.get(key) is not None
        )
        return f"{line} | {context}" if context else line


def _build_config(level: str | int) -> Dict[str, Any]:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "contextual": {
                "()": ContextualFormatter,
                "fmt": "%(asctime)sZ | %(levelname)s | %(name)s | %(message)s",
                "datefmt": "%Y-%m-%dT%H:%M:%S",
                "extra_keys": list(CONTEXT_KEYS),
            }
        },
        "handlers": {
            "stream": {
                "class": "logging.StreamHandler",
                "formatter": "contextual",
            }
        },
        # httpx logs every request at INFO; the relay only cares about failures.
        "loggers": {"httpx": {"level": "WARNING"}},
        "root": {"handlers": ["stream"], "level": level},
    }


def configure_logging(level: str | int | None = None) -> None:
    """Install the service log configuration once per process."""
    global _configured
    if _configured:
        return
    dictConfig(_build_config(level if level is not None else get_settings().log_level))
    _configured = True
