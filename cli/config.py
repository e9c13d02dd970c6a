"""Connection and polling settings for the relay CLI."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

DEFAULT_BASE_URL = "http://localhost:8000"
DEFAULT_POLL_INTERVAL = 1.0
DEFAULT_TIMEOUT = 10.0


@dataclass(frozen=True)
class CLIConfig:
    base_url: str = DEFAULT_BASE_URL
    poll_interval: float = DEFAULT_POLL_INTERVAL
    poll_timeout: float = DEFAULT_TIMEOUT


def _positive_seconds(raw: Optional[str], fallback: float) -> float:
    try:
        seconds = float((raw or "").strip())
    except ValueError:
        return fallback
    return seconds if seconds > 0 else fallback


def load_config(
    base_url: Optional[str] = None,
    poll_interval: Optional[float] = None,
    poll_timeout: Optional[float] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> CLIConfig:
    """Merge command-line values over ``API_BASE_URL``, ``CLI_POLL_INTERVAL``
    and ``CLI_POLL_TIMEOUT``; blank or non-positive env values are ignored.
    """
    env = os.environ if environ is None else environ
    url = base_url or env.get("API_BASE_URL", "").strip() or DEFAULT_BASE_URL
    return CLIConfig(
        base_url=url.rstrip("/"),
        poll_interval=(
            poll_interval
            if poll_interval is not None
            else _positive_seconds(env.get("CLI_POLL_INTERVAL"), DEFAULT_POLL_INTERVAL)
        ),
        poll_timeout=(
            poll_timeout
            if poll_timeout is not None
            else _positive_seconds(env.get("CLI_POLL_TIMEOUT"), DEFAULT_TIMEOUT)
        ),
    )
