"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class ValidationMode(str, Enum):
    """How strictly an inbound payload is checked before it is stored."""

    strict = "strict"
    lenient = "lenient"


class Channel(str, Enum):
    """Independent ingestion paths, each with its own store slot."""

    primary = "primary"
    bridge = "bridge"

    @property
    def path(self) -> str:
        return _CHANNEL_PATHS[self]

    @property
    def mode(self) -> ValidationMode:
        if self is Channel.bridge:
            return ValidationMode.strict
        return ValidationMode.lenient


_CHANNEL_PATHS = {
    Channel.primary: "/api/ingest",
    Channel.bridge: "/api/ingest-http-bridge",
}

# Order in which the dashboard consults the channels.
CHANNEL_PRIORITY = (Channel.bridge, Channel.primary)


@dataclass(frozen=True, slots=True)
class Reading:
    """A single environmental reading as accepted by an ingestion channel."""

    temperature: float
    humidity: float
    co2: float
    written_at: datetime
    device_id: Optional[str] = None

    @property
    def timestamp_ms(self) -> int:
        return int(self.written_at.timestamp() * 1000)

    @property
    def is_zero(self) -> bool:
        return self.temperature == 0 and self.humidity == 0 and self.co2 == 0
