"""Resolve the dashboard reading from several ingestion channels."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Optional, Protocol, Sequence

from cli.client import NetworkError
from models.records import CHANNEL_PRIORITY, Channel
from services.normalizer import is_number

logger = logging.getLogger(__name__)

CO2_ALERT_THRESHOLD = 800


def to_fixed(value: float, places: int) -> str:
    """Format with ``places`` decimals, rounding exact ties away from zero."""
    quantum = Decimal(1).scaleb(-places)
    return str(Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP))


class ChannelSource(Protocol):
    def fetch_channel(self, channel: Channel) -> Dict[str, Any]: ...


@dataclass(frozen=True)
class ResolvedReading:
    """Display-ready reading plus the raw values it was formatted from."""

    temperature: str
    humidity: str
    co2: str
    raw_temp: float
    raw_co2: float
    raw_humidity: float
    source: Optional[Channel] = None

    @classmethod
    def from_values(
        cls,
        temperature: float,
        humidity: float,
        co2: float,
        source: Optional[Channel] = None,
    ) -> "ResolvedReading":
        return cls(
            temperature=f"{to_fixed(temperature, 1)} °C",
            humidity=f"{to_fixed(humidity, 1)} %",
            co2=f"{to_fixed(co2, 0)} ppm",
            raw_temp=temperature,
            raw_co2=co2,
            raw_humidity=humidity,
            source=source,
        )

    @classmethod
    def zero(cls) -> "ResolvedReading":
        return cls.from_values(0, 0, 0)

    @property
    def is_zero(self) -> bool:
        return self.raw_temp == 0 and self.raw_co2 == 0 and self.raw_humidity == 0

    @property
    def co2_alert(self) -> bool:
        return self.raw_co2 > CO2_ALERT_THRESHOLD

    def to_dict(self) -> Dict[str, Any]:
        return {
            "temperature": self.temperature,
            "humidity": self.humidity,
            "co2": self.co2,
            "rawTemp": self.raw_temp,
            "rawCo2": self.raw_co2,
            "rawHumidity": self.raw_humidity,
        }


def _fresh_reading(payload: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    if not payload.get("ok") or not payload.get("hasReading"):
        return None
    reading = payload.get("reading")
    if not isinstance(reading, dict):
        return None
    if not all(is_number(reading.get(name)) for name in ("temperature", "co2", "humidity")):
        return None
    return reading


class ChannelReconciler:
    """Returns the first fresh reading across channels in priority order.

    Channel failures never reach the caller: they are logged and the next
    channel is consulted. When no channel has a fresh reading the zero
    reading is returned.
    """

    def __init__(
        self,
        source: ChannelSource,
        channels: Sequence[Channel] = CHANNEL_PRIORITY,
    ) -> None:
        self.source = source
        self.channels = tuple(channels)

    def resolve(self) -> ResolvedReading:
        for channel in self.channels:
            try:
                payload = self.source.fetch_channel(channel)
            except NetworkError as exc:
                logger.warning(
                    "Channel fetch failed: %s",
                    exc,
                    extra={"channel": channel.value, "endpoint": channel.path},
                )
                continue

            reading = _fresh_reading(payload)
            if reading is None:
                logger.debug("No fresh reading", extra={"channel": channel.value})
                continue

            return ResolvedReading.from_values(
                temperature=reading["temperature"],
                humidity=reading["humidity"],
                co2=reading["co2"],
                source=channel,
            )

        logger.info("No reading available from any channel, using zeros")
        return ResolvedReading.zero()
