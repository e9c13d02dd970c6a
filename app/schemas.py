"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from datastore.reading_store import SlotState, StoreView
from models.records import Reading

# Measurements are echoed as sent, so an integer ppm stays an integer on the wire.
Number = Union[int, float]


def isoformat_ms(value: datetime) -> str:
    """Render an instant as UTC ISO-8601 with milliseconds and a ``Z`` suffix."""
    utc = value.astimezone(timezone.utc)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class PrimaryReading(_WireModel):
    """Reading shape exposed by the primary channel."""

    temperature: Number
    co2: Number
    humidity: Number

    @classmethod
    def from_reading(cls, reading: Reading) -> "PrimaryReading":
        return cls(
            temperature=reading.temperature,
            co2=reading.co2,
            humidity=reading.humidity,
        )


class BridgeReading(_WireModel):
    """Reading shape exposed by the ESP32 bridge channel.

    ``mac`` and ``device_id`` always carry the same identity; both are kept
    because deployed gateways read either one.
    """

    mac: Optional[str] = None
    device_id: Optional[str] = None
    temperature: Number = 0
    co2: Number = 0
    humidity: Number = 0
    ts: int = Field(..., description="Write time in epoch milliseconds.")

    @classmethod
    def from_reading(cls, reading: Reading) -> "BridgeReading":
        return cls(
            mac=reading.device_id,
            device_id=reading.device_id,
            temperature=reading.temperature,
            co2=reading.co2,
            humidity=reading.humidity,
            ts=reading.timestamp_ms,
        )

    @classmethod
    def placeholder(cls, now: datetime) -> "BridgeReading":
        return cls(
            mac=None,
            device_id=None,
            temperature=0,
            co2=0,
            humidity=0,
            ts=int(now.timestamp() * 1000),
        )


class PrimaryIngestResponse(_WireModel):
    ok: bool
    message: str
    reading: PrimaryReading


class BridgeIngestResponse(_WireModel):
    ok: bool
    message: str
    reading: BridgeReading
    note: str


class ErrorResponse(_WireModel):
    ok: bool = False
    error: str


class _ChannelView(_WireModel):
    ok: bool
    has_reading: bool = Field(..., alias="hasReading")
    message: Optional[str] = None
    timestamp: Optional[str] = None
    age: Optional[int] = Field(default=None, description="Age of the reading in seconds.")
    last_update: Optional[str] = Field(default=None, alias="lastUpdate")


class PrimaryChannelView(_ChannelView):
    """Tri-state view of the primary channel slot.

    Fields that do not apply to a state are left unset so they are omitted
    from the response body.
    """

    reading: Optional[PrimaryReading] = None
    last_reading: Optional[PrimaryReading] = Field(default=None, alias="lastReading")

    @classmethod
    def from_view(cls, view: StoreView) -> "PrimaryChannelView":
        if view.state is SlotState.empty:
            return cls(ok=True, has_reading=False, message="No reading available yet")
        assert view.reading is not None and view.written_at is not None
        reading = PrimaryReading.from_reading(view.reading)
        if view.state is SlotState.fresh:
            return cls(
                ok=True,
                has_reading=True,
                reading=reading,
                timestamp=isoformat_ms(view.written_at),
                age=view.age_seconds,
            )
        return cls(
            ok=True,
            has_reading=False,
            message="No recent reading available",
            last_reading=reading,
            last_update=isoformat_ms(view.written_at),
        )


class BridgeChannelView(_ChannelView):
    """Tri-state view of the bridge channel slot."""

    reading: Optional[BridgeReading] = None
    last_reading: Optional[BridgeReading] = Field(default=None, alias="lastReading")

    @classmethod
    def from_view(cls, view: StoreView, now: datetime) -> "BridgeChannelView":
        if view.state is SlotState.empty:
            return cls(
                ok=True,
                has_reading=False,
                reading=BridgeReading.placeholder(now),
                message="No sensor data received yet",
            )
        assert view.reading is not None and view.written_at is not None
        reading = BridgeReading.from_reading(view.reading)
        if view.state is SlotState.fresh:
            return cls(
                ok=True,
                has_reading=True,
                reading=reading,
                timestamp=isoformat_ms(view.written_at),
                age=view.age_seconds,
            )
        return cls(
            ok=True,
            has_reading=False,
            message="No recent reading available",
            last_reading=reading,
            last_update=isoformat_ms(view.written_at),
        )


class StatusResponse(_WireModel):
    status: str
    platform: str
    endpoints: Dict[str, str]
