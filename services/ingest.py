"""Ingestion orchestration for the primary and bridge channels."""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any, Dict

from datastore.reading_store import Clock, ReadingStore, StoreView, utc_now
from models.records import Channel, Reading
from services.normalizer import ValidationError, normalize

logger = logging.getLogger(__name__)


class IngestService:
    """Routes payloads through the normalizer into the per-channel store."""

    def __init__(self, clock: Clock = utc_now) -> None:
        self.clock = clock
        self.stores: Dict[Channel, ReadingStore] = {
            channel: ReadingStore(channel, clock=clock) for channel in Channel
        }

    def ingest(self, channel: Channel, payload: Any) -> Reading:
        """Validate ``payload`` and make it the channel's latest reading."""
        try:
            reading = normalize(payload, channel.mode, now=self.clock())
        except ValidationError as exc:
            logger.warning(
                "Rejected payload",
                extra={"channel": channel.value, "reason": exc.reason},
            )
            raise

        self.stores[channel].write(reading)
        logger.info(
            "Stored reading temperature=%s humidity=%s co2=%s",
            reading.temperature,
            reading.humidity,
            reading.co2,
            extra={"channel": channel.value, "device_id": reading.device_id or "unknown"},
        )
        return reading

    def view(self, channel: Channel) -> StoreView:
        view = self.stores[channel].read()
        logger.debug(
            "Read channel slot",
            extra={
                "channel": channel.value,
                "state": view.state.value,
                "age_seconds": view.age_seconds,
            },
        )
        return view


@lru_cache
def build_default_ingest_service() -> IngestService:
    """Process-wide service instance shared by every request handler."""
    return IngestService()
