from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from threading import Lock
from typing import Callable, Optional

from models.records import Channel, Reading

FRESHNESS_WINDOW = timedelta(minutes=5)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SlotState(str, Enum):
    """Observable states of a store slot at read time."""

    empty = "empty"
    fresh = "fresh"
    stale = "stale"


@dataclass(frozen=True)
class StoreView:
    """Snapshot of a slot evaluated against the freshness window."""

    channel: Channel
    state: SlotState
    reading: Optional[Reading] = None
    written_at: Optional[datetime] = None
    age_seconds: Optional[int] = None

    @property
    def has_reading(self) -> bool:
        return self.state is SlotState.fresh


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class ReadingStore:
    """Holds the latest reading written to one channel."""

    def __init__(
        self,
        channel: Channel,
        clock: Clock = utc_now,
        freshness_window: timedelta = FRESHNESS_WINDOW,
    ) -> None:
        self.channel = channel
        self.freshness_window = freshness_window
        self._clock = clock
        self._reading: Optional[Reading] = None
        self._written_at: Optional[datetime] = None
        self._lock = Lock()

    def write(self, reading: Reading) -> None:
        with self._lock:
            self._reading = reading
            self._written_at = reading.written_at

    def read(self) -> StoreView:
        with self._lock:
            reading = self._reading
            written_at = self._written_at

        if reading is None or written_at is None:
            return StoreView(channel=self.channel, state=SlotState.empty)

        age = self._clock() - written_at
        if age < self.freshness_window:
            return StoreView(
                channel=self.channel,
                state=SlotState.fresh,
                reading=reading,
                written_at=written_at,
                age_seconds=_round_half_up(age.total_seconds()),
            )
        return StoreView(
            channel=self.channel,
            state=SlotState.stale,
            reading=reading,
            written_at=written_at,
        )

