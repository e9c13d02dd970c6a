"""Rolling window of distinct readings for charting."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Deque, List, Optional

from cli.reconciler import ResolvedReading

DEFAULT_CAPACITY = 20


@dataclass(frozen=True, slots=True)
class SeriesPoint:
    temperature: float
    co2: float
    humidity: float
    label: str

    def same_values(self, reading: ResolvedReading) -> bool:
        return (
            self.temperature == reading.raw_temp
            and self.co2 == reading.raw_co2
            and self.humidity == reading.raw_humidity
        )


class SeriesBuffer:
    """Bounded FIFO of accepted points; oldest points fall off first."""

    def __init__(
        self,
        capacity: int = DEFAULT_CAPACITY,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        if capacity <= 0:
            raise ValueError("Series capacity must be positive.")
        self.capacity = capacity
        self._clock = clock
        self._points: Deque[SeriesPoint] = deque()
        self._last: Optional[SeriesPoint] = None

    def __len__(self) -> int:
        return len(self._points)

    def append(self, reading: ResolvedReading) -> bool:
        """Accept ``reading`` unless it is the zero fallback or a repeat."""
        if reading.is_zero:
            return False
        if self._last is not None and self._last.same_values(reading):
            return False

        point = SeriesPoint(
            temperature=reading.raw_temp,
            co2=reading.raw_co2,
            humidity=reading.raw_humidity,
            label=self._clock().strftime("%H:%M:%S"),
        )
        self._points.append(point)
        self._last = point
        if len(self._points) > self.capacity:
            self._points.popleft()
        return True

    @property
    def points(self) -> List[SeriesPoint]:
        return list(self._points)

    @property
    def last(self) -> Optional[SeriesPoint]:
        return self._last

    @property
    def labels(self) -> List[str]:
        return [point.label for point in self._points]

    @property
    def temperatures(self) -> List[float]:
        return [point.temperature for point in self._points]

    @property
    def co2_values(self) -> List[float]:
        return [point.co2 for point in self._points]

    @property
    def humidities(self) -> List[float]:
        return [point.humidity for point in self._points]
