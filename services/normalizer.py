"""Validation and canonicalization of inbound sensor payloads."""

from __future__ import annotations

import math
from datetime import datetime
from typing import Any, Mapping, Optional

from models.records import Reading, ValidationMode

STRICT_REASON = "Invalid payload - must include temperature, humidity, and co2 as numbers"
LENIENT_REASON = "Invalid payload - must include co2 as number"


class ValidationError(ValueError):
    """Raised when a payload cannot be turned into a reading."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


def is_number(value: Any) -> bool:
    # bool is an int subclass but never a measurement
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def _number_or_zero(value: Any) -> float:
    return value if is_number(value) else 0


def _resolve_device_id(payload: Mapping[str, Any]) -> Optional[str]:
    for key in ("device_id", "mac"):
        candidate = payload.get(key)
        if candidate:
            return str(candidate)
    return None


def _normalize_strict(payload: Mapping[str, Any], now: datetime) -> Reading:
    fields = ("temperature", "humidity", "co2")
    if not all(is_number(payload.get(name)) for name in fields):
        raise ValidationError(STRICT_REASON)
    return Reading(
        temperature=payload["temperature"],
        humidity=payload["humidity"],
        co2=payload["co2"],
        device_id=_resolve_device_id(payload),
        written_at=now,
    )


def _normalize_lenient(payload: Mapping[str, Any], now: datetime) -> Reading:
    source: Optional[Mapping[str, Any]] = None
    if is_number(payload.get("co2")):
        source = payload
    else:
        nested = payload.get("reading")
        if isinstance(nested, Mapping) and is_number(nested.get("co2")):
            source = nested
    if source is None:
        raise ValidationError(LENIENT_REASON)
    return Reading(
        temperature=_number_or_zero(source.get("temperature")),
        humidity=_number_or_zero(source.get("humidity")),
        co2=source["co2"],
        written_at=now,
    )


def normalize(payload: Any, mode: ValidationMode, now: datetime) -> Reading:
    """Turn a decoded JSON body into a ``Reading`` stamped with ``now``.

    Strict mode requires all three measurements; lenient mode only requires
    ``co2``, either at the top level or nested under ``reading``, and fills
    missing temperature or humidity with zero.
    """
    reason = STRICT_REASON if mode is ValidationMode.strict else LENIENT_REASON
    if not isinstance(payload, Mapping):
        raise ValidationError(reason)
    if mode is ValidationMode.strict:
        return _normalize_strict(payload, now)
    return _normalize_lenient(payload, now)
