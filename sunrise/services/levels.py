"""Discretize forecast measurements into ordinal levels."""

from __future__ import annotations

import math
from bisect import bisect_right
from dataclasses import dataclass, fields
from typing import Sequence

from sunrise.core.errors import InvalidMeasurement

# Upper bounds (exclusive) of every level but the last, ascending.
TEMPERATURE_THRESHOLDS_C: tuple[float, ...] = (5.0, 12.0, 18.0, 28.0, 32.0)
RAIN_THRESHOLDS_MM: tuple[float, ...] = (0.01, 3.0, 10.0, 20.0)
WIND_THRESHOLDS_MPS: tuple[float, ...] = (3.0, 8.0, 15.0, 25.0)


@dataclass(frozen=True)
class MeasurementSnapshot:
    """Forecast values for one day, captured once per cycle."""

    temperature_c: float
    rainfall_mm: float
    wind_speed_mps: float
    wind_direction_deg: float
    weather_id: int

    def validate(self) -> "MeasurementSnapshot":
        for item in fields(self):
            value = getattr(self, item.name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise InvalidMeasurement(item.name, value)
            if not math.isfinite(value):
                raise InvalidMeasurement(item.name, value)
        return self


@dataclass(frozen=True)
class Levels:
    temperature: int
    rain: int
    wind: int

    def as_dict(self) -> dict[str, int]:
        return {"temperature": self.temperature, "rain": self.rain, "wind": self.wind}


def level_of(value: float, thresholds: Sequence[float]) -> int:
    """Index of the half-open bucket containing ``value``.

    A value equal to a threshold belongs to the higher bucket.
    """

    return bisect_right(thresholds, value)


def temperature_level(temperature_c: float) -> int:
    return level_of(temperature_c, TEMPERATURE_THRESHOLDS_C)


def rain_level(rainfall_mm: float) -> int:
    return level_of(rainfall_mm, RAIN_THRESHOLDS_MM)


def wind_level(wind_speed_mps: float) -> int:
    return level_of(wind_speed_mps, WIND_THRESHOLDS_MPS)


def classify(snapshot: MeasurementSnapshot) -> Levels:
    """Validate a snapshot and bucket every dimension."""

    snapshot.validate()
    return Levels(
        temperature=temperature_level(snapshot.temperature_c),
        rain=rain_level(snapshot.rainfall_mm),
        wind=wind_level(snapshot.wind_speed_mps),
    )


__all__ = [
    "Levels",
    "MeasurementSnapshot",
    "RAIN_THRESHOLDS_MM",
    "TEMPERATURE_THRESHOLDS_C",
    "WIND_THRESHOLDS_MPS",
    "classify",
    "level_of",
    "rain_level",
    "temperature_level",
    "wind_level",
]
