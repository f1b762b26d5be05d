"""Evaluate catalog conditions against today's forecast and yesterday's state."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping

from sunrise.core.errors import InvalidRuleDefinition
from sunrise.core.rules import (
    Condition,
    ContinuingCondition,
    DateSet,
    Humidity,
    MonthSet,
    RainLevel,
    Rule,
    TemperatureFall,
    TemperatureLevel,
    TemperatureRise,
    WeatherCondition,
    WindDirection,
    WindLevel,
)
from sunrise.services.history import LastWeather
from sunrise.services.levels import Levels, MeasurementSnapshot

WIND_SECTOR_HALF_WIDTH_DEG = 45.0
TEMPERATURE_CHANGE_THRESHOLD_C = 5.0


@dataclass(frozen=True)
class EvaluationContext:
    """Everything a condition may look at for one cycle."""

    levels: Levels
    snapshot: MeasurementSnapshot
    month: int
    day: int
    last_weather: LastWeather | None = None
    condition_groups: Mapping[str, frozenset[int]] = field(default_factory=dict)

    def group_codes(self, group: str) -> frozenset[int]:
        try:
            return self.condition_groups[group]
        except KeyError:
            raise InvalidRuleDefinition(f"unknown condition group {group!r}") from None


def _wind_direction_matches(center: float, levels: Levels, direction: float) -> bool:
    if levels.wind < 1:
        return False
    if center == 0:
        # north sector wraps across 0 degrees
        return direction <= WIND_SECTOR_HALF_WIDTH_DEG or direction >= 360 - WIND_SECTOR_HALF_WIDTH_DEG
    return center - WIND_SECTOR_HALF_WIDTH_DEG <= direction <= center + WIND_SECTOR_HALF_WIDTH_DEG


def satisfies(condition: Condition, context: EvaluationContext) -> bool:
    """Return True when a single condition holds for ``context``."""

    levels = context.levels
    snapshot = context.snapshot
    last = context.last_weather

    if isinstance(condition, TemperatureLevel):
        return levels.temperature == condition.level
    if isinstance(condition, RainLevel):
        return levels.rain == condition.level
    if isinstance(condition, WindLevel):
        return levels.wind == condition.level
    if isinstance(condition, WindDirection):
        return _wind_direction_matches(condition.center, levels, snapshot.wind_direction_deg)
    if isinstance(condition, Humidity):
        return False
    if isinstance(condition, ContinuingCondition):
        codes = context.group_codes(condition.group)
        if last is None:
            return False
        return last.weather_id in codes and snapshot.weather_id in codes
    if isinstance(condition, WeatherCondition):
        return snapshot.weather_id in context.group_codes(condition.group)
    if isinstance(condition, TemperatureRise):
        if last is None:
            return False
        return last.temperature - snapshot.temperature_c >= TEMPERATURE_CHANGE_THRESHOLD_C
    if isinstance(condition, TemperatureFall):
        if last is None:
            return False
        return last.temperature - snapshot.temperature_c <= -TEMPERATURE_CHANGE_THRESHOLD_C
    if isinstance(condition, MonthSet):
        return context.month in condition.months
    if isinstance(condition, DateSet):
        return (context.month, context.day) in condition.dates
    raise InvalidRuleDefinition(f"unsupported condition {condition!r}")


def rule_matches(rule: Rule, context: EvaluationContext) -> bool:
    """A rule matches when every one of its conditions holds."""

    try:
        return all(satisfies(condition, context) for condition in rule.conditions)
    except InvalidRuleDefinition as exc:
        if exc.rule is None:
            raise InvalidRuleDefinition(str(exc), rule=rule.name) from exc
        raise


__all__ = ["EvaluationContext", "rule_matches", "satisfies"]
