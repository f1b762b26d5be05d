"""Pick the day's weather label among matching catalog rules."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Sequence

from sunrise.core.errors import NoMatchingRule
from sunrise.core.rules import (
    Condition,
    ContinuingCondition,
    DateSet,
    Humidity,
    MonthSet,
    RainLevel,
    Rule,
    RuleCatalog,
    TemperatureFall,
    TemperatureLevel,
    TemperatureRise,
    WeatherCondition,
    WindDirection,
    WindLevel,
)
from sunrise.services.conditions import EvaluationContext, rule_matches
from sunrise.services.history import HistoryEntry

logger = logging.getLogger(__name__)

# Specificity weight per condition kind
WEIGHT_TEMPERATURE = 2.0
WEIGHT_RAIN = 3.0
WEIGHT_WIND = 2.0
WEIGHT_WIND_DIRECTION = 4.0
WEIGHT_CONTINUING_CONDITION = 4.0
WEIGHT_TEMPERATURE_CHANGE = 3.0
WEIGHT_CONDITION = 3.0
WEIGHT_MONTH_SET = 6.0  # divided by the number of months
WEIGHT_DATE = 30.0
WEIGHT_HUMIDITY = 0.0

# Penalty for the most recent announcement, divided by (position + 1)
NOVELTY_PENALTY = 30.0


@dataclass(frozen=True)
class ScoredRule:
    rule: Rule
    specificity: float
    penalty: float

    @property
    def name(self) -> str:
        return self.rule.name

    @property
    def score(self) -> float:
        return self.specificity - self.penalty


def condition_weight(condition: Condition) -> float:
    if isinstance(condition, TemperatureLevel):
        return WEIGHT_TEMPERATURE
    if isinstance(condition, RainLevel):
        return WEIGHT_RAIN
    if isinstance(condition, WindLevel):
        return WEIGHT_WIND
    if isinstance(condition, WindDirection):
        return WEIGHT_WIND_DIRECTION
    if isinstance(condition, ContinuingCondition):
        return WEIGHT_CONTINUING_CONDITION
    if isinstance(condition, (TemperatureRise, TemperatureFall)):
        return WEIGHT_TEMPERATURE_CHANGE
    if isinstance(condition, WeatherCondition):
        return WEIGHT_CONDITION
    if isinstance(condition, MonthSet):
        return WEIGHT_MONTH_SET / len(condition.months)
    if isinstance(condition, DateSet):
        return WEIGHT_DATE
    if isinstance(condition, Humidity):
        return WEIGHT_HUMIDITY
    raise TypeError(f"unsupported condition {condition!r}")


def specificity(rule: Rule) -> float:
    """Sum of the weights of the condition kinds present in ``rule``."""

    return sum(condition_weight(condition) for condition in rule.conditions)


def novelty_penalty(name: str, histories: Sequence[HistoryEntry]) -> float:
    """Penalty for the newest earlier announcement of ``name`` (0 when never chosen)."""

    for position, entry in enumerate(histories):
        if entry.rule_name == name:
            return NOVELTY_PENALTY / (position + 1)
    return 0.0


def score_rule(rule: Rule, histories: Sequence[HistoryEntry] = ()) -> ScoredRule:
    return ScoredRule(rule=rule, specificity=specificity(rule), penalty=novelty_penalty(rule.name, histories))


def rank(
    catalog: RuleCatalog | Iterable[Rule],
    context: EvaluationContext,
    histories: Sequence[HistoryEntry] = (),
) -> list[ScoredRule]:
    """Score every matching rule, in catalog order."""

    matching = [rule for rule in catalog if rule_matches(rule, context)]
    scored = [score_rule(rule, histories) for rule in matching]
    for item in scored:
        logger.debug(
            "Scoring %s: specificity=%.2f penalty=%.2f => %.2f",
            item.name,
            item.specificity,
            item.penalty,
            item.score,
        )
    return scored


def choose(scored: Sequence[ScoredRule], context: EvaluationContext | None = None) -> ScoredRule:
    """First maximum in catalog order."""

    if not scored:
        detail = ""
        if context is not None:
            detail = (
                f" (levels={context.levels.as_dict()}, weatherId={context.snapshot.weather_id},"
                f" date={context.month}/{context.day})"
            )
        raise NoMatchingRule(f"No weather rule matched{detail}; the catalog needs a catch-all rule")

    best = scored[0]
    for item in scored[1:]:
        if item.score > best.score:
            best = item
    return best


def select(
    catalog: RuleCatalog | Iterable[Rule],
    context: EvaluationContext,
    histories: Sequence[HistoryEntry] = (),
) -> str:
    """Return the name of the winning rule for ``context``."""

    scored = rank(catalog, context, histories)
    best = choose(scored, context)
    logger.info(
        "Selected weather %s (score=%.2f, matching=%s)",
        best.name,
        best.score,
        len(scored),
    )
    return best.name


__all__ = [
    "NOVELTY_PENALTY",
    "ScoredRule",
    "choose",
    "condition_weight",
    "novelty_penalty",
    "rank",
    "score_rule",
    "select",
    "specificity",
]
