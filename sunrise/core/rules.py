"""Rule catalog models and YAML loader.

The catalog is a YAML document with two sections:

``condition_groups``
    Named groups of AccuWeather icon codes (``rain: [18, 26]``).
``rules``
    Ordered list of ``{name, conditions}``. Each condition carries a ``kind``
    tag selecting one of the condition models below.

The catalog is loaded once per process and never mutated afterwards.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from types import MappingProxyType
from typing import Annotated, Any, Literal, Mapping, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from sunrise.core.config import settings
from sunrise.core.errors import InvalidRuleDefinition

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_PATH = Path(__file__).resolve().parent.parent / "data" / "weathers.yml"


class _Condition(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class TemperatureLevel(_Condition):
    kind: Literal["temperature"] = "temperature"
    level: int = Field(ge=0, le=5)


class RainLevel(_Condition):
    kind: Literal["rain"] = "rain"
    level: int = Field(ge=0, le=4)


class WindLevel(_Condition):
    kind: Literal["wind"] = "wind"
    level: int = Field(ge=0, le=4)


class WindDirection(_Condition):
    """Wind blowing from within 45 degrees of ``center`` (0 = north)."""

    kind: Literal["wind_direction"] = "wind_direction"
    center: float = Field(ge=0, lt=360)


class Humidity(_Condition):
    """Recognized but disabled; never satisfied."""

    kind: Literal["humidity"] = "humidity"
    level: int = 0


class ContinuingCondition(_Condition):
    """Icon code in ``group`` both yesterday and today."""

    kind: Literal["continuing_condition"] = "continuing_condition"
    group: str


class WeatherCondition(_Condition):
    """Icon code in ``group`` today."""

    kind: Literal["condition"] = "condition"
    group: str


class TemperatureRise(_Condition):
    """Satisfied when yesterday's maximum minus today's is at least 5 degrees.

    The comparison is kept exactly as the catalog was authored against, even
    though it fires on a day that is colder than the previous one.
    """

    kind: Literal["temperature_rise"] = "temperature_rise"


class TemperatureFall(_Condition):
    """Satisfied when yesterday's maximum minus today's is at most -5 degrees."""

    kind: Literal["temperature_fall"] = "temperature_fall"


class MonthSet(_Condition):
    kind: Literal["month"] = "month"
    months: tuple[int, ...] = Field(min_length=1)

    @field_validator("months")
    @classmethod
    def _check_months(cls, value: tuple[int, ...]) -> tuple[int, ...]:
        for month in value:
            if not 1 <= month <= 12:
                raise ValueError(f"month {month} is outside 1-12")
        return value


class DateSet(_Condition):
    kind: Literal["date"] = "date"
    dates: tuple[tuple[int, int], ...] = Field(min_length=1)

    @field_validator("dates")
    @classmethod
    def _check_dates(cls, value: tuple[tuple[int, int], ...]) -> tuple[tuple[int, int], ...]:
        for month, day in value:
            # leap year so that (2, 29) is accepted
            date(2000, month, day)
        return value


Condition = Annotated[
    Union[
        TemperatureLevel,
        RainLevel,
        WindLevel,
        WindDirection,
        Humidity,
        ContinuingCondition,
        WeatherCondition,
        TemperatureRise,
        TemperatureFall,
        MonthSet,
        DateSet,
    ],
    Field(discriminator="kind"),
]

GROUP_CONDITIONS = (ContinuingCondition, WeatherCondition)


class Rule(BaseModel):
    """A named conjunction of conditions."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(min_length=1)
    conditions: tuple[Condition, ...] = ()

    def to_payload(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "conditions": [condition.model_dump(mode="json") for condition in self.conditions],
        }


class _CatalogFile(BaseModel):
    condition_groups: dict[str, list[int]] = Field(default_factory=dict)
    rules: list[Rule] = Field(default_factory=list)


@dataclass(frozen=True)
class RuleCatalog:
    """Immutable ordered rule collection plus its condition group table."""

    rules: tuple[Rule, ...]
    condition_groups: Mapping[str, frozenset[int]]

    def __iter__(self):
        return iter(self.rules)

    def __len__(self) -> int:
        return len(self.rules)

    def get(self, name: str) -> Rule | None:
        for rule in self.rules:
            if rule.name == name:
                return rule
        return None

    @property
    def names(self) -> list[str]:
        return [rule.name for rule in self.rules]


def build_catalog(
    rules: list[Rule] | tuple[Rule, ...],
    condition_groups: Mapping[str, Any] | None = None,
) -> RuleCatalog:
    """Validate rules against the group table and freeze them into a catalog."""

    groups = {
        name: frozenset(int(code) for code in codes)
        for name, codes in (condition_groups or {}).items()
    }
    seen: set[str] = set()
    for rule in rules:
        if rule.name in seen:
            raise InvalidRuleDefinition("duplicate rule name", rule=rule.name)
        seen.add(rule.name)

        kinds: set[str] = set()
        for condition in rule.conditions:
            if condition.kind in kinds:
                raise InvalidRuleDefinition(
                    f"condition kind {condition.kind!r} appears more than once", rule=rule.name
                )
            kinds.add(condition.kind)
            if isinstance(condition, GROUP_CONDITIONS) and condition.group not in groups:
                raise InvalidRuleDefinition(
                    f"unknown condition group {condition.group!r} in {condition.kind!r}",
                    rule=rule.name,
                )

    if not any(not rule.conditions for rule in rules):
        logger.warning("Rule catalog has no unconditional catch-all rule")

    return RuleCatalog(rules=tuple(rules), condition_groups=MappingProxyType(groups))


def parse_rule_catalog(data: dict[str, Any]) -> RuleCatalog:
    """Build a catalog from an already-parsed YAML/JSON document."""

    try:
        parsed = _CatalogFile.model_validate(data or {})
    except ValidationError as exc:
        raise InvalidRuleDefinition(str(exc)) from exc
    return build_catalog(parsed.rules, parsed.condition_groups)


def load_rule_catalog(path: str | Path | None = None) -> RuleCatalog:
    """Load the rule catalog from YAML (packaged default unless overridden)."""

    catalog_path = Path(path or settings.rules_path or DEFAULT_CATALOG_PATH)
    try:
        data = yaml.safe_load(catalog_path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise InvalidRuleDefinition(f"cannot parse {catalog_path}: {exc}") from exc

    catalog = parse_rule_catalog(data)
    logger.info(
        "Loaded %s rules and %s condition groups from %s",
        len(catalog),
        len(catalog.condition_groups),
        catalog_path,
    )
    return catalog


__all__ = [
    "Condition",
    "ContinuingCondition",
    "DateSet",
    "Humidity",
    "MonthSet",
    "RainLevel",
    "Rule",
    "RuleCatalog",
    "TemperatureFall",
    "TemperatureLevel",
    "TemperatureRise",
    "WeatherCondition",
    "WindDirection",
    "WindLevel",
    "build_catalog",
    "load_rule_catalog",
    "parse_rule_catalog",
]
