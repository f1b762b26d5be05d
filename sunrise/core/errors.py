"""Errors that abort a morning decision cycle."""

from __future__ import annotations


class SunriseError(Exception):
    pass


class InvalidMeasurement(SunriseError, ValueError):
    """A forecast measurement is missing or not a finite number."""

    def __init__(self, field: str, value: object) -> None:
        self.field = field
        self.value = value
        super().__init__(f"Measurement {field!r} must be a finite number, got {value!r}")


class InvalidRuleDefinition(SunriseError, ValueError):
    """A catalog rule is malformed or references an unknown condition group."""

    def __init__(self, message: str, rule: str | None = None) -> None:
        self.rule = rule
        prefix = f"Rule {rule!r}: " if rule else ""
        super().__init__(f"{prefix}{message}")


class NoMatchingRule(SunriseError, RuntimeError):
    """No catalog rule survived filtering; the catalog lacks a catch-all."""


class ForecastUnavailable(SunriseError, RuntimeError):
    """The weather provider did not return a usable daily forecast."""


__all__ = [
    "SunriseError",
    "InvalidMeasurement",
    "InvalidRuleDefinition",
    "NoMatchingRule",
    "ForecastUnavailable",
]
