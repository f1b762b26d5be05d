"""Tests for single-condition evaluation."""

import pytest

from sunrise.core.errors import InvalidRuleDefinition
from sunrise.core.rules import (
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
from sunrise.services.conditions import rule_matches, satisfies
from sunrise.services.history import LastWeather


def test_rule_without_conditions_always_matches(context_factory):
    rule = Rule(name="catch-all")
    for temperature in (-10.0, 15.0, 40.0):
        assert rule_matches(rule, context_factory(temperature_c=temperature, weather_id=18))


def test_rule_requires_every_condition(context_factory):
    rule = Rule(name="warm clear", conditions=[TemperatureLevel(level=3), WeatherCondition(group="clear")])
    assert rule_matches(rule, context_factory(temperature_c=20.0, weather_id=1))
    assert not rule_matches(rule, context_factory(temperature_c=20.0, weather_id=7))
    assert not rule_matches(rule, context_factory(temperature_c=10.0, weather_id=1))


class TestLevelConditions:
    def test_exact_level_match(self, context_factory):
        context = context_factory(temperature_c=15.0, rainfall_mm=5.0, wind_speed_mps=9.0)
        assert satisfies(TemperatureLevel(level=2), context)
        assert satisfies(RainLevel(level=2), context)
        assert satisfies(WindLevel(level=2), context)
        assert not satisfies(TemperatureLevel(level=3), context)
        assert not satisfies(RainLevel(level=1), context)
        assert not satisfies(WindLevel(level=3), context)


class TestWindDirection:
    @pytest.mark.parametrize("direction", [350.0, 10.0, 0.0, 45.0, 315.0])
    def test_north_sector_wraps_across_zero(self, context_factory, direction):
        context = context_factory(wind_speed_mps=5.0, wind_direction_deg=direction)
        assert satisfies(WindDirection(center=0), context)

    @pytest.mark.parametrize("direction", [46.0, 180.0, 314.0])
    def test_north_sector_excludes_other_directions(self, context_factory, direction):
        context = context_factory(wind_speed_mps=5.0, wind_direction_deg=direction)
        assert not satisfies(WindDirection(center=0), context)

    @pytest.mark.parametrize("direction", [350.0, 10.0])
    def test_calm_wind_never_matches(self, context_factory, direction):
        context = context_factory(wind_speed_mps=1.0, wind_direction_deg=direction)
        assert context.levels.wind == 0
        assert not satisfies(WindDirection(center=0), context)

    def test_other_sector_has_no_wraparound(self, context_factory):
        condition = WindDirection(center=90)
        assert satisfies(condition, context_factory(wind_speed_mps=5.0, wind_direction_deg=45.0))
        assert satisfies(condition, context_factory(wind_speed_mps=5.0, wind_direction_deg=135.0))
        assert not satisfies(condition, context_factory(wind_speed_mps=5.0, wind_direction_deg=136.0))
        # a sector near 360 does not reach past north
        assert not satisfies(WindDirection(center=330), context_factory(wind_speed_mps=5.0, wind_direction_deg=10.0))


def test_humidity_is_never_satisfied(context_factory):
    for level in range(0, 5):
        assert not satisfies(Humidity(level=level), context_factory())


class TestGroupConditions:
    def test_condition_checks_todays_code(self, context_factory):
        assert satisfies(WeatherCondition(group="rain"), context_factory(weather_id=18))
        assert not satisfies(WeatherCondition(group="rain"), context_factory(weather_id=1))

    def test_empty_group_never_matches(self, context_factory):
        assert not satisfies(WeatherCondition(group="drizzle"), context_factory(weather_id=1))

    def test_continuing_condition_needs_both_days(self, context_factory):
        condition = ContinuingCondition(group="rain")
        rainy_yesterday = LastWeather(weather_id=26, temperature=12.0)
        sunny_yesterday = LastWeather(weather_id=1, temperature=12.0)
        assert satisfies(condition, context_factory(weather_id=18, last_weather=rainy_yesterday))
        assert not satisfies(condition, context_factory(weather_id=18, last_weather=sunny_yesterday))
        assert not satisfies(condition, context_factory(weather_id=1, last_weather=rainy_yesterday))

    def test_continuing_condition_without_last_weather_is_false(self, context_factory):
        assert not satisfies(ContinuingCondition(group="rain"), context_factory(weather_id=18))

    def test_unknown_group_is_a_rule_error(self, context_factory):
        with pytest.raises(InvalidRuleDefinition):
            satisfies(WeatherCondition(group="volcano"), context_factory())
        # checked even when there is no previous weather to compare with
        with pytest.raises(InvalidRuleDefinition):
            satisfies(ContinuingCondition(group="volcano"), context_factory())

    def test_rule_error_names_the_rule(self, context_factory):
        rule = Rule(name="噴火", conditions=[WeatherCondition(group="volcano")])
        with pytest.raises(InvalidRuleDefinition) as excinfo:
            rule_matches(rule, context_factory())
        assert excinfo.value.rule == "噴火"
        assert "volcano" in str(excinfo.value)


class TestTemperatureChange:
    def test_rise_fires_when_today_is_colder_as_authored(self, context_factory):
        """temperature_rise compares yesterday minus today >= 5, i.e. a drop."""
        yesterday = LastWeather(weather_id=1, temperature=20.0)
        assert satisfies(TemperatureRise(), context_factory(temperature_c=15.0, last_weather=yesterday))
        assert satisfies(TemperatureRise(), context_factory(temperature_c=10.0, last_weather=yesterday))
        assert not satisfies(TemperatureRise(), context_factory(temperature_c=15.1, last_weather=yesterday))
        assert not satisfies(TemperatureRise(), context_factory(temperature_c=26.0, last_weather=yesterday))

    def test_fall_fires_when_today_is_warmer_as_authored(self, context_factory):
        yesterday = LastWeather(weather_id=1, temperature=10.0)
        assert satisfies(TemperatureFall(), context_factory(temperature_c=15.0, last_weather=yesterday))
        assert not satisfies(TemperatureFall(), context_factory(temperature_c=14.9, last_weather=yesterday))
        assert not satisfies(TemperatureFall(), context_factory(temperature_c=4.0, last_weather=yesterday))

    def test_no_last_weather_is_false(self, context_factory):
        assert not satisfies(TemperatureRise(), context_factory(temperature_c=-10.0))
        assert not satisfies(TemperatureFall(), context_factory(temperature_c=40.0))


class TestCalendar:
    def test_month_set(self, context_factory):
        condition = MonthSet(months=[11, 12])
        assert satisfies(condition, context_factory(month=12))
        assert not satisfies(condition, context_factory(month=1))

    def test_date_set(self, context_factory):
        condition = DateSet(dates=[[7, 7], [12, 31]])
        assert satisfies(condition, context_factory(month=7, day=7))
        assert satisfies(condition, context_factory(month=12, day=31))
        assert not satisfies(condition, context_factory(month=7, day=8))
        assert not satisfies(condition, context_factory(month=8, day=7))
