"""AccuWeather daily forecast integration."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime, time
from typing import Any
from zoneinfo import ZoneInfo

import httpx

from sunrise.core.config import settings
from sunrise.core.errors import ForecastUnavailable
from sunrise.services.levels import MeasurementSnapshot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Forecast:
    """Today's measurements plus the provider metadata needed for links."""

    snapshot: MeasurementSnapshot
    location_key: str
    forecast_date: datetime


class AccuWeatherClient:
    """Fetch the day's forecast for a coordinate from AccuWeather."""

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        client: httpx.Client | None = None,
        tz: str | None = None,
    ) -> None:
        self.api_key = api_key if api_key is not None else settings.accuweather_key
        self.base_url = (base_url or settings.accuweather_base_url).rstrip("/")
        self.tz = ZoneInfo(tz or settings.timezone)
        self._client = client or httpx.Client(timeout=settings.weather_api_timeout)

    def close(self) -> None:
        self._client.close()

    def get_forecast(self, location: tuple[float, float], now: datetime | None = None) -> Forecast:
        logger.info("Fetching location ID from AccuWeather...")
        location_key = self.lookup_location_key(location)

        logger.info("Fetching weather forecast from AccuWeather...")
        forecasts = self.fetch_daily_forecasts(location_key)
        local_now = (now or datetime.now(self.tz)).astimezone(self.tz)
        midnight = datetime.combine(local_now.date(), time.min, tzinfo=self.tz)

        for cast in forecasts:
            cast_date = self._parse_date(cast.get("Date"))
            if cast_date is not None and cast_date >= midnight:
                return Forecast(
                    snapshot=self.parse_daily_forecast(cast),
                    location_key=location_key,
                    forecast_date=cast_date,
                )
        raise ForecastUnavailable(f"No daily forecast on or after {midnight.isoformat()}")

    def lookup_location_key(self, location: tuple[float, float]) -> str:
        latitude, longitude = location
        payload = self._get(
            "/locations/v1/cities/geoposition/search",
            {"q": f"{latitude},{longitude}", "details": "true"},
        )
        key = payload.get("Key") if isinstance(payload, dict) else None
        if not key:
            raise ForecastUnavailable("AccuWeather geoposition search returned no location key")
        return str(key)

    def fetch_daily_forecasts(self, location_key: str) -> list[dict[str, Any]]:
        payload = self._get(f"/forecasts/v1/daily/5day/{location_key}", {"details": "true"})
        forecasts = payload.get("DailyForecasts") if isinstance(payload, dict) else None
        if not isinstance(forecasts, list):
            raise ForecastUnavailable("AccuWeather response has no DailyForecasts")
        return forecasts

    def parse_daily_forecast(self, cast: dict[str, Any]) -> MeasurementSnapshot:
        """Convert one AccuWeather DailyForecast into metric measurements."""

        day = cast.get("Day") or {}
        maximum = (cast.get("Temperature") or {}).get("Maximum") or {}
        liquid = day.get("TotalLiquid") or {}
        wind = day.get("Wind") or {}
        speed = wind.get("Speed") or {}
        direction = wind.get("Direction") or {}

        weather_id = day.get("Icon")
        if weather_id is None:
            raise ForecastUnavailable("Daily forecast is missing Day.Icon")

        snapshot = MeasurementSnapshot(
            temperature_c=self._convert_temperature(self._require(maximum, "Temperature.Maximum"), maximum.get("Unit")),
            rainfall_mm=self._convert_precipitation(self._require(liquid, "Day.TotalLiquid"), liquid.get("Unit")),
            wind_speed_mps=self._convert_wind_speed(self._require(speed, "Day.Wind.Speed"), speed.get("Unit")),
            wind_direction_deg=self._coerce_float(direction.get("Degrees"), "Day.Wind.Direction.Degrees"),
            weather_id=int(weather_id),
        )
        logger.debug("Parsed AccuWeather forecast: %s", snapshot)
        return snapshot

    def _get(self, path: str, params: dict[str, str]) -> Any:
        url = f"{self.base_url}{path}"
        response = self._client.get(url, params={"apikey": self.api_key, **params})
        response.raise_for_status()
        return response.json()

    def _parse_date(self, value: Any) -> datetime | None:
        if not value:
            return None
        try:
            parsed = datetime.fromisoformat(str(value))
        except ValueError:
            logger.warning("Unparseable forecast date: %s", value)
            return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=self.tz)
        return parsed

    def _require(self, block: dict[str, Any], name: str) -> float:
        return self._coerce_float(block.get("Value"), name)

    def _coerce_float(self, value: Any, name: str) -> float:
        try:
            result = float(value)
        except (TypeError, ValueError):
            raise ForecastUnavailable(f"Daily forecast field {name} is missing or not numeric: {value!r}") from None
        if not math.isfinite(result):
            raise ForecastUnavailable(f"Daily forecast field {name} is not finite: {value!r}")
        return result

    def _convert_temperature(self, value: float, unit: str | None) -> float:
        unit_key = (unit or "F").lower()
        if unit_key in {"c", "°c", "celsius"}:
            return value
        return (value - 32.0) * 5.0 / 9.0

    def _convert_wind_speed(self, value: float, unit: str | None) -> float:
        unit_key = (unit or "mi/h").lower().replace(" ", "")
        if unit_key in {"m/s", "mps"}:
            return value
        if unit_key in {"km/h", "kmh"}:
            return value / 3.6
        return value * 0.447

    def _convert_precipitation(self, value: float, unit: str | None) -> float:
        unit_key = (unit or "in").lower()
        if unit_key in {"mm"}:
            return value
        if unit_key in {"cm"}:
            return value * 10.0
        return value * 25.4


__all__ = ["AccuWeatherClient", "Forecast"]
