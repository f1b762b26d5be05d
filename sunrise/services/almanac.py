"""Sun and moon timings for the morning post and the sunrise scheduler."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

import astropy.units as u
import numpy as np
from astroplan import Observer
from astropy.coordinates import GeocentricTrueEcliptic, get_body, get_sun
from astropy.time import Time

from sunrise.core.config import settings

logger = logging.getLogger(__name__)

# Apparent sunrise/sunset: upper limb touching the horizon, with refraction.
SUN_HORIZON = -0.8333 * u.deg
MOON_HORIZON = 0.125 * u.deg

MOON_EMOJIS = [
    ":new_moon:",
    ":waxing_crescent_moon:",
    ":first_quarter_moon:",
    ":waxing_gibbous_moon:",
    ":full_moon:",
    ":waning_gibbous_moon:",
    ":last_quarter_moon:",
    ":waning_crescent_moon:",
]


def moon_emoji(phase: float) -> str:
    """Emoji for a phase fraction (0 new, 0.25 first quarter, 0.5 full)."""

    return MOON_EMOJIS[int(math.floor(phase * 8 + 0.5)) % 8]


@dataclass(frozen=True)
class Almanac:
    sunrise: datetime | None
    sunset: datetime | None
    moonrise: datetime | None
    moonset: datetime | None
    moon_phase: float

    @property
    def moon_emoji(self) -> str:
        return moon_emoji(self.moon_phase)


class AlmanacService:
    """Compute daily sun/moon events for the configured spot."""

    def __init__(self, location: tuple[float, float] | None = None, tz: str | None = None) -> None:
        latitude, longitude = location or settings.location
        self.tz = ZoneInfo(tz or settings.timezone)
        self.observer = Observer(
            latitude=latitude * u.deg,
            longitude=longitude * u.deg,
            timezone="UTC",
        )

    def for_day(self, day: date, now: datetime | None = None) -> Almanac:
        """Events of the local calendar ``day``; phase evaluated at ``now``."""

        noon = Time(self._local_noon(day))
        start = datetime.combine(day, time.min, tzinfo=self.tz)
        end = start + timedelta(days=1)

        almanac = Almanac(
            sunrise=self._within(self.observer.sun_rise_time(noon, which="nearest", horizon=SUN_HORIZON), start, end),
            sunset=self._within(self.observer.sun_set_time(noon, which="nearest", horizon=SUN_HORIZON), start, end),
            moonrise=self._within(self.observer.moon_rise_time(noon, which="nearest", horizon=MOON_HORIZON), start, end),
            moonset=self._within(self.observer.moon_set_time(noon, which="nearest", horizon=MOON_HORIZON), start, end),
            moon_phase=self.moon_phase(now or datetime.now(timezone.utc)),
        )
        logger.debug("Almanac for %s: %s", day.isoformat(), almanac)
        return almanac

    def sunrise_on(self, day: date) -> datetime | None:
        noon = Time(self._local_noon(day))
        return self._to_datetime(self.observer.sun_rise_time(noon, which="previous", horizon=SUN_HORIZON))

    def upcoming_sunrises(self, now: datetime, days_before: int = 5, days_after: int = 5) -> list[datetime]:
        """Sunrises around ``now`` (local days -days_before .. days_after-1), ascending."""

        today = now.astimezone(self.tz).date()
        sunrises = []
        for offset in range(-days_before, days_after):
            sunrise = self.sunrise_on(today + timedelta(days=offset))
            if sunrise is not None:
                sunrises.append(sunrise)
        return sorted(sunrises)

    def next_sunrise(self, now: datetime) -> datetime | None:
        for sunrise in self.upcoming_sunrises(now):
            if sunrise > now:
                return sunrise
        return None

    def moon_phase(self, moment: datetime) -> float:
        """Phase fraction from the Sun-Moon ecliptic elongation."""

        when = Time(moment.astimezone(timezone.utc))
        frame = GeocentricTrueEcliptic(equinox=when)
        moon = get_body("moon", when).transform_to(frame)
        sun = get_sun(when).transform_to(frame)
        elongation = (moon.lon - sun.lon).to_value(u.deg) % 360.0
        return elongation / 360.0

    def _local_noon(self, day: date) -> datetime:
        return datetime.combine(day, time(12, 0), tzinfo=self.tz).astimezone(timezone.utc)

    def _within(self, event: Time, start: datetime, end: datetime) -> datetime | None:
        moment = self._to_datetime(event)
        if moment is None or not start <= moment < end:
            return None
        return moment

    def _to_datetime(self, event: Time) -> datetime | None:
        if np.ma.is_masked(event.jd) or not np.isfinite(event.jd):
            return None
        return event.to_datetime(timezone=timezone.utc).astimezone(self.tz)


__all__ = ["Almanac", "AlmanacService", "MOON_EMOJIS", "moon_emoji"]
