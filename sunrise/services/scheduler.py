"""Hold the morning cycle until the next sunrise."""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Callable

from sunrise.core.config import settings
from sunrise.services.almanac import AlmanacService
from sunrise.services.morning import CycleResult, MorningCycle

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def wait_for_next_sunrise(
    almanac: AlmanacService,
    clock: Callable[[], datetime] = _utcnow,
    sleep: Callable[[float], None] = time.sleep,
    poll_seconds: float | None = None,
) -> datetime:
    """Block until the first sunrise after now has passed; return it."""

    next_sunrise = almanac.next_sunrise(clock())
    if next_sunrise is None:
        raise RuntimeError("No sunrise found in the coming days")
    logger.info("Waiting for next sunrise: %s", next_sunrise.isoformat())

    interval = poll_seconds if poll_seconds is not None else settings.sunrise_poll_seconds
    while clock() < next_sunrise:
        sleep(interval)
    return next_sunrise


def run_at_sunrise(
    cycle: MorningCycle,
    post_mode: str | None = None,
    clock: Callable[[], datetime] = _utcnow,
    sleep: Callable[[float], None] = time.sleep,
) -> CycleResult:
    """Run exactly one cycle, immediately when post_mode is ``now``."""

    mode = (post_mode if post_mode is not None else settings.post_mode).lower()
    if mode != "now":
        wait_for_next_sunrise(cycle.almanac, clock=clock, sleep=sleep)
    return cycle.run()


__all__ = ["run_at_sunrise", "wait_for_next_sunrise"]
