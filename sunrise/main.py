"""Command line entry point for the morning weather post."""

from __future__ import annotations

import argparse
import logging

from sunrise.core.config import settings
from sunrise.core.errors import SunriseError
from sunrise.core.logging_config import setup_logging
from sunrise.core.rules import load_rule_catalog
from sunrise.db.session import init_db
from sunrise.services.morning import MorningCycle
from sunrise.services.scheduler import run_at_sunrise

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Post the day's weather label at sunrise.")
    parser.add_argument(
        "--now",
        action="store_true",
        help="Post immediately instead of waiting for the next sunrise (same as POST_MODE=now).",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the ranked candidate labels without saving history or posting.",
    )
    parser.add_argument(
        "--rules",
        type=str,
        default=None,
        help="Override the rule catalog YAML (defaults to settings/packaged catalog).",
    )
    return parser.parse_args(argv)


def _print_preview(cycle: MorningCycle) -> None:
    forecast, decision = cycle.preview()
    snapshot = forecast.snapshot
    levels = decision.context.levels
    print(
        f"Forecast {forecast.forecast_date.date()}: weatherId={snapshot.weather_id} "
        f"temp={snapshot.temperature_c:.1f}C rain={snapshot.rainfall_mm:.2f}mm "
        f"wind={snapshot.wind_speed_mps:.1f}m/s@{snapshot.wind_direction_deg:.0f}deg"
    )
    print(f"Levels: temperature={levels.temperature} rain={levels.rain} wind={levels.wind}")
    for item in sorted(decision.candidates, key=lambda c: c.score, reverse=True):
        marker = "*" if item is decision.selected else " "
        print(f"{marker} {item.score:7.2f}  ({item.specificity:5.2f} - {item.penalty:5.2f})  {item.name}")


def _run(args: argparse.Namespace) -> None:
    init_db()
    with MorningCycle(catalog=load_rule_catalog(args.rules)) as cycle:
        if args.dry_run:
            _print_preview(cycle)
            return
        result = run_at_sunrise(cycle, post_mode="now" if args.now else None)
    logger.info("Posted weather %s (score=%.2f)", result.weather_name, result.score)


def main(argv: list[str] | None = None) -> int:
    setup_logging(settings.service_name, level=settings.log_level)
    args = parse_args(argv)

    try:
        _run(args)
    except SunriseError:
        logger.exception("Morning cycle aborted")
        return 1
    except Exception:  # noqa: BLE001 - network/render collaborators
        logger.exception("Morning cycle failed")
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
