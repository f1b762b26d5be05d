"""Slack webhook message for the morning post."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any
from zoneinfo import ZoneInfo

import httpx

from sunrise.core.config import settings
from sunrise.services.almanac import Almanac
from sunrise.services.articles import Article
from sunrise.services.haiku import Haiku

logger = logging.getLogger(__name__)

ACCUWEATHER_PAGE = "https://www.accuweather.com/ja/jp/tokyo/{key}/daily-weather-forecast/{key}"
HAIKU_PAGE = "http://sendan.kaisya.co.jp/"

# AccuWeather icon code -> Slack emoji
WEATHER_EMOJIS = {
    1: ":sunny:",
    2: ":sunny:",
    3: ":mostly_sunny:",
    4: ":partly_sunny:",
    5: ":fog:",
    6: ":barely_sunny:",
    7: ":cloud:",
    8: ":cloud:",
    11: ":fog:",
    12: ":umbrella_with_rain_drops:",
    13: ":umbrella_with_rain_drops:",
    14: ":partly_sunny_rain:",
    15: ":thunder_cloud_and_rain:",
    16: ":thunder_cloud_and_rain:",
    17: ":thunder_cloud_and_rain:",
    18: ":umbrella_with_rain_drops:",
    19: ":cloud:",
    20: ":barely_sunny:",
    21: ":barely_sunny:",
    22: ":snowman:",
    23: ":snowman:",
    24: ":ice_skate:",
    25: ":umbrella_with_rain_drops:",
    26: ":umbrella_with_rain_drops:",
    29: ":umbrella_with_rain_drops:",
    30: ":sunny:",
    31: ":sunny:",
    32: ":sunny:",
}


def weather_emoji(weather_id: int) -> str:
    return WEATHER_EMOJIS.get(weather_id, "")


def _clock(moment: datetime | None, tz: ZoneInfo) -> str:
    if moment is None:
        return "--:--"
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(tz).strftime("%H:%M")


def build_slack_payload(
    *,
    weather_name: str,
    weather_id: int,
    location_key: str,
    image_url: str,
    almanac: Almanac,
    haiku: Haiku | None = None,
    article: Article | None = None,
    tz: str | None = None,
) -> dict[str, Any]:
    zone = ZoneInfo(tz or settings.timezone)
    attachments: list[dict[str, Any]] = [
        {
            "color": "#FFA726",
            "title": f"本日の天気{weather_emoji(weather_id)}「{weather_name}」",
            "title_link": ACCUWEATHER_PAGE.format(key=location_key),
            "image_url": image_url,
            "fallback": weather_name,
        },
        {
            "color": "#1976D2",
            "title": "本日のこよみ",
            "text": "\n".join(
                [
                    f":sunrise_over_mountains: *日の出* {_clock(almanac.sunrise, zone)}"
                    f" ～ *日の入* {_clock(almanac.sunset, zone)}",
                    f"{almanac.moon_emoji} *月の出* {_clock(almanac.moonrise, zone)}"
                    f" ～ *月の入* {_clock(almanac.moonset, zone)}",
                ]
            ),
        },
    ]
    if haiku is not None:
        attachments.append(
            {
                "color": "#6D4C41",
                "title": "本日の一句",
                "title_link": HAIKU_PAGE,
                "text": haiku.text,
                "footer": haiku.author,
            }
        )
    if article is not None:
        attachments.append({"color": "#4DB6AC", "title": article.title, "title_link": article.link})

    return {"text": "あさ！", "attachments": attachments}


class SlackNotifier:
    def __init__(self, webhook_url: str | None = None, client: httpx.Client | None = None) -> None:
        self.webhook_url = webhook_url or settings.slack_webhook
        self._client = client or httpx.Client(timeout=settings.slack_timeout)

    def close(self) -> None:
        self._client.close()

    def post(self, payload: dict[str, Any]) -> None:
        if not self.webhook_url:
            raise RuntimeError("SLACK_WEBHOOK is not configured")
        logger.info("Posting slack message...")
        response = self._client.post(self.webhook_url, json=payload)
        response.raise_for_status()


__all__ = ["SlackNotifier", "WEATHER_EMOJIS", "build_slack_payload", "weather_emoji"]
