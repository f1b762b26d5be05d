"""Application settings loaded from environment variables."""

from __future__ import annotations

import math

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "sunrise"
    app_version: str = "0.1.0"
    service_name: str = "sunrise"
    log_level: str = "INFO"
    # "lat,lon" of the observing spot; extra tokens are ignored
    sunrise_spot: str = "35.6895,139.6917"
    timezone: str = "Asia/Tokyo"
    database_url: str = "sqlite:///sunrise.db"
    post_mode: str = "wait"
    sunrise_poll_seconds: int = 10
    # Retention for weatherHistories; None keeps every entry
    history_max_entries: int | None = None
    rules_path: str | None = None
    # AccuWeather forecast provider
    accuweather_key: str = ""
    accuweather_base_url: str = "http://dataservice.accuweather.com"
    weather_api_timeout: float = 10.0
    # Rendering and upload
    render_font_path: str | None = None
    render_width: int = 1200
    render_height: int = 630
    cloudinary_url: str = ""
    upload_timeout: float = 30.0
    # Notification
    slack_webhook: str = ""
    slack_timeout: float = 10.0
    # Auxiliary announcements
    article_fetch_timeout: float = 15.0
    haiku_url: str = "http://sendan.kaisya.co.jp/index3.html"
    haiku_proxy: str | None = None
    metrics_enabled: bool = False
    metrics_host: str = "0.0.0.0"
    metrics_port: int = 9510

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("sunrise_spot")
    @classmethod
    def _validate_spot(cls, value: str) -> str:
        tokens = [token.strip() for token in value.split(",")][:2]
        try:
            coords = [float(token) for token in tokens]
        except ValueError:
            coords = []
        if len(coords) != 2 or not all(math.isfinite(c) for c in coords):
            raise ValueError(f"SUNRISE_SPOT {value!r} is invalid.")
        return value

    @property
    def location(self) -> tuple[float, float]:
        latitude, longitude = (float(token) for token in self.sunrise_spot.split(",")[:2])
        return latitude, longitude


settings = Settings()

__all__ = ["settings", "Settings"]
