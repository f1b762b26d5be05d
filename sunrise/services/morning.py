"""One morning decision cycle: forecast, label selection, persistence, post."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable
from zoneinfo import ZoneInfo

import httpx
from prometheus_client import Counter, Gauge, Histogram, start_http_server
from sqlalchemy.engine import Engine

from sunrise.core.config import settings
from sunrise.core.rules import RuleCatalog, load_rule_catalog
from sunrise.services.almanac import AlmanacService
from sunrise.services.articles import Article, ArticleFetcher, choose_announcement
from sunrise.services.conditions import EvaluationContext
from sunrise.services.haiku import Haiku, fetch_haiku
from sunrise.services.history import HistoryEntry, HistoryStore, LastWeather, open_history_store
from sunrise.services.levels import MeasurementSnapshot, classify
from sunrise.services.notifications import SlackNotifier, build_slack_payload
from sunrise.services.render import render_weather_image
from sunrise.services.scoring import ScoredRule, choose, rank
from sunrise.services.uploader import CloudinaryUploader
from sunrise.services.weather import AccuWeatherClient, Forecast

logger = logging.getLogger(__name__)

_METRICS_SERVER_STARTED = False

CYCLE_SECONDS = Histogram(
    "sunrise_cycle_seconds",
    "End-to-end runtime of each morning cycle.",
)
CYCLE_SUCCESS = Counter(
    "sunrise_cycles_success_total",
    "Number of morning cycles that posted a message.",
)
CYCLE_FAILURE = Counter(
    "sunrise_cycles_failure_total",
    "Number of morning cycles aborted by an error.",
)
MATCHING_RULES = Gauge(
    "sunrise_matching_rules",
    "Number of catalog rules that matched in the most recent cycle.",
)
SELECTED_SCORE = Gauge(
    "sunrise_selected_score",
    "Adjusted score of the most recently selected rule.",
)


@dataclass(frozen=True)
class Decision:
    context: EvaluationContext
    candidates: list[ScoredRule]
    selected: ScoredRule


@dataclass(frozen=True)
class CycleResult:
    weather_name: str
    score: float
    snapshot: MeasurementSnapshot
    image_url: str
    article: Article | None
    haiku: Haiku | None


class MorningCycle:
    """Wire the selection core to its collaborators for one run."""

    def __init__(
        self,
        catalog: RuleCatalog | None = None,
        weather_client: AccuWeatherClient | None = None,
        almanac: AlmanacService | None = None,
        renderer: Callable[[str], bytes] = render_weather_image,
        uploader: CloudinaryUploader | None = None,
        article_fetcher: ArticleFetcher | None = None,
        haiku_fetcher: Callable[[], Haiku] = fetch_haiku,
        notifier: SlackNotifier | None = None,
        bind: Engine | None = None,
        location: tuple[float, float] | None = None,
        tz: str | None = None,
        metrics_enabled: bool | None = None,
    ) -> None:
        self.catalog = catalog if catalog is not None else load_rule_catalog()
        self.location = location or settings.location
        self.tz = ZoneInfo(tz or settings.timezone)
        self.bind = bind
        self.renderer = renderer
        self.haiku_fetcher = haiku_fetcher
        self._weather_client = weather_client
        self._almanac = almanac
        self._uploader = uploader
        self._article_fetcher = article_fetcher
        self._notifier = notifier
        self._metrics_enabled = settings.metrics_enabled if metrics_enabled is None else metrics_enabled
        self._owned: list[Any] = []
        self._start_metrics_server()

    # Collaborators are created on first use so a dry run needs no credentials.
    @property
    def weather_client(self) -> AccuWeatherClient:
        if self._weather_client is None:
            self._weather_client = self._own(AccuWeatherClient())
        return self._weather_client

    @property
    def almanac(self) -> AlmanacService:
        if self._almanac is None:
            self._almanac = AlmanacService(self.location, tz=self.tz.key)
        return self._almanac

    @property
    def uploader(self) -> CloudinaryUploader:
        if self._uploader is None:
            self._uploader = self._own(CloudinaryUploader())
        return self._uploader

    @property
    def article_fetcher(self) -> ArticleFetcher:
        if self._article_fetcher is None:
            self._article_fetcher = self._own(ArticleFetcher())
        return self._article_fetcher

    @property
    def notifier(self) -> SlackNotifier:
        if self._notifier is None:
            self._notifier = self._own(SlackNotifier())
        return self._notifier

    def _own(self, resource):
        self._owned.append(resource)
        return resource

    def close(self) -> None:
        """Close the HTTP clients this cycle created; injected ones stay open."""

        while self._owned:
            self._owned.pop().close()

    def __enter__(self) -> "MorningCycle":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def decide(self, store: HistoryStore, snapshot: MeasurementSnapshot, local_now: datetime) -> Decision:
        """Classify, evaluate every rule, and pick the winner. Reads only."""

        levels = classify(snapshot)
        logger.info(
            "Levels temperature=%s rain=%s wind=%s (weatherId=%s)",
            levels.temperature,
            levels.rain,
            levels.wind,
            snapshot.weather_id,
        )
        last_weather = store.get_last_weather()
        histories = store.get_histories()
        context = EvaluationContext(
            levels=levels,
            snapshot=snapshot,
            month=local_now.month,
            day=local_now.day,
            last_weather=last_weather,
            condition_groups=self.catalog.condition_groups,
        )
        candidates = rank(self.catalog, context, histories)
        selected = choose(candidates, context)
        logger.info(
            "Selected weather %s (score=%.2f, matching=%s)",
            selected.name,
            selected.score,
            len(candidates),
        )
        return Decision(context=context, candidates=candidates, selected=selected)

    def preview(self, now: datetime | None = None) -> tuple[Forecast, Decision]:
        """Run the decision without persisting or posting anything."""

        local_now = (now or datetime.now(self.tz)).astimezone(self.tz)
        forecast = self.weather_client.get_forecast(self.location, local_now)
        with open_history_store(self.bind) as store:
            decision = self.decide(store, forecast.snapshot, local_now)
        return forecast, decision

    def run(self, now: datetime | None = None) -> CycleResult:
        started = time.perf_counter()
        try:
            result = self._run(now)
        except Exception:
            if self._metrics_enabled:
                CYCLE_FAILURE.inc()
            raise
        if self._metrics_enabled:
            CYCLE_SECONDS.observe(time.perf_counter() - started)
            CYCLE_SUCCESS.inc()
            SELECTED_SCORE.set(result.score)
        return result

    def _run(self, now: datetime | None) -> CycleResult:
        local_now = (now or datetime.now(self.tz)).astimezone(self.tz)
        almanac = self.almanac.for_day(local_now.date(), local_now)
        forecast = self.weather_client.get_forecast(self.location, local_now)
        snapshot = forecast.snapshot

        with open_history_store(self.bind) as store:
            decision = self.decide(store, snapshot, local_now)
            if self._metrics_enabled:
                MATCHING_RULES.set(len(decision.candidates))
            selected = decision.selected
            store.record_decision(
                LastWeather(weather_id=snapshot.weather_id, temperature=snapshot.temperature_c),
                HistoryEntry.create(selected.name, selected.rule.to_payload(), at=local_now),
            )

            logger.info("Rendering weather image...")
            image_url = self.uploader.upload(self.renderer(selected.name))

            article = self._announcement(store)

        haiku = self._haiku()
        payload = build_slack_payload(
            weather_name=selected.name,
            weather_id=snapshot.weather_id,
            location_key=forecast.location_key,
            image_url=image_url,
            almanac=almanac,
            haiku=haiku,
            article=article,
            tz=self.tz.key,
        )
        self.notifier.post(payload)

        return CycleResult(
            weather_name=selected.name,
            score=selected.score,
            snapshot=snapshot,
            image_url=image_url,
            article=article,
            haiku=haiku,
        )

    def _announcement(self, store: HistoryStore) -> Article | None:
        try:
            listings = self.article_fetcher.fetch_all()
        except httpx.HTTPError as exc:
            logger.warning("Failed to fetch season articles: %s", exc, exc_info=True)
            return None

        article, urls = choose_announcement(listings, store.get_last_entry_urls())
        if article is not None:
            store.set_last_entry_urls(urls)
        return article

    def _haiku(self) -> Haiku | None:
        try:
            return self.haiku_fetcher()
        except httpx.HTTPError as exc:
            logger.warning("Failed to fetch today's haiku: %s", exc, exc_info=True)
            return None

    def _start_metrics_server(self) -> None:
        global _METRICS_SERVER_STARTED
        if not self._metrics_enabled or _METRICS_SERVER_STARTED:
            return
        start_http_server(settings.metrics_port, addr=settings.metrics_host)
        logger.info(
            "Prometheus metrics exporter listening on %s:%s",
            settings.metrics_host,
            settings.metrics_port,
        )
        _METRICS_SERVER_STARTED = True


__all__ = ["CycleResult", "Decision", "MorningCycle"]
