"""Persistent decision state: yesterday's weather and the label history."""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Iterator

from sqlalchemy.engine import Engine
from sqlmodel import Session

from sunrise.core.config import settings
from sunrise.db.session import get_session
from sunrise.models import StateEntry

logger = logging.getLogger(__name__)

LAST_WEATHER_KEY = "lastWeather"
HISTORIES_KEY = "weatherHistories"
LAST_ENTRY_URL_KEY = "lastEntryUrl"

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


@dataclass(frozen=True)
class LastWeather:
    """Icon code and maximum temperature recorded by the previous cycle."""

    weather_id: int
    temperature: float

    def to_payload(self) -> dict[str, Any]:
        return {"weatherId": self.weather_id, "temperature": self.temperature}

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "LastWeather":
        return cls(weather_id=int(payload["weatherId"]), temperature=float(payload["temperature"]))


@dataclass(frozen=True)
class HistoryEntry:
    """One announced label, normalized to what the store can hold.

    The timestamp becomes UTC with millisecond precision and ``weather``
    always carries the rule name, so an entry equals its stored copy.
    """

    timestamp: datetime
    rule_name: str
    weather: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        moment = self.timestamp
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=timezone.utc)
        # stored as epoch milliseconds
        moment = moment.astimezone(timezone.utc)
        moment = moment.replace(microsecond=moment.microsecond // 1000 * 1000)
        weather = dict(self.weather)
        weather["name"] = self.rule_name
        object.__setattr__(self, "timestamp", moment)
        object.__setattr__(self, "weather", weather)

    @classmethod
    def create(cls, rule_name: str, weather: dict[str, Any] | None = None, at: datetime | None = None) -> "HistoryEntry":
        return cls(timestamp=at or datetime.now(timezone.utc), rule_name=rule_name, weather=dict(weather or {}))

    def to_payload(self) -> dict[str, Any]:
        millis = (self.timestamp - EPOCH) // timedelta(milliseconds=1)
        return {"date": millis, "weather": dict(self.weather)}

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "HistoryEntry":
        weather = dict(payload.get("weather") or {})
        return cls(
            timestamp=EPOCH + timedelta(milliseconds=int(payload["date"])),
            rule_name=str(weather.get("name", "")),
            weather=weather,
        )


class HistoryStore:
    """Read/write accessors over the persisted state keys.

    Every write commits before returning, so a later read in the same or a
    new session observes it.
    """

    def __init__(self, session: Session, max_entries: int | None = None) -> None:
        self.session = session
        self.max_entries = settings.history_max_entries if max_entries is None else max_entries

    def get_last_weather(self) -> LastWeather | None:
        payload = self._read(LAST_WEATHER_KEY)
        if payload is None:
            return None
        return LastWeather.from_payload(payload)

    def set_last_weather(self, record: LastWeather) -> None:
        self._stage(LAST_WEATHER_KEY, record.to_payload())
        self._commit()

    def get_histories(self) -> list[HistoryEntry]:
        payload = self._read(HISTORIES_KEY) or []
        return [HistoryEntry.from_payload(item) for item in payload]

    def prepend_history(self, entry: HistoryEntry) -> None:
        self._stage_history(entry)
        self._commit()

    def record_decision(self, last_weather: LastWeather, entry: HistoryEntry) -> None:
        """Persist today's weather and the chosen label in one transaction."""

        self._stage(LAST_WEATHER_KEY, last_weather.to_payload())
        self._stage_history(entry)
        self._commit()
        logger.info("Recorded weather %s (weatherId=%s)", entry.rule_name, last_weather.weather_id)

    def get_last_entry_urls(self) -> dict[str, str]:
        return dict(self._read(LAST_ENTRY_URL_KEY) or {})

    def set_last_entry_urls(self, urls: dict[str, str]) -> None:
        self._stage(LAST_ENTRY_URL_KEY, urls)
        self._commit()

    def _stage_history(self, entry: HistoryEntry) -> None:
        histories = [entry.to_payload(), *(self._read(HISTORIES_KEY) or [])]
        if self.max_entries is not None:
            dropped = len(histories) - self.max_entries
            if dropped > 0:
                logger.debug("Dropping %s history entries beyond retention", dropped)
            histories = histories[: self.max_entries]
        self._stage(HISTORIES_KEY, histories)

    def _read(self, key: str) -> Any:
        row = self.session.get(StateEntry, key)
        if row is None:
            return None
        return json.loads(row.value)

    def _stage(self, key: str, value: Any) -> None:
        serialized = json.dumps(value, ensure_ascii=False)
        row = self.session.get(StateEntry, key)
        if row is None:
            row = StateEntry(key=key, value=serialized)
        else:
            row.value = serialized
            row.updated_at = datetime.now(timezone.utc)
        self.session.add(row)

    def _commit(self) -> None:
        try:
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise


@contextmanager
def open_history_store(bind: Engine | None = None, max_entries: int | None = None) -> Iterator[HistoryStore]:
    """Open a store for the duration of one cycle."""

    with get_session(bind) as session:
        yield HistoryStore(session, max_entries=max_entries)


__all__ = [
    "HISTORIES_KEY",
    "HistoryEntry",
    "HistoryStore",
    "LAST_ENTRY_URL_KEY",
    "LAST_WEATHER_KEY",
    "LastWeather",
    "open_history_store",
]
