"""Tests for the persisted decision state."""

import json
from datetime import datetime, timedelta, timezone

from sqlmodel import Session

from sunrise.models import StateEntry
from sunrise.services.history import (
    HISTORIES_KEY,
    LAST_WEATHER_KEY,
    HistoryEntry,
    HistoryStore,
    LastWeather,
    open_history_store,
)

NOON = datetime(2024, 5, 10, 3, 0, tzinfo=timezone.utc)


class TestLastWeather:
    def test_absent_before_first_cycle(self, store):
        assert store.get_last_weather() is None

    def test_round_trip(self, store):
        store.set_last_weather(LastWeather(weather_id=18, temperature=12.5))
        assert store.get_last_weather() == LastWeather(weather_id=18, temperature=12.5)

    def test_overwrite(self, store):
        store.set_last_weather(LastWeather(weather_id=18, temperature=12.5))
        store.set_last_weather(LastWeather(weather_id=1, temperature=20.0))
        assert store.get_last_weather() == LastWeather(weather_id=1, temperature=20.0)


class TestHistories:
    def test_empty(self, store):
        assert store.get_histories() == []

    def test_newest_first(self, store):
        store.prepend_history(HistoryEntry.create("a", at=NOON))
        store.prepend_history(HistoryEntry.create("b", at=NOON + timedelta(days=1)))
        store.prepend_history(HistoryEntry.create("c", at=NOON + timedelta(days=2)))
        histories = store.get_histories()
        assert [entry.rule_name for entry in histories] == ["c", "b", "a"]
        assert histories[0].timestamp == NOON + timedelta(days=2)

    def test_unbounded_by_default(self, store):
        for index in range(40):
            store.prepend_history(HistoryEntry.create(f"r{index}", at=NOON))
        assert len(store.get_histories()) == 40

    def test_retention_limit(self, session):
        store = HistoryStore(session, max_entries=3)
        for index in range(5):
            store.prepend_history(HistoryEntry.create(f"r{index}", at=NOON))
        assert [entry.rule_name for entry in store.get_histories()] == ["r4", "r3", "r2"]


class TestHistoryEntry:
    def test_payload_layout(self):
        entry = HistoryEntry.create("晴れ", weather={"weatherId": 1}, at=NOON)
        assert entry.to_payload() == {
            "date": int(NOON.timestamp() * 1000),
            "weather": {"weatherId": 1, "name": "晴れ"},
        }

    def test_naive_time_is_utc(self):
        entry = HistoryEntry.create("x", at=datetime(2024, 1, 1, 0, 0, 0, 123456))
        assert entry.timestamp == datetime(2024, 1, 1, 0, 0, 0, 123000, tzinfo=timezone.utc)

    def test_from_payload(self):
        entry = HistoryEntry.from_payload({"date": 1700000000000, "weather": {"name": "霧"}})
        assert entry.rule_name == "霧"
        assert entry.timestamp == datetime.fromtimestamp(1700000000, tz=timezone.utc)


def test_record_decision_is_visible_from_new_session(engine, store):
    store.record_decision(
        LastWeather(weather_id=7, temperature=15.0),
        HistoryEntry.create("曇り", at=NOON),
    )
    with Session(engine) as other:
        fresh = HistoryStore(other)
        assert fresh.get_last_weather() == LastWeather(weather_id=7, temperature=15.0)
        assert [entry.rule_name for entry in fresh.get_histories()] == ["曇り"]


def test_stored_json_layout(session, store):
    store.record_decision(
        LastWeather(weather_id=7, temperature=15.0),
        HistoryEntry.create("曇り", at=NOON),
    )
    last = json.loads(session.get(StateEntry, LAST_WEATHER_KEY).value)
    histories = json.loads(session.get(StateEntry, HISTORIES_KEY).value)
    assert last == {"weatherId": 7, "temperature": 15.0}
    assert histories == [{"date": int(NOON.timestamp() * 1000), "weather": {"name": "曇り"}}]


def test_last_entry_urls(store):
    assert store.get_last_entry_urls() == {}
    store.set_last_entry_urls({"tayori": "https://example.org/a"})
    store.set_last_entry_urls({"tayori": "https://example.org/b", "saijiki": "https://example.org/c"})
    assert store.get_last_entry_urls() == {
        "tayori": "https://example.org/b",
        "saijiki": "https://example.org/c",
    }


def test_open_history_store(engine):
    with open_history_store(bind=engine) as store:
        store.set_last_weather(LastWeather(weather_id=3, temperature=9.0))
    with open_history_store(bind=engine) as store:
        assert store.get_last_weather() == LastWeather(weather_id=3, temperature=9.0)


def test_any_entry_round_trips_unchanged(store):
    entry = HistoryEntry(timestamp=datetime(2024, 5, 10, 3, 0, 0, 123456, tzinfo=timezone.utc), rule_name="a")
    store.prepend_history(entry)
    assert store.get_histories()[0] == entry


def test_entry_normalizes_to_stored_form():
    entry = HistoryEntry(timestamp=datetime(2024, 5, 10, 12, 0, 0, 987654), rule_name="霧", weather={"weatherId": 11})
    assert entry.timestamp == datetime(2024, 5, 10, 12, 0, 0, 987000, tzinfo=timezone.utc)
    assert entry.weather == {"weatherId": 11, "name": "霧"}
    assert HistoryEntry.from_payload(entry.to_payload()) == entry


def test_rows_carry_aware_update_time(session, store):
    store.set_last_weather(LastWeather(weather_id=1, temperature=20.0))
    store.set_last_weather(LastWeather(weather_id=2, temperature=21.0))
    assert StateEntry(key="k", value="{}").updated_at.tzinfo is not None
    assert session.get(StateEntry, LAST_WEATHER_KEY).updated_at is not None
