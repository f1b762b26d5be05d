"""Pytest fixtures and configuration."""

from __future__ import annotations

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from sunrise import models  # noqa: F401
from sunrise.services.conditions import EvaluationContext
from sunrise.services.history import HistoryStore, LastWeather
from sunrise.services.levels import MeasurementSnapshot, classify

GROUPS = {
    "clear": frozenset({1, 2}),
    "sunny": frozenset({1, 2, 3, 4, 30, 31, 32}),
    "cloud": frozenset({6, 7, 8}),
    "rain": frozenset({18, 26}),
    "drizzle": frozenset(),
}


@pytest.fixture
def engine():
    """In-memory SQLite shared across sessions of one test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def store(session):
    return HistoryStore(session, max_entries=None)


def make_snapshot(
    temperature_c: float = 20.0,
    rainfall_mm: float = 0.0,
    wind_speed_mps: float = 2.0,
    wind_direction_deg: float = 0.0,
    weather_id: int = 1,
) -> MeasurementSnapshot:
    return MeasurementSnapshot(
        temperature_c=temperature_c,
        rainfall_mm=rainfall_mm,
        wind_speed_mps=wind_speed_mps,
        wind_direction_deg=wind_direction_deg,
        weather_id=weather_id,
    )


def make_context(
    month: int = 5,
    day: int = 10,
    last_weather: LastWeather | None = None,
    groups=None,
    **snapshot_fields,
) -> EvaluationContext:
    snapshot = make_snapshot(**snapshot_fields)
    return EvaluationContext(
        levels=classify(snapshot),
        snapshot=snapshot,
        month=month,
        day=day,
        last_weather=last_weather,
        condition_groups=GROUPS if groups is None else groups,
    )


@pytest.fixture
def context_factory():
    return make_context


@pytest.fixture
def snapshot_factory():
    return make_snapshot
