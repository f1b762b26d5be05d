"""Key/value rows backing the history store."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlmodel import Field, SQLModel


class StateEntry(SQLModel, table=True):
    """One persisted JSON document per well-known key (lastWeather, weatherHistories, ...)."""

    __tablename__ = "state_entries"

    key: str = Field(primary_key=True, max_length=64)
    value: str = Field(description="JSON-encoded document")
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), nullable=False)


__all__ = ["StateEntry"]
