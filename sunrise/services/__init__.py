"""Service-layer utilities."""

from .conditions import EvaluationContext, rule_matches, satisfies
from .history import HistoryEntry, HistoryStore, LastWeather, open_history_store
from .levels import Levels, MeasurementSnapshot, classify, level_of
from .scoring import ScoredRule, rank, select

__all__ = [
    "EvaluationContext",
    "HistoryEntry",
    "HistoryStore",
    "LastWeather",
    "Levels",
    "MeasurementSnapshot",
    "ScoredRule",
    "classify",
    "level_of",
    "open_history_store",
    "rank",
    "rule_matches",
    "satisfies",
    "select",
]
