"""Tuning tables for the insights engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


def _frozen(data: dict) -> Mapping:
    return MappingProxyType({key: MappingProxyType(value) if isinstance(value, dict) else value
                             for key, value in data.items()})


def season_for(month: int) -> str:
    if 3 <= month <= 5:
        return "spring"
    if 6 <= month <= 8:
        return "summer"
    if 9 <= month <= 11:
        return "fall"
    return "winter"


@dataclass(frozen=True)
class PredictionConfig:
    """Read-only multipliers and thresholds used by ``InsightsEngine``."""

    seasonal_trends: Mapping[str, Mapping[str, float]] = field(
        default_factory=lambda: _frozen(
            {
                "camera": {"summer": 1.3, "winter": 0.8, "spring": 1.1, "fall": 1.0},
                "lighting": {"summer": 1.2, "winter": 1.4, "spring": 1.0, "fall": 1.1},
                "audio": {"summer": 1.1, "winter": 0.9, "spring": 1.0, "fall": 1.0},
                "tripod": {"summer": 1.0, "winter": 0.8, "spring": 1.2, "fall": 1.1},
            }
        )
    )
    day_of_week: Mapping[str, float] = field(
        default_factory=lambda: MappingProxyType(
            {
                "monday": 1.2,
                "tuesday": 1.1,
                "wednesday": 1.0,
                "thursday": 1.1,
                "friday": 1.3,
                "saturday": 0.8,
                "sunday": 0.5,
            }
        )
    )
    combinations: Mapping[str, tuple[str, ...]] = field(
        default_factory=lambda: MappingProxyType(
            {
                "camera": ("lens", "tripod", "monitor"),
                "lens": ("camera", "tripod"),
                "lighting": ("grip", "cable"),
                "audio": ("cable", "monitor"),
                "tripod": ("camera", "lens"),
            }
        )
    )
    base_probability: float = 0.8
    min_probability: float = 0.1
    history_window_days: int = 365
    suggestion_limit: int = 5
    suggestions_per_combination: int = 3
    suggestions_per_history_category: int = 2
    overdue_high_days: int = 7
    overdue_medium_days: int = 3
    activity_window_days: int = 7
    activity_threshold: int = 5

    def seasonal_multiplier(self, category: str, month: int) -> float:
        return self.seasonal_trends.get(category, {}).get(season_for(month), 1.0)

    def day_multiplier(self, weekday: int) -> float:
        return self.day_of_week.get(WEEKDAYS[weekday], 1.0)

    @staticmethod
    def confidence(data_points: int) -> float:
        if data_points == 0:
            return 0.3
        if data_points < 5:
            return 0.5
        if data_points < 20:
            return 0.7
        return 0.9


DEFAULT_CONFIG = PredictionConfig()
