"""Domain models for the food and exercise diary."""

from dataclasses import dataclass
from datetime import date, datetime
from uuid import UUID


@dataclass(frozen=True)
class FoodLog:
    """Food entry logged for a day."""

    id: UUID
    user_id: str
    date: date
    food_name: str
    calories: float
    protein: float
    fat: float
    carbs: float
    created_at: datetime


@dataclass(frozen=True)
class ExerciseLog:
    """Exercise entry logged for a day."""

    id: UUID
    user_id: str
    date: date
    name: str
    calories_burned: float
    created_at: datetime


@dataclass(frozen=True)
class DaySummary:
    """Totals for a single diary day."""

    date: date
    calories_eaten: float
    calories_burned: float
    net_calories: float
    protein: float
    fat: float
    carbs: float
    food_logs: list[FoodLog]
    exercise_logs: list[ExerciseLog]


@dataclass(frozen=True)
class WeightLog:
    """Body weight recorded for a day; one entry per user and date."""

    id: UUID
    user_id: str
    date: date
    weight_kg: float
    created_at: datetime
