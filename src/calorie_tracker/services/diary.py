"""Food and exercise diary service."""

from dataclasses import dataclass
from datetime import date
from typing import Protocol
from uuid import UUID

from calorie_tracker.domain.diary import DaySummary, ExerciseLog, FoodLog
from calorie_tracker.domain.estimates import ExerciseEstimate, NutritionEstimate


class FoodLogRepository(Protocol):
    """Persistence interface for food logs."""

    def create_food_log(
        self, user_id: str, log_date: date, estimate: NutritionEstimate
    ) -> FoodLog:
        """Insert a food log and return it."""

    def update_food_log(
        self, user_id: str, log_id: UUID, estimate: NutritionEstimate
    ) -> FoodLog | None:
        """Replace name and nutrition of a user's food log, if it exists."""

    def delete_food_log(self, user_id: str, log_id: UUID) -> bool:
        """Delete a user's food log and report whether a row was removed."""

    def list_food_logs(self, user_id: str, log_date: date) -> list[FoodLog]:
        """Return food logs for a user and day."""


class ExerciseLogRepository(Protocol):
    """Persistence interface for exercise logs."""

    def create_exercise_log(
        self, user_id: str, log_date: date, name: str, calories_burned: float
    ) -> ExerciseLog:
        """Insert an exercise log and return it."""

    def update_exercise_log(
        self, user_id: str, log_id: UUID, name: str, calories_burned: float
    ) -> ExerciseLog | None:
        """Replace name and calories of a user's exercise log, if it exists."""

    def delete_exercise_log(self, user_id: str, log_id: UUID) -> bool:
        """Delete a user's exercise log and report whether a row was removed."""

    def list_exercise_logs(self, user_id: str, log_date: date) -> list[ExerciseLog]:
        """Return exercise logs for a user and day."""


@dataclass
class DiaryService:
    """Service that stores diary entries and computes daily totals."""

    food_repository: FoodLogRepository
    exercise_repository: ExerciseLogRepository

    def add_food_log(
        self, user_id: str, log_date: date, estimate: NutritionEstimate
    ) -> FoodLog:
        """Store a food entry, estimated or entered by hand."""
        return self.food_repository.create_food_log(user_id, log_date, estimate)

    def update_food_log(
        self, user_id: str, log_id: UUID, estimate: NutritionEstimate
    ) -> FoodLog | None:
        """Edit a food entry; returns None when the user has no such entry."""
        return self.food_repository.update_food_log(user_id, log_id, estimate)

    def delete_food_log(self, user_id: str, log_id: UUID) -> bool:
        return self.food_repository.delete_food_log(user_id, log_id)

    def list_food_logs(self, user_id: str, log_date: date) -> list[FoodLog]:
        return self.food_repository.list_food_logs(user_id, log_date)

    def add_exercise_log(
        self, user_id: str, log_date: date, estimate: ExerciseEstimate
    ) -> ExerciseLog:
        """Store an estimated exercise entry."""
        return self.log_exercise(
            user_id, log_date, estimate.name, estimate.calories_burned
        )

    def log_exercise(
        self, user_id: str, log_date: date, name: str, calories_burned: float
    ) -> ExerciseLog:
        """Store an exercise entry entered by hand."""
        return self.exercise_repository.create_exercise_log(
            user_id, log_date, name, calories_burned
        )

    def update_exercise_log(
        self, user_id: str, log_id: UUID, name: str, calories_burned: float
    ) -> ExerciseLog | None:
        """Edit an exercise entry; returns None when the user has no such entry."""
        return self.exercise_repository.update_exercise_log(
            user_id, log_id, name, calories_burned
        )

    def delete_exercise_log(self, user_id: str, log_id: UUID) -> bool:
        return self.exercise_repository.delete_exercise_log(user_id, log_id)

    def list_exercise_logs(self, user_id: str, log_date: date) -> list[ExerciseLog]:
        return self.exercise_repository.list_exercise_logs(user_id, log_date)

    def get_day_summary(self, user_id: str, log_date: date) -> DaySummary:
        """Return food and exercise entries with totals for a day."""
        food_logs = self.list_food_logs(user_id, log_date)
        exercise_logs = self.list_exercise_logs(user_id, log_date)
        eaten = sum(log.calories for log in food_logs)
        burned = sum(log.calories_burned for log in exercise_logs)
        return DaySummary(
            date=log_date,
            calories_eaten=eaten,
            calories_burned=burned,
            net_calories=eaten - burned,
            protein=sum(log.protein for log in food_logs),
            fat=sum(log.fat for log in food_logs),
            carbs=sum(log.carbs for log in food_logs),
            food_logs=food_logs,
            exercise_logs=exercise_logs,
        )
