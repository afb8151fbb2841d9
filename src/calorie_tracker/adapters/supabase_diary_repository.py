"""Supabase repositories for diary entries."""

from dataclasses import dataclass
from datetime import date, datetime
from uuid import UUID

from supabase import Client

from calorie_tracker.domain.diary import ExerciseLog, FoodLog
from calorie_tracker.domain.estimates import NutritionEstimate
from calorie_tracker.services.diary import ExerciseLogRepository, FoodLogRepository


@dataclass
class SupabaseFoodLogRepository(FoodLogRepository):
    """Supabase implementation for food logs."""

    client: Client

    def create_food_log(
        self, user_id: str, log_date: date, estimate: NutritionEstimate
    ) -> FoodLog:
        """Insert a food log row."""
        response = (
            self.client.table("food_logs")
            .insert(
                {
                    "user_id": user_id,
                    "date": log_date.isoformat(),
                    "food_name": estimate.food_name,
                    "calories": estimate.calories,
                    "protein": estimate.protein,
                    "fat": estimate.fat,
                    "carbs": estimate.carbs,
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create food log")
        return _food_log_from_row(response.data[0])

    def update_food_log(
        self, user_id: str, log_id: UUID, estimate: NutritionEstimate
    ) -> FoodLog | None:
        """Update a food log row owned by the user."""
        response = (
            self.client.table("food_logs")
            .update(
                {
                    "food_name": estimate.food_name,
                    "calories": estimate.calories,
                    "protein": estimate.protein,
                    "fat": estimate.fat,
                    "carbs": estimate.carbs,
                }
            )
            .eq("id", str(log_id))
            .eq("user_id", user_id)
            .execute()
        )
        if not response.data:
            return None
        return _food_log_from_row(response.data[0])

    def delete_food_log(self, user_id: str, log_id: UUID) -> bool:
        """Delete a food log row owned by the user."""
        response = (
            self.client.table("food_logs")
            .delete()
            .eq("id", str(log_id))
            .eq("user_id", user_id)
            .execute()
        )
        return bool(response.data)

    def list_food_logs(self, user_id: str, log_date: date) -> list[FoodLog]:
        """Return food logs for a day, oldest first."""
        response = (
            self.client.table("food_logs")
            .select("*")
            .eq("user_id", user_id)
            .eq("date", log_date.isoformat())
            .order("created_at")
            .execute()
        )
        return [_food_log_from_row(row) for row in response.data or []]


@dataclass
class SupabaseExerciseLogRepository(ExerciseLogRepository):
    """Supabase implementation for exercise logs."""

    client: Client

    def create_exercise_log(
        self, user_id: str, log_date: date, name: str, calories_burned: float
    ) -> ExerciseLog:
        """Insert an exercise log row."""
        response = (
            self.client.table("exercise_logs")
            .insert(
                {
                    "user_id": user_id,
                    "date": log_date.isoformat(),
                    "name": name,
                    "calories_burned": calories_burned,
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create exercise log")
        return _exercise_log_from_row(response.data[0])

    def update_exercise_log(
        self, user_id: str, log_id: UUID, name: str, calories_burned: float
    ) -> ExerciseLog | None:
        """Update an exercise log row owned by the user."""
        response = (
            self.client.table("exercise_logs")
            .update({"name": name, "calories_burned": calories_burned})
            .eq("id", str(log_id))
            .eq("user_id", user_id)
            .execute()
        )
        if not response.data:
            return None
        return _exercise_log_from_row(response.data[0])

    def delete_exercise_log(self, user_id: str, log_id: UUID) -> bool:
        """Delete an exercise log row owned by the user."""
        response = (
            self.client.table("exercise_logs")
            .delete()
            .eq("id", str(log_id))
            .eq("user_id", user_id)
            .execute()
        )
        return bool(response.data)

    def list_exercise_logs(self, user_id: str, log_date: date) -> list[ExerciseLog]:
        """Return exercise logs for a day, oldest first."""
        response = (
            self.client.table("exercise_logs")
            .select("*")
            .eq("user_id", user_id)
            .eq("date", log_date.isoformat())
            .order("created_at")
            .execute()
        )
        return [_exercise_log_from_row(row) for row in response.data or []]


def _food_log_from_row(row: dict[str, object]) -> FoodLog:
    return FoodLog(
        id=UUID(str(row["id"])),
        user_id=str(row["user_id"]),
        date=date.fromisoformat(str(row["date"])),
        food_name=str(row.get("food_name") or ""),
        calories=float(row.get("calories") or 0),
        protein=float(row.get("protein") or 0),
        fat=float(row.get("fat") or 0),
        carbs=float(row.get("carbs") or 0),
        created_at=datetime.fromisoformat(str(row["created_at"])),
    )


def _exercise_log_from_row(row: dict[str, object]) -> ExerciseLog:
    return ExerciseLog(
        id=UUID(str(row["id"])),
        user_id=str(row["user_id"]),
        date=date.fromisoformat(str(row["date"])),
        name=str(row.get("name") or ""),
        calories_burned=float(row.get("calories_burned") or 0),
        created_at=datetime.fromisoformat(str(row["created_at"])),
    )
