"""Supabase repository for daily weight logs."""

from dataclasses import dataclass
from datetime import date, datetime
from uuid import UUID

from supabase import Client

from calorie_tracker.domain.diary import WeightLog
from calorie_tracker.services.weight import WeightLogRepository


@dataclass
class SupabaseWeightLogRepository(WeightLogRepository):
    """Supabase implementation for weight logs."""

    client: Client

    def upsert_weight_log(
        self, user_id: str, log_date: date, weight_kg: float
    ) -> WeightLog:
        """Insert or replace the weight row for a user and day."""
        response = (
            self.client.table("weight_logs")
            .upsert(
                {
                    "user_id": user_id,
                    "date": log_date.isoformat(),
                    "weight_kg": weight_kg,
                },
                on_conflict="user_id,date",
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to save weight log")
        return _weight_log_from_row(response.data[0])

    def list_weight_logs(self, user_id: str) -> list[WeightLog]:
        """Return weight logs ordered by date."""
        response = (
            self.client.table("weight_logs")
            .select("*")
            .eq("user_id", user_id)
            .order("date")
            .execute()
        )
        return [_weight_log_from_row(row) for row in response.data or []]


def _weight_log_from_row(row: dict[str, object]) -> WeightLog:
    return WeightLog(
        id=UUID(str(row["id"])),
        user_id=str(row["user_id"]),
        date=date.fromisoformat(str(row["date"])),
        weight_kg=float(row.get("weight_kg") or 0),
        created_at=datetime.fromisoformat(str(row["created_at"])),
    )
