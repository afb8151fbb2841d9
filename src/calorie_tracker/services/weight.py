"""Daily body weight tracking."""

from dataclasses import dataclass
from datetime import date
from typing import Protocol

from calorie_tracker.domain.diary import WeightLog


class WeightLogRepository(Protocol):
    """Persistence interface for weight logs."""

    def upsert_weight_log(
        self, user_id: str, log_date: date, weight_kg: float
    ) -> WeightLog:
        """Insert or replace the weight for a user and day."""

    def list_weight_logs(self, user_id: str) -> list[WeightLog]:
        """Return a user's weight logs, oldest date first."""


@dataclass
class WeightService:
    """Service for recording body weight."""

    repository: WeightLogRepository

    def record_weight(
        self, user_id: str, log_date: date, weight_kg: float
    ) -> WeightLog:
        """Store the weight for a day, replacing an earlier entry for that day."""
        if weight_kg <= 0:
            raise ValueError("Weight must be positive")
        return self.repository.upsert_weight_log(user_id, log_date, weight_kg)

    def list_weight_logs(self, user_id: str) -> list[WeightLog]:
        return self.repository.list_weight_logs(user_id)
