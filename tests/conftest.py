"""Shared test fixtures."""

from dataclasses import dataclass, field, replace
from datetime import UTC, date, datetime
from uuid import UUID, uuid4

import pytest

from calorie_tracker.adapters.gemini_client import GeminiClient
from calorie_tracker.config import Settings
from calorie_tracker.containers import AppContainer
from calorie_tracker.domain.diary import ExerciseLog, FoodLog, WeightLog
from calorie_tracker.domain.estimates import NutritionEstimate
from calorie_tracker.services.cache import ModelSelectionCache
from calorie_tracker.services.diary import (
    DiaryService,
    ExerciseLogRepository,
    FoodLogRepository,
)
from calorie_tracker.services.errors import ModelNotFound
from calorie_tracker.services.estimator import NutritionEstimator
from calorie_tracker.services.model_resolver import ModelResolver
from calorie_tracker.services.weight import WeightLogRepository, WeightService


@dataclass
class FakeGeminiClient(GeminiClient):
    """Scripted Gemini client that records every call."""

    models_by_version: dict[str, list[str]] = field(default_factory=dict)
    list_errors: dict[str, Exception] = field(default_factory=dict)
    responses: list[str | Exception] = field(default_factory=list)
    default_response: str | None = None
    missing_models: set[str] = field(default_factory=set)
    list_calls: list[str] = field(default_factory=list)
    calls: list[dict[str, object]] = field(default_factory=list)

    async def list_models(self, api_key: str, api_version: str) -> list[str]:
        self.list_calls.append(api_version)
        if api_version in self.list_errors:
            raise self.list_errors[api_version]
        return list(self.models_by_version.get(api_version, []))

    async def generate_content(
        self,
        *,
        api_key: str,
        api_version: str,
        model_id: str,
        parts: list[dict[str, object]],
        max_output_tokens: int,
    ) -> str:
        self.calls.append(
            {
                "api_version": api_version,
                "model_id": model_id,
                "parts": parts,
                "max_output_tokens": max_output_tokens,
            }
        )
        if model_id in self.missing_models:
            raise ModelNotFound(f"Gemini error: 404 {model_id} NOT_FOUND", 404)
        if self.responses:
            outcome = self.responses.pop(0)
            if isinstance(outcome, Exception):
                raise outcome
            return outcome
        if self.default_response is not None:
            return self.default_response
        raise AssertionError("unexpected generate_content call")

    def prompts(self) -> list[str]:
        """Return the text part of every recorded call."""
        return [
            str(part["text"])
            for call in self.calls
            for part in call["parts"]  # type: ignore[union-attr]
            if "text" in part
        ]


@dataclass
class InMemoryFoodLogRepository(FoodLogRepository):
    """In-memory food log repository for tests."""

    logs: list[FoodLog] = field(default_factory=list)

    def create_food_log(
        self, user_id: str, log_date: date, estimate: NutritionEstimate
    ) -> FoodLog:
        log = FoodLog(
            id=uuid4(),
            user_id=user_id,
            date=log_date,
            food_name=estimate.food_name,
            calories=estimate.calories,
            protein=estimate.protein,
            fat=estimate.fat,
            carbs=estimate.carbs,
            created_at=datetime.now(tz=UTC),
        )
        self.logs.append(log)
        return log

    def update_food_log(
        self, user_id: str, log_id: UUID, estimate: NutritionEstimate
    ) -> FoodLog | None:
        for index, log in enumerate(self.logs):
            if log.id == log_id and log.user_id == user_id:
                self.logs[index] = replace(
                    log,
                    food_name=estimate.food_name,
                    calories=estimate.calories,
                    protein=estimate.protein,
                    fat=estimate.fat,
                    carbs=estimate.carbs,
                )
                return self.logs[index]
        return None

    def delete_food_log(self, user_id: str, log_id: UUID) -> bool:
        remaining = [
            log
            for log in self.logs
            if not (log.id == log_id and log.user_id == user_id)
        ]
        deleted = len(remaining) < len(self.logs)
        self.logs = remaining
        return deleted

    def list_food_logs(self, user_id: str, log_date: date) -> list[FoodLog]:
        return [
            log for log in self.logs if log.user_id == user_id and log.date == log_date
        ]


@dataclass
class InMemoryExerciseLogRepository(ExerciseLogRepository):
    """In-memory exercise log repository for tests."""

    logs: list[ExerciseLog] = field(default_factory=list)

    def create_exercise_log(
        self, user_id: str, log_date: date, name: str, calories_burned: float
    ) -> ExerciseLog:
        log = ExerciseLog(
            id=uuid4(),
            user_id=user_id,
            date=log_date,
            name=name,
            calories_burned=calories_burned,
            created_at=datetime.now(tz=UTC),
        )
        self.logs.append(log)
        return log

    def update_exercise_log(
        self, user_id: str, log_id: UUID, name: str, calories_burned: float
    ) -> ExerciseLog | None:
        for index, log in enumerate(self.logs):
            if log.id == log_id and log.user_id == user_id:
                self.logs[index] = replace(
                    log, name=name, calories_burned=calories_burned
                )
                return self.logs[index]
        return None

    def delete_exercise_log(self, user_id: str, log_id: UUID) -> bool:
        remaining = [
            log
            for log in self.logs
            if not (log.id == log_id and log.user_id == user_id)
        ]
        deleted = len(remaining) < len(self.logs)
        self.logs = remaining
        return deleted

    def list_exercise_logs(self, user_id: str, log_date: date) -> list[ExerciseLog]:
        return [
            log for log in self.logs if log.user_id == user_id and log.date == log_date
        ]


@dataclass
class InMemoryWeightLogRepository(WeightLogRepository):
    """In-memory weight log repository for tests."""

    logs: dict[tuple[str, date], WeightLog] = field(default_factory=dict)

    def upsert_weight_log(
        self, user_id: str, log_date: date, weight_kg: float
    ) -> WeightLog:
        existing = self.logs.get((user_id, log_date))
        log = WeightLog(
            id=existing.id if existing else uuid4(),
            user_id=user_id,
            date=log_date,
            weight_kg=weight_kg,
            created_at=datetime.now(tz=UTC),
        )
        self.logs[(user_id, log_date)] = log
        return log

    def list_weight_logs(self, user_id: str) -> list[WeightLog]:
        return sorted(
            (log for log in self.logs.values() if log.user_id == user_id),
            key=lambda log: log.date,
        )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="service-key",
        gemini_api_key="gemini-key",
    )


@pytest.fixture
def gemini_client() -> FakeGeminiClient:
    return FakeGeminiClient(models_by_version={"v1beta": ["gemini-2.5-flash"]})


@pytest.fixture
def selection_cache() -> ModelSelectionCache:
    return ModelSelectionCache()


@pytest.fixture
def resolver(
    gemini_client: FakeGeminiClient, selection_cache: ModelSelectionCache
) -> ModelResolver:
    return ModelResolver(client=gemini_client, cache=selection_cache)


@pytest.fixture
def estimator(
    gemini_client: FakeGeminiClient, resolver: ModelResolver
) -> NutritionEstimator:
    return NutritionEstimator(
        client=gemini_client, resolver=resolver, api_key="gemini-key"
    )


@pytest.fixture
def diary_service() -> DiaryService:
    return DiaryService(
        food_repository=InMemoryFoodLogRepository(),
        exercise_repository=InMemoryExerciseLogRepository(),
    )


@pytest.fixture
def weight_service() -> WeightService:
    return WeightService(InMemoryWeightLogRepository())


@pytest.fixture
def container(
    settings: Settings,
    estimator: NutritionEstimator,
    diary_service: DiaryService,
    weight_service: WeightService,
) -> AppContainer:
    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        estimator=estimator,
        diary_service=diary_service,
        weight_service=weight_service,
        close_resources=close_resources,
    )
