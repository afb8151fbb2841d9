"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from calorie_tracker.adapters.gemini_client import HttpxGeminiClient
from calorie_tracker.adapters.supabase_diary_repository import (
    SupabaseExerciseLogRepository,
    SupabaseFoodLogRepository,
)
from calorie_tracker.adapters.supabase_weight_repository import (
    SupabaseWeightLogRepository,
)
from calorie_tracker.config import Settings, resolve_api_key
from calorie_tracker.services.cache import ModelSelectionCache
from calorie_tracker.services.diary import DiaryService
from calorie_tracker.services.estimator import NutritionEstimator
from calorie_tracker.services.model_resolver import ModelResolver
from calorie_tracker.services.weight import WeightService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    estimator: NutritionEstimator
    diary_service: DiaryService
    weight_service: WeightService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    diary_service = DiaryService(
        food_repository=SupabaseFoodLogRepository(supabase_client),
        exercise_repository=SupabaseExerciseLogRepository(supabase_client),
    )
    weight_service = WeightService(SupabaseWeightLogRepository(supabase_client))
    gemini_client = HttpxGeminiClient.create(
        base_url=resolved_settings.gemini_base_url,
        timeout_seconds=resolved_settings.gemini_timeout_seconds,
    )
    resolver = ModelResolver(
        client=gemini_client,
        cache=ModelSelectionCache(),
        preferred_models=resolved_settings.gemini_preferred_models,
    )
    estimator = NutritionEstimator(
        client=gemini_client,
        resolver=resolver,
        api_key=resolve_api_key(resolved_settings.gemini_api_key),
        deadline_seconds=resolved_settings.gemini_deadline_seconds,
    )

    async def close_resources() -> None:
        await gemini_client.close()

    return AppContainer(
        settings=resolved_settings,
        estimator=estimator,
        diary_service=diary_service,
        weight_service=weight_service,
        close_resources=close_resources,
    )
