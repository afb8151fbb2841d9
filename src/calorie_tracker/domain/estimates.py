"""Domain models for AI nutrition estimates."""

from dataclasses import dataclass
from typing import Literal

ApiVersion = Literal["v1beta", "v1"]


@dataclass(frozen=True)
class NutritionEstimate:
    """Nutrition values estimated for a single food entry."""

    food_name: str
    calories: float
    protein: float
    fat: float
    carbs: float


@dataclass(frozen=True)
class FoodDetectionResult:
    """Food label and suggested input units detected from a photo."""

    food_name: str
    default_unit: str
    unit_options: list[str]


@dataclass(frozen=True)
class ExerciseEstimate:
    """Calories burned estimated for an exercise session."""

    name: str
    minutes: float
    calories_burned: float


@dataclass(frozen=True)
class ModelSelection:
    """API version and model id pair used for generation calls."""

    api_version: ApiVersion
    model_id: str
