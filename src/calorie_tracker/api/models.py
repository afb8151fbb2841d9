"""Pydantic request models for the HTTP API."""

from datetime import date
from typing import Annotated
from uuid import UUID

from pydantic import BaseModel, Field, StringConstraints

from calorie_tracker.domain.estimates import NutritionEstimate
from calorie_tracker.domain.metabolism import ActivityLevel, Gender, GoalType

FoodText = Annotated[
    str, StringConstraints(strip_whitespace=True, min_length=1, max_length=500)
]
EntryName = Annotated[
    str, StringConstraints(strip_whitespace=True, min_length=1, max_length=120)
]
Amount = Annotated[float, Field(ge=0, le=100_000)]


class FoodEstimateRequest(BaseModel):
    """Free-text food estimate request."""

    date: date
    text: FoodText
    preview: bool = False


class FoodEntry(BaseModel):
    """Name and nutrition of a food entry."""

    food_name: EntryName
    calories: Amount
    protein: Amount = 0
    fat: Amount = 0
    carbs: Amount = 0

    def to_estimate(self) -> NutritionEstimate:
        return NutritionEstimate(
            food_name=self.food_name,
            calories=self.calories,
            protein=self.protein,
            fat=self.fat,
            carbs=self.carbs,
        )


class FoodAddRequest(FoodEntry):
    """Food entered by hand or confirmed from an estimate."""

    date: date


class FoodUpdateRequest(FoodEntry):
    """Replacement values for an existing food entry."""

    id: UUID


class ExerciseAddRequest(BaseModel):
    """Exercise entered by hand."""

    date: date
    name: EntryName
    calories_burned: Amount


class ExerciseUpdateRequest(BaseModel):
    """Replacement values for an existing exercise entry."""

    id: UUID
    name: EntryName
    calories_burned: Amount


class DeleteRequest(BaseModel):
    """Identifies a diary entry to delete."""

    id: UUID


class ExerciseEstimateRequest(BaseModel):
    """Exercise calories-burned estimate request."""

    date: date
    name: EntryName
    minutes: float = Field(gt=0, le=24 * 60)


class WeightRequest(BaseModel):
    """Body weight for a day."""

    date: date
    weight_kg: float = Field(gt=0, le=700)


class ProfileRequest(BaseModel):
    """Biometrics used for metabolism calculations."""

    gender: Gender
    age: int | None = Field(default=None, ge=0, le=130)
    date_of_birth: date | None = None
    height_cm: float = Field(gt=0, le=300)
    weight_kg: float = Field(gt=0, le=700)
    activity_level: ActivityLevel = "sedentary"
    goal_type: GoalType = "maintain"
