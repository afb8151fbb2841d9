"""Domain models for profile-based metabolism calculations."""

from dataclasses import dataclass
from typing import Literal

Gender = Literal["male", "female"]
ActivityLevel = Literal["sedentary", "light", "moderate", "active", "very_active"]
GoalType = Literal["lose", "maintain", "gain"]


@dataclass(frozen=True)
class Profile:
    """Biometrics needed to compute a calorie target."""

    gender: Gender
    age: int
    height_cm: float
    weight_kg: float
    activity_level: ActivityLevel
    goal_type: GoalType


@dataclass(frozen=True)
class MetabolismSummary:
    """Computed energy needs and body-mass index."""

    bmr: int
    tdee: int
    daily_calorie_target: int
    bmi: float
    bmi_category: str
