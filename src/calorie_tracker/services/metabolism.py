"""Energy-need calculations from a user's profile."""

from datetime import date

from calorie_tracker.domain.metabolism import (
    ActivityLevel,
    GoalType,
    Gender,
    MetabolismSummary,
    Profile,
)

_ACTIVITY_MULTIPLIERS: dict[str, float] = {
    "sedentary": 1.2,
    "light": 1.375,
    "moderate": 1.55,
    "active": 1.725,
    "very_active": 1.9,
}

MIN_DAILY_CALORIES = 1200
LOSE_DEFICIT = 500
GAIN_SURPLUS = 250


def activity_multiplier(level: ActivityLevel) -> float:
    """Return the TDEE multiplier for an activity level."""
    try:
        return _ACTIVITY_MULTIPLIERS[level]
    except KeyError as exc:
        raise ValueError(f"Unknown activity level: {level}") from exc


def calculate_bmr(gender: Gender, age: int, height_cm: float, weight_kg: float) -> int:
    """Basal metabolic rate using the Mifflin-St Jeor equation."""
    base = 10 * weight_kg + 6.25 * height_cm - 5 * age
    adjustment = 5 if gender == "male" else -161
    return round(base + adjustment)


def calculate_tdee(bmr: float, activity_level: ActivityLevel) -> int:
    """Total daily energy expenditure."""
    return round(bmr * activity_multiplier(activity_level))


def calculate_daily_calorie_target(tdee: int, goal_type: GoalType) -> int:
    """Daily calorie target for the user's goal."""
    if goal_type == "lose":
        return max(MIN_DAILY_CALORIES, tdee - LOSE_DEFICIT)
    if goal_type == "maintain":
        return tdee
    if goal_type == "gain":
        return tdee + GAIN_SURPLUS
    raise ValueError(f"Unknown goal type: {goal_type}")


def calculate_bmi(weight_kg: float, height_cm: float) -> float:
    """Body-mass index, or 0 when height is unknown."""
    height_m = height_cm / 100
    if height_m <= 0:
        return 0.0
    return weight_kg / (height_m * height_m)


def bmi_category(bmi: float) -> str:
    if bmi < 18.5:
        return "underweight"
    if bmi < 25:
        return "normal"
    if bmi < 30:
        return "overweight"
    return "obese"


def calculate_age(date_of_birth: date, today: date | None = None) -> int:
    """Whole years between a birth date and today, never negative."""
    today = today or date.today()
    age = today.year - date_of_birth.year
    if (today.month, today.day) < (date_of_birth.month, date_of_birth.day):
        age -= 1
    return max(0, age)


def macro_calories(protein: float, fat: float, carbs: float) -> dict[str, float]:
    """Split macro grams into kcal contributions."""
    return {"protein": protein * 4, "carbs": carbs * 4, "fat": fat * 9}


def summarize(profile: Profile) -> MetabolismSummary:
    """Compute BMR, TDEE, calorie target and BMI for a profile."""
    bmr = calculate_bmr(
        profile.gender, profile.age, profile.height_cm, profile.weight_kg
    )
    tdee = calculate_tdee(bmr, profile.activity_level)
    bmi = calculate_bmi(profile.weight_kg, profile.height_cm)
    return MetabolismSummary(
        bmr=bmr,
        tdee=tdee,
        daily_calorie_target=calculate_daily_calorie_target(tdee, profile.goal_type),
        bmi=round(bmi, 1),
        bmi_category=bmi_category(bmi),
    )
