"""Tolerant JSON extraction from free-form model output."""

import json
import math
import re

from calorie_tracker.domain.estimates import FoodDetectionResult, NutritionEstimate
from calorie_tracker.services.errors import UnparseableResponse

PREVIEW_CHARS = 300
MAX_FOOD_NAME_CHARS = 80

DEFAULT_UNIT = "g"
UNIT_VOCABULARY = ["g", "ml", "piece", "plate", "cup", "tbsp", "tsp"]
FALLBACK_UNIT_OPTIONS = ["g", "ml", "piece", "plate"]

_OPENING_FENCE = re.compile(r"^```[a-zA-Z]*\s*")
_CLOSING_FENCE = re.compile(r"```\s*$")
_LANGUAGE_TAG = re.compile(r"^json\s*", re.IGNORECASE)
_TRAILING_COMMA = re.compile(r",\s*$")

_CHAR_REPLACEMENTS = str.maketrans(
    {
        "“": '"',
        "”": '"',
        "‘": "'",
        "’": "'",
        "｛": "{",
        "｝": "}",
    }
)


def preview(raw: str | None) -> str:
    """Return a bounded preview of raw model output for errors and logs."""
    return (raw or "").strip()[:PREVIEW_CHARS]


def extract_json_object(raw: str | None) -> str | None:
    """Return the substring of ``raw`` that most likely holds one JSON object.

    Strips quoting, markdown fences and a leading ``json`` tag, normalizes
    typographic quotes and full-width braces, then scans for the first
    balanced object, ignoring braces inside string literals. Output cut off
    between tokens gets a single closing brace appended; output cut off inside
    a string falls back to the span from the first to the last brace. Whether
    the result parses is left to the caller.
    """
    if not raw:
        return None
    text = raw.strip()

    if len(text) >= 2 and text[0] == text[-1] and text[0] in {'"', "'"}:
        text = text[1:-1].strip()

    if text.startswith("```"):
        text = _OPENING_FENCE.sub("", text, count=1)
        text = _CLOSING_FENCE.sub("", text, count=1).strip()

    text = _LANGUAGE_TAG.sub("", text, count=1).strip()
    text = text.translate(_CHAR_REPLACEMENTS)

    start = text.find("{")
    if start < 0:
        return None

    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[start : index + 1]

    # An appended brace cannot close an open string.
    if not in_string:
        candidate = _TRAILING_COMMA.sub("", text[start:].rstrip())
        return f"{candidate}}}"

    end = text.rfind("}")
    if end > start:
        return text[start : end + 1]
    return None


def load_json_object(raw: str | None) -> dict[str, object]:
    """Extract and decode a JSON object, raising UnparseableResponse on failure."""
    candidate = extract_json_object(raw)
    if candidate is None:
        raise UnparseableResponse(preview(raw))
    try:
        decoded = json.loads(candidate)
    except json.JSONDecodeError as exc:
        raise UnparseableResponse(preview(raw)) from exc
    if not isinstance(decoded, dict):
        raise UnparseableResponse(preview(raw))
    return decoded


def parse_estimate(raw: str | None, fallback_name: str) -> NutritionEstimate:
    """Parse model output into a non-degenerate nutrition estimate."""
    data = load_json_object(raw)
    protein = max(0.0, safe_number(data.get("protein")))
    fat = max(0.0, safe_number(data.get("fat")))
    carbs = max(0.0, safe_number(data.get("carbs")))
    calories = max(0.0, safe_number(data.get("calories")))

    if calories <= 0 and (protein > 0 or fat > 0 or carbs > 0):
        calories = float(round(protein * 4 + carbs * 4 + fat * 9))

    if calories <= 0 and protein <= 0 and fat <= 0 and carbs <= 0:
        raise UnparseableResponse(preview(raw), reason="incomplete (all zero)")

    name = safe_string(data.get("foodName")) or fallback_name
    return NutritionEstimate(
        food_name=name[:MAX_FOOD_NAME_CHARS],
        calories=calories,
        protein=protein,
        fat=fat,
        carbs=carbs,
    )


def parse_detection(raw: str | None, fallback_name: str) -> FoodDetectionResult:
    """Parse model output into a detection whose default unit is one of its options."""
    data = load_json_object(raw)
    options_raw = data.get("unitOptions")
    options = (
        [safe_string(option) for option in options_raw if safe_string(option)]
        if isinstance(options_raw, list)
        else []
    )
    if not options:
        options = list(FALLBACK_UNIT_OPTIONS)
    default_unit = safe_string(data.get("defaultUnit")) or DEFAULT_UNIT
    if default_unit not in options:
        default_unit = options[0]
    name = safe_string(data.get("foodName")) or fallback_name
    return FoodDetectionResult(
        food_name=name[:MAX_FOOD_NAME_CHARS],
        default_unit=default_unit,
        unit_options=options,
    )


def safe_number(value: object) -> float:
    """Coerce a JSON value to a finite float, defaulting to 0."""
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, int | float):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.replace(",", "").strip())
        except ValueError:
            return 0.0
    else:
        return 0.0
    return number if math.isfinite(number) else 0.0


def safe_string(value: object) -> str:
    """Coerce a JSON value to a stripped string."""
    if value is None:
        return ""
    return str(value).strip()
