"""Prompt builders for Gemini nutrition requests."""

from collections.abc import Callable
from dataclasses import dataclass

from calorie_tracker.services.json_extract import DEFAULT_UNIT, UNIT_VOCABULARY

ESTIMATE_SCHEMA = (
    '{"foodName":string,"calories":number,"protein":number,"fat":number,'
    '"carbs":number}'
)
DETECTION_SCHEMA = '{"foodName":string,"defaultUnit":string,"unitOptions":string[]}'
UNITS_NOTE = "Units: calories in kcal, protein/fat/carbs in grams."
ONE_LINE_JSON = (
    "Reply with a single-line JSON object only. Do not use markdown, code fences "
    "or ``` and do not add any other text (no leading 'json')."
)
NO_ZEROS = (
    "Never answer with all values 0; if unsure, give a reasonable estimate."
)
REPAIR_SNIPPET_CHARS = 1200


@dataclass(frozen=True)
class RepairStrategy:
    """One rung of the text repair ladder.

    ``build_prompt`` receives the user's text and the previous raw model output
    (empty on the first rung) and returns the prompt for this attempt.
    """

    name: str
    max_output_tokens: int
    build_prompt: Callable[[str, str], str]


def text_estimate_prompt(text: str, _previous_raw: str = "") -> str:
    """Initial prompt for estimating nutrition from a description."""
    return (
        "You are a nutritionist. Estimate the food described by the user. "
        f"{ONE_LINE_JSON} Schema: {ESTIMATE_SCHEMA}. {UNITS_NOTE} "
        f"User text: {text}"
    )


def strict_json_prompt(text: str, _previous_raw: str = "") -> str:
    """Stricter re-ask after a malformed or all-zero answer."""
    return (
        f"Answer again. {ONE_LINE_JSON} {NO_ZEROS} "
        f"Schema: {ESTIMATE_SCHEMA}. User text: {text}"
    )


def repair_output_prompt(_text: str, previous_raw: str) -> str:
    """Ask the model to turn its own previous output into valid JSON."""
    snippet = previous_raw.strip()[:REPAIR_SNIPPET_CHARS]
    return (
        "Convert the following text into one valid single-line JSON object. "
        "No markdown, no ``` and no other text. It must contain the keys "
        "foodName, calories, protein, fat, carbs (numbers as JSON numbers). "
        f"{NO_ZEROS} Text: {snippet}"
    )


def final_repair_prompt(_text: str, previous_raw: str) -> str:
    """Last re-ask restating the schema around the previous output."""
    snippet = previous_raw.strip()[:REPAIR_SNIPPET_CHARS]
    return (
        f"{ONE_LINE_JSON} If information is missing, estimate reasonable values. "
        f"Never leave out schema keys. Schema: {ESTIMATE_SCHEMA}. Text: {snippet}"
    )


TEXT_REPAIR_LADDER: tuple[RepairStrategy, ...] = (
    RepairStrategy("initial", 2048, text_estimate_prompt),
    RepairStrategy("strict_json", 1024, strict_json_prompt),
    RepairStrategy("repair_output", 1024, repair_output_prompt),
    RepairStrategy("final_repair", 1024, final_repair_prompt),
)


def image_estimate_prompt(
    text: str | None = None,
    amount: float | None = None,
    unit: str | None = None,
) -> str:
    """Prompt for estimating nutrition from a food photo."""
    if amount is not None and unit:
        portion = f"Amount eaten: {amount:g} {unit}. Scale all values to this amount."
    else:
        portion = "If the amount is unknown, estimate one typical serving as pictured."
    hint = f" Extra details: {text}" if text else ""
    return (
        "You are a nutritionist. Estimate the food in this photo. "
        f"{ONE_LINE_JSON} Schema: {ESTIMATE_SCHEMA}. {UNITS_NOTE} {portion}{hint}"
    )


def detection_prompt() -> str:
    """Prompt for labelling a food photo and proposing input units."""
    vocabulary = ", ".join(f'"{u}"' for u in UNIT_VOCABULARY)
    return (
        f"Look at this food photo. {ONE_LINE_JSON} Schema: {DETECTION_SCHEMA}. "
        f"unitOptions must only use values from [{vocabulary}]. "
        "defaultUnit must be one of unitOptions. "
        f'If unsure, use defaultUnit = "{DEFAULT_UNIT}".'
    )


def exercise_prompt(name: str, minutes: float) -> str:
    """Description used to estimate calories burned by an activity."""
    return (
        f"Estimate calories burned by this exercise: {name} for {minutes:g} "
        "minutes. Reply with JSON only, where calories is kcal burned and "
        "protein, fat and carbs are 0."
    )
