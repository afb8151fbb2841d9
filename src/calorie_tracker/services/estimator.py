"""AI nutrition estimation backed by Gemini."""

import logging
import math
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from calorie_tracker.adapters.gemini_client import GeminiClient
from calorie_tracker.domain.estimates import (
    ExerciseEstimate,
    FoodDetectionResult,
    ModelSelection,
    NutritionEstimate,
)
from calorie_tracker.services.errors import (
    AllCandidatesExhausted,
    CredentialMissing,
    EstimationTimeout,
    ModelNotFound,
    UnparseableResponse,
    UnsupportedImageType,
)
from calorie_tracker.services.json_extract import (
    parse_detection,
    parse_estimate,
    preview,
)
from calorie_tracker.services.model_resolver import ModelResolver
from calorie_tracker.services.prompts import (
    TEXT_REPAIR_LADDER,
    RepairStrategy,
    detection_prompt,
    exercise_prompt,
    image_estimate_prompt,
)

ALLOWED_IMAGE_TYPES = frozenset({"image/jpeg", "image/png", "image/webp"})
IMAGE_EXTRA_MODELS = (
    "gemini-2.5-flash",
    "gemini-2.0-flash",
    "gemini-1.5-flash-latest",
    "gemini-pro",
)
IMAGE_TOKEN_BUDGETS = (1024, 2048)
DETECTION_TOKEN_BUDGET = 256
IMAGE_FALLBACK_NAME = "Food from photo"

_logger = logging.getLogger(__name__)


@dataclass
class _Deadline:
    clock: Callable[[], float]
    expires_at: float

    def check(self) -> None:
        if self.clock() >= self.expires_at:
            raise EstimationTimeout("Gemini estimation took too long, please retry")


@dataclass
class NutritionEstimator:
    """Estimate nutrition from text or photos, trying candidate models in order."""

    client: GeminiClient
    resolver: ModelResolver
    api_key: str | None
    deadline_seconds: float = 120.0
    repair_ladder: Sequence[RepairStrategy] = TEXT_REPAIR_LADDER
    clock: Callable[[], float] = field(default=time.monotonic, repr=False)

    def is_enabled(self) -> bool:
        """Return True when a Gemini API key is configured."""
        return bool(self.api_key and self.api_key.strip())

    async def estimate_from_text(self, text: str) -> NutritionEstimate:
        """Estimate nutrition for a free-text food description."""
        api_key = self._require_key()
        deadline = self._start_deadline()
        candidates = await self.resolver.candidates(api_key)
        last_error: Exception | None = None
        last_raw = ""

        for selection in candidates:
            previous_raw = ""
            try:
                for strategy in self.repair_ladder:
                    deadline.check()
                    previous_raw = await self._generate(
                        api_key,
                        selection,
                        [{"text": strategy.build_prompt(text, previous_raw)}],
                        strategy.max_output_tokens,
                    )
                    last_raw = previous_raw
                    try:
                        estimate = parse_estimate(previous_raw, fallback_name=text)
                    except UnparseableResponse as exc:
                        last_error = exc
                        _logger.info(
                            "Gemini %s rung %s unusable: %s",
                            selection.model_id,
                            strategy.name,
                            exc.reason,
                        )
                        continue
                    self.resolver.remember(selection)
                    return estimate
            except ModelNotFound as exc:
                last_error = exc
                continue

        raise AllCandidatesExhausted(
            attempted=len(candidates),
            last_error=last_error,
            preview=preview(last_raw) or None,
        )

    async def estimate_from_image(  # noqa: PLR0913
        self,
        image_base64: str,
        mime_type: str,
        text: str | None = None,
        amount: float | None = None,
        unit: str | None = None,
    ) -> NutritionEstimate:
        """Estimate nutrition for a food photo, optionally scaled to an amount."""
        api_key = self._require_key()
        _check_mime_type(mime_type)
        deadline = self._start_deadline()
        candidates = await self.resolver.candidates(api_key, IMAGE_EXTRA_MODELS)
        parts = [
            {"inlineData": {"data": image_base64, "mimeType": mime_type}},
            {"text": image_estimate_prompt(text, _positive(amount), unit)},
        ]

        for attempt, max_output_tokens in enumerate(IMAGE_TOKEN_BUDGETS, start=1):
            selection, raw = await self._first_answer(
                api_key, candidates, parts, max_output_tokens, deadline
            )
            try:
                estimate = parse_estimate(raw, fallback_name=IMAGE_FALLBACK_NAME)
            except UnparseableResponse as exc:
                if attempt == len(IMAGE_TOKEN_BUDGETS):
                    raise
                _logger.info(
                    "Gemini image estimate unusable at %s tokens: %s",
                    max_output_tokens,
                    exc.reason,
                )
                continue
            self.resolver.remember(selection)
            return estimate

        raise AllCandidatesExhausted(attempted=len(candidates))

    async def detect_from_image(
        self, image_base64: str, mime_type: str
    ) -> FoodDetectionResult:
        """Label the food in a photo and suggest input units."""
        api_key = self._require_key()
        _check_mime_type(mime_type)
        deadline = self._start_deadline()
        candidates = await self.resolver.candidates(api_key, IMAGE_EXTRA_MODELS)
        parts = [
            {"inlineData": {"data": image_base64, "mimeType": mime_type}},
            {"text": detection_prompt()},
        ]
        selection, raw = await self._first_answer(
            api_key, candidates, parts, DETECTION_TOKEN_BUDGET, deadline
        )
        detected = parse_detection(raw, fallback_name=IMAGE_FALLBACK_NAME)
        self.resolver.remember(selection)
        return detected

    async def estimate_exercise(self, name: str, minutes: float) -> ExerciseEstimate:
        """Estimate calories burned by an exercise session."""
        estimate = await self.estimate_from_text(exercise_prompt(name, minutes))
        return ExerciseEstimate(
            name=f"{name} {minutes:g} min",
            minutes=minutes,
            calories_burned=max(0.0, estimate.calories),
        )

    async def _first_answer(
        self,
        api_key: str,
        candidates: Sequence[ModelSelection],
        parts: list[dict[str, object]],
        max_output_tokens: int,
        deadline: _Deadline,
    ) -> tuple[ModelSelection, str]:
        """Return the first candidate that answers, skipping unknown models."""
        last_error: Exception | None = None
        for selection in candidates:
            deadline.check()
            try:
                raw = await self._generate(api_key, selection, parts, max_output_tokens)
            except ModelNotFound as exc:
                last_error = exc
                continue
            return selection, raw
        raise AllCandidatesExhausted(attempted=len(candidates), last_error=last_error)

    async def _generate(
        self,
        api_key: str,
        selection: ModelSelection,
        parts: list[dict[str, object]],
        max_output_tokens: int,
    ) -> str:
        try:
            return await self.client.generate_content(
                api_key=api_key,
                api_version=selection.api_version,
                model_id=selection.model_id,
                parts=parts,
                max_output_tokens=max_output_tokens,
            )
        except ModelNotFound:
            _logger.info(
                "Gemini model %s not found on %s",
                selection.model_id,
                selection.api_version,
            )
            raise

    def _require_key(self) -> str:
        if not self.is_enabled():
            raise CredentialMissing()
        return self.api_key.strip()

    def _start_deadline(self) -> _Deadline:
        return _Deadline(
            clock=self.clock, expires_at=self.clock() + self.deadline_seconds
        )


def _check_mime_type(mime_type: str) -> None:
    if mime_type not in ALLOWED_IMAGE_TYPES:
        raise UnsupportedImageType(
            f"Unsupported image type {mime_type!r}; use JPEG, PNG or WEBP"
        )


def _positive(amount: float | None) -> float | None:
    if amount is None or not math.isfinite(amount) or amount <= 0:
        return None
    return amount
