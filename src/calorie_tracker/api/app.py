"""FastAPI application factory."""

import base64
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import asdict
from datetime import date

from fastapi import FastAPI, File, Form, HTTPException, Request, UploadFile, status
from fastapi.responses import JSONResponse

from calorie_tracker.api.models import (
    DeleteRequest,
    ExerciseAddRequest,
    ExerciseEstimateRequest,
    ExerciseUpdateRequest,
    FoodAddRequest,
    FoodEstimateRequest,
    FoodUpdateRequest,
    ProfileRequest,
    WeightRequest,
)
from calorie_tracker.app_logging import configure_logging
from calorie_tracker.containers import AppContainer
from calorie_tracker.domain.metabolism import Profile
from calorie_tracker.services.errors import (
    CredentialCompromised,
    CredentialInvalid,
    CredentialMissing,
    EstimationTimeout,
    EstimatorError,
    RateLimited,
    UnsupportedImageType,
)
from calorie_tracker.services.estimator import (
    ALLOWED_IMAGE_TYPES,
    IMAGE_FALLBACK_NAME,
)
from calorie_tracker.services.json_extract import (
    DEFAULT_UNIT,
    FALLBACK_UNIT_OPTIONS,
)
from calorie_tracker.services.metabolism import calculate_age, summarize

_ERROR_STATUS: tuple[tuple[type[EstimatorError], int], ...] = (
    (CredentialMissing, status.HTTP_503_SERVICE_UNAVAILABLE),
    (CredentialCompromised, status.HTTP_400_BAD_REQUEST),
    (CredentialInvalid, status.HTTP_400_BAD_REQUEST),
    (UnsupportedImageType, status.HTTP_400_BAD_REQUEST),
    (RateLimited, status.HTTP_429_TOO_MANY_REQUESTS),
    (EstimationTimeout, status.HTTP_504_GATEWAY_TIMEOUT),
)


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if not app.state.container.estimator.is_enabled():
            logger.warning("GEMINI_API_KEY is not set; AI estimation is disabled")
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.exception_handler(EstimatorError)
    async def estimator_error_handler(
        request: Request, exc: EstimatorError
    ) -> JSONResponse:
        status_code = _status_for(exc)
        logger.warning("AI estimation failed (%s): %s", type(exc).__name__, exc)
        retry_after = None
        if isinstance(exc, RateLimited):
            retry_after = exc.retry_after_seconds
        headers = {"Retry-After": str(retry_after)} if retry_after else None
        return JSONResponse(
            status_code=status_code,
            content={"error": str(exc), "retry_after_seconds": retry_after},
            headers=headers,
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/ai/status")
    async def ai_status(request: Request) -> dict[str, bool]:
        """Report whether AI estimation is configured."""
        state_container: AppContainer = request.app.state.container
        return {"enabled": state_container.estimator.is_enabled()}

    @app.post("/diary/food/ai-estimate")
    async def food_ai_estimate(
        body: FoodEstimateRequest, request: Request
    ) -> dict[str, object]:
        """Estimate a food from text and log it unless previewing."""
        state_container: AppContainer = request.app.state.container
        estimated = await state_container.estimator.estimate_from_text(body.text)
        if body.preview:
            return {"date": body.date, "estimated": asdict(estimated)}
        food_log = state_container.diary_service.add_food_log(
            state_container.settings.default_user_id, body.date, estimated
        )
        return {"date": body.date, "estimated": asdict(estimated), "log": food_log}

    @app.post("/diary/food/ai-estimate-image")
    async def food_ai_estimate_image(  # noqa: PLR0913
        request: Request,
        log_date: date = Form(..., alias="date"),
        image: UploadFile = File(...),
        text: str | None = Form(default=None),
        amount: float | None = Form(default=None),
        unit: str | None = Form(default=None),
    ) -> dict[str, object]:
        """Estimate a food from a photo, scaled to an optional amount."""
        state_container: AppContainer = request.app.state.container
        image_base64, mime_type = await _read_image(
            image, state_container.settings.max_image_bytes
        )
        estimated = await state_container.estimator.estimate_from_image(
            image_base64,
            mime_type,
            text=(text or "").strip() or None,
            amount=amount,
            unit=(unit or "").strip() or None,
        )
        return {"date": log_date, "estimated": asdict(estimated)}

    @app.post("/diary/food/ai-detect-image")
    async def food_ai_detect_image(
        request: Request,
        log_date: date = Form(..., alias="date"),
        image: UploadFile = File(...),
    ) -> dict[str, object]:
        """Detect the food in a photo, falling back to a placeholder."""
        state_container: AppContainer = request.app.state.container
        image_base64, mime_type = await _read_image(
            image, state_container.settings.max_image_bytes
        )
        try:
            detected = await state_container.estimator.detect_from_image(
                image_base64, mime_type
            )
        except EstimatorError as exc:
            logger.info("Food detection fell back to placeholder: %s", exc)
            return {
                "date": log_date,
                "detected": {
                    "food_name": IMAGE_FALLBACK_NAME,
                    "default_unit": DEFAULT_UNIT,
                    "unit_options": list(FALLBACK_UNIT_OPTIONS),
                },
                "warning": str(exc),
            }
        return {"date": log_date, "detected": asdict(detected)}

    @app.post("/diary/exercise/ai-estimate")
    async def exercise_ai_estimate(
        body: ExerciseEstimateRequest, request: Request
    ) -> dict[str, object]:
        """Estimate calories burned by an exercise and log it."""
        state_container: AppContainer = request.app.state.container
        estimated = await state_container.estimator.estimate_exercise(
            body.name, body.minutes
        )
        exercise_log = state_container.diary_service.add_exercise_log(
            state_container.settings.default_user_id, body.date, estimated
        )
        return {"date": body.date, "estimated": asdict(estimated), "log": exercise_log}

    @app.post("/diary/food/add")
    async def food_add(body: FoodAddRequest, request: Request) -> dict[str, object]:
        """Log a food entered by hand or confirmed from an estimate."""
        state_container: AppContainer = request.app.state.container
        food_log = state_container.diary_service.add_food_log(
            state_container.settings.default_user_id, body.date, body.to_estimate()
        )
        return {"log": food_log}

    @app.post("/diary/food/update")
    async def food_update(
        body: FoodUpdateRequest, request: Request
    ) -> dict[str, object]:
        """Edit the name and nutrition of a food entry."""
        state_container: AppContainer = request.app.state.container
        food_log = state_container.diary_service.update_food_log(
            state_container.settings.default_user_id, body.id, body.to_estimate()
        )
        if food_log is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Food log not found"
            )
        return {"log": food_log}

    @app.post("/diary/food/delete")
    async def food_delete(body: DeleteRequest, request: Request) -> dict[str, bool]:
        """Delete a food entry."""
        state_container: AppContainer = request.app.state.container
        if not state_container.diary_service.delete_food_log(
            state_container.settings.default_user_id, body.id
        ):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Food log not found"
            )
        return {"deleted": True}

    @app.post("/diary/exercise/add")
    async def exercise_add(
        body: ExerciseAddRequest, request: Request
    ) -> dict[str, object]:
        """Log an exercise entered by hand."""
        state_container: AppContainer = request.app.state.container
        exercise_log = state_container.diary_service.log_exercise(
            state_container.settings.default_user_id,
            body.date,
            body.name,
            body.calories_burned,
        )
        return {"log": exercise_log}

    @app.post("/diary/exercise/update")
    async def exercise_update(
        body: ExerciseUpdateRequest, request: Request
    ) -> dict[str, object]:
        """Edit the name and calories of an exercise entry."""
        state_container: AppContainer = request.app.state.container
        exercise_log = state_container.diary_service.update_exercise_log(
            state_container.settings.default_user_id,
            body.id,
            body.name,
            body.calories_burned,
        )
        if exercise_log is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Exercise log not found",
            )
        return {"log": exercise_log}

    @app.post("/diary/exercise/delete")
    async def exercise_delete(
        body: DeleteRequest, request: Request
    ) -> dict[str, bool]:
        """Delete an exercise entry."""
        state_container: AppContainer = request.app.state.container
        if not state_container.diary_service.delete_exercise_log(
            state_container.settings.default_user_id, body.id
        ):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Exercise log not found",
            )
        return {"deleted": True}

    @app.get("/weight")
    async def weight_list(request: Request) -> dict[str, object]:
        """Return the weight history, oldest date first."""
        state_container: AppContainer = request.app.state.container
        logs = state_container.weight_service.list_weight_logs(
            state_container.settings.default_user_id
        )
        return {"logs": logs}

    @app.post("/weight")
    async def weight_record(body: WeightRequest, request: Request) -> dict[str, object]:
        """Record the weight for a day, replacing any earlier entry."""
        state_container: AppContainer = request.app.state.container
        weight_log = state_container.weight_service.record_weight(
            state_container.settings.default_user_id, body.date, body.weight_kg
        )
        return {"log": weight_log}

    @app.get("/diary/{day}")
    async def diary_day(day: date, request: Request) -> dict[str, object]:
        """Return diary entries and totals for a day."""
        state_container: AppContainer = request.app.state.container
        summary = state_container.diary_service.get_day_summary(
            state_container.settings.default_user_id, day
        )
        return asdict(summary)

    @app.post("/metabolism/summary")
    async def metabolism_summary(body: ProfileRequest) -> dict[str, object]:
        """Compute BMR, TDEE, calorie target and BMI for a profile."""
        if body.date_of_birth is not None:
            age = calculate_age(body.date_of_birth)
        elif body.age is not None:
            age = body.age
        else:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_CONTENT,
                detail="age or date_of_birth is required",
            )
        profile = Profile(
            gender=body.gender,
            age=age,
            height_cm=body.height_cm,
            weight_kg=body.weight_kg,
            activity_level=body.activity_level,
            goal_type=body.goal_type,
        )
        return {"age": age, **asdict(summarize(profile))}

    return app


def _status_for(exc: EstimatorError) -> int:
    """Return the HTTP status used for an estimator error."""
    for error_type, status_code in _ERROR_STATUS:
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_502_BAD_GATEWAY


async def _read_image(image: UploadFile, max_bytes: int) -> tuple[str, str]:
    """Validate an uploaded image and return it base64-encoded with its type."""
    mime_type = image.content_type or ""
    if mime_type not in ALLOWED_IMAGE_TYPES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only JPG, PNG or WEBP images are supported",
        )
    content = await image.read()
    if len(content) > max_bytes:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Image is too large (max {max_bytes // (1024 * 1024)} MB)",
        )
    return base64.b64encode(content).decode("ascii"), mime_type
