"""Discovery and ordering of Gemini model candidates."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from calorie_tracker.adapters.gemini_client import GeminiClient
from calorie_tracker.config import DEFAULT_PREFERRED_MODELS
from calorie_tracker.domain.estimates import ApiVersion, ModelSelection
from calorie_tracker.services.cache import ModelSelectionCache

API_VERSIONS: tuple[ApiVersion, ...] = ("v1beta", "v1")
FALLBACK_MODELS = (
    "gemini-pro",
    "gemini-1.0-pro",
    "gemini-1.5-flash-latest",
    "gemini-1.5-pro-latest",
)
MODEL_FAMILY_KEYWORD = "gemini"

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DiscoveredModels:
    """Models listed for the first API version that returned any."""

    api_version: ApiVersion
    model_ids: list[str]


@dataclass
class ModelResolver:
    """Resolve which (API version, model) pairs to try, in order."""

    client: GeminiClient
    cache: ModelSelectionCache
    preferred_models: Sequence[str] = field(
        default_factory=lambda: list(DEFAULT_PREFERRED_MODELS)
    )
    api_versions: Sequence[ApiVersion] = API_VERSIONS
    fallback_models: Sequence[str] = FALLBACK_MODELS

    async def discover(self, api_key: str) -> DiscoveredModels | None:
        """List models per API version, stopping at the first non-empty one."""
        for api_version in self.api_versions:
            model_ids = await self.client.list_models(api_key, api_version)
            if model_ids:
                _logger.info(
                    "Discovered %s Gemini models on %s", len(model_ids), api_version
                )
                return DiscoveredModels(api_version=api_version, model_ids=model_ids)
        _logger.warning("Gemini model discovery found nothing, using fallbacks")
        return None

    def prioritize(self, model_ids: Sequence[str]) -> list[str]:
        """Order models so preferred variants come first.

        Ids outside the model family are dropped unless nothing else is left.
        Preferred ids follow the preference list order; the rest keep theirs.
        """
        family = [m for m in model_ids if MODEL_FAMILY_KEYWORD in m.lower()]
        pool = family or list(model_ids)

        preferred: list[str] = []
        for prefix in self.preferred_models:
            for model_id in pool:
                if _matches(model_id, prefix) and model_id not in preferred:
                    preferred.append(model_id)
        rest = [m for m in pool if m not in preferred]
        return preferred + rest

    async def candidates(
        self, api_key: str, extra_models: Sequence[str] = ()
    ) -> list[ModelSelection]:
        """Return de-duplicated candidate pairs, cached pair first."""
        cached = self.cache.get()
        if cached is not None:
            primary_version = cached.api_version
            model_ids = [cached.model_id]
        else:
            discovered = await self.discover(api_key)
            if discovered is not None:
                primary_version = discovered.api_version
                model_ids = self.prioritize(discovered.model_ids)
            else:
                primary_version = self.api_versions[0]
                model_ids = list(self.fallback_models)

        model_ids = _unique([*model_ids, *extra_models, *self.fallback_models])
        versions = [primary_version] + [
            v for v in self.api_versions if v != primary_version
        ]
        return [
            ModelSelection(api_version=version, model_id=model_id)
            for version in versions
            for model_id in model_ids
        ]

    def remember(self, selection: ModelSelection) -> None:
        """Cache a pair that produced a usable result."""
        if self.cache.get() != selection:
            _logger.info(
                "Caching Gemini model %s (%s)",
                selection.model_id,
                selection.api_version,
            )
        self.cache.set(selection)


def _matches(model_id: str, prefix: str) -> bool:
    return model_id == prefix or model_id.startswith(prefix)


def _unique(values: Sequence[str]) -> list[str]:
    seen: set[str] = set()
    result: list[str] = []
    for value in values:
        if value not in seen:
            seen.add(value)
            result.append(value)
    return result
