"""Google Generative Language (Gemini) REST client."""

import logging
import math
import re
from dataclasses import dataclass
from typing import Protocol

import httpx

from calorie_tracker.services.errors import (
    CredentialCompromised,
    CredentialInvalid,
    EstimatorError,
    ModelNotFound,
    RateLimited,
    TransportError,
)

_LEAKED_MARKER = "reported as leaked"
_INVALID_KEY_MARKERS = ("API_KEY_INVALID", "API key not valid")
_RATE_LIMIT_MARKERS = ("RESOURCE_EXHAUSTED", "exceeded your current quota")
_RETRY_IN = re.compile(r"retry in\s+([0-9]+(?:\.[0-9]+)?)s", re.IGNORECASE)
_RETRY_DELAY = re.compile(
    r'"retryDelay"\s*:\s*"([0-9]+(?:\.[0-9]+)?)s"', re.IGNORECASE
)

_logger = logging.getLogger(__name__)


class GeminiClient(Protocol):
    """Interface for Gemini model listing and content generation."""

    async def list_models(self, api_key: str, api_version: str) -> list[str]:
        """Return model ids that support generateContent."""

    async def generate_content(
        self,
        *,
        api_key: str,
        api_version: str,
        model_id: str,
        parts: list[dict[str, object]],
        max_output_tokens: int,
    ) -> str:
        """Return the generated text for a single-turn request."""


@dataclass
class HttpxGeminiClient(GeminiClient):
    """HTTPX-backed Gemini client."""

    base_url: str
    http_client: httpx.AsyncClient
    timeout_seconds: float = 30.0
    temperature: float = 0.2

    @classmethod
    def create(cls, base_url: str, timeout_seconds: float) -> "HttpxGeminiClient":
        """Create a Gemini client with a managed httpx session."""
        return cls(
            base_url=base_url.rstrip("/"),
            http_client=httpx.AsyncClient(),
            timeout_seconds=timeout_seconds,
        )

    async def list_models(self, api_key: str, api_version: str) -> list[str]:
        """List models for one API version.

        Credential problems raise; any other failure yields an empty list so
        discovery can move on to the next API version.
        """
        url = f"{self.base_url}/{api_version}/models"
        try:
            response = await self.http_client.get(
                url, params={"key": api_key}, timeout=self.timeout_seconds
            )
        except httpx.HTTPError as exc:
            _logger.warning("Gemini list models %s failed: %s", api_version, exc)
            return []

        if response.is_error:
            body = response.text
            error = classify_error(response.status_code, body)
            if isinstance(error, CredentialCompromised | CredentialInvalid):
                raise error
            _logger.warning(
                "Gemini list models %s returned status=%s",
                api_version,
                response.status_code,
            )
            return []

        try:
            payload = response.json()
        except ValueError:
            _logger.warning("Gemini list models %s returned invalid JSON", api_version)
            return []
        models = payload.get("models") if isinstance(payload, dict) else None
        if not isinstance(models, list):
            return []
        supported: list[str] = []
        for model in models:
            if not isinstance(model, dict):
                continue
            methods = model.get("supportedGenerationMethods")
            if not isinstance(methods, list) or "generateContent" not in methods:
                continue
            name = str(model.get("name") or "")
            if name.startswith("models/"):
                supported.append(name.removeprefix("models/"))
        return supported

    async def generate_content(
        self,
        *,
        api_key: str,
        api_version: str,
        model_id: str,
        parts: list[dict[str, object]],
        max_output_tokens: int,
    ) -> str:
        """Call generateContent and join the text parts of the first candidate."""
        url = f"{self.base_url}/{api_version}/models/{model_id}:generateContent"
        payload = {
            "contents": [{"role": "user", "parts": parts}],
            "generationConfig": {
                "temperature": self.temperature,
                "maxOutputTokens": max_output_tokens,
            },
        }
        try:
            response = await self.http_client.post(
                url,
                params={"key": api_key},
                json=payload,
                timeout=self.timeout_seconds,
            )
        except httpx.TimeoutException as exc:
            raise TransportError(f"Gemini request timed out: {exc}") from exc
        except httpx.HTTPError as exc:
            raise TransportError(f"Gemini request failed: {exc}") from exc

        if response.is_error:
            raise classify_error(response.status_code, response.text)
        try:
            data = response.json()
        except ValueError as exc:
            raise TransportError("Gemini returned a non-JSON response") from exc
        return _candidate_text(data)

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()


def classify_error(status_code: int, body: str) -> EstimatorError:
    """Map a failed Gemini response to an estimator error."""
    message = f"Gemini error: {status_code} {body[:300]}"
    if status_code == 404 or "NOT_FOUND" in body:
        return ModelNotFound(message, status_code=status_code)
    if status_code == 403 and _LEAKED_MARKER in body:
        return CredentialCompromised()
    if status_code in {401, 403} or any(m in body for m in _INVALID_KEY_MARKERS):
        return CredentialInvalid(message)
    if status_code == 429 or any(m in body for m in _RATE_LIMIT_MARKERS):
        return RateLimited(message, retry_after_seconds=parse_retry_after(body))
    return TransportError(message, status_code=status_code)


def parse_retry_after(text: str) -> int | None:
    """Parse a retry hint such as ``retry in 7.5s`` or ``"retryDelay": "12s"``."""
    match = _RETRY_IN.search(text) or _RETRY_DELAY.search(text)
    if match is None:
        return None
    return max(1, math.ceil(float(match.group(1))))


def _candidate_text(payload: object) -> str:
    """Return the concatenated non-blank text parts of the first candidate."""
    if not isinstance(payload, dict):
        return ""
    candidates = payload.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        return ""
    first = candidates[0] if isinstance(candidates[0], dict) else {}
    content = first.get("content") if isinstance(first.get("content"), dict) else {}
    parts = content.get("parts") if isinstance(content.get("parts"), list) else []
    texts = [
        str(part.get("text"))
        for part in parts
        if isinstance(part, dict) and str(part.get("text") or "").strip()
    ]
    return "".join(texts)
