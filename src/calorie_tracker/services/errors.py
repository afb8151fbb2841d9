"""Errors raised by the AI estimation flow."""


class EstimatorError(Exception):
    """Base class for nutrition estimator failures."""


class CredentialMissing(EstimatorError):
    """No Gemini API key is configured."""

    def __init__(self) -> None:
        super().__init__("GEMINI_API_KEY is not configured")


class CredentialInvalid(EstimatorError):
    """The provider rejected the API key."""


class CredentialCompromised(EstimatorError):
    """The provider reports the API key as leaked."""

    def __init__(self) -> None:
        super().__init__(
            "The Gemini API key was reported as leaked. "
            "Create a new key, update GEMINI_API_KEY and restart the server."
        )


class RateLimited(EstimatorError):
    """The provider throttled the request or the quota is exhausted."""

    def __init__(self, message: str, retry_after_seconds: int | None = None) -> None:
        super().__init__(message)
        self.retry_after_seconds = retry_after_seconds


class TransportError(EstimatorError):
    """Network failure or provider error that is not otherwise classified."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ModelNotFound(TransportError):
    """The requested model or API version does not exist for this key."""


class UnparseableResponse(EstimatorError):
    """The model output could not be turned into a usable result."""

    def __init__(self, preview: str, reason: str = "not valid JSON") -> None:
        if preview:
            super().__init__(f"Model response was {reason}: {preview}")
        else:
            super().__init__("Model response was empty")
        self.preview = preview
        self.reason = reason


class AllCandidatesExhausted(EstimatorError):
    """Every candidate model was tried without a usable result."""

    def __init__(
        self,
        attempted: int,
        last_error: Exception | None = None,
        preview: str | None = None,
    ) -> None:
        detail = f": {last_error}" if last_error else ""
        super().__init__(
            f"No Gemini model produced a usable result after {attempted} "
            f"candidate(s){detail}. Check that the API key is valid and the "
            "Generative Language API is enabled, then try rephrasing."
        )
        self.attempted = attempted
        self.last_error = last_error
        self.preview = preview


class EstimationTimeout(EstimatorError):
    """The overall estimation deadline passed before a result was produced."""


class UnsupportedImageType(EstimatorError):
    """The image MIME type is not accepted by the estimator."""
