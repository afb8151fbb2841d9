"""Process-wide cache for the working Gemini model selection."""

import threading
from dataclasses import dataclass, field

from calorie_tracker.domain.estimates import ModelSelection


@dataclass
class ModelSelectionCache:
    """Single-entry cell remembering the last model pair that succeeded.

    Racing writers only ever store pairs that worked, so the last write wins.
    """

    _selection: ModelSelection | None = None
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def get(self) -> ModelSelection | None:
        """Return the cached selection, if any."""
        with self._lock:
            return self._selection

    def set(self, selection: ModelSelection) -> None:
        """Store the selection to try first on later requests."""
        with self._lock:
            self._selection = selection

    def clear(self) -> None:
        """Forget the cached selection."""
        with self._lock:
            self._selection = None
