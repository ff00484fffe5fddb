"""Generation result entities."""

from dataclasses import dataclass
from enum import Enum

from policy_narratives.errors import UpstreamError


@dataclass(frozen=True)
class GenerationResult:
    """Outcome of one upstream call: either text or an UpstreamError.

    Use the ``success`` / ``failure`` constructors rather than building
    the dataclass directly.
    """

    text: str | None = None
    error: UpstreamError | None = None

    @classmethod
    def success(cls, text: str) -> "GenerationResult":
        return cls(text=text)

    @classmethod
    def failure(cls, error: UpstreamError) -> "GenerationResult":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None and bool(self.text)


class NarrativeSource(str, Enum):
    """Where a narrative's text came from."""

    LIVE = "live"
    CACHED = "cached"
    PRECOMPUTED = "precomputed"


@dataclass(frozen=True)
class NarrativeResult:
    """Single-narrative answer returned to collaborators."""

    text: str
    source: NarrativeSource
