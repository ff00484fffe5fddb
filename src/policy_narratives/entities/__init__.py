"""Domain entities for internal representation.

These are pure dataclasses (frozen) used internally by services
and repositories. They are NOT used for API contracts - use DTOs
from the dto package for that.
"""

from .aux_context import AuxContext
from .cache_entry import CacheEntryEntity
from .dossier_events import (
    DossierCompleted,
    DossierEvent,
    DossierRejected,
    DossierState,
    RejectionReason,
    SectionCompleted,
)
from .generation import GenerationResult, NarrativeResult, NarrativeSource

__all__ = [
    "AuxContext",
    "CacheEntryEntity",
    "DossierCompleted",
    "DossierEvent",
    "DossierRejected",
    "DossierState",
    "GenerationResult",
    "NarrativeResult",
    "NarrativeSource",
    "RejectionReason",
    "SectionCompleted",
]
