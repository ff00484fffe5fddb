"""Single-narrative service.

Fallback chain: cached → live Gemini text → precomputed narrative.
Only live text is cached, so a later call can still go live once a key
is configured or the provider recovers.
"""

import logging
from collections.abc import Mapping
from typing import Any

from policy_narratives.entities import AuxContext, NarrativeResult, NarrativeSource
from policy_narratives.prompts import PLACEHOLDER, build_narrative_prompt
from policy_narratives.prompts.builder import text as field_text
from policy_narratives.protocols import UpstreamClient
from policy_narratives.services.result_cache import ResultCache

logger = logging.getLogger(__name__)

DEFAULT_FALLBACK_TEXT = "No narrative available."
FALLBACK_FIELD = "Policy_Narrative"


def entity_key(entity: Mapping[str, Any]) -> str:
    """Identity of a district record.

    Raises:
        ValueError: If the record has no ``District``
    """
    key = field_text(entity, "District")
    if key == PLACEHOLDER:
        raise ValueError("Entity record has no District")
    return key


def fallback_for(entity: Mapping[str, Any], default: str = DEFAULT_FALLBACK_TEXT) -> str:
    """Precomputed narrative shipped with the record."""
    return field_text(entity, FALLBACK_FIELD, default)


class NarrativeService:
    """Short AI policy brief for one district, with a guaranteed answer.

    Example:
        ```python
        service = NarrativeService(upstream=client, cache=cache)
        result = await service.request_narrative(record)
        print(result.source, result.text)
        ```
    """

    def __init__(
        self,
        upstream: UpstreamClient,
        cache: ResultCache,
        fallback_text: str = DEFAULT_FALLBACK_TEXT,
    ) -> None:
        """Initialize the narrative service.

        Args:
            upstream: Text generator (required).
            cache: Result cache shared with the dossier orchestrator (required).
            fallback_text: Used when the record carries no precomputed narrative.
        """
        self._upstream = upstream
        self._cache = cache
        self._fallback_text = fallback_text

    @staticmethod
    def cache_key(key: str) -> str:
        return f"narrative:{key}"

    async def request_narrative(
        self,
        entity: Mapping[str, Any],
        context: AuxContext | None = None,
    ) -> NarrativeResult:
        """Return a narrative for the district, never failing on upstream errors.

        Args:
            entity: Precomputed district record
            context: Optional auxiliary context (scheme eligibility is used)

        Returns:
            NarrativeResult with source "cached", "live" or "precomputed"

        Raises:
            ValueError: If the record has no District
        """
        key = entity_key(entity)
        cache_key = self.cache_key(key)

        cached = self._cache.get(cache_key)
        if cached is not None:
            return NarrativeResult(text=cached.text, source=NarrativeSource.CACHED)

        result = await self._upstream.generate(build_narrative_prompt(entity, context))

        if result.ok:
            self._cache.set(cache_key, result.text)
            return NarrativeResult(text=result.text, source=NarrativeSource.LIVE)

        logger.info("Narrative for %s falls back to precomputed text: %s", key, result.error)
        return NarrativeResult(
            text=fallback_for(entity, self._fallback_text),
            source=NarrativeSource.PRECOMPUTED,
        )
