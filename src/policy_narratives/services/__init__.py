"""Service layer for business logic.

This layer contains the narrative and dossier orchestration. Services
depend on protocols (interfaces), not concrete implementations, making
them testable and flexible.

Architecture:
    Handler -> Service -> Repository
    (HTTP)  -> (Business) -> (Data Access)

Usage:
    ```python
    from policy_narratives.repositories import create_result_store, create_upstream_client
    from policy_narratives.services import NarrativeService, ResultCache

    cache = ResultCache(store=create_result_store())
    narratives = NarrativeService(upstream=create_upstream_client("narrative"), cache=cache)
    ```
"""

from .dossier_service import DossierOrchestrator
from .guards import CooldownGuard, SessionQuotaGuard
from .narrative_service import NarrativeService, entity_key, fallback_for
from .result_cache import ResultCache

__all__ = [
    "CooldownGuard",
    "DossierOrchestrator",
    "NarrativeService",
    "ResultCache",
    "SessionQuotaGuard",
    "entity_key",
    "fallback_for",
]
