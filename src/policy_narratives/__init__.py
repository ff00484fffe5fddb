"""Policy Narratives - AI narratives and policy dossiers for groundwater forecasts.

This package provides a layered architecture around a rate-limited
text-generation upstream (Gemini):

Layers:
    - protocols: Interface contracts (UpstreamClient, ResultStore)
    - repositories: Gemini/proxy clients, Redis/file stores, district catalog
    - prompts: Deterministic prompt construction
    - services: Result cache, guards, narrative service, dossier orchestrator
    - handlers: HTTP endpoint handlers
    - dto: Data transfer objects (API contracts)
    - entities: Domain models (internal)

Usage:
    ```python
    from policy_narratives.repositories import (
        DistrictCatalog,
        create_result_store,
        create_upstream_client,
    )
    from policy_narratives.services import DossierOrchestrator, ResultCache

    orchestrator = DossierOrchestrator(
        upstream=create_upstream_client("dossier"),
        cache=ResultCache(store=create_result_store()),
        catalog=DistrictCatalog.from_csv("data/district_forecasts.csv"),
    )
    async for event in orchestrator.request_dossier("Salem"):
        ...
    ```

For HTTP API:
    ```python
    from policy_narratives.api.app import app
    ```
"""

from policy_narratives.config import get_redis_client, get_settings, settings
from policy_narratives.entities import (
    AuxContext,
    CacheEntryEntity,
    DossierCompleted,
    DossierRejected,
    GenerationResult,
    NarrativeResult,
    NarrativeSource,
    SectionCompleted,
)
from policy_narratives.errors import (
    ConfigurationMissing,
    PolicyNarrativeError,
    UnknownEntityError,
    UnknownSectionError,
    UpstreamEnvelopeError,
    UpstreamError,
    UpstreamTransportError,
)
from policy_narratives.handlers import NarrativeHandler
from policy_narratives.prompts import Section, build_narrative_prompt, build_prompt
from policy_narratives.protocols import ResultStore, UpstreamClient
from policy_narratives.repositories import (
    DistrictCatalog,
    FileResultStore,
    GeminiUpstreamClient,
    ProxyUpstreamClient,
    RedisResultStore,
)
from policy_narratives.services import (
    CooldownGuard,
    DossierOrchestrator,
    NarrativeService,
    ResultCache,
    SessionQuotaGuard,
)

__all__ = [
    # Configuration
    "settings",
    "get_settings",
    "get_redis_client",
    # Protocols (interfaces)
    "ResultStore",
    "UpstreamClient",
    # Prompts
    "Section",
    "build_narrative_prompt",
    "build_prompt",
    # Services (business logic)
    "CooldownGuard",
    "DossierOrchestrator",
    "NarrativeService",
    "ResultCache",
    "SessionQuotaGuard",
    # Handlers (HTTP)
    "NarrativeHandler",
    # Repositories (data access)
    "DistrictCatalog",
    "FileResultStore",
    "GeminiUpstreamClient",
    "ProxyUpstreamClient",
    "RedisResultStore",
    # Entities (domain models)
    "AuxContext",
    "CacheEntryEntity",
    "DossierCompleted",
    "DossierRejected",
    "GenerationResult",
    "NarrativeResult",
    "NarrativeSource",
    "SectionCompleted",
    # Errors
    "ConfigurationMissing",
    "PolicyNarrativeError",
    "UnknownEntityError",
    "UnknownSectionError",
    "UpstreamEnvelopeError",
    "UpstreamError",
    "UpstreamTransportError",
]
