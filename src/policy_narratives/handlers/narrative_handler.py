"""HTTP handlers for narrative and dossier operations.

Handlers convert between DTOs (API contracts) and service calls.
They handle HTTP concerns like status codes, validation, and error handling.
Upstream failures never become HTTP errors: every generation endpoint
answers 200 with whatever usable text (or failure source) it has.
"""

import dataclasses
import json
import logging
import os
from collections.abc import AsyncIterator

from fastapi import HTTPException, status
from fastapi.responses import StreamingResponse

from policy_narratives.dto import (
    DistrictNarrativeResponse,
    GenerateRequest,
    GenerateResponse,
    HealthCheckResponse,
    NarrativeRequest,
    NarrativeResponse,
    PolicyDossierRequest,
)
from policy_narratives.entities import AuxContext, DossierEvent, GenerationResult
from policy_narratives.errors import ConfigurationMissing, UnknownEntityError, UnknownSectionError
from policy_narratives.prompts import build_narrative_prompt, build_prompt
from policy_narratives.protocols import ResultStore, UpstreamClient
from policy_narratives.repositories import DistrictCatalog
from policy_narratives.services import DossierOrchestrator, NarrativeService, fallback_for

logger = logging.getLogger(__name__)


def _generate_response(result: GenerationResult) -> GenerateResponse:
    if result.ok:
        return GenerateResponse(text=result.text, source="gemini")
    if isinstance(result.error, ConfigurationMissing):
        return GenerateResponse(
            source="no_key",
            error="GEMINI_API_KEY not configured on the server.",
        )
    return GenerateResponse(source="error", error=str(result.error))


def _event_line(event: DossierEvent) -> str:
    payload = {"event": event.event, **dataclasses.asdict(event)}
    return json.dumps(payload) + "\n"


class NarrativeHandler:
    """HTTP handlers for narrative generation.

    The ``generators`` are always direct Gemini clients: the server is
    where the key lives, so it never proxies to itself. The services use
    whatever route configuration selected.

    Example:
        ```python
        handler = NarrativeHandler(
            generators={"narrative": narrative_client, "dossier": dossier_client},
            narratives=narrative_service,
            dossiers=orchestrator,
            catalog=catalog,
            store=store,
        )

        @app.post("/api/generate", response_model=GenerateResponse)
        async def generate(request: GenerateRequest):
            return await handler.generate(request)
        ```
    """

    def __init__(
        self,
        generators: dict[str, UpstreamClient],
        narratives: NarrativeService,
        dossiers: DossierOrchestrator,
        catalog: DistrictCatalog | None,
        store: ResultStore,
    ) -> None:
        """Initialize the handler.

        Args:
            generators: Server-side clients keyed by purpose ("narrative", "dossier").
            narratives: Catalog-backed narrative service.
            dossiers: Shared dossier orchestrator; each request runs in its own session.
            catalog: District records, or None when no data file is configured.
            store: Durable result store (for health reporting).
        """
        self._generators = generators
        self._narratives = narratives
        self._dossiers = dossiers
        self._catalog = catalog
        self._store = store

    def _require_catalog(self) -> DistrictCatalog:
        if self._catalog is None:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="District data not loaded. Set DISTRICT_DATA_PATH.",
            )
        return self._catalog

    def _require_district(self, district: str) -> dict:
        record = self._require_catalog().get(district)
        if record is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Unknown district: {district}",
            )
        return record

    async def generate(self, request: GenerateRequest) -> GenerateResponse:
        """Handle POST /api/generate requests."""
        result = await self._generators[request.purpose].generate(request.prompt)
        return _generate_response(result)

    async def narrative(self, request: NarrativeRequest) -> NarrativeResponse:
        """Handle POST /api/narrative requests.

        Always returns usable text: the precomputed narrative from the
        request body replaces any upstream failure.
        """
        record = request.to_record()
        result = await self._generators["narrative"].generate(build_narrative_prompt(record))
        if result.ok:
            return NarrativeResponse(narrative=result.text, source="gemini")

        logger.info("Narrative for %s falls back to precomputed text: %s", request.district, result.error)
        if isinstance(result.error, ConfigurationMissing):
            default = "AI narrative unavailable, no API key configured."
        else:
            default = "Narrative generation failed."
        return NarrativeResponse(narrative=fallback_for(record, default), source="precomputed")

    async def policy_dossier(self, request: PolicyDossierRequest) -> GenerateResponse:
        """Handle POST /api/policy-dossier requests.

        Raises:
            HTTPException: 400 if section or district data is missing, or the section is unknown
        """
        if not request.section or not request.district_data:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Missing section or districtData",
            )

        context = AuxContext(
            crop_policy=request.crop_policy or {},
            schemes=request.schemes or [],
            comparables=request.comparables or [],
        )
        try:
            prompt = build_prompt(request.section, request.district_data, context)
        except UnknownSectionError as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e

        result = await self._generators["dossier"].generate(prompt)
        return _generate_response(result)

    async def district_narrative(self, district: str) -> DistrictNarrativeResponse:
        """Handle GET /districts/{district}/narrative requests."""
        record = self._require_district(district)
        context = self._require_catalog().build_context(district)
        result = await self._narratives.request_narrative(record, context)
        return DistrictNarrativeResponse(district=district, text=result.text, source=result.source.value)

    async def district_dossier(self, district: str) -> StreamingResponse:
        """Handle GET /districts/{district}/dossier requests.

        Streams one JSON object per line: section events, then a
        "completed" or "rejected" event. Each request gets its own session,
        so concurrent callers never supersede one another.
        """
        self._require_district(district)
        dossiers = self._dossiers.session()

        async def stream() -> AsyncIterator[str]:
            try:
                async for event in dossiers.request_dossier(district):
                    yield _event_line(event)
            except UnknownEntityError as e:
                yield json.dumps({"event": "error", "detail": str(e)}) + "\n"

        return StreamingResponse(stream(), media_type="application/x-ndjson")

    async def health_check(self) -> HealthCheckResponse:
        """Handle GET /health requests."""
        cache_healthy = self._store.health_check()
        return HealthCheckResponse(
            status="healthy" if cache_healthy else "degraded",
            cache_healthy=cache_healthy,
            api_key_configured=bool(os.getenv("GEMINI_API_KEY")),
            districts_loaded=len(self._catalog) if self._catalog is not None else 0,
            sessions_remaining=self._dossiers.quota.remaining,
        )
