"""Dependency injection configuration for FastAPI app.

Uses FastAPI's app.state pattern for storing service instances.

Pattern:
    - Services stored in app.state during lifespan
    - Dependency functions retrieve from request.app.state
    - Clean separation, no global mutable state
"""

import logging
from contextlib import asynccontextmanager
from typing import Annotated

from fastapi import Depends, FastAPI, Request

from policy_narratives.config import settings
from policy_narratives.handlers import NarrativeHandler
from policy_narratives.repositories import (
    DistrictCatalog,
    GeminiUpstreamClient,
    create_result_store,
    create_upstream_client,
)
from policy_narratives.services import DossierOrchestrator, NarrativeService, ResultCache

logger = logging.getLogger(__name__)


def get_handler(request: Request) -> NarrativeHandler:
    """Dependency injection for NarrativeHandler from app.state.

    Args:
        request: FastAPI Request object

    Returns:
        The NarrativeHandler instance from app.state

    Raises:
        RuntimeError: If handler is not initialized
    """
    handler = getattr(request.app.state, "narrative_handler", None)
    if handler is None:
        raise RuntimeError("NarrativeHandler not initialized. Check lifespan setup.")
    return handler


def load_catalog(path: str | None) -> DistrictCatalog | None:
    """Load the district CSV, or return None when it is not configured or unreadable."""
    if not path:
        logger.warning("DISTRICT_DATA_PATH not set; district endpoints will answer 503")
        return None
    try:
        return DistrictCatalog.from_csv(path)
    except (OSError, ValueError) as e:
        logger.error("Could not load district data from %s: %s", path, e)
        return None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for FastAPI app.

    Initializes all layers and stores in app.state:
    1. Repositories (result store, upstream clients, district catalog)
    2. Services (result cache, narrative service, dossier orchestrator)
    3. Handler (HTTP endpoints) - stored in app.state.narrative_handler

    Args:
        app: The FastAPI application instance

    Yields:
        None

    Cleanup:
        Closes HTTP clients and removes all services from app.state on shutdown
    """
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    store = create_result_store()
    cache = ResultCache(store=store)
    catalog = load_catalog(settings.district_data_path)

    # Services follow UPSTREAM_MODE; the /api/* endpoints always call Gemini directly
    narrative_upstream = create_upstream_client("narrative")
    dossier_upstream = create_upstream_client("dossier")
    generators = {
        "narrative": GeminiUpstreamClient.create(max_output_tokens=settings.narrative_max_output_tokens),
        "dossier": GeminiUpstreamClient.create(max_output_tokens=settings.dossier_max_output_tokens),
    }

    narrative_service = NarrativeService(upstream=narrative_upstream, cache=cache)
    orchestrator = DossierOrchestrator(
        upstream=dossier_upstream,
        cache=cache,
        catalog=catalog or DistrictCatalog([]),
    )
    narrative_handler = NarrativeHandler(
        generators=generators,
        narratives=narrative_service,
        dossiers=orchestrator,
        catalog=catalog,
        store=store,
    )

    # Store in app.state (FastAPI pattern)
    app.state.result_cache = cache
    app.state.narrative_service = narrative_service
    app.state.dossier_orchestrator = orchestrator
    app.state.narrative_handler = narrative_handler

    logger.info("Upstream mode: %s (model %s)", settings.upstream_mode, settings.gemini_model)
    logger.info("Cache backend: %s, healthy: %s", settings.cache_backend, store.health_check())
    logger.info("Districts loaded: %d", len(catalog) if catalog is not None else 0)

    yield

    for client in (narrative_upstream, dossier_upstream, *generators.values()):
        await client.close()

    del app.state.narrative_handler
    del app.state.dossier_orchestrator
    del app.state.narrative_service
    del app.state.result_cache
    logger.info("Narrative service shut down")


# Type aliases for cleaner dependency injection
HandlerDep = Annotated[NarrativeHandler, Depends(get_handler)]
