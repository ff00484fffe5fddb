from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse

from policy_narratives.api.dependencies import HandlerDep, lifespan
from policy_narratives.config import settings
from policy_narratives.dto import (
    DistrictNarrativeResponse,
    GenerateRequest,
    GenerateResponse,
    HealthCheckResponse,
    NarrativeRequest,
    NarrativeResponse,
    PolicyDossierRequest,
)

app = FastAPI(
    title="Groundwater Policy Narratives API",
    description="AI narratives and policy dossiers for district groundwater forecasts",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,  # type: ignore[arg-type]
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
async def root() -> dict[str, Any]:
    """Root endpoint with API information."""
    return {
        "name": "Groundwater Policy Narratives API",
        "version": "0.1.0",
        "description": "AI narratives and policy dossiers for district groundwater forecasts",
        "endpoints": {
            "generate": "/api/generate",
            "narrative": "/api/narrative",
            "policy_dossier": "/api/policy-dossier",
            "district_narrative": "/districts/{district}/narrative",
            "district_dossier": "/districts/{district}/dossier",
            "health": "/health",
            "docs": "/docs",
        },
    }


@app.get("/health", response_model=HealthCheckResponse)
async def health(handler: HandlerDep) -> HealthCheckResponse:
    """Health check endpoint."""
    return await handler.health_check()


@app.post("/api/generate", response_model=GenerateResponse)
async def generate(request: GenerateRequest, handler: HandlerDep) -> GenerateResponse:
    """
    Generate text for a prompt with the server-held API key.

    Args:
        request: Prompt and purpose ("narrative" or "dossier").

    Returns:
        Generated text with source "gemini", or a null text with source "no_key" or "error".
    """
    return await handler.generate(request)


@app.post("/api/narrative", response_model=NarrativeResponse)
async def narrative(request: NarrativeRequest, handler: HandlerDep) -> NarrativeResponse:
    """
    Generate a policy brief from district forecast fields.

    Falls back to the request's precomputed narrative on any failure.
    """
    return await handler.narrative(request)


@app.post("/api/policy-dossier", response_model=GenerateResponse)
async def policy_dossier(request: PolicyDossierRequest, handler: HandlerDep) -> GenerateResponse:
    """Generate one dossier section from district data and auxiliary context."""
    return await handler.policy_dossier(request)


@app.get("/districts/{district}/narrative", response_model=DistrictNarrativeResponse)
async def district_narrative(district: str, handler: HandlerDep) -> DistrictNarrativeResponse:
    """Cached, live or precomputed narrative for a catalog district."""
    return await handler.district_narrative(district)


@app.get("/districts/{district}/dossier")
async def district_dossier(district: str, handler: HandlerDep) -> StreamingResponse:
    """Stream dossier events for a catalog district as newline-delimited JSON."""
    return await handler.district_dossier(district)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "policy_narratives.api.app:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
    )
