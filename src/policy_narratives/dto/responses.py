"""Response DTOs for API endpoints."""

from pydantic import BaseModel, Field


class GenerateResponse(BaseModel):
    """Response DTO for the raw generation proxy and single dossier sections."""

    text: str | None = Field(None, description="Generated text, null on failure")
    source: str = Field(..., description="'gemini', 'no_key' or 'error'")
    error: str | None = Field(None, description="Failure detail when text is null")


class NarrativeResponse(BaseModel):
    """Response DTO for a one-off narrative (always carries usable text)."""

    narrative: str = Field(..., description="Narrative text")
    source: str = Field(..., description="'gemini' or 'precomputed'")


class DistrictNarrativeResponse(BaseModel):
    """Response DTO for a catalog-backed district narrative."""

    district: str
    text: str
    source: str = Field(..., description="'live', 'cached' or 'precomputed'")


class HealthCheckResponse(BaseModel):
    """Response DTO for health check."""

    status: str = Field(..., description="Health status: 'healthy' or 'degraded'")
    cache_healthy: bool = Field(..., description="Whether the durable cache medium is reachable")
    api_key_configured: bool = Field(..., description="Whether GEMINI_API_KEY is set on the server")
    districts_loaded: int = Field(..., description="Number of districts in the catalog", ge=0)
    sessions_remaining: int = Field(..., description="Dossier sessions left before the cap", ge=0)
