"""Request DTOs for API endpoints."""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class GenerateRequest(BaseModel):
    """Request DTO for the raw generation proxy."""

    prompt: str = Field(..., description="Prompt to forward to Gemini", min_length=1)
    purpose: Literal["narrative", "dossier"] = Field(
        "dossier",
        description="Selects the server's output-length constant",
    )


class NarrativeRequest(BaseModel):
    """Request DTO for a one-off district narrative.

    Field names follow the dashboard's normalized payload; ``to_record``
    maps them back onto the precomputed CSV column names.
    """

    district: str = Field(..., description="District name", min_length=1)
    depth: float | None = Field(None, description="Predicted GW depth next year (m below ground)")
    trend: float | None = Field(0, description="Water table trend (m/year)")
    tier: float | None = Field(None, description="Urgency tier, 1 (critical) to 4")
    recommended_crop: str | None = None
    water_saving: float | None = Field(None, description="Potential water saving (%)")
    gw_dependency: float | None = Field(0, description="Pump-fed share of irrigation (0-1)")
    shap_top_driver: str | None = None
    flood_risk: str | None = None
    drought_risk: str | None = None
    fallback_narrative: str | None = Field(None, description="Precomputed narrative used on failure")

    def to_record(self) -> dict[str, Any]:
        return {
            "District": self.district,
            "CASA_Pred_1yr": self.depth,
            "GW_Trend_m_per_yr": self.trend,
            "Tier": self.tier,
            "Recommended_Crop": self.recommended_crop,
            "Potential_Water_Saving_pct": self.water_saving,
            "GW_Dep_Ratio": self.gw_dependency,
            "SHAP_Top_Driver_Label": self.shap_top_driver,
            "Flood_Risk": self.flood_risk,
            "Drought_Risk": self.drought_risk,
            "Policy_Narrative": self.fallback_narrative,
        }


class PolicyDossierRequest(BaseModel):
    """Request DTO for one dossier section generated server-side.

    Accepts the dashboard's camelCase keys as well as snake_case.
    Presence of ``section`` and ``district_data`` is checked by the handler
    so a missing value is a 400, not a validation 422.
    """

    model_config = ConfigDict(populate_by_name=True)

    section: str | None = None
    district_data: dict[str, Any] | None = Field(None, alias="districtData")
    crop_policy: dict[str, Any] | None = Field(None, alias="cropPolicy")
    schemes: list[str] | None = None
    comparables: list[dict[str, Any]] | None = None
