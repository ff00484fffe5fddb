"""Prompt templates for district narratives and dossier sections.

Every builder is a pure function of its inputs. Entity fields are read
defensively: anything missing, blank or NaN renders as ``PLACEHOLDER``
so a prompt never contains "None" or "nan".
"""

import math
from collections.abc import Callable, Mapping
from typing import Any

from policy_narratives.entities import AuxContext
from policy_narratives.prompts.policy_reference import SCHEME_NAMES
from policy_narratives.prompts.sections import Section

PLACEHOLDER = "unknown"
DEFAULT_SHAP_DRIVER = "long-term depletion trend"
NO_COMPARABLES = "No comparable districts found in this depth and dependency range."

ANALYST_PREAMBLE = (
    "You are a senior groundwater policy analyst advising the Tamil Nadu Agriculture Department."
)
STYLE_FOOTER = "No headings, no bullet points, no preamble."


def _raw(record: Mapping[str, Any], field: str) -> Any:
    value = record.get(field)
    if value is None:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    if isinstance(value, str) and not value.strip():
        return None
    return value


def _as_float(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return None if math.isnan(number) else number


def text(record: Mapping[str, Any], field: str, default: str = PLACEHOLDER) -> str:
    """Render a field verbatim; integral floats (CSV artefacts like 2.0) drop the decimal."""
    value = _raw(record, field)
    if value is None:
        return default
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def number(record: Mapping[str, Any], field: str, digits: int = 2, signed: bool = False) -> str:
    """Render a numeric field with fixed precision."""
    value = _raw(record, field)
    parsed = _as_float(value)
    if parsed is None:
        return PLACEHOLDER if value is None else str(value)
    return f"{parsed:+.{digits}f}" if signed else f"{parsed:.{digits}f}"


def percent(record: Mapping[str, Any], field: str) -> str:
    """Render a 0-1 ratio as a whole percentage, rounding halves up."""
    parsed = _as_float(_raw(record, field))
    if parsed is None:
        return PLACEHOLDER
    return f"{math.floor(parsed * 100 + 0.5)}%"


def _note(crop_policy: Mapping[str, Any], field: str) -> str:
    return text(crop_policy, field)


def _scheme_list(schemes: list[str]) -> str:
    if not schemes:
        return "none listed"
    return "; ".join(f"{code}: {SCHEME_NAMES[code]}" if code in SCHEME_NAMES else code for code in schemes)


def build_narrative_prompt(entity: Mapping[str, Any], context: AuxContext | None = None) -> str:
    """Build the single short policy brief prompt for one district.

    When ``context`` lists scheme eligibility it is added to the data block.
    """
    schemes = ""
    if context is not None and context.schemes:
        schemes = f"\nGovernment scheme eligibility: {_scheme_list(context.schemes)}"
    return f"""You are a groundwater policy analyst advising the Tamil Nadu state government.
Using only the data below, write a 3-sentence policy brief (maximum 80 words) that:
1. States the core groundwater problem with specific numbers
2. Identifies the primary driver from the SHAP analysis
3. Gives one clear, specific actionable recommendation

District: {text(entity, "District")}
Predicted GW depth (next year): {number(entity, "CASA_Pred_1yr")}m below ground
Water table trend: {number(entity, "GW_Trend_m_per_yr", signed=True)}m per year
Urgency tier: Tier {text(entity, "Tier")} of 4
Pump-fed irrigation dependency: {percent(entity, "GW_Dep_Ratio")}
Recommended crop transition: {text(entity, "Recommended_Crop")}
Potential water saving from transition: {number(entity, "Potential_Water_Saving_pct", digits=1)}%
Primary model driver (SHAP): {text(entity, "SHAP_Top_Driver_Label", DEFAULT_SHAP_DRIVER)}
Flood risk level: {text(entity, "Flood_Risk")}
Drought risk level: {text(entity, "Drought_Risk")}{schemes}

Write only the brief. {STYLE_FOOTER}"""


def _recommendation(d: Mapping[str, Any], context: AuxContext) -> str:
    district = text(d, "District")
    policy = context.crop_policy
    return f"""{ANALYST_PREAMBLE}

District: {district}
Urgency Tier: Tier {text(d, "Tier")} ({text(d, "Tier_Label")})
Predicted GW depth (1yr): {number(d, "CASA_Pred_1yr")}m below ground
Predicted GW depth (5yr): {number(d, "CASA_Pred_5yr")}m below ground
Water table trend: {number(d, "GW_Trend_m_per_yr", signed=True)}m per year
Groundwater dependency: {percent(d, "GW_Dep_Ratio")} pump-fed
Recommendation type: {text(d, "Recommendation_Type")}
Recommended crop: {text(d, "Recommended_Crop")}
Current dominant crop: {text(d, "Rec_Crop_Original", text(d, "Recommended_Crop"))}
Water saving potential: {number(d, "Potential_Water_Saving_pct", digits=1)}%
Primary model driver (SHAP): {text(d, "SHAP_Top_Driver_Label", DEFAULT_SHAP_DRIVER)}

Government scheme eligibility: {_scheme_list(context.schemes)}

TNAU crop guidance: {_note(policy, "tnau_recommendation")}
PMKSY eligibility: {_note(policy, "pmksy_note")}
Market context: {_note(policy, "market_note")}
Implementation challenges: {_note(policy, "challenges")}

Write 3-4 sentences explaining WHY this specific recommendation was made for {district}.
Reference the actual depth numbers, trend, and GW dependency.
Mention which government schemes support this transition.
Be specific to Tamil Nadu agricultural context and avoid generic advice.
Write in plain English suitable for a district agricultural officer.
{STYLE_FOOTER}"""


def _feasibility(d: Mapping[str, Any], context: AuxContext) -> str:
    district = text(d, "District")
    policy = context.crop_policy
    return f"""{ANALYST_PREAMBLE}

District: {district}
Feasibility score: {text(d, "Feasibility_Score")}/100 ({text(d, "Feasibility_Label")})
Recommendation type: {text(d, "Recommendation_Type")}
Recommended crop: {text(d, "Recommended_Crop")}
Water saving potential: {number(d, "Potential_Water_Saving_pct", digits=1)}%
GW dependency: {percent(d, "GW_Dep_Ratio")}
Canal dependency: {percent(d, "Canal_Dep_Ratio")}
GW trend: {number(d, "GW_Trend_m_per_yr", signed=True)}m per year

Crop market context: {_note(policy, "market_note")}
Crop challenges: {_note(policy, "challenges")}
Water saving context: {_note(policy, "water_saving_note")}

Write 3-4 sentences analysing the feasibility score for {district}.
Explain specifically what is helping or hurting feasibility.
If feasibility is Low or Medium, identify the one main barrier and suggest how it could be addressed.
Be specific to Tamil Nadu agricultural and infrastructure context.
{STYLE_FOOTER}"""


def _contingency(d: Mapping[str, Any], context: AuxContext) -> str:
    district = text(d, "District")
    return f"""{ANALYST_PREAMBLE}

District: {district}
GW depth: {number(d, "CASA_Pred_1yr")}m
GW dependency: {percent(d, "GW_Dep_Ratio")}
Flood risk: {text(d, "Flood_Risk")}
Drought risk: {text(d, "Drought_Risk")}
NE monsoon actual vs normal: {number(d, "NE_Monsoon_Actual_mm", digits=0)}mm vs {number(d, "NE_Monsoon_Normal_mm", digits=0)}mm normal
SW monsoon actual vs normal: {number(d, "SW_Monsoon_Actual_mm", digits=0)}mm vs {number(d, "SW_Monsoon_Normal_mm", digits=0)}mm normal
Fallback crop: {text(d, "Drought_Fallback_Crop")}

Write 3-4 sentences describing the combined flood and drought risk picture for {district} across the full agricultural year.
Explain how the Samba and Kuruvai seasons are each affected.
Reference the actual monsoon numbers.
Mention what the fallback crop option means for farmer income stability.
Be specific to Tamil Nadu cropping calendar context.
{STYLE_FOOTER}"""


def _comparable_line(c: Mapping[str, Any]) -> str:
    return (
        f"{text(c, 'District')}: depth {number(c, 'CASA_Pred_1yr')}m, "
        f"{percent(c, 'GW_Dep_Ratio')} GW dep, Tier {text(c, 'Tier')}, "
        f"feasibility {text(c, 'Feasibility_Score')}, "
        f"rec: {text(c, 'Recommended_Crop')} ({text(c, 'Recommendation_Type')})"
    )


def _comparable(d: Mapping[str, Any], context: AuxContext) -> str:
    district = text(d, "District")
    comparables = "\n".join(_comparable_line(c) for c in context.comparables) or NO_COMPARABLES
    return f"""{ANALYST_PREAMBLE}

District being analysed: {district}
Depth: {number(d, "CASA_Pred_1yr")}m, GW dep: {percent(d, "GW_Dep_Ratio")}, Tier {text(d, "Tier")}, feasibility: {text(d, "Feasibility_Score")}

Comparable districts facing similar groundwater stress:
{comparables}

Write 3-4 sentences comparing {district} to these comparable districts.
Identify whether {district} is doing better or worse on feasibility and why.
If a comparable district has a higher feasibility score, explain what {district} could learn from it.
Be specific and reference actual numbers from the comparable districts.
{STYLE_FOOTER}"""


_BUILDERS: dict[Section, Callable[[Mapping[str, Any], AuxContext], str]] = {
    Section.RECOMMENDATION: _recommendation,
    Section.FEASIBILITY: _feasibility,
    Section.CONTINGENCY: _contingency,
    Section.COMPARABLE: _comparable,
}


def build_prompt(
    section: Section | str,
    entity: Mapping[str, Any],
    context: AuxContext | None = None,
) -> str:
    """Build the prompt for one dossier section.

    Args:
        section: Section id (enum member or its string value)
        entity: Precomputed district record
        context: Crop policy, schemes and comparables; empty when omitted

    Returns:
        The prompt string

    Raises:
        UnknownSectionError: If ``section`` is not a known section
    """
    builder = _BUILDERS[Section.parse(section)]
    return builder(entity, context or AuxContext())
