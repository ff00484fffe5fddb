"""Prompt construction for narratives and dossier sections."""

from .builder import PLACEHOLDER, build_narrative_prompt, build_prompt
from .policy_reference import SCHEME_NAMES, get_crop_policy, get_schemes_for_district
from .sections import DOSSIER_SECTIONS, Section

__all__ = [
    "DOSSIER_SECTIONS",
    "PLACEHOLDER",
    "SCHEME_NAMES",
    "Section",
    "build_narrative_prompt",
    "build_prompt",
    "get_crop_policy",
    "get_schemes_for_district",
]
