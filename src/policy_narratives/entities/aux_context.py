"""Auxiliary prompt context entity."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class AuxContext:
    """Lookup data supplied alongside an entity record.

    Attributes:
        crop_policy: Policy notes for the recommended crop
        schemes: Government scheme codes the district is eligible for
        comparables: Records of districts under similar groundwater stress
    """

    crop_policy: Mapping[str, Any] = field(default_factory=dict)
    schemes: list[str] = field(default_factory=list)
    comparables: list[Mapping[str, Any]] = field(default_factory=list)
