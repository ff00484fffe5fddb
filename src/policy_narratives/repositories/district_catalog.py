"""Precomputed district records and the auxiliary context built from them.

The CSV is produced by the forecasting pipeline outside this project;
its schema is owned there. Rows are read as plain dictionaries and
never validated here.
"""

import math
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

import pandas as pd

from policy_narratives.entities import AuxContext
from policy_narratives.prompts import get_crop_policy, get_schemes_for_district

# Similarity window for comparable districts
COMPARABLE_DEPTH_M = 1.5
COMPARABLE_TIER = 1
COMPARABLE_GW_DEP = 0.15
MAX_COMPARABLES = 3


def _num(record: Mapping[str, Any], field: str) -> float:
    value = record.get(field)
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return 0.0 if math.isnan(number) else number


class DistrictCatalog:
    """Lookup over district records keyed by their ``District`` field.

    Example:
        ```python
        catalog = DistrictCatalog.from_csv("data/district_forecasts.csv")
        record = catalog.get("Salem")
        context = catalog.build_context("Salem")
        ```
    """

    def __init__(self, records: Iterable[Mapping[str, Any]]) -> None:
        self._records: dict[str, dict[str, Any]] = {}
        for record in records:
            district = record.get("District")
            if district is None or (isinstance(district, float) and math.isnan(district)):
                continue
            self._records[str(district).strip()] = dict(record)

    @classmethod
    def from_csv(cls, path: str | Path) -> "DistrictCatalog":
        """Load records from a CSV file.

        Empty cells become None rather than NaN.
        """
        frame = pd.read_csv(path)
        frame = frame.astype(object).where(frame.notna(), None)
        return cls(frame.to_dict(orient="records"))

    def __contains__(self, district: object) -> bool:
        return district in self._records

    def __len__(self) -> int:
        return len(self._records)

    @property
    def districts(self) -> list[str]:
        return sorted(self._records)

    def get(self, district: str) -> dict[str, Any] | None:
        """Get the record for a district, or None if unknown."""
        return self._records.get(district)

    def find_comparables(self, district: str) -> list[dict[str, Any]]:
        """Find up to three districts under similar groundwater stress.

        A district is comparable when its 1-year depth is within 1.5m,
        its tier within one step and its GW dependency within 0.15.
        Results are ordered by depth distance, closest first.
        """
        target = self._records.get(district)
        if target is None:
            return []

        depth = _num(target, "CASA_Pred_1yr")
        tier = _num(target, "Tier")
        dependency = _num(target, "GW_Dep_Ratio")

        matches = [
            record
            for name, record in self._records.items()
            if name != district
            and abs(_num(record, "CASA_Pred_1yr") - depth) <= COMPARABLE_DEPTH_M
            and abs(_num(record, "Tier") - tier) <= COMPARABLE_TIER
            and abs(_num(record, "GW_Dep_Ratio") - dependency) <= COMPARABLE_GW_DEP
        ]
        matches.sort(key=lambda r: abs(_num(r, "CASA_Pred_1yr") - depth))
        return matches[:MAX_COMPARABLES]

    def build_context(self, district: str) -> AuxContext:
        """Assemble crop policy, scheme eligibility and comparables for a district."""
        record = self._records.get(district) or {}
        return AuxContext(
            crop_policy=get_crop_policy(record.get("Recommended_Crop")),
            schemes=get_schemes_for_district(district),
            comparables=self.find_comparables(district),
        )
