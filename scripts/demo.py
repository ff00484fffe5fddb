#!/usr/bin/env python3
"""
Demo script for policy narratives.

This script runs a narrative and a full dossier for one district, then
repeats both to show the cache, the cooldown and the session cap. Without
GEMINI_API_KEY every section falls back to the precomputed narrative.

Usage:
    python scripts/demo.py [District]
"""

import asyncio
import sys

from policy_narratives.config import settings
from policy_narratives.entities import DossierCompleted, DossierRejected, SectionCompleted
from policy_narratives.repositories import DistrictCatalog, create_result_store, create_upstream_client
from policy_narratives.services import (
    DossierOrchestrator,
    NarrativeService,
    ResultCache,
    SessionQuotaGuard,
)

SAMPLE_DISTRICTS = [
    {
        "District": "Salem",
        "CASA_Pred_1yr": 12.4,
        "CASA_Pred_5yr": 14.1,
        "GW_Trend_m_per_yr": -0.42,
        "Tier": 1,
        "Tier_Label": "Critical",
        "GW_Dep_Ratio": 0.78,
        "Recommended_Crop": "Bajra",
        "Recommendation_Type": "Crop Shift",
        "Potential_Water_Saving_pct": 68.5,
        "Feasibility_Score": 62,
        "Feasibility_Label": "Medium",
        "Flood_Risk": "Low",
        "Drought_Risk": "High",
        "Policy_Narrative": "Salem is drawing down its aquifer faster than monsoon recharge can restore it.",
    },
    {
        "District": "Erode",
        "CASA_Pred_1yr": 11.6,
        "GW_Trend_m_per_yr": -0.21,
        "Tier": 2,
        "GW_Dep_Ratio": 0.70,
        "Recommended_Crop": "Maize",
        "Recommendation_Type": "Crop Shift",
        "Feasibility_Score": 71,
        "Policy_Narrative": "Erode has room to shift crops before depletion becomes critical.",
    },
]


def print_section(title: str) -> None:
    """Print a section header."""
    print("\n" + "=" * 70)
    print(f"  {title}")
    print("=" * 70)


def load_catalog() -> DistrictCatalog:
    if settings.district_data_path:
        return DistrictCatalog.from_csv(settings.district_data_path)
    print("DISTRICT_DATA_PATH not set, using built-in sample districts")
    return DistrictCatalog(SAMPLE_DISTRICTS)


async def demo_narrative(catalog: DistrictCatalog, cache: ResultCache, district: str) -> None:
    """Request the same narrative twice."""
    print_section(f"Narrative for {district}")

    service = NarrativeService(upstream=create_upstream_client("narrative"), cache=cache)
    record = catalog.get(district)
    context = catalog.build_context(district)

    for attempt in (1, 2):
        result = await service.request_narrative(record, context)
        print(f"\n  Attempt {attempt} [{result.source.value}]")
        print(f"  {result.text}")


async def demo_dossier(orchestrator: DossierOrchestrator, district: str) -> None:
    """Run a dossier and print each event as it arrives."""
    print_section(f"Dossier for {district}")
    print(f"  Sessions remaining: {orchestrator.quota.remaining}")

    async for event in orchestrator.request_dossier(district):
        if isinstance(event, SectionCompleted):
            print(f"\n  📄 {event.section} ({event.completed_count}/4, {event.source})")
            print(f"  {event.text}")
        elif isinstance(event, DossierCompleted):
            origin = "cache" if event.from_cache else "fresh run"
            print(f"\n  ✓ Dossier complete from {origin}: {', '.join(event.sections)}")
        elif isinstance(event, DossierRejected):
            retry = f", retry in {event.retry_after:.0f}s" if event.retry_after else ""
            print(f"\n  ✗ Rejected: {event.reason.value}{retry}")


async def run(district: str) -> None:
    catalog = load_catalog()
    if district not in catalog:
        print(f"\n❌ Unknown district: {district}. Known: {', '.join(catalog.districts)}")
        return

    cache = ResultCache(store=create_result_store())
    orchestrator = DossierOrchestrator(
        upstream=create_upstream_client("dossier"),
        cache=cache,
        catalog=catalog,
        quota=SessionQuotaGuard(cap=1),
    )

    await demo_narrative(catalog, cache, district)
    await demo_dossier(orchestrator, district)

    # Second request for the same district replays the cache
    await demo_dossier(orchestrator, district)

    # Any other uncached district now hits the session cap of 1
    other = next((d for d in catalog.districts if d != district), None)
    if other is not None:
        await demo_dossier(orchestrator, other)


def main() -> None:
    """Run all demos."""
    district = sys.argv[1] if len(sys.argv) > 1 else "Salem"

    print("\n🚀 Policy Narratives Demo")
    print("=" * 70)
    print(f"Upstream mode: {settings.upstream_mode}, cache backend: {settings.cache_backend}")

    try:
        asyncio.run(run(district))

        print("\n" + "=" * 70)
        print("✅ Demo completed successfully!")
        print("=" * 70)

    except Exception as e:
        print(f"\n❌ Error: {e}")
        print("\nWith CACHE_BACKEND=redis make sure Redis is running:")
        print("  docker compose up -d")


if __name__ == "__main__":
    main()
