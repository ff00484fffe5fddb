"""
Shared fakes and fixtures for the policy narratives tests.
"""

import asyncio

import pytest

from policy_narratives.entities import GenerationResult
from policy_narratives.errors import StoreError
from policy_narratives.repositories import DistrictCatalog


class FakeUpstream:
    """Scripted UpstreamClient that records every prompt it receives."""

    def __init__(self, responses=None, default=None):
        self.prompts = []
        self.on_call = None
        self._responses = list(responses or [])
        self.default = default or GenerationResult.success("Generated text.")

    async def generate(self, prompt):
        self.prompts.append(prompt)
        if self.on_call is not None:
            self.on_call(len(self.prompts))
        await asyncio.sleep(0)
        if self._responses:
            return self._responses.pop(0)
        return self.default

    @property
    def calls(self):
        return len(self.prompts)


class MemoryStore:
    """In-memory ResultStore."""

    def __init__(self):
        self.data = {}

    def read(self, key):
        return self.data.get(key)

    def write(self, key, value):
        self.data[key] = value

    def health_check(self):
        return True


class BrokenStore:
    """ResultStore whose medium is always unavailable."""

    def read(self, key):
        raise StoreError("medium unavailable")

    def write(self, key, value):
        raise StoreError("medium unavailable")

    def health_check(self):
        return False


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class RecordingSleep:
    """Replaces asyncio.sleep; records delays and yields once without waiting."""

    def __init__(self, on_sleep=None):
        self.delays = []
        self.on_sleep = on_sleep

    async def __call__(self, seconds):
        self.delays.append(seconds)
        if self.on_sleep is not None:
            self.on_sleep()
        await asyncio.sleep(0)


def collect(events):
    """Drain an async iterator of events into a list."""

    async def drain():
        return [event async for event in events]

    return asyncio.run(drain())


SALEM = {
    "District": "Salem",
    "CASA_Pred_1yr": 12.4,
    "CASA_Pred_5yr": 14.1,
    "GW_Trend_m_per_yr": -0.42,
    "Tier": 1,
    "Tier_Label": "Critical",
    "GW_Dep_Ratio": 0.78,
    "Canal_Dep_Ratio": 0.05,
    "Recommended_Crop": "Bajra",
    "Rec_Crop_Original": "Rice",
    "Recommendation_Type": "Crop Shift",
    "Potential_Water_Saving_pct": 68.5,
    "SHAP_Top_Driver_Label": "Pump density",
    "Feasibility_Score": 62,
    "Feasibility_Label": "Medium",
    "Flood_Risk": "Low",
    "Drought_Risk": "High",
    "NE_Monsoon_Actual_mm": 310.0,
    "NE_Monsoon_Normal_mm": 420.0,
    "SW_Monsoon_Actual_mm": 380.0,
    "SW_Monsoon_Normal_mm": 400.0,
    "Drought_Fallback_Crop": "Horse gram",
    "Policy_Narrative": "Salem precomputed narrative.",
}

ERODE = {
    "District": "Erode",
    "CASA_Pred_1yr": 11.6,
    "Tier": 2,
    "GW_Dep_Ratio": 0.70,
    "Recommended_Crop": "Maize",
    "Recommendation_Type": "Crop Shift",
    "Feasibility_Score": 71,
    "Policy_Narrative": "Erode precomputed narrative.",
}

NAMAKKAL = {
    "District": "Namakkal",
    "CASA_Pred_1yr": 12.0,
    "Tier": 1,
    "GW_Dep_Ratio": 0.90,
    "Recommended_Crop": "Groundnut",
    "Recommendation_Type": "Crop Shift",
    "Feasibility_Score": 55,
    "Policy_Narrative": "Namakkal precomputed narrative.",
}

MADURAI = {
    "District": "Madurai",
    "CASA_Pred_1yr": 20.0,
    "Tier": 3,
    "GW_Dep_Ratio": 0.40,
    "Recommended_Crop": "Rice",
    "Policy_Narrative": "Madurai precomputed narrative.",
}


@pytest.fixture
def catalog():
    """Catalog of four districts; Namakkal and Erode are comparable to Salem."""
    return DistrictCatalog([SALEM, ERODE, NAMAKKAL, MADURAI])


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def clock():
    return FakeClock()
