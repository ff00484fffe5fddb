"""
Tests for the policy narratives API.
"""

import asyncio
import json

import httpx
import pytest
from fastapi.testclient import TestClient

from conftest import FakeUpstream, MemoryStore, RecordingSleep
from policy_narratives.api.app import app
from policy_narratives.api.dependencies import get_handler
from policy_narratives.entities import GenerationResult
from policy_narratives.errors import ConfigurationMissing, UpstreamTransportError
from policy_narratives.handlers import NarrativeHandler
from policy_narratives.repositories import DistrictCatalog
from policy_narratives.services import (
    CooldownGuard,
    DossierOrchestrator,
    NarrativeService,
    ResultCache,
    SessionQuotaGuard,
)


@pytest.fixture
def generators():
    return {
        "narrative": FakeUpstream(default=GenerationResult.success("Server narrative.")),
        "dossier": FakeUpstream(default=GenerationResult.success("Server section.")),
    }


def build_handler(generators, catalog, upstream=None, cooldown=None):
    store = MemoryStore()
    cache = ResultCache(store=store)
    upstream = upstream or FakeUpstream(default=GenerationResult.success("Live text."))
    return NarrativeHandler(
        generators=generators,
        narratives=NarrativeService(upstream=upstream, cache=cache),
        dossiers=DossierOrchestrator(
            upstream=upstream,
            cache=cache,
            catalog=catalog or DistrictCatalog([]),
            quota=SessionQuotaGuard(cap=10),
            cooldown=cooldown,
            sleep=RecordingSleep(),
        ),
        catalog=catalog,
        store=store,
    )


@pytest.fixture
def client(generators, catalog):
    """Create a test client backed by fake upstreams."""
    handler = build_handler(generators, catalog)
    app.dependency_overrides[get_handler] = lambda: handler
    yield TestClient(app)
    app.dependency_overrides.clear()


def use_handler(handler):
    app.dependency_overrides[get_handler] = lambda: handler


def test_root(client):
    """Test root endpoint."""
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["name"] == "Groundwater Policy Narratives API"


def test_health(client, monkeypatch):
    """Test health check endpoint."""
    monkeypatch.setenv("GEMINI_API_KEY", "test-key")
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["api_key_configured"] is True
    assert data["districts_loaded"] == 4
    assert data["sessions_remaining"] == 10


def test_generate(client, generators):
    """Test raw generation endpoint."""
    response = client.post("/api/generate", json={"prompt": "Explain Salem.", "purpose": "narrative"})
    assert response.status_code == 200
    assert response.json() == {"text": "Server narrative.", "source": "gemini", "error": None}
    assert generators["narrative"].prompts == ["Explain Salem."]
    assert generators["dossier"].calls == 0


def test_generate_without_key(client, generators):
    generators["dossier"].default = GenerationResult.failure(ConfigurationMissing("no key"))
    response = client.post("/api/generate", json={"prompt": "Explain Salem."})

    assert response.status_code == 200
    data = response.json()
    assert data["text"] is None
    assert data["source"] == "no_key"


def test_generate_upstream_error(client, generators):
    generators["dossier"].default = GenerationResult.failure(UpstreamTransportError("Gemini 500", 500))
    data = client.post("/api/generate", json={"prompt": "Explain Salem."}).json()

    assert data["source"] == "error"
    assert "500" in data["error"]


def test_generate_rejects_empty_prompt(client):
    response = client.post("/api/generate", json={"prompt": ""})
    assert response.status_code == 422


def test_narrative(client, generators):
    """Test one-off narrative endpoint."""
    response = client.post(
        "/api/narrative",
        json={"district": "Salem", "depth": 12.4, "tier": 1, "gw_dependency": 0.78},
    )
    assert response.status_code == 200
    assert response.json() == {"narrative": "Server narrative.", "source": "gemini"}
    assert "District: Salem" in generators["narrative"].prompts[0]


def test_narrative_falls_back(client, generators):
    generators["narrative"].default = GenerationResult.failure(UpstreamTransportError("down"))
    response = client.post(
        "/api/narrative",
        json={"district": "Salem", "fallback_narrative": "Precomputed brief."},
    )
    assert response.json() == {"narrative": "Precomputed brief.", "source": "precomputed"}


@pytest.mark.parametrize(
    "tier, rendered",
    [(7, "Tier 7 of 4"), (2.0, "Tier 2 of 4"), (2.5, "Tier 2.5 of 4"), (0, "Tier 0 of 4")],
)
def test_narrative_accepts_any_tier(client, generators, tier, rendered):
    """Tier values outside 1-4 are passed through rather than rejected."""
    response = client.post("/api/narrative", json={"district": "Salem", "tier": tier})
    assert response.status_code == 200
    assert response.json()["source"] == "gemini"
    assert rendered in generators["narrative"].prompts[0]


def test_policy_dossier_section(client, generators):
    """Test single dossier section endpoint."""
    response = client.post(
        "/api/policy-dossier",
        json={
            "section": "comparable",
            "districtData": {"District": "Salem", "CASA_Pred_1yr": 12.4},
            "comparables": [{"District": "Erode", "CASA_Pred_1yr": 11.6}],
        },
    )
    assert response.status_code == 200
    assert response.json()["text"] == "Server section."
    assert "Erode: depth 11.60m" in generators["dossier"].prompts[0]


@pytest.mark.parametrize(
    "body",
    [
        {"districtData": {"District": "Salem"}},
        {"section": "recommendation"},
        {"section": "summary", "districtData": {"District": "Salem"}},
    ],
)
def test_policy_dossier_bad_request(client, generators, body):
    response = client.post("/api/policy-dossier", json=body)
    assert response.status_code == 400
    assert generators["dossier"].calls == 0


def test_district_narrative(client):
    """Live narrative first, then the cached copy."""
    first = client.get("/districts/Salem/narrative")
    second = client.get("/districts/Salem/narrative")

    assert first.status_code == 200
    assert first.json() == {"district": "Salem", "text": "Live text.", "source": "live"}
    assert second.json()["source"] == "cached"


def test_unknown_district(client):
    assert client.get("/districts/Atlantis/narrative").status_code == 404
    assert client.get("/districts/Atlantis/dossier").status_code == 404


def test_district_dossier_stream(client):
    """Dossier events stream as newline-delimited JSON."""
    response = client.get("/districts/Salem/dossier")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("application/x-ndjson")

    events = [json.loads(line) for line in response.text.splitlines()]
    assert [e["event"] for e in events] == ["section"] * 4 + ["completed"]
    assert events[0]["section"] == "recommendation"
    assert events[-1]["from_cache"] is False

    replay = [json.loads(line) for line in client.get("/districts/Salem/dossier").text.splitlines()]
    assert replay == [
        {"event": "completed", "entity_key": "Salem", "sections": events[-1]["sections"], "from_cache": True}
    ]


def test_district_dossier_rejected_when_cooling_down(generators, catalog):
    cooldown = CooldownGuard(duration=60)
    cooldown.arm("Erode")
    use_handler(build_handler(generators, catalog, cooldown=cooldown))
    try:
        response = TestClient(app).get("/districts/Erode/dossier")
    finally:
        app.dependency_overrides.clear()

    events = [json.loads(line) for line in response.text.splitlines()]
    assert len(events) == 1
    assert events[0]["event"] == "rejected"
    assert events[0]["reason"] == "cooldown_active"
    assert events[0]["retry_after"] > 0


def dossier_streams(handler, *districts):
    """Request several district dossiers at once over one ASGI transport."""

    async def fetch_all():
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
            responses = await asyncio.gather(
                *(client.get(f"/districts/{district}/dossier") for district in districts)
            )
        return [[json.loads(line) for line in r.text.splitlines()] for r in responses]

    use_handler(handler)
    try:
        return asyncio.run(fetch_all())
    finally:
        app.dependency_overrides.clear()


def test_concurrent_dossier_streams_for_different_districts(generators, catalog):
    """Each request runs in its own session, so neither stream is cut short."""
    upstream = FakeUpstream(default=GenerationResult.success("Live text."))
    salem, erode = dossier_streams(build_handler(generators, catalog, upstream=upstream), "Salem", "Erode")

    for key, events in (("Salem", salem), ("Erode", erode)):
        assert [e["event"] for e in events] == ["section"] * 4 + ["completed"]
        assert events[-1]["entity_key"] == key
    assert upstream.calls == 8


def test_concurrent_dossier_streams_for_same_district(generators, catalog):
    upstream = FakeUpstream(default=GenerationResult.success("Live text."))
    handler = build_handler(generators, catalog, upstream=upstream)
    streams = dossier_streams(handler, "Salem", "Salem")

    finals = sorted(events[-1]["event"] for events in streams)
    assert finals == ["completed", "rejected"]
    rejected = next(events for events in streams if events[-1]["event"] == "rejected")
    assert rejected == [
        {"event": "rejected", "entity_key": "Salem", "reason": "run_in_progress", "retry_after": None}
    ]
    assert upstream.calls == 4


def test_district_endpoints_without_catalog(generators):
    use_handler(build_handler(generators, None, upstream=FakeUpstream()))
    try:
        client = TestClient(app)
        assert client.get("/districts/Salem/narrative").status_code == 503
        assert client.get("/districts/Salem/dossier").status_code == 503
        assert client.get("/health").json()["districts_loaded"] == 0
    finally:
        app.dependency_overrides.clear()
