"""
Tests for the sequential dossier orchestrator.
"""

import asyncio
import json

import pytest

from conftest import FakeUpstream, RecordingSleep, collect
from policy_narratives.entities import (
    DossierCompleted,
    DossierRejected,
    DossierState,
    GenerationResult,
    RejectionReason,
    SectionCompleted,
)
from policy_narratives.errors import UnknownEntityError, UpstreamTransportError
from policy_narratives.repositories import DistrictCatalog
from policy_narratives.services import (
    CooldownGuard,
    DossierOrchestrator,
    ResultCache,
    SessionQuotaGuard,
)


SECTION_ORDER = ["recommendation", "feasibility", "contingency", "comparable"]


@pytest.fixture
def upstream():
    return FakeUpstream(
        responses=[GenerationResult.success(f"{name} text") for name in SECTION_ORDER * 3]
    )


@pytest.fixture
def sleep():
    return RecordingSleep()


@pytest.fixture
def orchestrator(upstream, store, catalog, sleep, clock):
    return DossierOrchestrator(
        upstream=upstream,
        cache=ResultCache(store=store),
        catalog=catalog,
        quota=SessionQuotaGuard(cap=10),
        cooldown=CooldownGuard(duration=60, clock=clock),
        inter_call_delay=4.5,
        sleep=sleep,
    )


def test_full_run(orchestrator, upstream, sleep):
    """Four sections in order, paced, then a completed event that is cached."""
    events = collect(orchestrator.request_dossier("Salem"))

    sections = events[:-1]
    assert [e.section for e in sections] == SECTION_ORDER
    assert [e.completed_count for e in sections] == [1, 2, 3, 4]
    assert all(isinstance(e, SectionCompleted) and e.source == "live" for e in sections)

    completed = events[-1]
    assert isinstance(completed, DossierCompleted)
    assert completed.from_cache is False
    assert completed.sections == {name: f"{name} text" for name in SECTION_ORDER}

    assert upstream.calls == 4
    assert sleep.delays == [4.5, 4.5, 4.5]
    assert orchestrator.quota.used == 1
    assert orchestrator.cooldown.is_blocked("Salem")
    assert orchestrator.state == DossierState.COMPLETED
    assert orchestrator.active_key == "Salem"


def test_prompts_use_catalog_context(orchestrator, upstream):
    collect(orchestrator.request_dossier("Salem"))

    recommendation, _, _, comparable = upstream.prompts
    assert "NMSA: National Mission for Sustainable Agriculture" in recommendation
    assert comparable.index("Namakkal:") < comparable.index("Erode:")
    assert "Madurai:" not in comparable


def test_failed_section_uses_precomputed_text(store, catalog, sleep):
    upstream = FakeUpstream(
        responses=[
            GenerationResult.success("recommendation text"),
            GenerationResult.failure(UpstreamTransportError("API 429", 429)),
            GenerationResult.success("contingency text"),
            GenerationResult.success("comparable text"),
        ]
    )
    orchestrator = DossierOrchestrator(
        upstream=upstream, cache=ResultCache(store=store), catalog=catalog, sleep=sleep
    )

    events = collect(orchestrator.request_dossier("Salem"))

    feasibility = events[1]
    assert feasibility.section == "feasibility"
    assert feasibility.text == "Salem precomputed narrative."
    assert feasibility.source == "precomputed"
    assert events[-1].sections["feasibility"] == "Salem precomputed narrative."
    assert events[-1].sections["contingency"] == "contingency text"


def test_cache_hit_replays_without_calls(orchestrator, upstream, clock):
    collect(orchestrator.request_dossier("Salem"))
    clock.advance(5)

    events = collect(orchestrator.request_dossier("Salem"))

    assert len(events) == 1
    assert isinstance(events[0], DossierCompleted)
    assert events[0].from_cache is True
    assert events[0].sections["comparable"] == "comparable text"
    assert upstream.calls == 4
    assert orchestrator.quota.used == 1


def test_cached_dossier_survives_restart(orchestrator, store, catalog, sleep):
    collect(orchestrator.request_dossier("Salem"))

    upstream = FakeUpstream()
    restarted = DossierOrchestrator(
        upstream=upstream, cache=ResultCache(store=store), catalog=catalog, sleep=sleep
    )
    events = collect(restarted.request_dossier("Salem"))

    assert events[0].from_cache is True
    assert upstream.calls == 0


def test_session_cap_rejects_new_runs(upstream, store, catalog, sleep):
    """Once the cap is reached, uncached districts are rejected with no calls."""
    orchestrator = DossierOrchestrator(
        upstream=upstream,
        cache=ResultCache(store=store),
        catalog=catalog,
        quota=SessionQuotaGuard(cap=1),
        sleep=sleep,
    )
    collect(orchestrator.request_dossier("Salem"))

    events = collect(orchestrator.request_dossier("Erode"))

    assert events == [DossierRejected(entity_key="Erode", reason=RejectionReason.SESSION_CAP_REACHED)]
    assert upstream.calls == 4
    assert orchestrator.state == DossierState.REJECTED

    # Cached districts still replay
    replay = collect(orchestrator.request_dossier("Salem"))
    assert replay[0].from_cache is True


def test_cooldown_rejects_uncached_district(orchestrator, upstream, clock):
    orchestrator.cooldown.arm("Salem")
    clock.advance(20)

    events = collect(orchestrator.request_dossier("Salem"))

    (rejected,) = events
    assert rejected.reason == RejectionReason.COOLDOWN_ACTIVE
    assert rejected.retry_after == 40
    assert upstream.calls == 0
    assert orchestrator.quota.used == 0


def test_unknown_district_raises(orchestrator, upstream):
    with pytest.raises(UnknownEntityError):
        collect(orchestrator.request_dossier("Atlantis"))

    assert upstream.calls == 0
    assert orchestrator.quota.used == 0


def test_switch_during_call_discards_results(orchestrator, upstream, store):
    """Selecting another district mid-call drops the late result."""

    def switch(call_number):
        if call_number == 2:
            orchestrator.select("Erode")

    upstream.on_call = switch
    events = collect(orchestrator.request_dossier("Salem"))

    assert [e.section for e in events] == ["recommendation"]
    assert "dossier:Salem" not in ResultCache(store=store)
    assert not orchestrator.cooldown.is_blocked("Salem")
    assert orchestrator.quota.used == 1
    assert orchestrator.active_key == "Erode"
    assert not orchestrator.cooldown.in_progress("Salem")


def test_cancel_during_delay(upstream, store, catalog):
    holder = {}
    sleep = RecordingSleep(on_sleep=lambda: holder["orchestrator"].cancel())
    orchestrator = DossierOrchestrator(
        upstream=upstream, cache=ResultCache(store=store), catalog=catalog, sleep=sleep
    )
    holder["orchestrator"] = orchestrator

    events = collect(orchestrator.request_dossier("Salem"))

    assert len(events) == 1
    assert upstream.calls == 1
    assert orchestrator.active_key is None


def test_switch_after_last_section_skips_completion(orchestrator, store):
    """A consumer that moves on before the final event gets no completion."""

    async def consume():
        seen = []
        async for event in orchestrator.request_dossier("Salem"):
            seen.append(event)
            if isinstance(event, SectionCompleted) and event.completed_count == 4:
                orchestrator.select("Erode")
        return seen

    events = asyncio.run(consume())

    assert len(events) == 4
    assert not any(isinstance(e, DossierCompleted) for e in events)
    assert "dossier:Salem" not in ResultCache(store=store)


async def drain(events):
    return [event async for event in events]


def test_session_shares_guards_and_cache(orchestrator, upstream):
    """A session has its own active district but the same cache and guards."""
    session = orchestrator.session()
    assert session.quota is orchestrator.quota
    assert session.cooldown is orchestrator.cooldown

    collect(session.request_dossier("Salem"))

    assert session.active_key == "Salem"
    assert orchestrator.active_key is None
    assert orchestrator.quota.used == 1
    assert collect(orchestrator.request_dossier("Salem"))[0].from_cache is True
    assert upstream.calls == 4


def test_concurrent_sessions_for_different_districts(orchestrator, upstream):
    """Interleaved runs on separate sessions do not supersede each other."""

    async def run_both():
        return await asyncio.gather(
            drain(orchestrator.session().request_dossier("Salem")),
            drain(orchestrator.session().request_dossier("Erode")),
        )

    salem, erode = asyncio.run(run_both())

    for key, events in (("Salem", salem), ("Erode", erode)):
        assert [e.completed_count for e in events[:-1]] == [1, 2, 3, 4]
        assert isinstance(events[-1], DossierCompleted)
        assert events[-1].entity_key == key
        assert events[-1].from_cache is False
        assert orchestrator.cooldown.is_blocked(key)
        assert not orchestrator.cooldown.in_progress(key)

    assert upstream.calls == 8
    assert orchestrator.quota.used == 2


def test_shared_orchestrator_supersedes_interleaved_run(orchestrator, upstream):
    """On one orchestrator the later request wins and the earlier one stops."""

    async def run_both():
        return await asyncio.gather(
            drain(orchestrator.request_dossier("Salem")),
            drain(orchestrator.request_dossier("Erode")),
        )

    salem, erode = asyncio.run(run_both())

    assert salem == []
    assert isinstance(erode[-1], DossierCompleted)
    assert not orchestrator.cooldown.in_progress("Salem")


def test_overlapping_runs_for_same_district(orchestrator, upstream):
    """A second run for a district already generating is refused."""

    async def run_both():
        return await asyncio.gather(
            drain(orchestrator.session().request_dossier("Salem")),
            drain(orchestrator.session().request_dossier("Salem")),
        )

    first, second = asyncio.run(run_both())

    assert isinstance(first[-1], DossierCompleted)
    assert second == [DossierRejected(entity_key="Salem", reason=RejectionReason.RUN_IN_PROGRESS)]
    assert upstream.calls == 4
    assert orchestrator.quota.used == 1
    assert not orchestrator.cooldown.in_progress("Salem")


def test_abandoned_run_releases_claim(orchestrator, upstream):
    """Closing the stream mid-run frees the district for the next caller."""

    async def take_first():
        events = orchestrator.request_dossier("Salem")
        first = await events.__anext__()
        assert orchestrator.cooldown.in_progress("Salem")
        await events.aclose()
        return first

    first = asyncio.run(take_first())

    assert first.section == "recommendation"
    assert not orchestrator.cooldown.in_progress("Salem")
    assert not orchestrator.cooldown.is_blocked("Salem")

    events = collect(orchestrator.session().request_dossier("Salem"))
    assert isinstance(events[-1], DossierCompleted)


def test_corrupt_cached_dossier_is_regenerated(orchestrator, upstream, store):
    ResultCache(store=store).set("dossier:Salem", "not a section map")

    events = collect(orchestrator.request_dossier("Salem"))

    assert upstream.calls == 4
    assert events[-1].from_cache is False
    assert json.loads(ResultCache(store=store).get("dossier:Salem").text)["recommendation"] == (
        "recommendation text"
    )


def test_all_sections_failing_still_completes(store, catalog, sleep):
    upstream = FakeUpstream(default=GenerationResult.failure(UpstreamTransportError("down")))
    orchestrator = DossierOrchestrator(
        upstream=upstream, cache=ResultCache(store=store), catalog=catalog, sleep=sleep
    )

    events = collect(orchestrator.request_dossier("Erode"))

    assert all(e.source == "precomputed" for e in events[:-1])
    assert set(events[-1].sections.values()) == {"Erode precomputed narrative."}


def test_unknown_section_list_fails_at_construction(store, catalog):
    with pytest.raises(ValueError):
        DossierOrchestrator(
            upstream=FakeUpstream(),
            cache=ResultCache(store=store),
            catalog=catalog,
            sections=["recommendation", "summary"],
        )


def test_catalog_comparables(catalog):
    names = [c["District"] for c in catalog.find_comparables("Salem")]
    assert names == ["Namakkal", "Erode"]
    assert catalog.find_comparables("Atlantis") == []
    assert catalog.build_context("Salem").crop_policy["pmksy_eligible"] is True


def test_catalog_from_csv(tmp_path):
    path = tmp_path / "districts.csv"
    path.write_text(
        "District,CASA_Pred_1yr,Tier,GW_Dep_Ratio,Policy_Narrative\n"
        "Salem,12.4,1,0.78,Salem precomputed narrative.\n"
        "Karur,,2,0.5,\n",
        encoding="utf-8",
    )

    catalog = DistrictCatalog.from_csv(path)

    assert catalog.districts == ["Karur", "Salem"]
    assert catalog.get("Karur")["CASA_Pred_1yr"] is None
    assert catalog.get("Karur")["Policy_Narrative"] is None
    assert catalog.get("Salem")["CASA_Pred_1yr"] == 12.4
