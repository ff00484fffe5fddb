"""Sequential dossier orchestration.

A dossier is every section in ``DOSSIER_SECTIONS`` generated one after
another for a single district, paced by a fixed delay so a four-section
run stays under the provider's requests-per-minute ceiling.

State machine per run:

    IDLE -> CACHE_CHECK -> QUOTA_CHECK -> COOLDOWN_CHECK -> RUNNING(i) -> COMPLETED
                 |              |               |
                 +-> COMPLETED  +-> REJECTED    +-> REJECTED

Cancellation is cooperative. Starting a run for another district,
``select()`` or ``cancel()`` moves the active key; the superseded run
notices at its next completion point and stops without publishing,
caching or arming the cooldown. The in-flight HTTP call is not aborted.

The active key belongs to one caller. Servers handling many callers
give each request its own ``session()``; sessions share the cache, the
session cap and the cooldown guard, which also refuses a second run for
a district while one is in flight.
"""

import asyncio
import json
import logging
from collections.abc import AsyncIterator, Awaitable, Callable, Sequence

from policy_narratives.config import settings
from policy_narratives.entities import (
    DossierCompleted,
    DossierEvent,
    DossierRejected,
    DossierState,
    RejectionReason,
    SectionCompleted,
)
from policy_narratives.errors import UnknownEntityError
from policy_narratives.prompts import DOSSIER_SECTIONS, Section, build_prompt
from policy_narratives.protocols import UpstreamClient
from policy_narratives.repositories import DistrictCatalog
from policy_narratives.services.guards import CooldownGuard, SessionQuotaGuard
from policy_narratives.services.narrative_service import DEFAULT_FALLBACK_TEXT, fallback_for
from policy_narratives.services.result_cache import ResultCache

logger = logging.getLogger(__name__)


class DossierOrchestrator:
    """Runs dossier generation for one district at a time.

    Cache, quota and cooldown are injected so several orchestrators (or
    tests) never share hidden module state.

    Example:
        ```python
        orchestrator = DossierOrchestrator(
            upstream=create_upstream_client("dossier"),
            cache=ResultCache(store=create_result_store()),
            catalog=DistrictCatalog.from_csv("data/district_forecasts.csv"),
        )
        async for event in orchestrator.request_dossier("Salem"):
            print(event.event, event)
        ```
    """

    def __init__(
        self,
        upstream: UpstreamClient,
        cache: ResultCache,
        catalog: DistrictCatalog,
        quota: SessionQuotaGuard | None = None,
        cooldown: CooldownGuard | None = None,
        inter_call_delay: float | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        sections: Sequence[Section] = DOSSIER_SECTIONS,
        fallback_text: str = DEFAULT_FALLBACK_TEXT,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            upstream: Text generator for section prompts (required).
            cache: Result cache (required).
            catalog: Source of district records and auxiliary context (required).
            quota: Session quota guard. Defaults to a fresh guard with settings.session_cap.
            cooldown: Per-district cooldown guard. Defaults to settings.cooldown_seconds.
            inter_call_delay: Seconds between sections. Defaults to settings.inter_call_delay.
            sleep: Suspension primitive; tests pass a no-op.
            sections: Sections to generate, in order.
            fallback_text: Used when a record carries no precomputed narrative.
        """
        self._upstream = upstream
        self._cache = cache
        self._catalog = catalog
        self._quota = quota or SessionQuotaGuard()
        self._cooldown = cooldown or CooldownGuard()
        self._delay = settings.inter_call_delay if inter_call_delay is None else inter_call_delay
        self._sleep = sleep
        self._sections = tuple(Section.parse(s) for s in sections)
        self._fallback_text = fallback_text
        self._active_key: str | None = None
        self._state = DossierState.IDLE

    @staticmethod
    def cache_key(key: str) -> str:
        return f"dossier:{key}"

    @property
    def active_key(self) -> str | None:
        return self._active_key

    @property
    def state(self) -> DossierState:
        return self._state

    @property
    def quota(self) -> SessionQuotaGuard:
        return self._quota

    @property
    def cooldown(self) -> CooldownGuard:
        return self._cooldown

    def select(self, key: str | None) -> None:
        """Mark ``key`` as the entity the caller is looking at, superseding any other run."""
        self._active_key = key

    def cancel(self) -> None:
        """Supersede whatever run is in flight."""
        self._active_key = None

    def session(self) -> "DossierOrchestrator":
        """New orchestrator for one caller, sharing this one's cache, guards and upstream.

        Each session has its own active key, so ``select()`` and
        ``cancel()`` only supersede that caller's runs while the session
        cap, cooldowns and in-flight claims stay process-wide.
        """
        return DossierOrchestrator(
            upstream=self._upstream,
            cache=self._cache,
            catalog=self._catalog,
            quota=self._quota,
            cooldown=self._cooldown,
            inter_call_delay=self._delay,
            sleep=self._sleep,
            sections=self._sections,
            fallback_text=self._fallback_text,
        )

    def _cached_sections(self, key: str) -> dict[str, str] | None:
        entry = self._cache.get(self.cache_key(key))
        if entry is None:
            return None
        try:
            sections = json.loads(entry.text)
        except ValueError as e:
            logger.warning("Ignoring unreadable cached dossier for %s: %s", key, e)
            return None
        if not isinstance(sections, dict) or not all(isinstance(v, str) for v in sections.values()):
            logger.warning("Ignoring malformed cached dossier for %s", key)
            return None
        return sections

    def _superseded(self, key: str) -> bool:
        if self._active_key == key:
            return False
        logger.info("Discarding dossier results for %s; active district is now %s", key, self._active_key)
        return True

    async def request_dossier(self, entity_key: str) -> AsyncIterator[DossierEvent]:
        """Generate (or replay) the dossier for one district.

        Yields one ``SectionCompleted`` per section in order, then a
        ``DossierCompleted``. A cache hit yields only ``DossierCompleted``
        with ``from_cache=True``; a guard refusal yields only
        ``DossierRejected``. A superseded run ends without a terminal event.

        Raises:
            UnknownEntityError: If the catalog has no record for ``entity_key``
        """
        key = entity_key

        self._state = DossierState.CACHE_CHECK
        cached = self._cached_sections(key)
        if cached is not None:
            self._active_key = key
            self._state = DossierState.COMPLETED
            yield DossierCompleted(entity_key=key, sections=cached, from_cache=True)
            return

        self._state = DossierState.QUOTA_CHECK
        if self._quota.exhausted:
            logger.info("Dossier for %s rejected: session cap of %d reached", key, self._quota.cap)
            self._state = DossierState.REJECTED
            yield DossierRejected(entity_key=key, reason=RejectionReason.SESSION_CAP_REACHED)
            return

        self._state = DossierState.COOLDOWN_CHECK
        if self._cooldown.is_blocked(key):
            retry_after = self._cooldown.retry_after(key)
            logger.info("Dossier for %s rejected: cooldown active for %.1fs", key, retry_after)
            self._state = DossierState.REJECTED
            yield DossierRejected(
                entity_key=key,
                reason=RejectionReason.COOLDOWN_ACTIVE,
                retry_after=retry_after,
            )
            return

        record = self._catalog.get(key)
        if record is None:
            self._state = DossierState.IDLE
            raise UnknownEntityError(f"No precomputed record for district {key!r}")

        if not self._cooldown.claim(key):
            logger.info("Dossier for %s rejected: a run is already in progress", key)
            self._state = DossierState.REJECTED
            yield DossierRejected(entity_key=key, reason=RejectionReason.RUN_IN_PROGRESS)
            return

        try:
            # Another run may have taken the last slot since the check above
            if not self._quota.try_reserve():
                self._state = DossierState.REJECTED
                yield DossierRejected(entity_key=key, reason=RejectionReason.SESSION_CAP_REACHED)
                return

            self._active_key = key
            self._state = DossierState.RUNNING
            async for event in self._run(key, record):
                yield event
        finally:
            self._cooldown.release(key)

    async def _run(self, key: str, record: dict) -> AsyncIterator[DossierEvent]:
        context = self._catalog.build_context(key)
        fallback = fallback_for(record, self._fallback_text)
        results: dict[str, str] = {}
        last_index = len(self._sections) - 1

        for index, section in enumerate(self._sections):
            result = await self._upstream.generate(build_prompt(section, record, context))
            if self._superseded(key):
                return

            if result.ok:
                text, source = result.text, "live"
            else:
                logger.info("Section %s for %s falls back to precomputed text: %s", section.value, key, result.error)
                text, source = fallback, "precomputed"

            results[section.value] = text
            yield SectionCompleted(
                entity_key=key,
                section=section.value,
                text=text,
                completed_count=len(results),
                source=source,
            )

            if index < last_index:
                await self._sleep(self._delay)
                if self._superseded(key):
                    return

        # The consumer may have switched districts while handling the last event
        if self._superseded(key):
            return

        self._cache.set(self.cache_key(key), json.dumps(results))
        self._cooldown.arm(key)
        self._state = DossierState.COMPLETED
        yield DossierCompleted(entity_key=key, sections=dict(results), from_cache=False)
