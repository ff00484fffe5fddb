"""Events published by the dossier orchestrator."""

from dataclasses import dataclass
from enum import Enum


class RejectionReason(str, Enum):
    """Why a dossier run was refused before it started."""

    SESSION_CAP_REACHED = "session_cap_reached"
    COOLDOWN_ACTIVE = "cooldown_active"
    RUN_IN_PROGRESS = "run_in_progress"


@dataclass(frozen=True)
class SectionCompleted:
    """One section finished; ``completed_count`` sections are now available.

    ``source`` is "live" when the upstream produced the text and
    "precomputed" when the fallback text was substituted.
    """

    entity_key: str
    section: str
    text: str
    completed_count: int
    source: str

    @property
    def event(self) -> str:
        return "section"


@dataclass(frozen=True)
class DossierCompleted:
    """Terminal event: every section is available."""

    entity_key: str
    sections: dict[str, str]
    from_cache: bool

    @property
    def event(self) -> str:
        return "completed"


@dataclass(frozen=True)
class DossierRejected:
    """Terminal event: the run was refused by the quota or cooldown guard.

    ``retry_after`` is the remaining cooldown in seconds. It is None for
    a session cap rejection, which only a restart clears, and for a run
    already in progress for the same district.
    """

    entity_key: str
    reason: RejectionReason
    retry_after: float | None = None

    @property
    def event(self) -> str:
        return "rejected"


DossierEvent = SectionCompleted | DossierCompleted | DossierRejected


class DossierState(str, Enum):
    """Orchestrator states, observable between events."""

    IDLE = "idle"
    CACHE_CHECK = "cache_check"
    QUOTA_CHECK = "quota_check"
    COOLDOWN_CHECK = "cooldown_check"
    RUNNING = "running"
    COMPLETED = "completed"
    REJECTED = "rejected"
