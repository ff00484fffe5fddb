"""Rate-limiting guards shared by every dossier run in a process."""

import threading
import time
from collections.abc import Callable

from policy_narratives.config import settings


class SessionQuotaGuard:
    """Caps the number of generation sessions started in this process.

    A slot is taken when a run starts and is never given back, even if
    the run is later superseded. The count lives in memory only, so a
    restart resets it.
    """

    def __init__(self, cap: int | None = None) -> None:
        self._cap = settings.session_cap if cap is None else cap
        self._used = 0
        self._lock = threading.Lock()

    def try_reserve(self) -> bool:
        """Take a session slot if one is left.

        Returns:
            True if a slot was taken, False (with no side effect) once the cap is reached
        """
        with self._lock:
            if self._used >= self._cap:
                return False
            self._used += 1
            return True

    @property
    def cap(self) -> int:
        return self._cap

    @property
    def used(self) -> int:
        return self._used

    @property
    def remaining(self) -> int:
        return max(0, self._cap - self._used)

    @property
    def exhausted(self) -> bool:
        return self._used >= self._cap


class CooldownGuard:
    """Per-key "not before" timestamps, plus the keys with a run in flight.

    Stale entries are never cleaned up; they simply stop blocking once
    their timestamp passes. A key is claimed for the whole of a run, so
    overlapping requests for it cannot both start generating before
    the cooldown is armed at the end.
    """

    def __init__(
        self,
        duration: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the guard.

        Args:
            duration: Default cooldown in seconds. Defaults to settings.cooldown_seconds.
            clock: Monotonic clock; tests inject a fake.
        """
        self._duration = settings.cooldown_seconds if duration is None else duration
        self._clock = clock
        self._not_before: dict[str, float] = {}
        self._running: set[str] = set()
        self._lock = threading.Lock()

    def claim(self, key: str) -> bool:
        """Mark a run for ``key`` as in flight.

        Returns:
            True if claimed, False if another run already holds the key
        """
        with self._lock:
            if key in self._running:
                return False
            self._running.add(key)
            return True

    def release(self, key: str) -> None:
        """End the in-flight claim for ``key`` (no-op if not claimed)."""
        with self._lock:
            self._running.discard(key)

    def in_progress(self, key: str) -> bool:
        return key in self._running

    def is_blocked(self, key: str) -> bool:
        """True iff ``now`` is before the key's not-before time."""
        not_before = self._not_before.get(key)
        return not_before is not None and self._clock() < not_before

    def arm(self, key: str, duration: float | None = None) -> None:
        """Block ``key`` for ``duration`` seconds from now, replacing any prior window."""
        seconds = self._duration if duration is None else duration
        self._not_before[key] = self._clock() + seconds

    def retry_after(self, key: str) -> float:
        """Seconds until ``key`` unblocks (0.0 when not blocked)."""
        not_before = self._not_before.get(key)
        if not_before is None:
            return 0.0
        return max(0.0, not_before - self._clock())

    @property
    def duration(self) -> float:
        return self._duration
