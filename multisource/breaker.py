"""
Per-source circuit breaker registry.

A source whose circuit is open is skipped entirely: no transport call is
made and its outcome is reported as ``circuit_open``.

States:
    CLOSED -> OPEN    failure_count reaches the threshold while each failure
                      follows the previous one within the window
    OPEN   -> CLOSED  the window elapses with no new failure, or a success
                      is recorded

The count only resets on a success or after a full quiet window.

There is no half-open probing; the first query after the window simply
tries the source again.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from multisource.constants import BREAKER_FAILURE_THRESHOLD, BREAKER_WINDOW_SECONDS
from observability import get_logger
from observability.metrics import circuit_breaker_opened_total, circuit_breaker_skips_total

logger = get_logger(__name__)


@dataclass
class CircuitState:
    failure_count: int
    window_start: float
    last_failure_at: float


@dataclass(frozen=True)
class CircuitSnapshot:
    source_name: str
    failure_count: int
    window_start: float
    last_failure_at: float
    is_open: bool


class CircuitBreakerRegistry:
    """Owned, thread-safe map of source name to circuit state.

    Health probes, background schedules and live queries may touch the
    registry concurrently, so every read and write holds the lock.
    """

    def __init__(
        self,
        threshold: int = BREAKER_FAILURE_THRESHOLD,
        window_seconds: float = BREAKER_WINDOW_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        if threshold < 1:
            raise ValueError("threshold must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self.threshold = threshold
        self.window_seconds = window_seconds
        self._clock = clock
        self._states: Dict[str, CircuitState] = {}
        self._lock = threading.Lock()

    def _live_state(self, name: str, now: float) -> Optional[CircuitState]:
        # Caller holds the lock. Quiet windows drop the state entirely.
        state = self._states.get(name)
        if state is not None and now - state.last_failure_at >= self.window_seconds:
            del self._states[name]
            return None
        return state

    def _state_is_open(self, state: Optional[CircuitState], now: float) -> bool:
        return (
            state is not None
            and state.failure_count >= self.threshold
            and now - state.last_failure_at < self.window_seconds
        )

    def is_open(self, name: str) -> bool:
        with self._lock:
            now = self._clock()
            return self._state_is_open(self._live_state(name, now), now)

    def partition(self, names: Iterable[str]) -> Tuple[List[str], List[str]]:
        """Split source names into (eligible, skipped) preserving order."""
        eligible: List[str] = []
        skipped: List[str] = []
        with self._lock:
            now = self._clock()
            for name in names:
                if self._state_is_open(self._live_state(name, now), now):
                    skipped.append(name)
                else:
                    eligible.append(name)
        for name in skipped:
            circuit_breaker_skips_total.labels(source=name).inc()
        return eligible, skipped

    def record_success(self, name: str) -> None:
        with self._lock:
            self._states.pop(name, None)

    def record_failure(self, name: str) -> None:
        with self._lock:
            now = self._clock()
            state = self._live_state(name, now)
            was_open = self._state_is_open(state, now)
            if state is None:
                state = CircuitState(failure_count=0, window_start=now, last_failure_at=now)
                self._states[name] = state
            state.failure_count += 1
            state.last_failure_at = now
            opened = not was_open and self._state_is_open(state, now)
            failure_count = state.failure_count

        if opened:
            circuit_breaker_opened_total.labels(source=name).inc()
            logger.warning(
                f"Circuit opened for {name}",
                extra={
                    "event": "circuit_open",
                    "source": name,
                    "failure_count": failure_count,
                    "window_seconds": self.window_seconds,
                },
            )

    def snapshot(self, name: str) -> Optional[CircuitSnapshot]:
        with self._lock:
            now = self._clock()
            state = self._live_state(name, now)
            if state is None:
                return None
            return CircuitSnapshot(
                source_name=name,
                failure_count=state.failure_count,
                window_start=state.window_start,
                last_failure_at=state.last_failure_at,
                is_open=self._state_is_open(state, now),
            )

    def failure_count(self, name: str) -> int:
        snap = self.snapshot(name)
        return snap.failure_count if snap else 0

    def reset(self, name: Optional[str] = None) -> None:
        with self._lock:
            if name is None:
                self._states.clear()
            else:
                self._states.pop(name, None)
