"""Batch scheduling and attempt limiting for calls to rate-limited services."""
from __future__ import annotations

import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Protocol, Sequence, TypeVar

T = TypeVar("T")
R = TypeVar("R")

Sleep = Callable[[float], None]
Clock = Callable[[], float]


@dataclass
class BatchPolicy:
    """Fixed-size batches with a pause between consecutive batches."""

    batch_size: int = 5
    delay_seconds: float = 1.0

    def __post_init__(self) -> None:
        if self.batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        if self.delay_seconds < 0:
            raise ValueError("delay_seconds cannot be negative")


def iter_batches(items: Sequence[T], batch_size: int) -> List[Sequence[T]]:
    return [items[start : start + batch_size] for start in range(0, len(items), batch_size)]


def run_in_batches(
    items: Sequence[T],
    worker: Callable[[T], R],
    policy: Optional[BatchPolicy] = None,
    *,
    sleep: Sleep = time.sleep,
) -> List[R]:
    """Apply ``worker`` to every item, one batch at a time.

    Items inside a batch run concurrently; the next batch starts only after
    the previous one has fully completed and ``policy.delay_seconds`` have
    elapsed. No pause follows the last batch. The returned list is in input
    order whatever the completion order was.

    ``worker`` is expected to handle its own failures; an exception escaping
    it propagates and no further batch is started.
    """

    policy = policy or BatchPolicy()
    results: List[R] = []
    batches = iter_batches(items, policy.batch_size)
    if not batches:
        return results

    with ThreadPoolExecutor(max_workers=policy.batch_size) as executor:
        for index, batch in enumerate(batches):
            futures = [executor.submit(worker, item) for item in batch]
            results.extend(future.result() for future in futures)
            if index < len(batches) - 1 and policy.delay_seconds > 0:
                sleep(policy.delay_seconds)
    return results


# --- Failed-attempt tracking ---

@dataclass
class AttemptState:
    failures: int = 0
    locked_until: Optional[float] = None


class AttemptStore(Protocol):
    """Keyed storage for attempt counters."""

    def get(self, key: str) -> Optional[AttemptState]:  # pragma: no cover - protocol
        ...

    def put(self, key: str, state: AttemptState) -> None:  # pragma: no cover - protocol
        ...

    def delete(self, key: str) -> None:  # pragma: no cover - protocol
        ...


class InMemoryAttemptStore:
    """Process-local attempt store; state is lost on restart."""

    def __init__(self) -> None:
        self._states: Dict[str, AttemptState] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[AttemptState]:
        with self._lock:
            state = self._states.get(key)
            return AttemptState(state.failures, state.locked_until) if state else None

    def put(self, key: str, state: AttemptState) -> None:
        with self._lock:
            self._states[key] = AttemptState(state.failures, state.locked_until)

    def delete(self, key: str) -> None:
        with self._lock:
            self._states.pop(key, None)


class AttemptLimiter:
    """Locks a key out for ``lock_seconds`` after ``max_attempts`` failures."""

    def __init__(
        self,
        store: Optional[AttemptStore] = None,
        *,
        max_attempts: int = 5,
        lock_seconds: float = 30 * 60,
        clock: Clock = time.time,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._store = store if store is not None else InMemoryAttemptStore()
        self._max_attempts = max_attempts
        self._lock_seconds = lock_seconds
        self._clock = clock

    @property
    def max_attempts(self) -> int:
        return self._max_attempts

    @property
    def lock_seconds(self) -> float:
        return self._lock_seconds

    def locked_for(self, key: str) -> float:
        """Seconds left on the lock for ``key`` (0 when not locked)."""

        state = self._store.get(key)
        if state is None or state.locked_until is None:
            return 0.0
        return max(0.0, state.locked_until - self._clock())

    def record_failure(self, key: str) -> int:
        """Count a failure and return the attempts remaining before lockout."""

        state = self._store.get(key) or AttemptState()
        if state.locked_until is not None and state.locked_until <= self._clock():
            state = AttemptState()
        state.failures += 1
        if state.failures >= self._max_attempts:
            state.locked_until = self._clock() + self._lock_seconds
        self._store.put(key, state)
        return max(0, self._max_attempts - state.failures)

    def reset(self, key: str) -> None:
        self._store.delete(key)


__all__ = [
    "AttemptLimiter",
    "AttemptState",
    "AttemptStore",
    "BatchPolicy",
    "InMemoryAttemptStore",
    "iter_batches",
    "run_in_batches",
]
