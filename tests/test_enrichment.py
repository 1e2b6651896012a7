import threading
from typing import List

from phone_validator.models import EnrichmentCandidate, SearchMatch, SearchQuery
from phone_validator.oracles import OracleCallFailedError, StaticContactSearch, UnconfiguredOracleError
from phone_validator.orchestrator import EnrichmentOrchestrator
from phone_validator.rate_limit import BatchPolicy


class BatchTracker:
    """Fake sleep that counts completed batches."""

    def __init__(self) -> None:
        self.batch = 0
        self.sleeps: List[float] = []

    def __call__(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.batch += 1


class RecordingSearch:
    name = "recording"
    configured = True

    def __init__(self, tracker: BatchTracker, *, failing_emails=(), matches_per_query: int = 1) -> None:
        self._tracker = tracker
        self._failing = set(failing_emails)
        self._matches = matches_per_query
        self._lock = threading.Lock()
        self.calls: List[tuple] = []

    def search(self, query: SearchQuery) -> List[SearchMatch]:
        with self._lock:
            self.calls.append((query.email, self._tracker.batch))
        if query.email in self._failing:
            raise OracleCallFailedError("search failed")
        return [SearchMatch(phone=f"+1555{index:07d}", confidence=0.9) for index in range(self._matches)]


class UnconfiguredSearch:
    name = "amplemarket"
    configured = False

    def __init__(self) -> None:
        self.calls = 0

    def search(self, query: SearchQuery) -> List[SearchMatch]:
        self.calls += 1
        raise UnconfiguredOracleError("not configured")


def _candidates(count: int) -> List[EnrichmentCandidate]:
    return [
        EnrichmentCandidate(client_id=f"C{index}", name=f"Contact {index}", email=f"c{index}@example.com")
        for index in range(count)
    ]


def test_batch_enrich_caps_candidates_and_batches_calls() -> None:
    tracker = BatchTracker()
    oracle = RecordingSearch(tracker)
    orchestrator = EnrichmentOrchestrator(oracle, sleep=tracker)

    suggestions = orchestrator.batch_enrich(_candidates(23))

    assert len(suggestions) == 20
    assert set(suggestions) == {f"C{index}" for index in range(20)}
    assert len(oracle.calls) == 20
    assert tracker.sleeps == [1.0, 1.0, 1.0]

    batch_of = {email: batch for email, batch in oracle.calls}
    for index in range(20):
        assert batch_of[f"c{index}@example.com"] == index // 5


def test_batch_enrich_skips_unconfigured_oracle() -> None:
    oracle = UnconfiguredSearch()
    orchestrator = EnrichmentOrchestrator(oracle, sleep=lambda _: None)

    assert orchestrator.batch_enrich(_candidates(3)) == {}
    assert oracle.calls == 0


def test_failed_search_yields_empty_suggestions() -> None:
    tracker = BatchTracker()
    oracle = RecordingSearch(tracker, failing_emails={"c1@example.com"})
    orchestrator = EnrichmentOrchestrator(oracle, sleep=tracker)

    suggestions = orchestrator.batch_enrich(_candidates(3))

    assert suggestions["C1"] == []
    assert len(suggestions["C0"]) == 1
    assert len(suggestions["C2"]) == 1


def test_suggestions_are_truncated_in_order_and_tagged_with_source() -> None:
    tracker = BatchTracker()
    oracle = RecordingSearch(tracker, matches_per_query=14)
    orchestrator = EnrichmentOrchestrator(oracle, sleep=tracker)

    suggestions = orchestrator.batch_enrich(_candidates(1))["C0"]

    assert [item.phone for item in suggestions] == [f"+1555{index:07d}" for index in range(10)]
    assert {item.source for item in suggestions} == {"recording"}
    assert {item.confidence for item in suggestions} == {0.9}


def test_candidates_within_a_batch_are_searched_concurrently() -> None:
    barrier = threading.Barrier(5, timeout=5)

    class BarrierSearch:
        name = "barrier"
        configured = True

        def search(self, query: SearchQuery) -> List[SearchMatch]:
            barrier.wait()
            return [SearchMatch(phone="+15550000001")]

    orchestrator = EnrichmentOrchestrator(BarrierSearch(), sleep=lambda _: None)
    suggestions = orchestrator.batch_enrich(_candidates(5))

    assert all(len(items) == 1 for items in suggestions.values())


def test_static_search_excludes_current_phone() -> None:
    oracle = StaticContactSearch({"c0@example.com": ["+15550000001", "+15550000002"]}, confidence=0.7)
    orchestrator = EnrichmentOrchestrator(oracle, policy=BatchPolicy(delay_seconds=0))
    candidate = EnrichmentCandidate(client_id="C0", email="c0@example.com", current_phone="+1 555 000 0001")

    suggestions = orchestrator.batch_enrich([candidate])

    assert [(item.phone, item.confidence, item.source) for item in suggestions["C0"]] == [
        ("+15550000002", 0.7, "static")
    ]
