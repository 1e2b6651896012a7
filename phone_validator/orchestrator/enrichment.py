"""Batch enrichment of contacts through a contact-search service."""
from __future__ import annotations

import logging
import time
from typing import Dict, List, Optional, Sequence, Tuple

from ..models import EnrichmentCandidate, PhoneSuggestion, SearchQuery
from ..oracles.base import ContactSearchOracle, UnconfiguredOracleError
from ..rate_limit import BatchPolicy, Sleep, run_in_batches

LOGGER = logging.getLogger(__name__)

MAX_CANDIDATES = 20
MAX_SUGGESTIONS = 10


class EnrichmentOrchestrator:
    """Fetch alternative phone numbers for records flagged by the policy."""

    def __init__(
        self,
        oracle: ContactSearchOracle,
        *,
        policy: Optional[BatchPolicy] = None,
        max_candidates: int = MAX_CANDIDATES,
        sleep: Sleep = time.sleep,
    ) -> None:
        self._oracle = oracle
        self._policy = policy or BatchPolicy()
        self._max_candidates = max_candidates
        self._sleep = sleep

    @property
    def source_name(self) -> str:
        return getattr(self._oracle, "name", self._oracle.__class__.__name__)

    def batch_enrich(self, candidates: Sequence[EnrichmentCandidate]) -> Dict[str, List[PhoneSuggestion]]:
        """Return suggestions keyed by ``client_id``.

        Only the first ``max_candidates`` candidates are processed; the rest
        are dropped from this call. A candidate whose search fails maps to an
        empty list.
        """

        if not self._oracle.configured:
            LOGGER.warning("%s is not configured - skipping enrichment", self.source_name)
            return {}

        selected = list(candidates[: self._max_candidates])
        if len(candidates) > self._max_candidates:
            LOGGER.info(
                "Limiting enrichment to first %d contacts (out of %d)", self._max_candidates, len(candidates)
            )

        pairs = run_in_batches(selected, self._enrich_one, self._policy, sleep=self._sleep)
        return dict(pairs)

    def _enrich_one(self, candidate: EnrichmentCandidate) -> Tuple[str, List[PhoneSuggestion]]:
        query = SearchQuery(
            name=candidate.name or None,
            email=candidate.email or None,
            company=candidate.company or None,
            current_phone=candidate.current_phone or None,
        )
        try:
            matches = self._oracle.search(query)
        except UnconfiguredOracleError:
            LOGGER.warning("%s became unavailable while enriching %s", self.source_name, candidate.client_id)
            return candidate.client_id, []
        except Exception:
            LOGGER.exception("Error enriching contact %s", candidate.client_id)
            return candidate.client_id, []

        suggestions = [
            PhoneSuggestion(phone=match.phone, confidence=match.confidence, source=self.source_name)
            for match in matches[:MAX_SUGGESTIONS]
        ]
        return candidate.client_id, suggestions


__all__ = ["EnrichmentOrchestrator", "MAX_CANDIDATES", "MAX_SUGGESTIONS"]
