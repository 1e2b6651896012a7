"""Import workflow: normalize rows, enrich the doubtful ones, persist confirmed rows."""
from __future__ import annotations

import logging
from dataclasses import replace
from typing import List, Optional, Sequence, Tuple

from ..models import STATUS_PENDING, ContactRecord, EnrichedRow, EnrichmentCandidate, ImportSummary
from ..normalize import combine_phone_fields
from ..policy import needs_enrichment
from ..store import FIRST_DATA_ROW, ContactStore
from .enrichment import EnrichmentOrchestrator

LOGGER = logging.getLogger(__name__)


def normalize_rows(records: Sequence[ContactRecord]) -> List[EnrichedRow]:
    rows: List[EnrichedRow] = []
    for record in records:
        result = combine_phone_fields(
            record.raw_phone,
            record.raw_mobile,
            record.country_mobile_code,
            record.country_name,
        )
        rows.append(
            EnrichedRow(
                record=record,
                normalized_phone=result.normalized,
                phone_valid=result.is_valid,
                phone_issues=list(result.issues),
                needs_enrichment=needs_enrichment(result),
            )
        )
    return rows


def summarize(rows: Sequence[EnrichedRow]) -> ImportSummary:
    return ImportSummary(
        total=len(rows),
        valid=sum(1 for row in rows if row.phone_valid),
        needs_enrichment=sum(1 for row in rows if row.needs_enrichment),
        with_suggestions=sum(1 for row in rows if row.suggestions),
    )


class ImportPipeline:
    """Prepare imported rows for review and write confirmed rows to the store."""

    def __init__(
        self,
        enricher: Optional[EnrichmentOrchestrator] = None,
        store: Optional[ContactStore] = None,
    ) -> None:
        self._enricher = enricher
        self._store = store

    def prepare(self, records: Sequence[ContactRecord]) -> Tuple[List[EnrichedRow], ImportSummary]:
        rows = normalize_rows(records)
        flagged = [row for row in rows if row.needs_enrichment]
        LOGGER.info("Normalized %d rows; %d need enrichment", len(rows), len(flagged))

        if flagged and self._enricher is not None:
            candidates = [
                EnrichmentCandidate(
                    client_id=row.client_id,
                    name=row.record.name,
                    email=row.record.email,
                    company=row.record.company,
                    current_phone=row.normalized_phone,
                )
                for row in flagged
            ]
            try:
                suggestions = self._enricher.batch_enrich(candidates)
            except Exception:
                LOGGER.exception("Enrichment failed; continuing without suggestions")
                suggestions = {}
            for row in flagged:
                row.suggestions = list(suggestions.get(row.client_id, []))
            LOGGER.info(
                "Enrichment completed. Found suggestions for %d contacts",
                sum(1 for items in suggestions.values() if items),
            )

        return rows, summarize(rows)

    def confirm(self, rows: Sequence[EnrichedRow]) -> int:
        """Persist reviewed rows and return how many were written.

        Rows matching an existing ``client_id`` reuse that record's row
        address; new rows are appended after the last stored row. The
        normalized phone goes to the mobile column and the status is reset
        to pending until the next validation run.
        """

        if self._store is None:
            raise RuntimeError("ImportPipeline.confirm requires a contact store")

        existing = {record.client_id: record for record in self._store.get_all()}
        next_row = max((record.row or 0 for record in existing.values()), default=FIRST_DATA_ROW - 1) + 1

        to_write: List[ContactRecord] = []
        for row in rows:
            current = existing.get(row.client_id)
            if current is not None:
                address = current.row
                last_validated = current.last_validated
            else:
                address = next_row
                next_row += 1
                last_validated = ""
            to_write.append(
                replace(
                    row.record,
                    raw_mobile=row.normalized_phone,
                    status=STATUS_PENDING,
                    last_validated=last_validated,
                    row=address,
                )
            )

        if to_write:
            self._store.batch_update(to_write)
        LOGGER.info("Imported %d customers", len(to_write))
        return len(to_write)


__all__ = ["ImportPipeline", "normalize_rows", "summarize"]
