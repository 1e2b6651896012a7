"""Bulk phone validation against a carrier-lookup service."""
from __future__ import annotations

import logging
import time
from dataclasses import replace
from datetime import datetime, timezone
from typing import Callable, Iterable, Optional, Sequence

from ..models import (
    STATUS_INVALID,
    STATUS_VALID,
    BulkSummary,
    BulkValidationReport,
    CarrierLookupResult,
    ContactRecord,
    ValidationOutcome,
)
from ..oracles.base import CarrierLookupOracle
from ..rate_limit import BatchPolicy, Sleep, run_in_batches
from ..store import ContactStore

LOGGER = logging.getLogger(__name__)

MAX_RECORDS = 50

Now = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RecordNotFoundError(LookupError):
    """Raised when a record id is not present in the contact store."""


class BulkValidationOrchestrator:
    """Validate stored contacts and persist their WhatsApp status."""

    def __init__(
        self,
        oracle: CarrierLookupOracle,
        store: ContactStore,
        *,
        policy: Optional[BatchPolicy] = None,
        max_records: int = MAX_RECORDS,
        sleep: Sleep = time.sleep,
        now: Now = _utcnow,
    ) -> None:
        self._oracle = oracle
        self._store = store
        self._policy = policy or BatchPolicy()
        self._max_records = max_records
        self._sleep = sleep
        self._now = now

    def validate_bulk(
        self,
        records: Sequence[ContactRecord],
        customer_ids: Optional[Iterable[str]] = None,
    ) -> BulkValidationReport:
        """Validate up to ``max_records`` records and write the successes back.

        When ``customer_ids`` is non-empty only records whose
        :attr:`~ContactRecord.record_id` is listed are considered. Records
        beyond the cap are not processed; their ids are returned in
        :attr:`BulkValidationReport.deferred_ids`.

        Exceptions raised by the store's batch write propagate.
        """

        wanted = set(customer_ids or ())
        working = [record for record in records if record.record_id in wanted] if wanted else list(records)
        deferred = [record.record_id for record in working[self._max_records :]]
        working = working[: self._max_records]
        if deferred:
            LOGGER.info(
                "Limiting validation to first %d records; %d deferred", self._max_records, len(deferred)
            )

        outcomes = run_in_batches(working, self._validate_one, self._policy, sleep=self._sleep)
        report = BulkValidationReport(
            results=outcomes,
            summary=BulkSummary.from_outcomes(len(working), outcomes),
            deferred_ids=deferred,
        )

        updated = report.updated_records
        if updated:
            self._store.batch_update(updated)
        LOGGER.info(
            "Validated %d records: %d valid, %d invalid, %d errors",
            report.summary.processed,
            report.summary.valid,
            report.summary.invalid,
            report.summary.errors,
        )
        return report

    def validate_stored(self, customer_ids: Optional[Iterable[str]] = None) -> BulkValidationReport:
        """Run :meth:`validate_bulk` over every record in the store."""

        return self.validate_bulk(self._store.get_all(), customer_ids)

    def validate_single(self, record_id: str, phone_number: str) -> ValidationOutcome:
        """Validate ``phone_number`` for one stored record and persist the result.

        Unlike the bulk path, lookup failures are raised to the caller.
        """

        record = next((item for item in self._store.get_all() if item.record_id == record_id), None)
        if record is None:
            raise RecordNotFoundError(f"Customer {record_id} not found")

        lookup = self._oracle.lookup(phone_number)
        updated = self._apply_lookup(record, phone_number, lookup)
        self._store.update(updated)
        return ValidationOutcome(customer_id=record_id, success=True, lookup=lookup, record=updated)

    def _validate_one(self, record: ContactRecord) -> ValidationOutcome:
        phone = record.phone_to_validate
        if not phone:
            return ValidationOutcome(
                customer_id=record.record_id,
                success=False,
                error="No phone number to validate",
            )

        try:
            lookup = self._oracle.lookup(phone)
        except Exception as exc:
            LOGGER.exception("Carrier lookup failed for %s", record.record_id)
            return ValidationOutcome(
                customer_id=record.record_id,
                success=False,
                error=str(exc) or exc.__class__.__name__,
            )

        updated = self._apply_lookup(record, phone, lookup)
        return ValidationOutcome(customer_id=record.record_id, success=True, lookup=lookup, record=updated)

    def _apply_lookup(self, record: ContactRecord, phone: str, lookup: CarrierLookupResult) -> ContactRecord:
        return replace(
            record,
            raw_phone=lookup.international_format or phone,
            status=STATUS_VALID if lookup.is_whatsapp_capable else STATUS_INVALID,
            last_validated=self._now().isoformat(),
        )


__all__ = ["BulkValidationOrchestrator", "MAX_RECORDS", "RecordNotFoundError"]
