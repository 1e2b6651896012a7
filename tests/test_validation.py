import threading
from datetime import datetime, timezone
from typing import List

import pytest

from phone_validator.models import CarrierLookupResult, ContactRecord
from phone_validator.oracles import OracleCallFailedError, StaticCarrierLookup
from phone_validator.orchestrator import BulkValidationOrchestrator, RecordNotFoundError
from phone_validator.rate_limit import BatchPolicy
from phone_validator.store import InMemoryContactStore

FIXED_NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def _records(count: int) -> List[ContactRecord]:
    return [
        ContactRecord(client_id=f"C{index}", first_name="Client", last_name=str(index), raw_mobile=f"+1555{index:07d}")
        for index in range(count)
    ]


def _orchestrator(oracle, store, **kwargs) -> BulkValidationOrchestrator:
    kwargs.setdefault("sleep", lambda _: None)
    return BulkValidationOrchestrator(oracle, store, now=lambda: FIXED_NOW, **kwargs)


class FailingStore(InMemoryContactStore):
    def batch_update(self, records) -> None:
        raise OSError("disk full")


def test_validate_bulk_caps_records_and_reports_deferred_ids() -> None:
    store = InMemoryContactStore(_records(120))
    sleeps: List[float] = []
    orchestrator = _orchestrator(StaticCarrierLookup(default_line_type="mobile"), store, sleep=sleeps.append)

    report = orchestrator.validate_stored()

    assert report.summary.total == 50
    assert report.summary.processed == 50
    assert report.summary.valid == 50
    assert len(report.deferred_ids) == 70
    assert report.deferred_ids[0] == "customer-52"
    assert len(sleeps) == 9
    assert len(store.write_calls) == 1
    assert len(store.write_calls[0]) == 50


def test_validate_bulk_filters_by_record_id() -> None:
    store = InMemoryContactStore(_records(10))
    orchestrator = _orchestrator(StaticCarrierLookup(default_line_type="mobile"), store)

    report = orchestrator.validate_stored(["customer-2", "customer-5", "customer-9", "customer-404"])

    assert report.summary.total == 3
    assert [outcome.customer_id for outcome in report.results] == ["customer-2", "customer-5", "customer-9"]
    assert report.deferred_ids == []


def test_empty_filter_means_every_record() -> None:
    store = InMemoryContactStore(_records(4))
    orchestrator = _orchestrator(StaticCarrierLookup(default_line_type="mobile"), store)

    assert orchestrator.validate_stored([]).summary.total == 4


def test_failed_lookup_counts_as_error_and_is_not_persisted() -> None:
    records = _records(3)
    store = InMemoryContactStore(records)
    oracle = StaticCarrierLookup(default_line_type="mobile", failing_numbers=[records[1].raw_mobile])
    orchestrator = _orchestrator(oracle, store)

    report = orchestrator.validate_stored()

    assert report.summary.errors == 1
    assert report.summary.successful == 2
    failed = report.results[1]
    assert not failed.success
    assert "Lookup failed" in failed.error
    written_ids = [record.client_id for record in store.write_calls[0]]
    assert written_ids == ["C0", "C2"]


@pytest.mark.parametrize(
    ("line_type", "invalid", "expected_status"),
    [
        ("mobile", False, "valid"),
        ("voip", False, "valid"),
        ("landline", False, "invalid"),
        ("mobile", True, "invalid"),
    ],
)
def test_whatsapp_capability_drives_status(line_type: str, invalid: bool, expected_status: str) -> None:
    record = ContactRecord(client_id="C1", raw_phone="+34 612 345 678")
    oracle = StaticCarrierLookup(
        {"+34612345678": line_type},
        invalid_numbers=["+34612345678"] if invalid else [],
    )
    store = InMemoryContactStore([record])

    report = _orchestrator(oracle, store).validate_stored()

    updated = store.get_all()[0]
    assert updated.status == expected_status
    assert updated.raw_phone == "+34612345678"
    assert updated.last_validated == FIXED_NOW.isoformat()
    assert report.results[0].lookup.is_whatsapp_capable is (expected_status == "valid")
    assert report.summary.valid + report.summary.invalid == 1


def test_record_without_phone_is_reported_as_error() -> None:
    store = InMemoryContactStore([ContactRecord(client_id="C1", raw_phone="  ", raw_mobile="")])

    report = _orchestrator(StaticCarrierLookup(default_line_type="mobile"), store).validate_stored()

    assert report.summary.errors == 1
    assert report.results[0].error == "No phone number to validate"
    assert store.write_calls == []


def test_mobile_takes_precedence_over_phone() -> None:
    seen: List[str] = []
    lock = threading.Lock()

    class RecordingLookup:
        name = "recording"
        configured = True

        def lookup(self, phone_number: str) -> CarrierLookupResult:
            with lock:
                seen.append(phone_number)
            return CarrierLookupResult.from_lookup(is_valid=True, line_type="mobile")

    record = ContactRecord(client_id="C1", raw_phone="+441111111111", raw_mobile=" +442222222222 ")
    store = InMemoryContactStore([record])

    _orchestrator(RecordingLookup(), store).validate_stored()

    assert seen == ["+442222222222"]
    # Without an international format the submitted number is stored.
    assert store.get_all()[0].raw_phone == "+442222222222"


def test_store_failure_propagates() -> None:
    store = FailingStore(_records(2))

    with pytest.raises(OSError):
        _orchestrator(StaticCarrierLookup(default_line_type="mobile"), store).validate_stored()


def test_lookups_run_five_at_a_time() -> None:
    barrier = threading.Barrier(5, timeout=5)

    class BarrierLookup:
        name = "barrier"
        configured = True

        def lookup(self, phone_number: str) -> CarrierLookupResult:
            barrier.wait()
            return CarrierLookupResult.from_lookup(is_valid=True, line_type="mobile")

    store = InMemoryContactStore(_records(10))
    report = _orchestrator(BarrierLookup(), store, policy=BatchPolicy(batch_size=5, delay_seconds=0)).validate_stored()

    assert report.summary.errors == 0
    assert report.summary.valid == 10


def test_validate_single_persists_result() -> None:
    store = InMemoryContactStore(_records(3))
    orchestrator = _orchestrator(StaticCarrierLookup({"+447700900123": "mobile"}), store)

    outcome = orchestrator.validate_single("customer-3", "+44 7700 900123")

    assert outcome.success
    assert outcome.record.status == "valid"
    assert outcome.record.raw_phone == "+447700900123"
    assert store.write_calls == [[outcome.record]]
    assert store.get_all()[1].status == "valid"


def test_validate_single_unknown_record() -> None:
    orchestrator = _orchestrator(StaticCarrierLookup(), InMemoryContactStore(_records(1)))

    with pytest.raises(RecordNotFoundError):
        orchestrator.validate_single("customer-99", "+15550000000")


def test_validate_single_raises_lookup_failures() -> None:
    store = InMemoryContactStore(_records(1))
    orchestrator = _orchestrator(StaticCarrierLookup(failing_numbers=["+15550000000"]), store)

    with pytest.raises(OracleCallFailedError):
        orchestrator.validate_single("customer-2", "+15550000000")
    assert store.write_calls == []
