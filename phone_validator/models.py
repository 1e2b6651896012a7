"""Data models shared by the normalizer, the orchestrators, and the contact store."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

MOBILE_LINE_TYPES = frozenset({"mobile", "voip"})

STATUS_PENDING = "pending"
STATUS_VALID = "valid"
STATUS_INVALID = "invalid"


# --- Contact rows ---

@dataclass(frozen=True, slots=True)
class ContactRecord:
    """One customer row from the contact spreadsheet."""

    client_id: str
    first_name: str = ""
    last_name: str = ""
    account_name: str = ""
    country_name: str = ""
    raw_phone: str = ""
    country_mobile_code: str = ""
    raw_mobile: str = ""
    email: str = ""
    language: str = ""
    account_owner: str = ""
    status: str = STATUS_PENDING
    last_validated: str = ""
    row: Optional[int] = None

    @property
    def name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def company(self) -> str:
        """Alias for :attr:`account_name`."""

        return self.account_name

    @property
    def record_id(self) -> str:
        """Identifier used by bulk-validation filters."""

        if self.row is None:
            return self.client_id
        return f"customer-{self.row}"

    @property
    def phone_to_validate(self) -> str:
        """Mobile number when present, otherwise the landline column."""

        return self.raw_mobile.strip() or self.raw_phone.strip()


# --- Normalization ---

@dataclass(slots=True)
class NormalizationResult:
    """Outcome of normalizing one raw phone value."""

    original: str
    normalized: str
    is_valid: bool
    country_code: Optional[str] = None
    national_number: Optional[str] = None
    issues: List[str] = field(default_factory=list)


# --- Enrichment ---

@dataclass(frozen=True, slots=True)
class EnrichmentCandidate:
    """Lookup payload for a record that needs alternative phone numbers."""

    client_id: str
    name: str = ""
    email: str = ""
    company: str = ""
    current_phone: str = ""


@dataclass(frozen=True, slots=True)
class SearchQuery:
    """Parameters accepted by contact-search oracles."""

    name: Optional[str] = None
    email: Optional[str] = None
    company: Optional[str] = None
    domain: Optional[str] = None
    current_phone: Optional[str] = None

    def payload(self) -> Dict[str, str]:
        """Return the non-empty search fields, excluding ``current_phone``."""

        values = {
            "name": self.name,
            "email": self.email,
            "company": self.company,
            "domain": self.domain,
        }
        return {key: value for key, value in values.items() if value}

    def is_empty(self) -> bool:
        return not self.payload()


@dataclass(frozen=True, slots=True)
class SearchMatch:
    """A contact returned by a contact-search oracle."""

    phone: str
    confidence: float = 0.5
    id: str = ""
    name: str = ""
    email: str = ""
    company: str = ""
    position: str = ""


@dataclass(frozen=True, slots=True)
class PhoneSuggestion:
    """Alternative phone number proposed for a contact."""

    phone: str
    confidence: float
    source: str


@dataclass(slots=True)
class EnrichedRow:
    """Import row annotated with its normalization and enrichment results."""

    record: ContactRecord
    normalized_phone: str = ""
    phone_valid: bool = False
    phone_issues: List[str] = field(default_factory=list)
    needs_enrichment: bool = False
    suggestions: List[PhoneSuggestion] = field(default_factory=list)

    @property
    def client_id(self) -> str:
        return self.record.client_id


@dataclass(slots=True)
class ImportSummary:
    total: int = 0
    valid: int = 0
    needs_enrichment: int = 0
    with_suggestions: int = 0


# --- Carrier validation ---

@dataclass(frozen=True, slots=True)
class CarrierLookupResult:
    """Normalized answer of a carrier-lookup oracle."""

    is_valid: bool
    phone_number: str = ""
    international_format: str = ""
    national_format: str = ""
    country_code: str = ""
    line_type: str = "unknown"
    carrier: Optional[str] = None
    is_mobile: bool = False
    is_whatsapp_capable: bool = False

    @classmethod
    def from_lookup(
        cls,
        *,
        is_valid: bool,
        line_type: Optional[str],
        phone_number: str = "",
        international_format: str = "",
        national_format: str = "",
        country_code: str = "",
        carrier: Optional[str] = None,
    ) -> "CarrierLookupResult":
        """Build a result, deriving the mobile and WhatsApp flags.

        The oracle never reports WhatsApp support; a number counts as
        WhatsApp-capable when it is valid and on a mobile or VoIP line.
        """

        resolved_line_type = (line_type or "unknown").lower()
        is_mobile = resolved_line_type in MOBILE_LINE_TYPES
        return cls(
            is_valid=bool(is_valid),
            phone_number=phone_number,
            international_format=international_format,
            national_format=national_format,
            country_code=country_code,
            line_type=resolved_line_type,
            carrier=carrier,
            is_mobile=is_mobile,
            is_whatsapp_capable=is_mobile and bool(is_valid),
        )


@dataclass(slots=True)
class ValidationOutcome:
    """Per-record result of a bulk validation run."""

    customer_id: str
    success: bool
    lookup: Optional[CarrierLookupResult] = None
    record: Optional[ContactRecord] = None
    error: Optional[str] = None

    def as_row(self) -> Dict[str, Any]:
        row: Dict[str, Any] = {
            "customer_id": self.customer_id,
            "success": self.success,
            "error": self.error or "",
        }
        if self.lookup is not None:
            row.update(
                {
                    "international_format": self.lookup.international_format,
                    "line_type": self.lookup.line_type,
                    "carrier": self.lookup.carrier or "",
                    "whatsapp_capable": self.lookup.is_whatsapp_capable,
                }
            )
        return row


@dataclass(slots=True)
class BulkSummary:
    total: int = 0
    processed: int = 0
    successful: int = 0
    valid: int = 0
    invalid: int = 0
    errors: int = 0

    @classmethod
    def from_outcomes(cls, total: int, outcomes: List[ValidationOutcome]) -> "BulkSummary":
        processed = len(outcomes)
        successful = sum(1 for outcome in outcomes if outcome.success)
        valid = sum(
            1
            for outcome in outcomes
            if outcome.success and outcome.lookup is not None and outcome.lookup.is_whatsapp_capable
        )
        return cls(
            total=total,
            processed=processed,
            successful=successful,
            valid=valid,
            invalid=successful - valid,
            errors=processed - successful,
        )


@dataclass(slots=True)
class BulkValidationReport:
    """Results of :meth:`BulkValidationOrchestrator.validate_bulk`.

    ``deferred_ids`` lists the records left out by the per-call cap so the
    caller can submit them in a follow-up run.
    """

    results: List[ValidationOutcome] = field(default_factory=list)
    summary: BulkSummary = field(default_factory=BulkSummary)
    deferred_ids: List[str] = field(default_factory=list)

    @property
    def updated_records(self) -> List[ContactRecord]:
        return [outcome.record for outcome in self.results if outcome.success and outcome.record is not None]


__all__ = [
    "BulkSummary",
    "BulkValidationReport",
    "CarrierLookupResult",
    "ContactRecord",
    "EnrichedRow",
    "EnrichmentCandidate",
    "ImportSummary",
    "MOBILE_LINE_TYPES",
    "NormalizationResult",
    "PhoneSuggestion",
    "STATUS_INVALID",
    "STATUS_PENDING",
    "STATUS_VALID",
    "SearchMatch",
    "SearchQuery",
    "ValidationOutcome",
]
