"""Phone-number normalization, enrichment, and WhatsApp validation for contact spreadsheets."""

from . import models  # noqa: F401
from .countries import resolve_country_code  # noqa: F401
from .models import (
    BulkSummary,
    BulkValidationReport,
    CarrierLookupResult,
    ContactRecord,
    EnrichedRow,
    EnrichmentCandidate,
    NormalizationResult,
    PhoneSuggestion,
    ValidationOutcome,
)
from .normalize import combine_phone_fields, format_phone_for_display, normalize_phone_number  # noqa: F401
from .policy import needs_enrichment  # noqa: F401

__all__ = [
    "BulkSummary",
    "BulkValidationReport",
    "CarrierLookupResult",
    "ContactRecord",
    "EnrichedRow",
    "EnrichmentCandidate",
    "NormalizationResult",
    "PhoneSuggestion",
    "ValidationOutcome",
    "combine_phone_fields",
    "format_phone_for_display",
    "needs_enrichment",
    "normalize_phone_number",
    "resolve_country_code",
    "ingestion",
    "oracles",
    "orchestrator",
]
