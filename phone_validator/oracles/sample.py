"""Offline oracle implementations that answer from local data."""
from __future__ import annotations

from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from ..models import CarrierLookupResult, SearchMatch, SearchQuery
from ..normalize import clean_phone
from .base import OracleCallFailedError


class StaticCarrierLookup:
    """Carrier lookup answering from a fixed ``number -> line type`` table.

    Numbers missing from the table are reported as invalid landlines unless
    ``default_line_type`` is given.
    """

    name = "static"
    configured = True

    def __init__(
        self,
        line_types: Optional[Mapping[str, str]] = None,
        *,
        invalid_numbers: Iterable[str] = (),
        failing_numbers: Iterable[str] = (),
        default_line_type: Optional[str] = None,
    ) -> None:
        self._line_types = {clean_phone(number): value for number, value in (line_types or {}).items()}
        self._invalid = {clean_phone(number) for number in invalid_numbers}
        self._failing = {clean_phone(number) for number in failing_numbers}
        self._default_line_type = default_line_type

    def lookup(self, phone_number: str) -> CarrierLookupResult:
        cleaned = clean_phone(phone_number)
        if cleaned in self._failing:
            raise OracleCallFailedError(f"Lookup failed for {cleaned}")
        line_type = self._line_types.get(cleaned, self._default_line_type)
        is_valid = line_type is not None and cleaned not in self._invalid
        international = cleaned if cleaned.startswith("+") else f"+{cleaned}"
        return CarrierLookupResult.from_lookup(
            is_valid=is_valid,
            line_type=line_type or "landline",
            phone_number=international,
            international_format=international,
        )


class StaticContactSearch:
    """Contact search answering from phone numbers keyed by email or name."""

    name = "static"
    configured = True

    def __init__(self, phones: Optional[Mapping[str, Sequence[str]]] = None, confidence: float = 0.5) -> None:
        self._phones: Dict[str, List[str]] = {key.lower(): list(values) for key, values in (phones or {}).items()}
        self._confidence = confidence

    def search(self, query: SearchQuery) -> List[SearchMatch]:
        for key in (query.email, query.name):
            if key and key.lower() in self._phones:
                return [
                    SearchMatch(phone=phone, confidence=self._confidence, name=query.name or "", email=query.email or "")
                    for phone in self._phones[key.lower()]
                    if clean_phone(phone) != clean_phone(query.current_phone)
                ]
        return []


__all__ = ["StaticCarrierLookup", "StaticContactSearch"]
