"""Phone number normalization for messy spreadsheet input."""
from __future__ import annotations

import re
from typing import List, Optional

from .countries import resolve_country_code
from .models import NormalizationResult

_NON_PHONE_CHARS = re.compile(r"[^\d+]")
_NON_DIGITS = re.compile(r"\D")
_E164_PARTS = re.compile(r"^\+(\d{1,3})(\d+)$")
_BARE_INTERNATIONAL = re.compile(r"^\d{1,3}\d{6,}$")

MIN_DIGITS = 7
MAX_DIGITS = 15
MIN_NORMALIZED_LENGTH = 8
MAX_NORMALIZED_LENGTH = 16


def clean_phone(value: Optional[str]) -> str:
    """Keep digits and at most one leading ``+``."""

    stripped = _NON_PHONE_CHARS.sub("", value or "")
    if not stripped:
        return ""
    prefix = "+" if stripped.startswith("+") else ""
    return prefix + stripped.replace("+", "")


def _digits(value: Optional[str]) -> str:
    return _NON_DIGITS.sub("", value or "")


def is_valid_normalized(normalized: str) -> bool:
    return (
        normalized.startswith("+")
        and MIN_NORMALIZED_LENGTH <= len(normalized) <= MAX_NORMALIZED_LENGTH
    )


def normalize_phone_number(phone: str, mobile_country_code: str, country_name: str) -> NormalizationResult:
    """Normalize ``phone`` into a ``+<digits>`` candidate.

    The first applicable rule wins:

    1. a value already starting with ``+`` is kept and only length-checked;
    2. a non-empty ``mobile_country_code`` is prefixed;
    3. a calling code resolved from ``country_name`` is prefixed;
    4. otherwise the digits are kept without a ``+``.

    Anything that did not arrive with its own ``+`` is flagged with an issue,
    so it still goes through enrichment even when the result is valid.
    """

    issues: List[str] = []
    cleaned_phone = clean_phone(phone)
    cleaned_code = _digits(mobile_country_code)

    if not cleaned_phone or cleaned_phone == "+":
        return NormalizationResult(
            original=phone,
            normalized="",
            is_valid=False,
            issues=["Phone number is empty"],
        )

    if cleaned_phone.startswith("+"):
        normalized = cleaned_phone
        digit_count = len(_digits(normalized))
        if digit_count < MIN_DIGITS:
            issues.append("Phone number too short")
        elif digit_count > MAX_DIGITS:
            issues.append("Phone number too long")
    elif cleaned_code:
        normalized = f"+{cleaned_code}{cleaned_phone}"
        issues.append("Added country code from mobile code column")
    elif country_name:
        calling_code = resolve_country_code(country_name)
        if calling_code:
            normalized = f"+{calling_code}{cleaned_phone}"
            issues.append(f"Inferred country code +{calling_code} from country name")
        else:
            normalized = cleaned_phone
            issues.append("Could not determine country code")
    else:
        normalized = cleaned_phone
        issues.append("No country code information available")

    country_code: Optional[str] = None
    national_number: Optional[str] = None
    if normalized.startswith("+"):
        match = _E164_PARTS.match(normalized)
        if match:
            country_code, national_number = match.group(1), match.group(2)

    return NormalizationResult(
        original=phone,
        normalized=normalized,
        is_valid=is_valid_normalized(normalized),
        country_code=country_code,
        national_number=national_number,
        issues=issues,
    )


def combine_phone_fields(
    phone: Optional[str],
    mobile: Optional[str],
    mobile_country_code: Optional[str],
    country_name: Optional[str],
) -> NormalizationResult:
    """Normalize the mobile column when filled, else the phone column."""

    primary = (mobile or "").strip() or (phone or "").strip()
    if not primary:
        return NormalizationResult(
            original="",
            normalized="",
            is_valid=False,
            issues=["No phone number provided"],
        )
    return normalize_phone_number(primary, mobile_country_code or "", country_name or "")


def format_phone_for_display(phone: Optional[str]) -> str:
    if not phone:
        return "No phone"
    if phone.startswith("+"):
        return phone
    if _BARE_INTERNATIONAL.match(phone):
        return f"+{phone}"
    return phone


__all__ = [
    "clean_phone",
    "combine_phone_fields",
    "format_phone_for_display",
    "is_valid_normalized",
    "normalize_phone_number",
]
