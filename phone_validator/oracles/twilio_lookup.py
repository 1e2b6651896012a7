"""Carrier lookup backed by the Twilio Lookup v2 REST API."""
from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional
from urllib.parse import quote

import requests

from ..models import CarrierLookupResult
from ..normalize import clean_phone
from .base import DEFAULT_TIMEOUT_SECONDS, OracleCallFailedError, UnconfiguredOracleError

LOGGER = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://lookups.twilio.com/v2"


class TwilioLookupClient:
    """Validate phone numbers with Twilio line type intelligence."""

    name = "Twilio"

    def __init__(
        self,
        account_sid: Optional[str] = None,
        auth_token: Optional[str] = None,
        *,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._account_sid = account_sid or os.getenv("TWILIO_ACCOUNT_SID", "")
        self._auth_token = auth_token or os.getenv("TWILIO_AUTH_TOKEN", "")
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._session = session or requests.Session()
        if not self.configured:
            LOGGER.warning("Twilio credentials not configured")

    @property
    def configured(self) -> bool:
        return bool(self._account_sid and self._auth_token)

    def lookup(self, phone_number: str) -> CarrierLookupResult:
        if not self.configured:
            raise UnconfiguredOracleError("Twilio client not initialized")

        cleaned = clean_phone(phone_number)
        url = f"{self._base_url}/PhoneNumbers/{quote(cleaned, safe='')}"
        try:
            response = self._session.get(
                url,
                params={"Fields": "line_type_intelligence"},
                auth=(self._account_sid, self._auth_token),
                timeout=self._timeout,
            )
            response.raise_for_status()
            payload = response.json()
        except requests.RequestException as exc:
            LOGGER.error("Twilio lookup failed for %s: %s", cleaned, exc)
            raise OracleCallFailedError(str(exc) or "Validation failed") from exc
        except ValueError as exc:
            raise OracleCallFailedError("Twilio returned a malformed response") from exc

        return parse_lookup_payload(payload)


def parse_lookup_payload(payload: Dict[str, Any]) -> CarrierLookupResult:
    """Translate a Lookup v2 response body into a :class:`CarrierLookupResult`."""

    intelligence = payload.get("line_type_intelligence") or {}
    phone_number = payload.get("phone_number") or ""
    return CarrierLookupResult.from_lookup(
        is_valid=bool(payload.get("valid")),
        line_type=intelligence.get("type"),
        phone_number=phone_number,
        international_format=phone_number,
        national_format=payload.get("national_format") or "",
        country_code=payload.get("country_code") or "",
        carrier=intelligence.get("carrier_name"),
    )


__all__ = ["TwilioLookupClient", "parse_lookup_payload"]
