"""Contact search backed by the Amplemarket people API."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence

import requests

from ..models import SearchMatch, SearchQuery
from ..normalize import clean_phone
from .base import DEFAULT_TIMEOUT_SECONDS, OracleCallFailedError, UnconfiguredOracleError

LOGGER = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.amplemarket.com"
MAX_MATCHES = 10
DEFAULT_CONFIDENCE = 0.5

_RESULT_KEYS = ("contacts", "people", "results")
_PHONE_KEYS = ("phone", "mobile_phone", "phone_number")


@dataclass(frozen=True)
class RequestContext:
    session: requests.Session
    base_url: str
    headers: Mapping[str, str]
    timeout: float


SearchStrategy = Callable[[RequestContext, SearchQuery], Any]


@dataclass(frozen=True)
class Endpoint:
    """One request shape tried by :class:`AmplemarketSearchClient`."""

    method: str
    path: str

    @property
    def label(self) -> str:
        return f"{self.method} {self.path}"

    def __call__(self, context: RequestContext, query: SearchQuery) -> Any:
        url = f"{context.base_url}{self.path}"
        if self.method == "GET":
            response = context.session.get(
                url, headers=dict(context.headers), params=query.payload(), timeout=context.timeout
            )
        else:
            response = context.session.post(
                url, headers=dict(context.headers), json=query.payload(), timeout=context.timeout
            )
        response.raise_for_status()
        return response.json()


DEFAULT_STRATEGIES: Sequence[Endpoint] = (
    Endpoint("POST", "/people/search"),
    Endpoint("POST", "/contacts/enrich"),
    Endpoint("GET", "/people"),
    Endpoint("GET", "/contacts"),
)


class AmplemarketSearchClient:
    """Find phone numbers for a contact by name, email, or company.

    Each strategy in ``strategies`` is tried in order until one yields at
    least one match. A strategy that raises is logged and skipped; when every
    strategy raised, the search fails with :class:`OracleCallFailedError`.
    """

    name = "Amplemarket"

    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        base_url: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        strategies: Optional[Sequence[SearchStrategy]] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._api_key = api_key or os.getenv("AMPLEMARKET_API_KEY", "")
        self._base_url = (base_url or os.getenv("AMPLEMARKET_BASE_URL") or DEFAULT_BASE_URL).rstrip("/")
        self._timeout = timeout
        self._strategies = list(strategies if strategies is not None else DEFAULT_STRATEGIES)
        self._session = session or requests.Session()

    @property
    def configured(self) -> bool:
        return bool(self._api_key)

    def _context(self) -> RequestContext:
        return RequestContext(
            session=self._session,
            base_url=self._base_url,
            headers={
                "Authorization": f"Bearer {self._api_key}",
                "Content-Type": "application/json",
            },
            timeout=self._timeout,
        )

    def search(self, query: SearchQuery) -> List[SearchMatch]:
        if not self.configured:
            raise UnconfiguredOracleError("Amplemarket API key not configured")

        context = self._context()
        failures: List[str] = []
        for strategy in self._strategies:
            label = getattr(strategy, "label", getattr(strategy, "__name__", repr(strategy)))
            try:
                payload = strategy(context, query)
            except (requests.RequestException, ValueError) as exc:
                LOGGER.info("Amplemarket %s failed: %s", label, exc)
                failures.append(f"{label}: {exc}")
                continue

            matches = parse_search_payload(payload, exclude_phone=query.current_phone)
            if matches:
                LOGGER.debug("Amplemarket %s returned %d matches", label, len(matches))
                return matches

        if failures and len(failures) == len(self._strategies):
            raise OracleCallFailedError("; ".join(failures))
        return []

    def enrich_email(self, email: str) -> Optional[SearchMatch]:
        """Look up a single contact by email address."""

        if not self.configured:
            raise UnconfiguredOracleError("Amplemarket API key not configured")

        context = self._context()
        try:
            response = context.session.get(
                f"{context.base_url}/people/enrich",
                headers=dict(context.headers),
                params={"email": email},
                timeout=context.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as exc:
            raise OracleCallFailedError(str(exc)) from exc

        if not isinstance(data, dict) or not data.get("phone"):
            return None
        return SearchMatch(
            phone=str(data["phone"]),
            confidence=_confidence(data, default=0.8),
            id=str(data.get("id") or ""),
            name=str(data.get("name") or ""),
            email=str(data.get("email") or email),
            company=str(data.get("company") or ""),
            position=str(data.get("position") or ""),
        )


def _confidence(contact: Mapping[str, Any], default: float = DEFAULT_CONFIDENCE) -> float:
    raw = contact.get("confidence") or contact.get("score")
    try:
        value = float(raw) if raw is not None else default
    except (TypeError, ValueError):
        value = default
    return min(1.0, max(0.0, value))


def _iter_contacts(payload: Any) -> Iterable[Dict[str, Any]]:
    if not isinstance(payload, dict):
        return []
    for key in _RESULT_KEYS:
        contacts = payload.get(key)
        if contacts:
            return [contact for contact in contacts if isinstance(contact, dict)]
    return []


def parse_search_payload(payload: Any, *, exclude_phone: Optional[str] = None) -> List[SearchMatch]:
    """Extract up to ten phone-bearing contacts, keeping the service's order."""

    excluded = clean_phone(exclude_phone) if exclude_phone else ""
    matches: List[SearchMatch] = []
    for contact in _iter_contacts(payload):
        phone = next((str(contact[key]) for key in _PHONE_KEYS if contact.get(key)), "")
        if not phone:
            continue
        if excluded and clean_phone(phone) == excluded:
            continue
        matches.append(
            SearchMatch(
                phone=phone,
                confidence=_confidence(contact),
                id=str(contact.get("id") or ""),
                name=str(contact.get("name") or contact.get("full_name") or ""),
                email=str(contact.get("email") or ""),
                company=str(contact.get("company") or contact.get("company_name") or ""),
                position=str(contact.get("position") or contact.get("title") or ""),
            )
        )
        if len(matches) >= MAX_MATCHES:
            break
    return matches


__all__ = [
    "AmplemarketSearchClient",
    "DEFAULT_STRATEGIES",
    "Endpoint",
    "RequestContext",
    "parse_search_payload",
]
