"""Interfaces and errors shared by the external lookup services."""
from __future__ import annotations

from typing import List, Protocol

from ..models import CarrierLookupResult, SearchMatch, SearchQuery

DEFAULT_TIMEOUT_SECONDS = 10.0


class OracleError(RuntimeError):
    """Base class for failures of an external lookup service."""


class UnconfiguredOracleError(OracleError):
    """Raised when a service is used without its credentials."""


class OracleCallFailedError(OracleError):
    """Raised when a configured service call fails or times out."""


class CarrierLookupOracle(Protocol):
    """Resolves a phone number to its carrier and line type."""

    name: str

    @property
    def configured(self) -> bool:  # pragma: no cover - runtime protocol
        ...

    def lookup(self, phone_number: str) -> CarrierLookupResult:  # pragma: no cover - runtime protocol
        """Return carrier information or raise :class:`OracleError`."""


class ContactSearchOracle(Protocol):
    """Searches a people database for phone numbers."""

    name: str

    @property
    def configured(self) -> bool:  # pragma: no cover - runtime protocol
        ...

    def search(self, query: SearchQuery) -> List[SearchMatch]:  # pragma: no cover - runtime protocol
        """Return matches in the service's own order."""


__all__ = [
    "CarrierLookupOracle",
    "ContactSearchOracle",
    "DEFAULT_TIMEOUT_SECONDS",
    "OracleCallFailedError",
    "OracleError",
    "UnconfiguredOracleError",
]
