"""Clients and adapters for the carrier-lookup and contact-search services."""

from .amplemarket import AmplemarketSearchClient, Endpoint, parse_search_payload  # noqa: F401
from .base import (  # noqa: F401
    CarrierLookupOracle,
    ContactSearchOracle,
    OracleCallFailedError,
    OracleError,
    UnconfiguredOracleError,
)
from .sample import StaticCarrierLookup, StaticContactSearch  # noqa: F401
from .twilio_lookup import TwilioLookupClient, parse_lookup_payload  # noqa: F401

__all__ = [
    "AmplemarketSearchClient",
    "CarrierLookupOracle",
    "ContactSearchOracle",
    "Endpoint",
    "OracleCallFailedError",
    "OracleError",
    "StaticCarrierLookup",
    "StaticContactSearch",
    "TwilioLookupClient",
    "UnconfiguredOracleError",
    "parse_lookup_payload",
    "parse_search_payload",
]
