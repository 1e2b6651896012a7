"""Factory helpers for constructing service clients and orchestrators from configuration."""
from __future__ import annotations

import importlib
from typing import Any, Dict

from .config import ConfigurationError, batching_section, oracle_section
from .oracles.base import CarrierLookupOracle, ContactSearchOracle
from .orchestrator import BulkValidationOrchestrator, EnrichmentOrchestrator
from .orchestrator.enrichment import MAX_CANDIDATES
from .orchestrator.validation import MAX_RECORDS
from .rate_limit import BatchPolicy
from .store import ContactStore


def _load_class(path: str):
    module_name, _, attr = path.rpartition(".")
    if not module_name:
        raise ConfigurationError(f"Invalid class path '{path}'")
    module = importlib.import_module(module_name)
    try:
        return getattr(module, attr)
    except AttributeError as exc:
        raise ConfigurationError(f"Module '{module_name}' does not define '{attr}'") from exc


def _build_oracle(config: Dict[str, Any], key: str):
    section = oracle_section(config, key)
    oracle_cls = _load_class(section["class"])
    options = section.get("options") or {}
    if not isinstance(options, dict):
        raise ConfigurationError(f"'{key}.options' must be a mapping")
    return oracle_cls(**options)


def build_carrier_lookup(config: Dict[str, Any]) -> CarrierLookupOracle:
    return _build_oracle(config, "carrier_lookup")


def build_contact_search(config: Dict[str, Any]) -> ContactSearchOracle:
    return _build_oracle(config, "contact_search")


def build_batch_policy(config: Dict[str, Any]) -> BatchPolicy:
    batching = batching_section(config)
    try:
        return BatchPolicy(
            batch_size=int(batching.get("batch_size", 5)),
            delay_seconds=float(batching.get("delay_seconds", 1.0)),
        )
    except ValueError as exc:
        raise ConfigurationError(f"Invalid batching configuration: {exc}") from exc


def build_enricher(config: Dict[str, Any]) -> EnrichmentOrchestrator:
    return EnrichmentOrchestrator(
        build_contact_search(config),
        policy=build_batch_policy(config),
        max_candidates=int(batching_section(config).get("max_candidates", MAX_CANDIDATES)),
    )


def build_validator(config: Dict[str, Any], store: ContactStore) -> BulkValidationOrchestrator:
    return BulkValidationOrchestrator(
        build_carrier_lookup(config),
        store,
        policy=build_batch_policy(config),
        max_records=int(batching_section(config).get("max_records", MAX_RECORDS)),
    )
