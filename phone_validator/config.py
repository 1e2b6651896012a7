"""Configuration helpers for the phone validation workflows."""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

LOGGER = logging.getLogger(__name__)


class ConfigurationError(RuntimeError):
    """Raised when configuration files are missing or malformed."""


_SUPPORTED_EXTENSIONS = {".json", ".yaml", ".yml"}

DEFAULT_ORACLES = {
    "carrier_lookup": "phone_validator.oracles.twilio_lookup.TwilioLookupClient",
    "contact_search": "phone_validator.oracles.amplemarket.AmplemarketSearchClient",
}


def load_configuration(path: Optional[str | Path]) -> Dict[str, Any]:
    """Load configuration data from a JSON or YAML file.

    ``None`` yields an empty configuration, which selects the default
    service clients with credentials taken from the environment.
    """

    if path is None:
        return {}

    file_path = Path(path)
    if not file_path.exists():
        raise ConfigurationError(f"Configuration file '{file_path}' was not found")

    if file_path.suffix.lower() not in _SUPPORTED_EXTENSIONS:
        raise ConfigurationError(
            f"Unsupported configuration format '{file_path.suffix}'. Supported extensions: {sorted(_SUPPORTED_EXTENSIONS)}"
        )

    text = file_path.read_text(encoding="utf-8")
    try:
        if file_path.suffix.lower() == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"Configuration file '{file_path}' is not valid: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration file '{file_path}' must contain a mapping")
    return data


def oracle_section(config: Dict[str, Any], key: str) -> Dict[str, Any]:
    """Return the oracle section ``key`` with its class path filled in."""

    section = dict(config.get(key) or {})
    if not section.get("class"):
        LOGGER.debug("No class configured for %s; using %s", key, DEFAULT_ORACLES[key])
        section["class"] = DEFAULT_ORACLES[key]
    section.setdefault("options", {})
    return section


def batching_section(config: Dict[str, Any]) -> Dict[str, Any]:
    return dict(config.get("batching") or {})
