"""Decide which normalized records are worth an external enrichment lookup."""
from __future__ import annotations

from .models import NormalizationResult


def needs_enrichment(result: NormalizationResult) -> bool:
    """Return ``True`` when the number is invalid or carries any issue."""

    return not result.is_valid or bool(result.issues)


__all__ = ["needs_enrichment"]
