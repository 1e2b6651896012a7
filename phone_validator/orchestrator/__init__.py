"""Workflow orchestration for enrichment, bulk validation, and imports."""

from .enrichment import EnrichmentOrchestrator
from .importing import ImportPipeline
from .validation import BulkValidationOrchestrator, RecordNotFoundError

__all__ = [
    "BulkValidationOrchestrator",
    "EnrichmentOrchestrator",
    "ImportPipeline",
    "RecordNotFoundError",
]
