"""Utilities for importing contact rows and exporting review and validation results."""
from __future__ import annotations

from .exporters import customers_to_dataframe, export_customers, review_to_dataframe, write_review
from .loaders import (
    REVIEW_COLUMNS,
    SHEET_COLUMNS,
    UnsupportedFileTypeError,
    load_import_rows,
    load_review,
    normalise_key,
)

__all__ = [
    "REVIEW_COLUMNS",
    "SHEET_COLUMNS",
    "UnsupportedFileTypeError",
    "customers_to_dataframe",
    "export_customers",
    "load_import_rows",
    "load_review",
    "normalise_key",
    "review_to_dataframe",
    "write_review",
]
