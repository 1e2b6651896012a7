"""Export utilities for reviewed and validated contacts."""
from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Mapping, MutableMapping, Optional, Sequence, Union

import pandas as pd

from ..models import STATUS_PENDING, STATUS_VALID, CarrierLookupResult, ContactRecord, EnrichedRow
from .loaders import REVIEW_COLUMNS, SHEET_COLUMNS, format_suggestions

PathLike = Union[str, Path]

EXPORT_HEADERS: Sequence[str] = (
    "Client ID",
    "First Name",
    "Last Name",
    "Account Name",
    "Country",
    "Original Phone",
    "Validated Phone",
    "Email",
    "Language",
    "Account Owner",
    "Status",
    "Last Validated",
    "Carrier",
    "Line Type",
    "WhatsApp Ready",
    "Recommendations",
)


def review_to_dataframe(rows: Sequence[EnrichedRow]) -> pd.DataFrame:
    """Flatten enriched import rows for operator review."""

    records = []
    for row in rows:
        entry: MutableMapping[str, object] = {
            header: getattr(row.record, attr) for attr, header in SHEET_COLUMNS
        }
        entry[REVIEW_COLUMNS["normalized_phone"]] = row.normalized_phone
        entry[REVIEW_COLUMNS["phone_valid"]] = row.phone_valid
        entry[REVIEW_COLUMNS["phone_issues"]] = "; ".join(row.phone_issues)
        entry[REVIEW_COLUMNS["needs_enrichment"]] = row.needs_enrichment
        entry[REVIEW_COLUMNS["suggestions"]] = format_suggestions(row.suggestions)
        records.append(entry)
    columns = [header for _, header in SHEET_COLUMNS] + list(REVIEW_COLUMNS.values())
    return pd.DataFrame(records, columns=columns)


def write_review(path: PathLike, rows: Sequence[EnrichedRow]) -> Path:
    output_path = Path(path)
    _write_dataframe(review_to_dataframe(rows), output_path, sheet_name="Review", exporter_kwargs=None)
    return output_path


def customers_to_dataframe(
    records: Iterable[ContactRecord],
    lookups: Optional[Mapping[str, CarrierLookupResult]] = None,
) -> pd.DataFrame:
    """Build the customer export table.

    ``lookups`` maps ``client_id`` to the carrier details gathered during
    validation; customers without one get blank carrier columns.
    """

    lookups = lookups or {}
    rows: List[List[object]] = []
    for record in records:
        lookup = lookups.get(record.client_id)
        rows.append(
            [
                record.client_id,
                record.first_name,
                record.last_name,
                record.account_name,
                record.country_name,
                record.raw_phone,
                record.raw_mobile or record.raw_phone,
                record.email,
                record.language,
                record.account_owner,
                record.status or STATUS_PENDING,
                record.last_validated,
                (lookup.carrier or "") if lookup else "",
                lookup.line_type if lookup else "",
                "Yes" if record.status == STATUS_VALID else "No",
                "",
            ]
        )
    return pd.DataFrame(rows, columns=list(EXPORT_HEADERS))


def export_customers(
    path: PathLike,
    records: Iterable[ContactRecord],
    lookups: Optional[Mapping[str, CarrierLookupResult]] = None,
    *,
    exporter_kwargs: Optional[MutableMapping[str, object]] = None,
) -> Path:
    """Write validated customers to CSV, Excel, or JSON."""

    output_path = Path(path)
    dataframe = customers_to_dataframe(records, lookups)
    if output_path.suffix.lower() == ".json":
        output_path.parent.mkdir(parents=True, exist_ok=True)
        dataframe.to_json(output_path, orient="records", indent=2, force_ascii=False)
        return output_path
    _write_dataframe(dataframe, output_path, sheet_name="Customers", exporter_kwargs=exporter_kwargs)
    return output_path


def _write_dataframe(
    dataframe: pd.DataFrame,
    path: Path,
    *,
    sheet_name: str,
    exporter_kwargs: Optional[MutableMapping[str, object]],
) -> None:
    exporter_kwargs = dict(exporter_kwargs or {})
    suffix = path.suffix.lower()
    path.parent.mkdir(parents=True, exist_ok=True)

    if suffix in {".csv", ".tsv"}:
        if suffix == ".tsv":
            exporter_kwargs.setdefault("sep", "\t")
        dataframe.to_csv(path, index=False, **exporter_kwargs)
        return

    if suffix in {".xlsx", ".xlsm"}:
        engine = exporter_kwargs.pop("engine", None) or "openpyxl"
        dataframe.to_excel(path, index=False, sheet_name=sheet_name, engine=engine, **exporter_kwargs)
        return

    raise ValueError(f"Unsupported export file extension: {suffix}")


__all__ = [
    "EXPORT_HEADERS",
    "customers_to_dataframe",
    "export_customers",
    "review_to_dataframe",
    "write_review",
]
