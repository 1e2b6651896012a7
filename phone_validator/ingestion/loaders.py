"""Utilities for loading contact rows from spreadsheets."""
from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable, List, Mapping, MutableMapping, Optional, Sequence, Tuple, Union

import pandas as pd

from ..models import ContactRecord, EnrichedRow, PhoneSuggestion

PathLike = Union[str, Path]

_FIELD_SYNONYMS: Mapping[str, Sequence[str]] = {
    "client_id": ("client_id", "id", "customer_id", "record_id"),
    "first_name": ("first_name", "firstname", "first"),
    "last_name": ("last_name", "lastname", "last"),
    "account_name": ("account_name", "account", "company", "organisation", "organization"),
    "country_name": ("country", "country_name", "country_f."),
    "raw_phone": ("phone", "phone_number", "landline"),
    "country_mobile_code": ("country_mobile_code", "mobile_country_code", "mobile_code"),
    "raw_mobile": ("mobile", "mobile_phone", "cell", "cellphone"),
    "email": ("email", "email_address", "e-mail"),
    "language": ("language", "poc_language"),
    "account_owner": ("account_owner", "cs_account_owner", "owner"),
}

# Column layout of the contact sheet, in order.
SHEET_COLUMNS: Sequence[Tuple[str, str]] = (
    ("client_id", "Client ID"),
    ("first_name", "First Name"),
    ("last_name", "Last Name"),
    ("account_name", "Account Name"),
    ("country_name", "Country"),
    ("raw_phone", "Phone"),
    ("country_mobile_code", "Country Mobile Code"),
    ("raw_mobile", "Mobile"),
    ("email", "Email"),
    ("language", "PoC Language"),
    ("account_owner", "CS Account Owner"),
    ("status", "Status"),
    ("last_validated", "Last Validated"),
)

REVIEW_COLUMNS = {
    "normalized_phone": "Normalized Phone",
    "phone_valid": "Phone Valid",
    "phone_issues": "Issues",
    "needs_enrichment": "Needs Enrichment",
    "suggestions": "Suggestions",
}

_LIST_SEPARATOR = "; "
_SUGGESTION_SEPARATOR = "|"


class UnsupportedFileTypeError(ValueError):
    """Raised when an unsupported file format is passed to the loader."""


def normalise_key(value: str) -> str:
    return value.strip().lower().replace(" ", "_")


def load_import_rows(
    path: PathLike,
    *,
    column_mapping: Optional[Mapping[str, str]] = None,
    sheet_name: Union[str, int, None] = 0,
    loader_kwargs: Optional[MutableMapping[str, Any]] = None,
) -> List[ContactRecord]:
    """Load contact rows to be normalized and enriched.

    Parameters
    ----------
    path:
        Path to the CSV/TSV/XLSX file to be loaded.
    column_mapping:
        Optional mapping of :class:`ContactRecord` field names to column
        names. Unmapped fields are matched against common header spellings.
    sheet_name:
        Sheet selector passed to :func:`pandas.read_excel`. Ignored for CSV.
    loader_kwargs:
        Extra keyword arguments forwarded to the pandas reader.
    """

    dataframe = read_dataframe(path, sheet_name=sheet_name, loader_kwargs=loader_kwargs)
    mapping = dict(column_mapping or {})
    resolved = {field: _resolve_column(field, dataframe.columns, mapping) for field in _FIELD_SYNONYMS}

    records: List[ContactRecord] = []
    for position, row in dataframe.iterrows():
        if _row_is_empty(row):
            continue
        values = {field: _clean_text(row[column]) if column in row else "" for field, column in resolved.items()}
        if not values["client_id"]:
            values["client_id"] = f"row-{int(position) + 2}"
        records.append(ContactRecord(**values))
    return records


def load_review(path: PathLike) -> List[EnrichedRow]:
    """Read a review file written by :func:`write_review`, including operator edits."""

    dataframe = read_dataframe(path)
    columns = {normalise_key(str(column)): column for column in dataframe.columns}
    resolved = {field: _resolve_column(field, dataframe.columns, {}) for field in _FIELD_SYNONYMS}
    rows: List[EnrichedRow] = []
    for position, row in dataframe.iterrows():
        if _row_is_empty(row):
            continue
        values = {field: _clean_text(row[column]) if column in row else "" for field, column in resolved.items()}
        if not values["client_id"]:
            values["client_id"] = f"row-{int(position) + 2}"

        def review_value(field: str) -> str:
            column = columns.get(normalise_key(REVIEW_COLUMNS[field]))
            return _clean_text(row[column]) if column is not None else ""

        issues = [issue for issue in review_value("phone_issues").split(_LIST_SEPARATOR) if issue]
        rows.append(
            EnrichedRow(
                record=ContactRecord(**values),
                normalized_phone=review_value("normalized_phone"),
                phone_valid=_parse_bool(review_value("phone_valid")),
                phone_issues=issues,
                needs_enrichment=_parse_bool(review_value("needs_enrichment")),
                suggestions=parse_suggestions(review_value("suggestions")),
            )
        )
    return rows


def format_suggestions(suggestions: Iterable[PhoneSuggestion]) -> str:
    return _LIST_SEPARATOR.join(
        _SUGGESTION_SEPARATOR.join([item.phone, f"{item.confidence:g}", item.source]) for item in suggestions
    )


def parse_suggestions(text: str) -> List[PhoneSuggestion]:
    suggestions: List[PhoneSuggestion] = []
    for chunk in text.split(_LIST_SEPARATOR):
        parts = [part.strip() for part in chunk.split(_SUGGESTION_SEPARATOR)]
        if not parts or not parts[0]:
            continue
        try:
            confidence = float(parts[1]) if len(parts) > 1 and parts[1] else 0.0
        except ValueError:
            confidence = 0.0
        source = parts[2] if len(parts) > 2 else ""
        suggestions.append(PhoneSuggestion(phone=parts[0], confidence=confidence, source=source))
    return suggestions


def read_dataframe(
    path: PathLike,
    *,
    sheet_name: Union[str, int, None] = 0,
    loader_kwargs: Optional[MutableMapping[str, Any]] = None,
) -> pd.DataFrame:
    loader_kwargs = dict(loader_kwargs or {})
    path_obj = Path(path)
    suffix = path_obj.suffix.lower()
    loader_kwargs.setdefault("dtype", str)

    if suffix in {".csv", ".tsv"}:
        if suffix == ".tsv":
            loader_kwargs.setdefault("sep", "\t")
        loader_kwargs.setdefault("keep_default_na", False)
        return pd.read_csv(path_obj, **loader_kwargs)

    if suffix in {".xls", ".xlsx", ".xlsm", ".xlsb"}:
        engine = loader_kwargs.pop("engine", None) or "openpyxl"
        return pd.read_excel(path_obj, sheet_name=sheet_name, engine=engine, **loader_kwargs)

    raise UnsupportedFileTypeError(f"Unsupported file extension: {path_obj.suffix}")


def _resolve_column(field: str, available_columns: Iterable[Any], mapping: Mapping[str, str]) -> Optional[str]:
    if field in mapping:
        return mapping[field]

    synonyms = _FIELD_SYNONYMS[field]
    by_key = {normalise_key(str(column)): column for column in available_columns}
    for synonym in synonyms:
        if synonym in by_key:
            return by_key[synonym]
    return None


def _row_is_empty(row: pd.Series) -> bool:
    return all(pd.isna(value) or (isinstance(value, str) and not value.strip()) for value in row.values)


def _clean_text(value: Any) -> str:
    if value is None or pd.isna(value):
        return ""
    return str(value).strip()


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in {"true", "yes", "1"}


__all__ = [
    "REVIEW_COLUMNS",
    "SHEET_COLUMNS",
    "UnsupportedFileTypeError",
    "format_suggestions",
    "load_import_rows",
    "load_review",
    "normalise_key",
    "parse_suggestions",
    "read_dataframe",
]
