"""Row-addressed contact storage backed by a CSV or Excel spreadsheet."""
from __future__ import annotations

import logging
import threading
from dataclasses import replace
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Protocol, Sequence, Tuple, Union

import pandas as pd

from .ingestion.loaders import SHEET_COLUMNS, UnsupportedFileTypeError, normalise_key
from .models import ContactRecord

LOGGER = logging.getLogger(__name__)

PathLike = Union[str, Path]

# The spreadsheet header occupies row 1; data starts on row 2.
FIRST_DATA_ROW = 2

STORE_COLUMNS: Sequence[Tuple[str, str]] = SHEET_COLUMNS
HEADERS: List[str] = [header for _, header in STORE_COLUMNS]

_HEADER_ALIASES: Dict[str, str] = {normalise_key(header): attr for attr, header in STORE_COLUMNS}
_HEADER_ALIASES.update(
    {
        "country_f.": "country_name",
        "country_name": "country_name",
        "country_code": "country_name",
        "mobile_country_code": "country_mobile_code",
        "language": "language",
        "account_owner": "account_owner",
        "cs_account_owner": "account_owner",
    }
)

_CSV_SUFFIXES = {".csv"}
_EXCEL_SUFFIXES = {".xlsx", ".xlsm"}


class ContactStore(Protocol):
    """Tabular contact storage with row-addressable writes."""

    def get_all(self) -> List[ContactRecord]:  # pragma: no cover - protocol
        ...

    def update(self, record: ContactRecord) -> None:  # pragma: no cover - protocol
        ...

    def batch_update(self, records: Sequence[ContactRecord]) -> None:  # pragma: no cover - protocol
        ...


def _record_to_values(record: ContactRecord) -> Dict[str, str]:
    return {attr: str(getattr(record, attr) or "") for attr, _ in STORE_COLUMNS}


def _column_targets(columns: Sequence[object]) -> Dict[str, object]:
    """Map each record field to the sheet column holding it.

    Aliased headers such as "Country F." keep their name; fields with no
    column yet get the canonical header.
    """

    targets: Dict[str, object] = {}
    for column in columns:
        attr = _HEADER_ALIASES.get(normalise_key(str(column)))
        if attr is not None and attr not in targets:
            targets[attr] = column
    for attr, header in STORE_COLUMNS:
        targets.setdefault(attr, header)
    return targets


def _read_sheet(path: Path) -> pd.DataFrame:
    suffix = path.suffix.lower()
    if suffix in _CSV_SUFFIXES:
        frame = pd.read_csv(path, dtype=str, keep_default_na=False)
    elif suffix in _EXCEL_SUFFIXES:
        frame = pd.read_excel(path, dtype=str, engine="openpyxl").fillna("")
    else:
        raise UnsupportedFileTypeError(f"Unsupported contact store extension: {path.suffix}")
    return frame.reset_index(drop=True)


def _write_sheet(frame: pd.DataFrame, path: Path) -> None:
    suffix = path.suffix.lower()
    path.parent.mkdir(parents=True, exist_ok=True)
    if suffix in _CSV_SUFFIXES:
        frame.to_csv(path, index=False)
    elif suffix in _EXCEL_SUFFIXES:
        frame.to_excel(path, index=False, engine="openpyxl")
    else:
        raise UnsupportedFileTypeError(f"Unsupported contact store extension: {path.suffix}")


class SpreadsheetContactStore:
    """Contact store reading one spreadsheet and writing another.

    Records are addressed by their sheet row number. Writes go to
    ``destination`` (the source file when omitted); rows beyond the end of
    the destination are appended, padding any gap with blank rows.

    There is no concurrency control: a read-modify-write cycle assumes
    nothing else edits the files in between.
    """

    def __init__(self, source: PathLike, destination: Optional[PathLike] = None) -> None:
        self._source = Path(source)
        self._destination = Path(destination) if destination else self._source
        self._lock = threading.Lock()

    @property
    def source(self) -> Path:
        return self._source

    @property
    def destination(self) -> Path:
        return self._destination

    def get_all(self) -> List[ContactRecord]:
        if not self._source.exists():
            LOGGER.warning("Contact store %s does not exist yet - no contacts loaded", self._source)
            return []

        frame = _read_sheet(self._source)
        columns = {
            column: attr for attr, column in _column_targets(list(frame.columns)).items() if column in frame.columns
        }
        records: List[ContactRecord] = []
        for position, row in frame.iterrows():
            values = {
                attr: str(row[column]).strip()
                for column, attr in columns.items()
                if not pd.isna(row[column])
            }
            if not values.get("client_id"):
                continue
            values["status"] = values.get("status") or "pending"
            records.append(ContactRecord(row=int(position) + FIRST_DATA_ROW, **values))
        LOGGER.debug("Loaded %d contacts from %s", len(records), self._source)
        return records

    def update(self, record: ContactRecord) -> None:
        self.batch_update([record])

    def batch_update(self, records: Sequence[ContactRecord]) -> None:
        records = list(records)
        if not records:
            return

        with self._lock:
            if self._destination.exists():
                existing = _read_sheet(self._destination)
                columns = list(existing.columns)
                rows = existing.to_dict("records")
            else:
                columns = []
                rows = []
            targets = _column_targets(columns)
            columns.extend(column for column in targets.values() if column not in columns)

            # Only the record's own fields are replaced; other columns and rows are kept.
            for record in records:
                position = (record.row - FIRST_DATA_ROW) if record.row is not None else len(rows)
                if position < 0:
                    raise ValueError(f"Invalid row address {record.row} for client {record.client_id}")
                while len(rows) <= position:
                    rows.append({})
                values = _record_to_values(record)
                rows[position] = {**rows[position], **{targets[attr]: value for attr, value in values.items()}}

            frame = pd.DataFrame(rows, columns=columns).fillna("")
            _write_sheet(frame, self._destination)
        LOGGER.info("Wrote %d contacts to %s", len(records), self._destination)


class InMemoryContactStore:
    """List-backed contact store that keeps a log of write calls."""

    def __init__(self, records: Iterable[ContactRecord] = ()) -> None:
        self._records: List[ContactRecord] = []
        for record in records:
            if record.row is None:
                record = replace(record, row=len(self._records) + FIRST_DATA_ROW)
            self._records.append(record)
        self.write_calls: List[List[ContactRecord]] = []

    def get_all(self) -> List[ContactRecord]:
        return list(self._records)

    def update(self, record: ContactRecord) -> None:
        self.batch_update([record])

    def batch_update(self, records: Sequence[ContactRecord]) -> None:
        batch = list(records)
        self.write_calls.append(batch)
        for record in batch:
            for index, existing in enumerate(self._records):
                if existing.row == record.row:
                    self._records[index] = record
                    break
            else:
                self._records.append(record)


__all__ = [
    "ContactStore",
    "FIRST_DATA_ROW",
    "HEADERS",
    "InMemoryContactStore",
    "STORE_COLUMNS",
    "SpreadsheetContactStore",
]
