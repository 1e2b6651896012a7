import json

import pandas as pd
import pytest

from phone_validator.ingestion.exporters import (
    EXPORT_HEADERS,
    customers_to_dataframe,
    export_customers,
    review_to_dataframe,
)
from phone_validator.models import CarrierLookupResult, ContactRecord, EnrichedRow, PhoneSuggestion


def _customers():
    return [
        ContactRecord(
            client_id="A1",
            first_name="Ada",
            last_name="Lovelace",
            account_name="Analytical Engines",
            raw_phone="+442079460958",
            raw_mobile="+447700900123",
            status="valid",
            last_validated="2024-05-01T12:00:00+00:00",
        ),
        ContactRecord(client_id="B2", first_name="Bruna", raw_phone="+555551234", status="invalid"),
    ]


def _lookups():
    return {
        "A1": CarrierLookupResult.from_lookup(
            is_valid=True, line_type="mobile", international_format="+447700900123", carrier="EE"
        )
    }


def test_customers_to_dataframe_columns_and_flags():
    dataframe = customers_to_dataframe(_customers(), _lookups())

    assert list(dataframe.columns) == list(EXPORT_HEADERS)
    first, second = dataframe.iloc[0], dataframe.iloc[1]
    assert first["Validated Phone"] == "+447700900123"
    assert first["Carrier"] == "EE"
    assert first["Line Type"] == "mobile"
    assert first["WhatsApp Ready"] == "Yes"
    assert second["Validated Phone"] == "+555551234"
    assert second["Carrier"] == ""
    assert second["WhatsApp Ready"] == "No"


def test_review_to_dataframe_flattens_rows():
    row = EnrichedRow(
        record=ContactRecord(client_id="B2"),
        normalized_phone="+555551234",
        phone_valid=True,
        phone_issues=["Inferred country code +55 from country name"],
        needs_enrichment=True,
        suggestions=[PhoneSuggestion(phone="+5511912345678", confidence=0.5, source="static")],
    )

    dataframe = review_to_dataframe([row])

    assert dataframe.loc[0, "Client ID"] == "B2"
    assert dataframe.loc[0, "Suggestions"] == "+5511912345678|0.5|static"
    assert bool(dataframe.loc[0, "Needs Enrichment"]) is True


def test_export_customers_to_csv_excel_and_json(tmp_path):
    csv_path = export_customers(tmp_path / "customers.csv", _customers(), _lookups())
    excel_path = export_customers(tmp_path / "customers.xlsx", _customers(), _lookups())
    json_path = export_customers(tmp_path / "customers.json", _customers(), _lookups())

    csv_frame = pd.read_csv(csv_path, dtype=str, keep_default_na=False)
    excel_frame = pd.read_excel(excel_path, dtype=str)
    exported = json.loads(json_path.read_text(encoding="utf-8"))

    assert csv_frame.loc[0, "Client ID"] == "A1"
    assert excel_frame.loc[1, "Status"] == "invalid"
    assert exported[0]["Carrier"] == "EE"
    assert exported[1]["WhatsApp Ready"] == "No"


def test_export_customers_rejects_unknown_extension(tmp_path):
    with pytest.raises(ValueError):
        export_customers(tmp_path / "customers.parquet", _customers())
