import pandas as pd
import pytest

from phone_validator.ingestion.loaders import (
    UnsupportedFileTypeError,
    format_suggestions,
    load_import_rows,
    load_review,
    parse_suggestions,
)
from phone_validator.ingestion.exporters import write_review
from phone_validator.models import ContactRecord, EnrichedRow, PhoneSuggestion


@pytest.fixture()
def sample_dataframe():
    return pd.DataFrame(
        [
            {
                "Client ID": "A1",
                "First Name": "Ada",
                "Last Name": "Lovelace",
                "Account Name": "Analytical Engines",
                "Country": "UK",
                "Phone": "020 7946 0958",
                "Country Mobile Code": "",
                "Mobile": "+447700900123",
                "Email": "ada@example.com",
            },
            {
                "Client ID": "",
                "First Name": "Bruna",
                "Last Name": "Silva",
                "Account Name": "",
                "Country": "Brazil",
                "Phone": "5551234",
                "Country Mobile Code": "",
                "Mobile": "",
                "Email": "bruna@example.com",
            },
            {key: "" for key in ("Client ID", "First Name", "Last Name", "Account Name", "Country", "Phone",
                                 "Country Mobile Code", "Mobile", "Email")},
        ]
    )


def test_load_import_rows_from_csv(sample_dataframe, tmp_path):
    csv_path = tmp_path / "contacts.csv"
    sample_dataframe.to_csv(csv_path, index=False)

    records = load_import_rows(csv_path)

    assert len(records) == 2
    first, second = records
    assert first.client_id == "A1"
    assert first.name == "Ada Lovelace"
    assert first.company == "Analytical Engines"
    assert first.raw_phone == "020 7946 0958"
    assert first.raw_mobile == "+447700900123"
    assert second.client_id == "row-3"
    assert second.country_name == "Brazil"
    assert second.status == "pending"


def test_load_import_rows_from_excel_with_mapping(sample_dataframe, tmp_path):
    excel_path = tmp_path / "contacts.xlsx"
    sample_dataframe.rename(columns={"Mobile": "WhatsApp Number"}).to_excel(excel_path, index=False)

    records = load_import_rows(excel_path, column_mapping={"raw_mobile": "WhatsApp Number"})

    assert records[0].raw_mobile == "+447700900123"
    assert records[1].raw_phone == "5551234"


def test_load_import_rows_with_unsupported_extension(tmp_path):
    bad_path = tmp_path / "contacts.txt"
    bad_path.write_text("irrelevant", encoding="utf-8")

    with pytest.raises(UnsupportedFileTypeError):
        load_import_rows(bad_path)


def test_suggestion_text_round_trip():
    suggestions = [
        PhoneSuggestion(phone="+5511912345678", confidence=0.85, source="Amplemarket"),
        PhoneSuggestion(phone="+5511999990000", confidence=0.5, source="Amplemarket"),
    ]

    text = format_suggestions(suggestions)

    assert text == "+5511912345678|0.85|Amplemarket; +5511999990000|0.5|Amplemarket"
    assert parse_suggestions(text) == suggestions
    assert parse_suggestions("") == []
    assert parse_suggestions("+15550000000") == [PhoneSuggestion(phone="+15550000000", confidence=0.0, source="")]


def test_load_review_reads_operator_edits(tmp_path):
    review_path = tmp_path / "review.csv"
    row = EnrichedRow(
        record=ContactRecord(client_id="B2", first_name="Bruna", country_name="Brazil", raw_phone="5551234"),
        normalized_phone="+555551234",
        phone_valid=True,
        phone_issues=["Inferred country code +55 from country name"],
        needs_enrichment=True,
        suggestions=[PhoneSuggestion(phone="+5511912345678", confidence=0.5, source="static")],
    )
    write_review(review_path, [row])

    frame = pd.read_csv(review_path, dtype=str, keep_default_na=False)
    frame.loc[0, "Normalized Phone"] = "+5511912345678"
    frame.to_csv(review_path, index=False)

    (loaded,) = load_review(review_path)

    assert loaded.client_id == "B2"
    assert loaded.record.country_name == "Brazil"
    assert loaded.normalized_phone == "+5511912345678"
    assert loaded.phone_valid is True
    assert loaded.needs_enrichment is True
    assert loaded.phone_issues == ["Inferred country code +55 from country name"]
    assert loaded.suggestions == row.suggestions
