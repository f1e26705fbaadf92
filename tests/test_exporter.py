"""Tests for CSV export, including re-import of exported files."""

import csv
import io
from datetime import date

import pytest

from krisis.exporter import (
    EXPORT_HEADERS,
    applications_to_csv,
    escape_csv_field,
    export_applications,
    export_filename,
)
from krisis.importer import import_csv_bytes, import_csv_file


class TestEscaping:
    def test_plain_field_untouched(self):
        assert escape_csv_field("Google") == "Google"
        assert escape_csv_field(True) == "True"

    def test_quotes_and_commas(self):
        notes = 'Referral from "John", great fit'
        escaped = escape_csv_field(notes)
        assert escaped == '"Referral from ""John"", great fit"'
        assert next(csv.reader(io.StringIO(escaped))) == [notes]

    @pytest.mark.parametrize("value", ["a\nb", "a\rb", 'say "hi"', "x,y"])
    def test_fields_needing_quotes(self, value):
        escaped = escape_csv_field(value)
        assert escaped.startswith('"') and escaped.endswith('"')


class TestApplicationsToCsv:
    def test_column_order(self, sample_records):
        lines = applications_to_csv(sample_records[:1]).split("\n")
        assert lines[0] == ",".join(EXPORT_HEADERS)
        assert lines[1] == "Google,Software Engineer,2024-01-15,Applied,Yes,"

    def test_without_headers(self, sample_records):
        text = applications_to_csv(sample_records[:1], include_headers=False)
        assert text == "Google,Software Engineer,2024-01-15,Applied,Yes,"

    def test_escaped_row_parses_back(self, sample_records):
        rows = list(csv.reader(io.StringIO(applications_to_csv(sample_records), newline="")))
        assert rows[2] == [
            "Acme, Inc.",
            "Data Analyst",
            "2024-02-29",
            "Final Round",
            "No",
            'Referral from "John", great fit',
        ]
        assert rows[3][5] == "Line one\nLine two"

    def test_empty_input_is_header_only(self):
        assert applications_to_csv([]) == ",".join(EXPORT_HEADERS)


class TestExportFile:
    def test_filename_is_date_stamped(self):
        assert export_filename(today=date(2024, 1, 15)) == "krisis-applications-2024-01-15.csv"

    def test_writes_bom(self, tmp_path, sample_records):
        path = export_applications(sample_records, tmp_path, filename="out.csv")
        raw = path.read_bytes()
        assert raw.startswith(b"\xef\xbb\xbf")
        assert raw[3:].decode("utf-8").startswith("Company,Role")

    def test_nothing_to_export(self, tmp_path):
        assert export_applications([], tmp_path) is None
        assert list(tmp_path.iterdir()) == []


class TestRoundTrip:
    @pytest.mark.asyncio
    async def test_reimport_exported_records(self, tmp_path, sample_records):
        path = export_applications(sample_records, tmp_path)
        result = await import_csv_file(path)

        assert result.errors == []
        assert len(result.imported) == len(sample_records)
        for original, imported in zip(sample_records, result.imported):
            assert imported.model_dump(exclude={"id"}) == original.model_dump(exclude={"id"})

    @pytest.mark.asyncio
    async def test_reimport_without_bom(self, sample_records):
        data = applications_to_csv(sample_records).encode("utf-8")
        result = await import_csv_bytes("export.csv", data)
        assert result.errors == []
        assert [r.notes for r in result.imported] == [r.notes for r in sample_records]
