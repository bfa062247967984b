"""Tests for storyshim.export."""

import csv
import io
import json

import pytest
from openpyxl import load_workbook

from storyshim.export import CSV_HEADERS, FILENAMES, MEDIA_TYPES, XLSX_HEADERS, export, to_csv, to_json, to_xlsx
from storyshim.models import GenerateResponse


def test_json_uses_wire_names(generate_response: GenerateResponse) -> None:
    payload = to_json(generate_response)
    data = json.loads(payload)

    assert data["promptTokens"] == 812
    assert data["completionTokens"] == 344
    assert data["cases"][0]["testData"] == "qa@acme.io"
    assert payload.decode().startswith('{\n  "cases"')


class TestCsv:
    def test_header_and_rows(self, generate_response: GenerateResponse) -> None:
        rows = list(csv.reader(io.StringIO(to_csv(generate_response).decode("utf-8"))))

        assert rows[0] == CSV_HEADERS
        assert rows[1] == [
            "TC-001",
            'Reset with "valid" email',
            "positive",
            "Reset email is sent",
            "Open login page | Click Forgot password | Submit email",
            "qa@acme.io",
        ]
        assert rows[2][5] == ""
        assert len(rows) == 3

    def test_quotes_embedded_quotes(self, generate_response: GenerateResponse) -> None:
        assert b'"Reset with ""valid"" email"' in to_csv(generate_response)


class TestXlsx:
    def test_sheet_contents(self, generate_response: GenerateResponse) -> None:
        workbook = load_workbook(io.BytesIO(to_xlsx(generate_response)))
        sheet = workbook["Test Cases"]
        rows = list(sheet.iter_rows(values_only=True))

        assert list(rows[0]) == XLSX_HEADERS
        assert rows[1][0] == "TC-001"
        assert rows[1][4] == "Open login page\nClick Forgot password\nSubmit email"
        assert rows[1][6] == 812
        assert rows[2][7] == 344
        assert len(rows) == 3

    def test_column_widths(self, generate_response: GenerateResponse) -> None:
        sheet = load_workbook(io.BytesIO(to_xlsx(generate_response)))["Test Cases"]
        assert sheet.column_dimensions["A"].width == 12
        assert sheet.column_dimensions["E"].width == 40
        assert sheet.column_dimensions["H"].width == 18

    def test_empty_response(self) -> None:
        empty = GenerateResponse(cases=[], prompt_tokens=0, completion_tokens=0)
        rows = list(load_workbook(io.BytesIO(to_xlsx(empty)))["Test Cases"].iter_rows(values_only=True))
        assert len(rows) == 1


class TestDispatch:
    @pytest.mark.parametrize("fmt", ["json", "csv", "xlsx"])
    def test_known_formats(self, generate_response: GenerateResponse, fmt: str) -> None:
        assert export(generate_response, fmt)  # type: ignore[arg-type]
        assert FILENAMES[fmt].endswith(f".{fmt}")
        assert fmt in MEDIA_TYPES

    def test_unknown_format(self, generate_response: GenerateResponse) -> None:
        with pytest.raises(ValueError, match="Unknown export format 'pdf'"):
            export(generate_response, "pdf")  # type: ignore[arg-type]
