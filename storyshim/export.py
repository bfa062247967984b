"""Serialize generated test cases into downloadable documents."""

import csv
import io
from typing import Literal

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font
from openpyxl.utils import get_column_letter

from storyshim.models import GenerateResponse

ExportFormat = Literal["json", "csv", "xlsx"]

FILENAMES: dict[str, str] = {
    "json": "test-cases.json",
    "csv": "test-cases.csv",
    "xlsx": "test-cases.xlsx",
}

MEDIA_TYPES: dict[str, str] = {
    "json": "application/json",
    "csv": "text/csv; charset=utf-8",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}

CSV_HEADERS = ["Test Case ID", "Title", "Category", "Expected Result", "Steps", "Test Data"]
XLSX_HEADERS = CSV_HEADERS + ["Prompt Tokens", "Completion Tokens"]
XLSX_WIDTHS = [12, 25, 15, 30, 40, 20, 15, 18]
SHEET_TITLE = "Test Cases"


def to_json(response: GenerateResponse) -> bytes:
    return response.model_dump_json(by_alias=True, indent=2).encode("utf-8")


def to_csv(response: GenerateResponse) -> bytes:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for case in response.cases:
        writer.writerow(
            [
                case.id,
                case.title,
                case.category,
                case.expected_result,
                " | ".join(case.steps),
                case.test_data or "",
            ]
        )
    return buffer.getvalue().encode("utf-8")


def to_xlsx(response: GenerateResponse) -> bytes:
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = SHEET_TITLE
    sheet.append(XLSX_HEADERS)
    for cell in sheet[1]:
        cell.font = Font(bold=True)

    for case in response.cases:
        sheet.append(
            [
                case.id,
                case.title,
                case.category,
                case.expected_result,
                "\n".join(case.steps),
                case.test_data or "",
                response.prompt_tokens,
                response.completion_tokens,
            ]
        )
        # steps column holds one step per line
        sheet.cell(row=sheet.max_row, column=5).alignment = Alignment(wrap_text=True, vertical="top")

    for index, width in enumerate(XLSX_WIDTHS, start=1):
        sheet.column_dimensions[get_column_letter(index)].width = width

    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


_WRITERS = {"json": to_json, "csv": to_csv, "xlsx": to_xlsx}


def export(response: GenerateResponse, fmt: ExportFormat) -> bytes:
    try:
        writer = _WRITERS[fmt]
    except KeyError:
        raise ValueError(f"Unknown export format '{fmt}'. Valid: {', '.join(_WRITERS)}") from None
    return writer(response)
