"""Excel workbooks of load sets and table field metadata."""

import re
from collections.abc import Sequence
from pathlib import Path

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter

from loadset_transfer.db.models import LoadSetGroup
from loadset_transfer.db.service import TableFields

HEADER_FONT = Font(name="Calibri", bold=True, size=11, color="FFFFFF")
HEADER_FILL = PatternFill(start_color="2F5496", end_color="2F5496", fill_type="solid")
HEADER_ALIGN = Alignment(horizontal="center", vertical="center", wrap_text=True)
CELL_ALIGN = Alignment(vertical="top", wrap_text=True)

LOAD_SET_HEADERS = ["Load Set", "Load Pattern", "Value", "Unit"]
FIELD_HEADERS = ["Field Key", "Field Name", "Description", "Units", "Importable"]

_INVALID_SHEET_CHARS = re.compile(r"[\[\]:*?/\\]")


def _write_sheet(ws, headers: Sequence[str], rows: Sequence[Sequence], widths: Sequence[int]) -> None:
    for col_idx, header in enumerate(headers, 1):
        cell = ws.cell(row=1, column=col_idx, value=header)
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.alignment = HEADER_ALIGN

    for row_idx, values in enumerate(rows, 2):
        for col_idx, value in enumerate(values, 1):
            ws.cell(row=row_idx, column=col_idx, value=value).alignment = CELL_ALIGN

    for i, w in enumerate(widths, 1):
        ws.column_dimensions[get_column_letter(i)].width = w

    # Freeze header row
    ws.freeze_panes = "A2"


def write_load_set_workbook(groups: Sequence[LoadSetGroup], output_path: str | Path) -> Path:
    """Write one row per load set record, grouped by set, to ``output_path``."""
    rows = [
        (record.set_name, record.load_pattern, record.value, record.unit)
        for group in groups
        for record in group.records
    ]
    wb = Workbook()
    ws = wb.active
    ws.title = "Load Sets"
    _write_sheet(ws, LOAD_SET_HEADERS, rows, [24, 20, 14, 14])

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    wb.save(output_path)
    return output_path


def write_field_dictionary(table_key: str, fields: TableFields, output_path: str | Path) -> Path:
    """Write a table's field metadata to a one-sheet data dictionary."""
    count = len(fields.field_keys)

    def column(values: Sequence, default):
        return list(values) + [default] * (count - len(values))

    rows = list(
        zip(
            fields.field_keys,
            column(fields.field_names, ""),
            column(fields.descriptions, ""),
            column(fields.units, ""),
            ["Yes" if flag else "No" for flag in column(fields.importable, False)],
        )
    )
    wb = Workbook()
    ws = wb.active
    # Sheet name max 31 chars
    ws.title = _INVALID_SHEET_CHARS.sub("_", table_key)[:31]
    _write_sheet(ws, FIELD_HEADERS, rows, [24, 24, 50, 12, 12])

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    wb.save(output_path)
    return output_path
