"""Tests for the Excel workbooks."""

from openpyxl import load_workbook

from loadset_transfer.db.models import LoadSetGroup, LoadSetRecord
from loadset_transfer.db.service import TableFields
from loadset_transfer.report import write_field_dictionary, write_load_set_workbook


def test_load_set_workbook(tmp_path):
    groups = [
        LoadSetGroup(
            name="ULoadSet1",
            records=[
                LoadSetRecord(set_name="ULoadSet1", load_pattern="SDL", value=0.003, unit="N/mm²"),
                LoadSetRecord(set_name="ULoadSet1", load_pattern="LL", value=0.0025, unit="N/mm²"),
            ],
        )
    ]
    path = write_load_set_workbook(groups, tmp_path / "out" / "loadsets.xlsx")

    ws = load_workbook(path)["Load Sets"]
    assert [c.value for c in ws[1]] == ["Load Set", "Load Pattern", "Value", "Unit"]
    assert [c.value for c in ws[2]] == ["ULoadSet1", "SDL", 0.003, "N/mm²"]
    assert ws.max_row == 3
    assert ws.freeze_panes == "A2"
    assert ws["A1"].font.bold


def test_field_dictionary(tmp_path):
    fields = TableFields(
        status=0,
        version=1,
        field_keys=["UniqueName", "LoadSet"],
        field_names=["Unique Name", "Load Set"],
        descriptions=["Area unique name", "Assigned uniform load set"],
        importable=[True],
    )
    path = write_field_dictionary("Area Load Assignments - Uniform Load Sets", fields, tmp_path / "fields.xlsx")

    wb = load_workbook(path)
    ws = wb.active
    assert ws.title == "Area Load Assignments - Uniform"
    row = [c.value for c in ws[2]]
    assert row[:3] == ["UniqueName", "Unique Name", "Area unique name"]
    assert row[4] == "Yes"
    assert ws["E3"].value == "No"


def test_sheet_title_drops_invalid_characters(tmp_path):
    path = write_field_dictionary("Loads [kN/m2]", TableFields(status=0, field_keys=["A"]), tmp_path / "f.xlsx")
    assert load_workbook(path).active.title == "Loads _kN_m2_"
