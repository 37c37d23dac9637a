"""Shared fakes for the model table API."""

import pytest

from loadset_transfer.db.service import ApplyResult, DisplayTable, TableFields
from loadset_transfer.units.models import UnitSystem


class FakeTableService:
    """In-memory table API behaving like the host programs.

    Tables carry a version token that each apply increments; staging with
    another version is rejected. Apply replaces a table's content. Tables
    listed only in ``metadata`` report fields but are not available until
    an apply creates them. Every call is recorded in ``calls``.
    """

    def __init__(self, tables=None, metadata=None):
        self.tables = {}
        for key, (fields, rows) in (tables or {}).items():
            self.tables[key] = {"version": 1, "fields": list(fields), "rows": [list(r) for r in rows]}
        self.metadata = dict(metadata or {})
        self.calls = []
        self.forced_stage_statuses = []
        self.apply_results = []
        self.staged = {}

    def stage_calls(self, *, with_rows=False):
        calls = [c for c in self.calls if c[0] == "stage"]
        if with_rows:
            calls = [c for c in calls if c[4] > 0]
        return calls

    def _version(self, key):
        table = self.tables.get(key)
        return table["version"] if table else 1

    def get_available_tables(self):
        self.calls.append(("available",))
        return list(self.tables)

    def get_all_fields_in_table(self, table_key):
        self.calls.append(("fields", table_key))
        if table_key in self.tables:
            return TableFields(status=0, version=self._version(table_key), field_keys=self.tables[table_key]["fields"])
        if table_key in self.metadata:
            return TableFields(status=0, version=1, field_keys=list(self.metadata[table_key]))
        return TableFields(status=1)

    def get_table_for_display(self, table_key, group_filter):
        self.calls.append(("display", table_key, group_filter))
        table = self.tables.get(table_key)
        if table is None:
            return DisplayTable(status=1)
        cells = [cell for row in table["rows"] for cell in row]
        return DisplayTable(
            status=0,
            version=table["version"],
            field_keys=table["fields"],
            record_count=len(table["rows"]),
            cells=cells,
        )

    def set_table_for_editing_array(self, table_key, version, field_keys, row_count, cells):
        self.calls.append(("stage", table_key, version, list(field_keys), row_count, list(cells)))
        if row_count > 0 and self.forced_stage_statuses:
            status = self.forced_stage_statuses.pop(0)
            if status != 0:
                return status
        if version != self._version(table_key):
            return 2
        if len(cells) != row_count * len(field_keys):
            return 3
        width = len(field_keys)
        rows = [list(cells[r * width : (r + 1) * width]) for r in range(row_count)]
        self.staged[table_key] = (list(field_keys), rows)
        return 0

    def apply_edited_tables(self, fill_log):
        self.calls.append(("apply", fill_log))
        result = ApplyResult(status=0, info_count=1, log_text="Import complete." if fill_log else "")
        if self.apply_results:
            result = self.apply_results.pop(0)
            if not result.ok:
                self.staged.clear()
                return result
        for key, (fields, rows) in self.staged.items():
            self.tables[key] = {"version": self._version(key) + 1, "fields": fields, "rows": rows}
        self.staged.clear()
        return result


class FakeModel:
    def __init__(self, tables, units, name="model.edb", connected=True):
        self._tables = tables
        self.units = units
        self.name = name
        self.connected = connected

    @property
    def tables(self):
        return self._tables

    def is_connected(self):
        return self.connected

    def present_units(self):
        return self.units

    def model_file_name(self):
        return self.name


class FakeGeometry:
    def __init__(self, areas, points):
        self.areas = areas
        self.points = points

    def area_names(self):
        return list(self.areas)

    def area_point_names(self, area_name):
        return list(self.areas.get(area_name, []))

    def point_xy(self, point_name):
        return self.points[point_name]


@pytest.fixture
def table_service():
    return FakeTableService


@pytest.fixture
def model():
    return FakeModel


@pytest.fixture
def geometry():
    return FakeGeometry


@pytest.fixture
def etabs_load_sets():
    """Load set table as read from a source model, with two sets."""
    return FakeTableService(
        tables={
            "Shell Uniform Load Sets": (
                ["Name", "LoadPattern", "LoadValue", "GUID"],
                [
                    ["ULoadSet1", "SDL", "0.003", ""],
                    ["ULoadSet2", "LL", "0.002", ""],
                    ["uloadset1", "LL", "0.0025", ""],
                    ["", "SDL", "9", ""],
                ],
            ),
            "Area Load Assignments - Uniform Load Sets": (
                ["Story", "Label", "UniqueName", "LoadSet"],
                [
                    ["L1", "F1", "1", "ULoadSet1"],
                    ["L1", "F2", "2", "ULoadSet2"],
                    ["L2", "F1", "1", "ULoadSet2"],
                ],
            ),
        }
    )


@pytest.fixture
def n_mm_units():
    return UnitSystem(force="N", length="mm", temperature="C")


@pytest.fixture
def lb_in_units():
    return UnitSystem(force="lb", length="in", temperature="F")
