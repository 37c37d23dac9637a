"""Tests for staging and applying table edits."""

import pytest

from loadset_transfer.db.fields import resolve_fields
from loadset_transfer.db.models import OutboundAssignment, OutboundLoadSetRow, TableSchema
from loadset_transfer.db.schemas import ASSIGNMENT_TABLE, LOAD_SET_FIELDS, LOAD_SET_TABLE, TABLE_CATALOG
from loadset_transfer.db.service import ApplyResult
from loadset_transfer.db.table_writer import (
    StageState,
    StagingSession,
    build_row_buffer,
    import_area_assignments,
    import_load_set_rows,
)
from loadset_transfer.errors import ErrorCategory, TransferError

LOAD_SET_KEYS = ["Name", "LoadPattern", "LoadValue"]

ROWS = [
    OutboundLoadSetRow(set_name="ULoadSet1", load_pattern="SDL", value=0.4351),
    OutboundLoadSetRow(set_name="ULoadSet1", load_pattern="LL", value=0.25),
    OutboundLoadSetRow(set_name="ULoadSet2", load_pattern="LL", value=0.2),
]


@pytest.fixture
def target(table_service):
    return table_service(tables={LOAD_SET_TABLE: (LOAD_SET_KEYS, [["Old", "DL", "1.0"]])})


def test_writes_rows_in_order(target):
    result = import_load_set_rows(target, ROWS)

    assert result.ok
    assert target.tables[LOAD_SET_TABLE]["rows"] == [
        ["ULoadSet1", "SDL", "0.4351"],
        ["ULoadSet1", "LL", "0.25"],
        ["ULoadSet2", "LL", "0.2"],
    ]
    [stage] = target.stage_calls()
    assert stage[2] == 1
    assert stage[4] == 3
    assert target.calls[-1] == ("apply", True)


def test_unmapped_columns_are_blank(table_service):
    service = table_service(tables={LOAD_SET_TABLE: (["GUID", *LOAD_SET_KEYS], [])})
    import_load_set_rows(service, ROWS[:1])
    assert service.tables[LOAD_SET_TABLE]["rows"] == [["", "ULoadSet1", "SDL", "0.4351"]]


def test_writing_twice_gives_same_content(target):
    import_load_set_rows(target, ROWS)
    first = [list(r) for r in target.tables[LOAD_SET_TABLE]["rows"]]
    import_load_set_rows(target, ROWS)

    assert target.tables[LOAD_SET_TABLE]["rows"] == first
    assert target.tables[LOAD_SET_TABLE]["version"] == 3


def test_empty_rows_make_no_calls(target):
    assert import_load_set_rows(target, []) is None
    assert import_area_assignments(target, []) is None
    assert target.calls == []


def test_absent_table_is_initialized_from_metadata(table_service):
    service = table_service(metadata={ASSIGNMENT_TABLE: TABLE_CATALOG[ASSIGNMENT_TABLE]})
    rows = [OutboundAssignment(object_key="F1", load_set="ULoadSet1")]

    result = import_area_assignments(service, rows)

    assert result.ok
    stages = service.stage_calls()
    assert len(stages) == 2
    assert stages[0][4] == 0 and stages[0][5] == []
    assert stages[1][4] == 1
    assert ("apply", False) in service.calls
    assert service.tables[ASSIGNMENT_TABLE]["rows"] == [["F1", "ULoadSet1"]]


def test_absent_table_without_metadata(table_service):
    service = table_service()
    with pytest.raises(TransferError) as excinfo:
        import_load_set_rows(service, ROWS)
    assert excinfo.value.category is ErrorCategory.SCHEMA_UNAVAILABLE
    assert service.stage_calls() == []


def test_stale_version_is_retried_once(target):
    bumped = []

    def bump_version(state):
        if state is StageState.SCHEMA_KNOWN and not bumped:
            target.tables[LOAD_SET_TABLE]["version"] += 1
            bumped.append(state)

    result = import_load_set_rows(target, ROWS, on_transition=bump_version)

    assert result.ok
    real_stages = target.stage_calls(with_rows=True)
    assert len(real_stages) == 2
    assert real_stages[1][2] == real_stages[0][2] + 2
    assert len(target.tables[LOAD_SET_TABLE]["rows"]) == 3


def test_second_stage_rejection_is_fatal(target):
    target.forced_stage_statuses = [5, 7]
    with pytest.raises(TransferError) as excinfo:
        import_load_set_rows(target, ROWS)

    err = excinfo.value
    assert err.category is ErrorCategory.STAGE_REJECTED
    assert err.status == 7
    assert err.table_key == LOAD_SET_TABLE
    assert len(target.stage_calls(with_rows=True)) == 2


def test_apply_rejected_on_status(target):
    target.apply_results = [ApplyResult(status=1, log_text="Table could not be imported.")]
    with pytest.raises(TransferError) as excinfo:
        import_load_set_rows(target, ROWS)

    err = excinfo.value
    assert err.category is ErrorCategory.APPLY_REJECTED
    assert err.status == 1
    assert "Table could not be imported." in str(err)
    assert target.tables[LOAD_SET_TABLE]["rows"] == [["Old", "DL", "1.0"]]


def test_apply_rejected_on_fatal_count(target):
    target.apply_results = [ApplyResult(status=0, fatal_count=2, log_text="Fatal: unknown load pattern SDL")]
    with pytest.raises(TransferError) as excinfo:
        import_load_set_rows(target, ROWS)

    assert excinfo.value.category is ErrorCategory.APPLY_REJECTED
    assert excinfo.value.log_text == "Fatal: unknown load pattern SDL"


def test_apply_warnings_are_not_fatal(target, caplog):
    target.apply_results = [ApplyResult(status=0, warning_count=1, log_text="Warning: x")]
    with caplog.at_level("WARNING"):
        result = import_load_set_rows(target, ROWS)
    assert result.warning_count == 1
    assert "Warning: x" in caplog.text
    assert len(target.tables[LOAD_SET_TABLE]["rows"]) == 3


def test_unresolved_field_stops_before_staging(table_service):
    service = table_service(tables={LOAD_SET_TABLE: (["Story", "GUID"], [])})
    with pytest.raises(TransferError) as excinfo:
        import_load_set_rows(service, ROWS)
    assert excinfo.value.category is ErrorCategory.FIELD_UNRESOLVED
    assert service.stage_calls() == []


def test_session_reports_transitions(target):
    seen = []
    session = StagingSession(target, LOAD_SET_TABLE, LOAD_SET_FIELDS, [], on_transition=seen.append)
    session.run()
    assert seen == [StageState.SCHEMA_KNOWN, StageState.STAGED, StageState.APPLIED]
    assert session.stage_attempts == 1
    with pytest.raises(RuntimeError):
        session.step()


def test_fill_import_log_is_passed(target):
    import_load_set_rows(target, ROWS, fill_import_log=False)
    assert target.calls[-1] == ("apply", False)


def test_row_buffer_against_other_schema_is_rejected():
    fields = resolve_fields(LOAD_SET_KEYS, LOAD_SET_FIELDS)
    schema = TableSchema(table_key=LOAD_SET_TABLE, version=1, field_keys=("GUID", *LOAD_SET_KEYS))
    with pytest.raises(TransferError) as excinfo:
        build_row_buffer(schema, fields, [{"SetName": "A"}])
    assert excinfo.value.category is ErrorCategory.ROW_SHAPE


def test_row_buffer_layout():
    schema = TableSchema(table_key=LOAD_SET_TABLE, version=1, field_keys=tuple(LOAD_SET_KEYS))
    fields = resolve_fields(LOAD_SET_KEYS, LOAD_SET_FIELDS)
    buffer = build_row_buffer(schema, fields, [{"Value": "1.0", "SetName": "A"}, {"SetName": "B"}])
    assert buffer == ["A", "", "1.0", "B", "", ""]
