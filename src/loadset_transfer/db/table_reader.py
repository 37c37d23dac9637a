"""Read path: current table rows as text records.

Missing tables, zero rows and blank cells are not errors here. They give
empty results or default values, because a model without load sets is a
valid model.
"""

import logging
import math
import re

from pydantic import BaseModel, ConfigDict

from loadset_transfer.db.fields import resolve_fields
from loadset_transfer.db.models import LoadSetRecord
from loadset_transfer.db.schemas import (
    AREA_NAME,
    ASSIGNMENT_FIELDS,
    ASSIGNMENT_TABLE,
    GROUP_ALL,
    LOAD_PATTERN,
    LOAD_SET,
    LOAD_SET_FIELDS,
    LOAD_SET_TABLE,
    SET_NAME,
    VALUE,
)
from loadset_transfer.db.service import TableService

logger = logging.getLogger(__name__)

# Invariant number format: '.' decimal separator, no grouping.
_NUMBER = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def parse_magnitude(text: str | None) -> float:
    """Parse a numeric cell; anything unparseable is 0.0."""
    candidate = (text or "").strip()
    if not _NUMBER.fullmatch(candidate):
        return 0.0
    value = float(candidate)
    return value if math.isfinite(value) else 0.0


def format_magnitude(value: float) -> str:
    """Render a magnitude for a table cell, independent of locale."""
    return repr(float(value))


class TableSnapshot(BaseModel):
    """Rows of a table as read in one call, each as long as ``field_keys``."""

    model_config = ConfigDict(frozen=True)

    table_key: str
    version: int = 0
    field_keys: tuple[str, ...] = ()
    rows: tuple[tuple[str, ...], ...] = ()

    @property
    def has_data(self) -> bool:
        return len(self.rows) > 0

    def cell(self, row_index: int, column: int | None) -> str:
        if column is None:
            return ""
        return self.rows[row_index][column].strip()

    def records(self) -> list[dict[str, str]]:
        """Rows as ordered field key -> cell mappings."""
        return [dict(zip(self.field_keys, row, strict=True)) for row in self.rows]


def read_table(service: TableService, table_key: str, group_filter: str = GROUP_ALL) -> TableSnapshot:
    """Read the current rows of ``table_key``.

    Parameters
    ----------
    service : TableService
        Table API of the model to read.
    table_key : str
        Table to read.
    group_filter : str
        Host group whose objects are included; ``"All"`` for every row.

    Returns
    -------
    TableSnapshot
        An empty snapshot when the host reports a failure or no rows.
    """
    if not table_key or not table_key.strip():
        raise ValueError("table_key must not be blank")

    result = service.get_table_for_display(table_key, group_filter)
    if not result.has_data:
        logger.info("No data in '%s' (status %d, %d records)", table_key, result.status, result.record_count)
        return TableSnapshot(table_key=table_key, version=result.version)

    field_keys = tuple(key or "" for key in result.field_keys)
    field_count = len(field_keys)
    cells = result.cells
    rows = []
    for r in range(result.record_count):
        row = []
        for c in range(field_count):
            idx = r * field_count + c
            value = cells[idx] if idx < len(cells) else None
            row.append("" if value is None else str(value))
        rows.append(tuple(row))

    logger.info("Read %d rows from '%s'", len(rows), table_key)
    return TableSnapshot(table_key=table_key, version=result.version, field_keys=field_keys, rows=tuple(rows))


def read_load_set_records(
    service: TableService,
    unit: str = "",
    *,
    table_key: str = LOAD_SET_TABLE,
    group_filter: str = GROUP_ALL,
) -> list[LoadSetRecord]:
    """Read shell uniform load set rows, one record per load pattern.

    Rows with a blank set name are skipped. ``unit`` is the display unit
    stamped on each record.
    """
    snapshot = read_table(service, table_key, group_filter)
    if not snapshot.has_data:
        return []

    fields = resolve_fields(snapshot.field_keys, LOAD_SET_FIELDS)
    set_col = fields.index(SET_NAME)
    if set_col is None:
        logger.warning("No set name column in '%s': %s", table_key, list(snapshot.field_keys))
        return []
    pattern_col = fields.index(LOAD_PATTERN)
    value_col = fields.index(VALUE)

    records = []
    for r in range(len(snapshot.rows)):
        set_name = snapshot.cell(r, set_col)
        if not set_name:
            continue
        records.append(
            LoadSetRecord(
                set_name=set_name,
                load_pattern=snapshot.cell(r, pattern_col),
                value=parse_magnitude(snapshot.cell(r, value_col)),
                unit=unit,
            )
        )
    return records


def read_area_assignments(
    service: TableService,
    *,
    table_key: str = ASSIGNMENT_TABLE,
    group_filter: str = GROUP_ALL,
) -> dict[str, str]:
    """Read area load set assignments.

    Returns
    -------
    dict[str, str]
        Case-folded area unique name -> assigned load set. When an area
        appears more than once the first row wins.
    """
    snapshot = read_table(service, table_key, group_filter)
    if not snapshot.has_data:
        return {}

    fields = resolve_fields(snapshot.field_keys, ASSIGNMENT_FIELDS)
    area_col = fields.index(AREA_NAME)
    if area_col is None:
        logger.warning("No area name column in '%s': %s", table_key, list(snapshot.field_keys))
        return {}
    set_col = fields.index(LOAD_SET)

    assignments: dict[str, str] = {}
    for r in range(len(snapshot.rows)):
        area_name = snapshot.cell(r, area_col)
        if not area_name:
            continue
        assignments.setdefault(area_name.casefold(), snapshot.cell(r, set_col))
    return assignments
