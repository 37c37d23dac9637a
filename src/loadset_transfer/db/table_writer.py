"""Write path: stage rows into a model table and apply the edit.

The host's write API is a two-step transaction. Rows are staged against
the table's current version token and field layout, then applied. A table
that does not exist yet is first materialized by staging and applying an
empty edit built from its metadata. A rejected stage is retried exactly
once after re-initializing the table the same way.

States::

    UNINITIALIZED -> SCHEMA_KNOWN -> STAGED -> APPLIED
          |               |  ^
          v               v  |
        INITIALIZING_SCHEMA -+

Applying replaces the table content; the host offers no rollback beyond a
failed apply leaving the table untouched.
"""

import logging
from collections.abc import Callable, Mapping, Sequence
from enum import Enum

from loadset_transfer.db.fields import FieldResolution, FieldSpec, resolve_fields
from loadset_transfer.db.models import OutboundAssignment, OutboundLoadSetRow, TableSchema
from loadset_transfer.db.schemas import (
    AREA_NAME,
    ASSIGNMENT_FIELDS,
    ASSIGNMENT_TABLE,
    LOAD_PATTERN,
    LOAD_SET,
    LOAD_SET_FIELDS,
    LOAD_SET_TABLE,
    SET_NAME,
    VALUE,
)
from loadset_transfer.db.service import ApplyResult, TableService
from loadset_transfer.db.table_reader import format_magnitude
from loadset_transfer.errors import ErrorCategory, TransferError

logger = logging.getLogger(__name__)

MAX_STAGE_RETRIES = 1


class StageState(str, Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZING_SCHEMA = "initializing_schema"
    SCHEMA_KNOWN = "schema_known"
    STAGED = "staged"
    APPLIED = "applied"


def build_row_buffer(
    schema: TableSchema,
    fields: FieldResolution,
    rows: Sequence[Mapping[str, str]],
) -> list[str]:
    """Flatten ``rows`` (logical field -> cell text) into the row-major buffer.

    Columns with no value in a row are left blank.
    """
    if fields.field_keys != schema.field_keys:
        raise TransferError(
            ErrorCategory.ROW_SHAPE,
            f"Field resolution for '{schema.table_key}' was built against a different schema.",
            table_key=schema.table_key,
        )

    field_count = schema.field_count
    buffer = [""] * (len(rows) * field_count)
    for r, row in enumerate(rows):
        offset = r * field_count
        for name, value in row.items():
            column = fields.index(name)
            if column is None:
                fields.require(name, table_key=schema.table_key)
            buffer[offset + column] = value
    return buffer


class StagingSession:
    """One stage-and-apply of a set of rows into a table.

    Parameters
    ----------
    service : TableService
        Table API of the target model.
    table_key : str
        Table to write.
    specs : Sequence[FieldSpec]
        Fields every row provides; all must resolve to a column.
    rows : Sequence[Mapping[str, str]]
        Rows to write, keyed by ``FieldSpec.name``, in write order.
    fill_import_log : bool
        Ask the host for the import log on apply.
    on_transition : Callable[[StageState], None] | None
        Called with each new state.
    """

    def __init__(
        self,
        service: TableService,
        table_key: str,
        specs: Sequence[FieldSpec],
        rows: Sequence[Mapping[str, str]],
        *,
        fill_import_log: bool = True,
        on_transition: Callable[[StageState], None] | None = None,
    ):
        if not table_key or not table_key.strip():
            raise ValueError("table_key must not be blank")
        self.service = service
        self.table_key = table_key
        self.specs = tuple(specs)
        self.rows = list(rows)
        self.fill_import_log = fill_import_log
        self.on_transition = on_transition

        self.state = StageState.UNINITIALIZED
        self.schema: TableSchema | None = None
        self.stage_attempts = 0
        self.stage_failures = 0
        self.last_status: int | None = None
        self.result: ApplyResult | None = None

        self._handlers = {
            StageState.UNINITIALIZED: self._fetch_schema,
            StageState.INITIALIZING_SCHEMA: self._initialize_from_metadata,
            StageState.SCHEMA_KNOWN: self._stage,
            StageState.STAGED: self._apply,
        }

    def _enter(self, state: StageState) -> None:
        logger.debug("'%s': %s -> %s", self.table_key, self.state.value, state.value)
        self.state = state
        if self.on_transition is not None:
            self.on_transition(state)

    def step(self) -> StageState:
        """Run the action for the current state and move to the next one."""
        handler = self._handlers.get(self.state)
        if handler is None:
            raise RuntimeError(f"No transition out of {self.state.value}")
        self._enter(handler())
        return self.state

    def run(self) -> ApplyResult:
        while self.state is not StageState.APPLIED:
            self.step()
        return self.result

    def _is_available(self) -> bool:
        wanted = self.table_key.casefold()
        return any((key or "").casefold() == wanted for key in self.service.get_available_tables())

    def _fetch_fields(self) -> TableSchema | None:
        fields = self.service.get_all_fields_in_table(self.table_key)
        if not fields.ok:
            logger.debug("get_all_fields_in_table('%s') returned status %d", self.table_key, fields.status)
            return None
        return TableSchema(table_key=self.table_key, version=fields.version, field_keys=tuple(fields.field_keys))

    def _fetch_schema(self) -> StageState:
        if self._is_available():
            self.schema = self._fetch_fields()
            if self.schema is not None:
                return StageState.SCHEMA_KNOWN
        logger.info("Table '%s' not present; initializing it from metadata", self.table_key)
        return StageState.INITIALIZING_SCHEMA

    def _initialization_failed(self, detail: str, status: int | None = None) -> TransferError:
        if self.stage_failures:
            return TransferError(
                ErrorCategory.STAGE_REJECTED,
                f"Host returned error code {self.last_status} when staging '{self.table_key}' "
                f"and the table could not be re-initialized: {detail}",
                table_key=self.table_key,
                status=self.last_status,
            )
        return TransferError(
            ErrorCategory.SCHEMA_UNAVAILABLE,
            f"Table '{self.table_key}' is unavailable and could not be initialized: {detail}",
            table_key=self.table_key,
            status=status,
        )

    def _initialize_from_metadata(self) -> StageState:
        metadata = self._fetch_fields()
        if metadata is None:
            raise self._initialization_failed("no field metadata")

        status = self.service.set_table_for_editing_array(
            self.table_key, metadata.version, list(metadata.field_keys), 0, []
        )
        if status != 0:
            raise self._initialization_failed(f"empty stage returned {status}", status)

        applied = self.service.apply_edited_tables(False)
        if not applied.ok:
            raise self._initialization_failed(
                f"empty apply returned {applied.status} with {applied.fatal_count} fatal errors",
                applied.status,
            )

        self.schema = self._fetch_fields()
        if self.schema is None:
            raise self._initialization_failed("no fields after initialization")
        return StageState.SCHEMA_KNOWN

    def _stage(self) -> StageState:
        schema = self.schema
        fields = resolve_fields(schema.field_keys, self.specs)
        fields.require(*(spec.name for spec in self.specs), table_key=self.table_key)
        buffer = build_row_buffer(schema, fields, self.rows)

        self.stage_attempts += 1
        status = self.service.set_table_for_editing_array(
            self.table_key, schema.version, list(schema.field_keys), len(self.rows), buffer
        )
        if status == 0:
            return StageState.STAGED

        self.stage_failures += 1
        self.last_status = status
        if self.stage_failures > MAX_STAGE_RETRIES:
            raise TransferError(
                ErrorCategory.STAGE_REJECTED,
                f"Host returned error code {status} when staging '{self.table_key}'.",
                table_key=self.table_key,
                status=status,
            )
        logger.warning(
            "Staging '%s' returned %d (version %d); re-initializing and retrying once",
            self.table_key,
            status,
            schema.version,
        )
        return StageState.INITIALIZING_SCHEMA

    def _apply(self) -> StageState:
        result = self.service.apply_edited_tables(self.fill_import_log)
        self.result = result
        if result.status != 0 or result.fatal_count > 0:
            raise TransferError(
                ErrorCategory.APPLY_REJECTED,
                f"Host returned error code {result.status} with {result.fatal_count} fatal errors "
                f"when applying '{self.table_key}'.",
                table_key=self.table_key,
                status=result.status,
                log_text=result.log_text,
            )
        if result.error_count or result.warning_count:
            logger.warning(
                "Applied '%s' with %d errors, %d warnings: %s",
                self.table_key,
                result.error_count,
                result.warning_count,
                result.log_text.strip(),
            )
        logger.info("Applied %d rows to '%s'", len(self.rows), self.table_key)
        return StageState.APPLIED


def import_load_set_rows(
    service: TableService,
    rows: Sequence[OutboundLoadSetRow],
    *,
    table_key: str = LOAD_SET_TABLE,
    fill_import_log: bool = True,
    on_transition: Callable[[StageState], None] | None = None,
) -> ApplyResult | None:
    """Write load set rows; ``None`` when there is nothing to write."""
    if not rows:
        logger.info("No load set rows to write to '%s'", table_key)
        return None
    cells = [
        {SET_NAME: row.set_name, LOAD_PATTERN: row.load_pattern, VALUE: format_magnitude(row.value)}
        for row in rows
    ]
    session = StagingSession(
        service, table_key, LOAD_SET_FIELDS, cells, fill_import_log=fill_import_log, on_transition=on_transition
    )
    return session.run()


def import_area_assignments(
    service: TableService,
    rows: Sequence[OutboundAssignment],
    *,
    table_key: str = ASSIGNMENT_TABLE,
    fill_import_log: bool = True,
    on_transition: Callable[[StageState], None] | None = None,
) -> ApplyResult | None:
    """Write area load set assignments; ``None`` when there is nothing to write."""
    if not rows:
        logger.info("No assignments to write to '%s'", table_key)
        return None
    cells = [{AREA_NAME: row.object_key, LOAD_SET: row.load_set} for row in rows]
    session = StagingSession(
        service, table_key, ASSIGNMENT_FIELDS, cells, fill_import_log=fill_import_log, on_transition=on_transition
    )
    return session.run()
