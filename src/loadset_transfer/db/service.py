"""Capability interface over a model's database-table API.

Both host programs expose the same table operations. Every call returns a
typed result carrying the host status code (0 means success) instead of
raising, so the gateway decides what is fatal.
"""

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from pydantic import BaseModel, Field

from loadset_transfer.units.models import UnitSystem


class TableFields(BaseModel):
    """Result of ``get_all_fields_in_table``: table metadata independent of rows."""

    status: int
    version: int = 0
    field_keys: list[str] = Field(default_factory=list)
    field_names: list[str] = Field(default_factory=list)
    descriptions: list[str] = Field(default_factory=list)
    units: list[str] = Field(default_factory=list)
    importable: list[bool] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status == 0 and len(self.field_keys) > 0


class DisplayTable(BaseModel):
    """Result of ``get_table_for_display``: current rows, flattened row-major."""

    status: int
    version: int = 0
    field_keys: list[str] = Field(default_factory=list)
    record_count: int = 0
    cells: list[str | None] = Field(default_factory=list)

    @property
    def has_data(self) -> bool:
        return self.status == 0 and self.record_count > 0 and len(self.field_keys) > 0


class ApplyResult(BaseModel):
    """Result of ``apply_edited_tables``."""

    status: int
    fatal_count: int = 0
    error_count: int = 0
    warning_count: int = 0
    info_count: int = 0
    log_text: str = ""

    @property
    def ok(self) -> bool:
        return self.status == 0 and self.fatal_count == 0


@runtime_checkable
class TableService(Protocol):
    """The table operations the gateway needs from a model."""

    def get_available_tables(self) -> list[str]: ...

    def get_all_fields_in_table(self, table_key: str) -> TableFields: ...

    def get_table_for_display(self, table_key: str, group_filter: str) -> DisplayTable: ...

    def set_table_for_editing_array(
        self,
        table_key: str,
        version: int,
        field_keys: Sequence[str],
        row_count: int,
        cells: Sequence[str],
    ) -> int: ...

    def apply_edited_tables(self, fill_log: bool) -> ApplyResult: ...


@runtime_checkable
class ModelConnection(Protocol):
    """An attached model: its table service plus display information."""

    @property
    def tables(self) -> TableService: ...

    def is_connected(self) -> bool: ...

    def present_units(self) -> UnitSystem: ...

    def model_file_name(self) -> str: ...
