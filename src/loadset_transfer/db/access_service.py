"""Table service over a model database exported to Microsoft Access (.mdb/.accdb).

Both host programs can export their database tables to Access. This module
serves such a file through the same table interface as a live model, so
load sets and assignments can be read from and written to exported
databases.

Uses pyodbc with the Microsoft Access ODBC driver (available on Windows).
"""

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path

import pyodbc

from loadset_transfer.db.schemas import GROUP_ALL, TABLE_CATALOG
from loadset_transfer.db.service import ApplyResult, DisplayTable, TableFields
from loadset_transfer.units.models import UnitSystem

logger = logging.getLogger(__name__)

DEFAULT_DRIVER = "Microsoft Access Driver (*.mdb, *.accdb)"


def _connection_string(db_path: Path, driver: str = DEFAULT_DRIVER) -> str:
    """Build an ODBC connection string for an Access database."""
    suffix = db_path.suffix.lower()
    if suffix not in (".accdb", ".mdb"):
        raise ValueError(f"Unsupported file extension: {suffix}")
    return f"DRIVER={{{driver}}};DBQ={db_path};"


def connect(db_path: str | Path, driver: str = DEFAULT_DRIVER) -> pyodbc.Connection:
    """Open a connection to an exported model database.

    Parameters
    ----------
    db_path : str | Path
        Path to the .mdb or .accdb file.
    driver : str
        ODBC driver name.

    Returns
    -------
    pyodbc.Connection
        An open ODBC connection with autocommit off.

    Raises
    ------
    FileNotFoundError
        If the database file does not exist.
    pyodbc.Error
        If the ODBC connection fails.
    """
    db_path = Path(db_path)
    if not db_path.exists():
        raise FileNotFoundError(f"Database not found: {db_path}")
    conn_str = _connection_string(db_path, driver)
    return pyodbc.connect(conn_str, autocommit=False)


def list_tables(conn: pyodbc.Connection) -> list[str]:
    """List all user tables in the database, excluding system tables."""
    cursor = conn.cursor()
    # Collect names before any execute(); it disrupts the tables() iterator.
    return sorted(
        row.table_name for row in cursor.tables(tableType="TABLE") if not row.table_name.startswith("MSys")
    )


def list_columns(conn: pyodbc.Connection, table_name: str) -> list[dict[str, str]]:
    """List columns and their types for a given table.

    Returns
    -------
    list[dict[str, str]]
        Dicts with 'name' and 'type_name' keys, in table order.
    """
    cursor = conn.cursor()
    return [{"name": row.column_name, "type_name": row.type_name} for row in cursor.columns(table=table_name)]


def read_table(conn: pyodbc.Connection, table_name: str) -> tuple[list[str], list[tuple]]:
    """Read all rows from a table.

    Returns
    -------
    tuple[list[str], list[tuple]]
        Column names and the row values in column order.
    """
    cursor = conn.cursor()
    cursor.execute(f"SELECT * FROM [{table_name}]")  # noqa: S608
    col_names = [desc[0] for desc in cursor.description]
    return col_names, [tuple(row) for row in cursor.fetchall()]


def _cell_text(value) -> str:
    if value is None:
        return ""
    if isinstance(value, float):
        return repr(value)
    return str(value)


@dataclass
class _StagedEdit:
    table_name: str
    field_keys: tuple[str, ...]
    rows: list[tuple[str, ...]]
    exists: bool


class AccessTableService:
    """Table service backed by an open Access connection.

    Each table carries a version token, starting at 1 and incremented by
    every successful apply. Staging with any other version is rejected, as
    the host programs do for stale edits. Applying replaces the staged
    tables' content in one transaction, creating tables that do not exist
    yet from ``catalog``.
    """

    def __init__(self, conn: pyodbc.Connection, catalog: Mapping[str, Sequence[str]] = TABLE_CATALOG):
        self.conn = conn
        self.catalog = {key.casefold(): (key, tuple(fields)) for key, fields in catalog.items()}
        self._versions: dict[str, int] = {}
        self._staged: dict[str, _StagedEdit] = {}

    def _table_name(self, table_key: str) -> str | None:
        wanted = table_key.casefold()
        for name in list_tables(self.conn):
            if name.casefold() == wanted:
                return name
        return None

    def version(self, table_key: str) -> int:
        return self._versions.get(table_key.casefold(), 1)

    def get_available_tables(self) -> list[str]:
        return list_tables(self.conn)

    def get_all_fields_in_table(self, table_key: str) -> TableFields:
        name = self._table_name(table_key)
        if name is not None:
            columns = list_columns(self.conn, name)
            keys = [c["name"] for c in columns]
            return TableFields(
                status=0,
                version=self.version(table_key),
                field_keys=keys,
                field_names=keys,
                descriptions=[c["type_name"] for c in columns],
                units=[""] * len(keys),
                importable=[True] * len(keys),
            )

        entry = self.catalog.get(table_key.casefold())
        if entry is None:
            return TableFields(status=1)
        keys = list(entry[1])
        return TableFields(
            status=0,
            version=self.version(table_key),
            field_keys=keys,
            field_names=keys,
            descriptions=[""] * len(keys),
            units=[""] * len(keys),
            importable=[True] * len(keys),
        )

    def get_table_for_display(self, table_key: str, group_filter: str = GROUP_ALL) -> DisplayTable:
        name = self._table_name(table_key)
        if name is None:
            return DisplayTable(status=1)
        if group_filter and group_filter.casefold() != GROUP_ALL.casefold():
            logger.debug("Group filter '%s' ignored; exported databases have no groups", group_filter)

        try:
            columns, rows = read_table(self.conn, name)
        except pyodbc.Error as exc:
            logger.warning("Reading '%s' failed: %s", name, exc)
            return DisplayTable(status=1)

        cells = [_cell_text(value) for row in rows for value in row]
        return DisplayTable(
            status=0,
            version=self.version(table_key),
            field_keys=columns,
            record_count=len(rows),
            cells=cells,
        )

    def set_table_for_editing_array(
        self,
        table_key: str,
        version: int,
        field_keys: Sequence[str],
        row_count: int,
        cells: Sequence[str],
    ) -> int:
        if version != self.version(table_key):
            logger.debug("Stale version %d for '%s' (current %d)", version, table_key, self.version(table_key))
            return 1
        keys = tuple(field_keys)
        if not keys or len({k.casefold() for k in keys}) != len(keys):
            return 1
        if row_count < 0 or len(cells) != row_count * len(keys):
            return 1

        name = self._table_name(table_key)
        if name is not None:
            existing = {c["name"].casefold() for c in list_columns(self.conn, name)}
            unknown = [k for k in keys if k.casefold() not in existing]
            if unknown:
                logger.debug("Fields %s not in '%s'", unknown, name)
                return 1

        width = len(keys)
        rows = [tuple(cells[r * width : (r + 1) * width]) for r in range(row_count)]
        self._staged[table_key.casefold()] = _StagedEdit(
            table_name=name or table_key, field_keys=keys, rows=rows, exists=name is not None
        )
        return 0

    def apply_edited_tables(self, fill_log: bool) -> ApplyResult:
        staged = dict(self._staged)
        self._staged.clear()
        messages = []
        cursor = self.conn.cursor()
        try:
            for edit in staged.values():
                if not edit.exists:
                    columns = ", ".join(f"[{k}] TEXT(255)" for k in edit.field_keys)
                    cursor.execute(f"CREATE TABLE [{edit.table_name}] ({columns})")
                    messages.append(f"Created table '{edit.table_name}'.")
                cursor.execute(f"DELETE FROM [{edit.table_name}]")  # noqa: S608
                if edit.rows:
                    names = ", ".join(f"[{k}]" for k in edit.field_keys)
                    marks = ", ".join("?" for _ in edit.field_keys)
                    cursor.executemany(
                        f"INSERT INTO [{edit.table_name}] ({names}) VALUES ({marks})",  # noqa: S608
                        [[cell or None for cell in row] for row in edit.rows],
                    )
                messages.append(f"Imported {len(edit.rows)} rows into '{edit.table_name}'.")
            self.conn.commit()
        except pyodbc.Error as exc:
            self.conn.rollback()
            logger.error("Apply failed, rolled back: %s", exc)
            return ApplyResult(status=1, fatal_count=1, log_text=str(exc) if fill_log else "")

        for key in staged:
            self._versions[key] = self._versions.get(key, 1) + 1
        return ApplyResult(status=0, info_count=len(messages), log_text="\n".join(messages) if fill_log else "")


class AccessModel:
    """An exported model database with known present units."""

    def __init__(
        self,
        db_path: str | Path,
        units: UnitSystem,
        *,
        driver: str = DEFAULT_DRIVER,
        catalog: Mapping[str, Sequence[str]] = TABLE_CATALOG,
    ):
        self.db_path = Path(db_path)
        self.units = units
        self._conn = connect(self.db_path, driver)
        self._tables = AccessTableService(self._conn, catalog)

    @property
    def tables(self) -> AccessTableService:
        return self._tables

    def is_connected(self) -> bool:
        return self._conn is not None

    def present_units(self) -> UnitSystem:
        return self.units

    def model_file_name(self) -> str:
        return self.db_path.name

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> "AccessModel":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
