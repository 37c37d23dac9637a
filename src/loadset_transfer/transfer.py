"""Move load sets and their area assignments from a source model to a target model.

Calls into the models are synchronous and must not interleave, so
background work runs on a single worker thread.
"""

import logging
from collections.abc import Callable, Iterable, Sequence
from concurrent.futures import Future, ThreadPoolExecutor

from loadset_transfer.config import TransferSettings, get_settings
from loadset_transfer.db.models import AreaIdentifier, LoadSetGroup, SlabAssignment
from loadset_transfer.db.service import ApplyResult, ModelConnection
from loadset_transfer.db.table_reader import read_area_assignments, read_load_set_records
from loadset_transfer.db.table_writer import StageState, import_area_assignments, import_load_set_rows
from loadset_transfer.errors import ErrorCategory, TransferError
from loadset_transfer.progress import ProgressCallback, ProgressReporter
from loadset_transfer.reconcile import (
    build_assignments,
    build_load_set_rows,
    correlate_areas,
    group_records,
    load_set_names,
    select_records,
)
from loadset_transfer.units.converter import UnitConverter, area_load_label
from loadset_transfer.units.registry import default_registry

logger = logging.getLogger(__name__)

STAGE_PROGRESS = {
    StageState.INITIALIZING_SCHEMA: 40,
    StageState.SCHEMA_KNOWN: 50,
    StageState.STAGED: 75,
    StageState.APPLIED: 95,
}


def _stage_progress(reporter: ProgressReporter) -> Callable[[StageState], None]:
    def on_transition(state: StageState) -> None:
        percent = STAGE_PROGRESS.get(state)
        if percent is not None:
            reporter.report(percent)

    return on_transition


def require_connected(connection: ModelConnection | None, role: str) -> ModelConnection:
    """Return ``connection`` or raise a ``CONNECTIVITY`` error."""
    if connection is None or not connection.is_connected():
        raise TransferError(ErrorCategory.CONNECTIVITY, f"No {role} model is attached.")
    return connection


def describe_model(connection: ModelConnection | None, placeholder: str) -> dict[str, str]:
    """File name and unit summary of a model, for display."""
    if connection is None or not connection.is_connected():
        return {"file": placeholder, "units": "Length-Force-Temperature", "area_load_unit": area_load_label(None)}
    units = connection.present_units()
    return {
        "file": connection.model_file_name() or placeholder,
        "units": units.summary,
        "area_load_unit": area_load_label(units),
    }


class LoadSetTransfer:
    """Reads load sets from ``source`` and writes them, converted, to ``target``.

    Parameters
    ----------
    source : ModelConnection
        Model the load sets are authored in.
    target : ModelConnection | None
        Model receiving them; required only for writes.
    converter : UnitConverter | None
        Defaults to the standard unit tables.
    settings : TransferSettings | None
        Defaults to ``get_settings()``.
    """

    def __init__(
        self,
        source: ModelConnection,
        target: ModelConnection | None = None,
        *,
        converter: UnitConverter | None = None,
        settings: TransferSettings | None = None,
    ):
        self.source = source
        self.target = target
        self.settings = settings or get_settings()
        self.converter = converter or UnitConverter(default_registry(), strict=self.settings.strict_units)
        self.groups: list[LoadSetGroup] = []
        self._executor: ThreadPoolExecutor | None = None

    def load_source(self) -> list[LoadSetGroup]:
        """Read the source load set table and group it by set name."""
        source = require_connected(self.source, "source")
        unit = area_load_label(source.present_units())
        records = read_load_set_records(
            source.tables,
            unit,
            table_key=self.settings.load_set_table,
            group_filter=self.settings.group_filter,
        )
        self.groups = group_records(records)
        logger.info(
            "Loaded %d load sets (%d records) from %s",
            len(self.groups),
            len(records),
            source.model_file_name(),
        )
        return self.groups

    def load_set_names(self) -> list[str]:
        return load_set_names(self.groups)

    def apply_load_sets(
        self,
        names: Iterable[str] | None = None,
        progress: ProgressCallback | None = None,
    ) -> ApplyResult | None:
        """Write the named load sets (all when ``names`` is None) to the target.

        Magnitudes are converted from source to target area-load units.
        Returns ``None`` when no records are selected.
        """
        reporter = ProgressReporter(progress)
        reporter.report(0)
        source = require_connected(self.source, "source")
        target = require_connected(self.target, "target")

        if not self.groups:
            self.load_source()
        records = select_records(self.groups, names)
        reporter.report(10)

        rows = build_load_set_rows(records, self.converter, source.present_units(), target.present_units())
        reporter.report(30)

        result = import_load_set_rows(
            target.tables,
            rows,
            table_key=self.settings.load_set_table,
            fill_import_log=self.settings.fill_import_log,
            on_transition=_stage_progress(reporter),
        )
        reporter.report(100)
        if result is not None:
            logger.info("Transferred %d load set rows to %s", len(rows), target.model_file_name())
        return result

    def correlate_assignments(
        self,
        areas: Sequence[AreaIdentifier],
        match_target: Callable[[str], str | None],
    ) -> list[SlabAssignment]:
        """Pair selected source areas with their assigned set and target area."""
        source = require_connected(self.source, "source")
        assignments = read_area_assignments(
            source.tables,
            table_key=self.settings.assignment_table,
            group_filter=self.settings.group_filter,
        )
        return correlate_areas(areas, assignments, match_target)

    def transfer_assignments(
        self,
        slabs: Sequence[SlabAssignment],
        progress: ProgressCallback | None = None,
    ) -> ApplyResult | None:
        """Write the assignments of correlated slabs to the target."""
        reporter = ProgressReporter(progress)
        reporter.report(0)
        target = require_connected(self.target, "target")

        rows = build_assignments(slabs)
        reporter.report(30)
        result = import_area_assignments(
            target.tables,
            rows,
            table_key=self.settings.assignment_table,
            fill_import_log=self.settings.fill_import_log,
            on_transition=_stage_progress(reporter),
        )
        reporter.report(100)
        if result is not None:
            logger.info("Transferred %d assignments to %s", len(rows), target.model_file_name())
        return result

    def submit(self, fn: Callable, *args, **kwargs) -> Future:
        """Run ``fn`` on the transfer's single background worker.

        The worker thread is started on first use and stays alive until
        ``close()``; use the transfer as a context manager or call
        ``close()`` when done submitting.
        """
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="loadset-transfer")
        return self._executor.submit(fn, *args, **kwargs)

    def close(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def __enter__(self) -> "LoadSetTransfer":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
