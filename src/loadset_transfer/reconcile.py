"""Group, de-duplicate and convert records between the two models.

Business keys (set names, area names) compare case-insensitively. Reading
groups records and keeps the first spelling of each key. Writing keeps the
last row seen per key. Magnitudes are converted once, on the way out,
into new rows. Source records are never modified.
"""

from collections.abc import Callable, Iterable, Mapping, Sequence

from loadset_transfer.db.models import (
    AreaIdentifier,
    LoadSetGroup,
    LoadSetRecord,
    OutboundAssignment,
    OutboundLoadSetRow,
    SlabAssignment,
)
from loadset_transfer.units.converter import UnitConverter
from loadset_transfer.units.models import UnitSystem


def group_records(records: Iterable[LoadSetRecord]) -> list[LoadSetGroup]:
    """Group records by set name in order of first appearance."""
    groups: dict[str, LoadSetGroup] = {}
    for record in records:
        key = record.set_name.casefold()
        group = groups.get(key)
        if group is None:
            group = groups[key] = LoadSetGroup(name=record.set_name)
        group.records.append(record)
    return list(groups.values())


def load_set_names(groups: Iterable[LoadSetGroup]) -> list[str]:
    """Distinct names of groups that have records."""
    seen: set[str] = set()
    names = []
    for group in groups:
        key = group.name.casefold()
        if group.has_records and key not in seen:
            seen.add(key)
            names.append(group.name)
    return names


def select_records(groups: Iterable[LoadSetGroup], names: Iterable[str] | None = None) -> list[LoadSetRecord]:
    """Records of the named groups (all groups when ``names`` is None).

    Groups are ordered by name, ignoring case; records keep source order.
    """
    wanted = None if names is None else {n.casefold() for n in names}
    chosen = [
        g for g in groups if g.has_records and (wanted is None or g.name.casefold() in wanted)
    ]
    chosen.sort(key=lambda g: g.name.casefold())
    return [record for group in chosen for record in group.records]


def scale_records(records: Iterable[LoadSetRecord], factor: float) -> list[OutboundLoadSetRow]:
    return [
        OutboundLoadSetRow(set_name=r.set_name, load_pattern=r.load_pattern, value=r.value * factor)
        for r in records
    ]


def build_load_set_rows(
    records: Sequence[LoadSetRecord],
    converter: UnitConverter,
    source_units: UnitSystem,
    target_units: UnitSystem,
) -> list[OutboundLoadSetRow]:
    """Outbound rows with magnitudes converted from source to target area-load units.

    Conversion is strict: unknown units fail before anything is written.
    """
    if not records:
        return []
    factor = converter.area_load_scale_factor(
        source_units.force,
        source_units.length,
        target_units.force,
        target_units.length,
        strict=True,
    )
    return scale_records(records, factor)


def dedupe_assignments(rows: Iterable[OutboundAssignment]) -> list[OutboundAssignment]:
    """One assignment per object key, the last row winning.

    Rows with a blank key or load set are dropped. Keys stay in order of
    first appearance.
    """
    latest: dict[str, OutboundAssignment] = {}
    first_spelling: dict[str, str] = {}
    for row in rows:
        if not row.object_key.strip() or not row.load_set.strip():
            continue
        key = row.object_key.casefold()
        first_spelling.setdefault(key, row.object_key)
        latest[key] = row
    return [
        OutboundAssignment(object_key=first_spelling[key], load_set=row.load_set)
        for key, row in latest.items()
    ]


def correlate_areas(
    areas: Iterable[AreaIdentifier],
    assignments: Mapping[str, str],
    match_target: Callable[[str], str | None],
) -> list[SlabAssignment]:
    """Pair each source area with its assigned set and its target area.

    Parameters
    ----------
    areas : Iterable[AreaIdentifier]
        Selected source areas.
    assignments : Mapping[str, str]
        Case-folded source area name -> load set, as read from the source.
    match_target : Callable[[str], str | None]
        Returns the target unique name for a source unique name.
    """
    slabs = []
    for area in areas:
        slabs.append(
            SlabAssignment(
                source_guid=area.guid,
                source_unique_name=area.unique_name,
                source_label=area.label,
                assigned_load_set=assignments.get(area.unique_name.casefold(), ""),
                target_unique_name=match_target(area.unique_name) or "",
            )
        )
    return slabs


def build_assignments(slabs: Iterable[SlabAssignment]) -> list[OutboundAssignment]:
    """Outbound assignments for slabs with both a target area and a load set."""
    rows = [
        OutboundAssignment(object_key=s.target_unique_name, load_set=s.assigned_load_set)
        for s in slabs
        if s.target_unique_name.strip() and s.assigned_load_set.strip()
    ]
    return dedupe_assignments(rows)
