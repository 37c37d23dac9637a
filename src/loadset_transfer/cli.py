"""Command-line interface for exported model databases.

Usage:
    loadset-transfer list ETABS.accdb --units kN,m,C
    loadset-transfer export ETABS.accdb --units kN,m,C --output loadsets.xlsx
    loadset-transfer fields SAFE.accdb "Shell Uniform Load Sets" --output fields.xlsx
    loadset-transfer transfer ETABS.accdb SAFE.accdb --source-units N,mm,C --target-units lb,in,F
    loadset-transfer assign ETABS.accdb SAFE.accdb --area 12 14 15
"""

import argparse
import logging
import sys
from collections.abc import Sequence

from loadset_transfer.config import TransferSettings, get_settings
from loadset_transfer.db.access_service import AccessModel
from loadset_transfer.db.models import AreaIdentifier
from loadset_transfer.errors import TransferError
from loadset_transfer.geometry import NameCorrelator
from loadset_transfer.report import write_field_dictionary, write_load_set_workbook
from loadset_transfer.transfer import LoadSetTransfer, describe_model
from loadset_transfer.units.models import UnitSystem

logger = logging.getLogger(__name__)


def _units(text: str | None) -> UnitSystem:
    return UnitSystem() if not text else UnitSystem.parse(text)


def _print_progress(percent: int) -> None:
    print(f"  {percent:3d}%", file=sys.stderr)


def cmd_list(args: argparse.Namespace, settings: TransferSettings) -> int:
    with AccessModel(args.database, _units(args.units), driver=settings.odbc_driver) as model:
        info = describe_model(model, "(Unknown Model)")
        print(f"{info['file']} [{info['units']}]")
        for group in LoadSetTransfer(model, settings=settings).load_source():
            print(group.name)
            for record in group.records:
                print(f"    {record.load_pattern:<20} {record.value:>14.6g} {record.unit}")
    return 0


def cmd_export(args: argparse.Namespace, settings: TransferSettings) -> int:
    with AccessModel(args.database, _units(args.units), driver=settings.odbc_driver) as model:
        groups = LoadSetTransfer(model, settings=settings).load_source()
    path = write_load_set_workbook(groups, args.output)
    print(f"Saved: {path}")
    return 0


def cmd_fields(args: argparse.Namespace, settings: TransferSettings) -> int:
    with AccessModel(args.database, UnitSystem(), driver=settings.odbc_driver) as model:
        fields = model.tables.get_all_fields_in_table(args.table)
    if not fields.ok:
        print(f"ERROR: No fields for table '{args.table}'", file=sys.stderr)
        return 1
    for key, description in zip(fields.field_keys, fields.descriptions, strict=False):
        print(f"{key:<30} {description}")
    if args.output:
        path = write_field_dictionary(args.table, fields, args.output)
        print(f"Saved: {path}")
    return 0


def cmd_transfer(args: argparse.Namespace, settings: TransferSettings) -> int:
    with (
        AccessModel(args.source, _units(args.source_units), driver=settings.odbc_driver) as source,
        AccessModel(args.target, _units(args.target_units), driver=settings.odbc_driver) as target,
        LoadSetTransfer(source, target, settings=settings) as transfer,
    ):
        transfer.load_source()
        result = transfer.apply_load_sets(args.sets or None, progress=_print_progress)
    if result is None:
        print("Nothing to transfer.")
    else:
        print(f"Applied: {result.warning_count} warnings, {result.info_count} messages")
        if result.log_text:
            print(result.log_text)
    return 0


def cmd_assign(args: argparse.Namespace, settings: TransferSettings) -> int:
    with (
        AccessModel(args.source, UnitSystem(), driver=settings.odbc_driver) as source,
        AccessModel(args.target, UnitSystem(), driver=settings.odbc_driver) as target,
        LoadSetTransfer(source, target, settings=settings) as transfer,
    ):
        areas = [AreaIdentifier(unique_name=name) for name in args.area]
        slabs = transfer.correlate_assignments(areas, NameCorrelator())
        for slab in slabs:
            print(f"{slab.source_unique_name:<12} -> {slab.target_unique_name:<12} {slab.assigned_load_set}")
        result = transfer.transfer_assignments(slabs, progress=_print_progress)
    print("Nothing to transfer." if result is None else "Assignments applied.")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="loadset-transfer",
        description="Move shell uniform load sets between exported model databases.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("list", help="List load sets grouped by name")
    p.add_argument("database")
    p.add_argument("--units", help="Present units as force,length[,temperature], e.g. kN,m,C")
    p.set_defaults(func=cmd_list)

    p = sub.add_parser("export", help="Write load sets to an Excel workbook")
    p.add_argument("database")
    p.add_argument("--units")
    p.add_argument("--output", required=True)
    p.set_defaults(func=cmd_export)

    p = sub.add_parser("fields", help="Show the field metadata of a table")
    p.add_argument("database")
    p.add_argument("table")
    p.add_argument("--output", help="Also write an Excel data dictionary")
    p.set_defaults(func=cmd_fields)

    p = sub.add_parser("transfer", help="Copy load sets to the target, converting units")
    p.add_argument("source")
    p.add_argument("target")
    p.add_argument("--source-units", required=True)
    p.add_argument("--target-units", required=True)
    p.add_argument("--set", dest="sets", action="append", help="Load set to transfer (repeatable)")
    p.set_defaults(func=cmd_transfer)

    p = sub.add_parser("assign", help="Copy area load set assignments, matching areas by unique name")
    p.add_argument("source")
    p.add_argument("target")
    p.add_argument("--area", nargs="+", required=True, help="Source area unique names")
    p.set_defaults(func=cmd_assign)

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        return args.func(args, settings)
    except (TransferError, FileNotFoundError, ValueError) as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
