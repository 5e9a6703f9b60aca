"""Command-line interface for the interchange engine."""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional

from .config import InterchangeConfig
from .models.mapping import MappingResult
from .models.results import ImportResult, InterchangeError
from .models.schema import ExportFormat, RestoreStrategy, TargetField, parse_target_field
from .importers.csv_reader import CSVTable
from .orchestrator import InterchangeOrchestrator

logger = logging.getLogger(__name__)


def parse_overrides(values: Optional[List[str]]) -> Dict[int, Optional[TargetField]]:
    """Parse --map COLUMN=FIELD options, e.g. '2=brand' or '5=none'."""
    overrides: Dict[int, Optional[TargetField]] = {}
    for value in values or []:
        column, sep, field_name = value.partition("=")
        if not sep or not column.strip().isdigit():
            raise ValueError(f"Invalid --map value '{value}', expected COLUMN=FIELD")
        overrides[int(column)] = parse_target_field(field_name)
    return overrides


def print_mapping(table: CSVTable, mapping: MappingResult, preview_rows: int = 0):
    """Print a mapping as a table of columns."""
    print(f"\n=== Column Mapping: {table.source or 'CSV'} ===")
    print(f"Rows: {table.row_count}  Delimiter: {table.delimiter!r}  Encoding: {table.encoding}")
    print()
    for m in mapping.mappings:
        target = m.field.display_name if m.field else "(unmapped)"
        score = f"{m.confidence:.2f}" if m.field else "-"
        print(f"  {m.column_index:>3}. {m.header[:30]:<30} -> {target:<18} {score:>5} {m.tier.value}")

    if mapping.warnings:
        print("\nWarnings:")
        for warning in mapping.warnings:
            print(f"  - {warning}")

    print(f"\nMapping is {'valid' if mapping.is_valid else 'INVALID'}")

    if preview_rows:
        print("\nPreview:")
        for row in table.preview(preview_rows):
            print("  " + " | ".join(row))


def print_import_result(result: ImportResult):
    print("\n" + "=" * 60)
    print("IMPORT COMPLETE")
    print("=" * 60)
    print(result.summary)
    if result.errors:
        print(f"\nErrors ({len(result.errors)}):")
        for issue in result.errors:
            print(f"  - {issue.description}")
    if result.warnings:
        print(f"\nWarnings ({len(result.warnings)}):")
        for warning in result.warnings:
            print(f"  - {warning}")


def run_analyze(args, orchestrator: InterchangeOrchestrator) -> int:
    """Analyze a spreadsheet's headers."""
    table, mapping = orchestrator.analyze_csv_file(args.input, has_header=not args.no_header)
    if args.json:
        print(json.dumps({"table": table.to_dict(args.preview), "mapping": mapping.to_dict()},
                         indent=2))
    else:
        print_mapping(table, mapping, args.preview)
    return 0 if mapping.is_valid else 2


def run_import_csv(args, orchestrator: InterchangeOrchestrator) -> int:
    """Import a spreadsheet and optionally save the items as an archive."""
    overrides = parse_overrides(args.map)
    result = orchestrator.import_csv_file(
        args.input, overrides=overrides, has_header=not args.no_header
    )
    print_import_result(result)

    if args.output and result.items:
        path = orchestrator.export_archive(items=result.items, directory=args.output)
        print(f"\nSaved archive: {path}")
    return 1 if result.has_errors else 0


def run_validate(args, orchestrator: InterchangeOrchestrator) -> int:
    """Validate a backup file and report record-level problems."""
    if not orchestrator.validate_backup(args.input):
        print(f"\n{args.input} is not a valid backup")
        return 1

    result = orchestrator.import_json_file(args.input)
    print_import_result(result)
    return 1 if result.has_errors else 0


def run_export_csv(args, orchestrator: InterchangeOrchestrator) -> int:
    """Convert a JSON backup's items to CSV."""
    archive = orchestrator.read_archive(args.input)
    path = orchestrator.export_archive(
        items=archive.items, fmt=ExportFormat.CSV, directory=args.output
    )
    print(f"Exported {len(archive.items)} items to {path}")
    return 0


def run_restore(args, orchestrator: InterchangeOrchestrator) -> int:
    """Restore a backup into an inventory file and save the result."""
    inventory_path = Path(args.into)
    snapshot = orchestrator.load_inventory(inventory_path)

    result = orchestrator.restore(args.input, snapshot, RestoreStrategy(args.strategy))
    print(result.summary)
    for issue in result.errors:
        print(f"  - {issue.description}")
    for warning in result.warnings:
        print(f"  - {warning}")

    orchestrator.save_inventory(snapshot, inventory_path)
    print(f"Inventory saved to {inventory_path}")
    return 1 if result.has_errors else 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Nestory Interchange - Export, import and map inventory data"
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Analyze headers
    analyze_parser = subparsers.add_parser("analyze", help="Propose a column mapping for a CSV file")
    analyze_parser.add_argument("input", help="Path to CSV/TSV/TXT file")
    analyze_parser.add_argument("--no-header", action="store_true", help="First row is data")
    analyze_parser.add_argument("--preview", type=int, default=5, help="Rows to preview")
    analyze_parser.add_argument("--json", action="store_true", help="Print JSON")

    # Import CSV
    import_parser = subparsers.add_parser("import-csv", help="Import items from a CSV file")
    import_parser.add_argument("input", help="Path to CSV/TSV/TXT file")
    import_parser.add_argument("--map", action="append", metavar="COLUMN=FIELD",
                               help="Override a column mapping (repeatable)")
    import_parser.add_argument("--no-header", action="store_true", help="First row is data")
    import_parser.add_argument("--output", help="Directory to save imported items as a JSON archive")

    # Validate backup
    validate_parser = subparsers.add_parser("validate", help="Validate a JSON backup")
    validate_parser.add_argument("input", help="Path to JSON backup")

    # Export CSV
    export_parser = subparsers.add_parser("export-csv", help="Export a JSON backup's items to CSV")
    export_parser.add_argument("input", help="Path to JSON backup")
    export_parser.add_argument("--output", help="Output directory")

    # Restore
    restore_parser = subparsers.add_parser("restore", help="Restore a JSON backup into an inventory")
    restore_parser.add_argument("input", help="Path to JSON backup")
    restore_parser.add_argument("--into", required=True, help="Inventory archive to update")
    restore_parser.add_argument("--strategy", choices=[s.value for s in RestoreStrategy],
                                default=RestoreStrategy.MERGE.value, help="Restore strategy")

    return parser


COMMANDS = {
    "analyze": run_analyze,
    "import-csv": run_import_csv,
    "validate": run_validate,
    "export-csv": run_export_csv,
    "restore": run_restore,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    # Set up logging
    log_level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    command = COMMANDS.get(args.command)
    if command is None:
        parser.print_help()
        return 0

    orchestrator = InterchangeOrchestrator(InterchangeConfig.from_env())
    try:
        return command(args, orchestrator)
    except (InterchangeError, ValueError) as e:
        logger.error(str(e))
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
