"""Interchange orchestrator - file-level entry points for export, import and restore."""

import logging
from pathlib import Path
from typing import Dict, Mapping, Optional, Sequence, Tuple, Union

from .config import InterchangeConfig
from .models.mapping import MappingResult
from .models.records import Archive, CategoryRecord, ItemRecord, ReceiptRecord, RoomRecord
from .models.results import ImportResult, InterchangeError, RestoreResult
from .models.schema import ExportFormat, RestoreStrategy, TargetField
from .services.column_mapper import ColumnMapper
from .services.validator import RecordValidator
from .importers.csv_reader import CSVReader, CSVTable, read_source_bytes
from .importers.csv_importer import CSVImporter
from .importers.json_importer import JSONImporter, decode_envelope, result_to_archive
from .exporters.base import BaseExporter, write_atomic
from .exporters.csv_exporter import CSVExporter
from .exporters.json_exporter import JSONExporter
from .loaders.snapshot import InventorySnapshot, SnapshotLoader

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class InterchangeOrchestrator:
    """
    Coordinates the interchange engine around files.

    Handles:
    - Exporting records to timestamped JSON or CSV files
    - Importing JSON archives and mapped spreadsheets
    - Header analysis and manual mapping overrides
    - Backup validation
    - Restoring an archive into an inventory snapshot
    """

    def __init__(
        self,
        config: Optional[InterchangeConfig] = None,
        validator: Optional[RecordValidator] = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            config: Interchange configuration (defaults to InterchangeConfig())
            validator: Record validator shared by both import paths
        """
        self.config = config or InterchangeConfig()
        self.validator = validator or RecordValidator()
        self.mapper = ColumnMapper()
        self.json_importer = JSONImporter(validator=self.validator)
        self.csv_importer = CSVImporter(
            default_currency=self.config.default_currency,
            validator=self.validator,
            max_quantity=self.config.max_quantity,
            mapper=self.mapper,
        )
        self._exporters: Dict[ExportFormat, BaseExporter] = {
            ExportFormat.JSON: JSONExporter(app_version=self.config.app_version),
            ExportFormat.CSV: CSVExporter(),
        }

    def exporter_for(self, fmt: ExportFormat) -> BaseExporter:
        return self._exporters[fmt]

    def export_archive(
        self,
        items: Sequence[ItemRecord] = (),
        categories: Sequence[CategoryRecord] = (),
        rooms: Sequence[RoomRecord] = (),
        receipts: Sequence[ReceiptRecord] = (),
        fmt: ExportFormat = ExportFormat.JSON,
        directory: Optional[PathLike] = None,
    ) -> Path:
        """
        Export records to a new file.

        Args:
            items, categories, rooms, receipts: Records to export
            fmt: Output format (CSV carries items only)
            directory: Target directory (defaults to config.output_dir)

        Returns:
            Path of the written file
        """
        directory = Path(directory or self.config.output_dir)
        path = self.exporter_for(fmt).export_to_file(
            directory, items, categories, rooms, receipts,
            prefix=self.config.filename_prefix,
        )
        logger.info(f"Exported {fmt.value.upper()} archive to {path}")
        return path

    def import_json_file(self, path: PathLike) -> ImportResult:
        """
        Import a JSON archive file.

        Raises:
            SourceUnavailableError: If the file cannot be read
            InvalidArchiveError: If the archive envelope is invalid
        """
        data = read_source_bytes(path, self.config.max_file_bytes)
        return self.json_importer.import_archive(data, source=str(path))

    def read_archive(self, path: PathLike) -> Archive:
        """Import a JSON archive file and return its valid records as an Archive."""
        return result_to_archive(self.import_json_file(path))

    def validate_backup(self, path: PathLike) -> bool:
        """
        Check that a file is a readable, structurally valid archive.

        Record-level problems do not make a backup invalid.
        """
        try:
            data = read_source_bytes(path, self.config.max_file_bytes)
            envelope = decode_envelope(data, source=str(path))
        except InterchangeError as e:
            logger.warning(f"Backup {path} is not valid: {e.message}")
            return False

        logger.info(
            f"Backup {path} is valid (version {envelope.app_version}, "
            f"{len(envelope.items)} items)"
        )
        return True

    def read_csv(self, path: PathLike, has_header: bool = True) -> CSVTable:
        """Read a spreadsheet file into a table."""
        reader = CSVReader(encoding=self.config.encoding, has_header=has_header)
        return reader.read_file(path, max_bytes=self.config.max_file_bytes)

    def analyze_csv_file(
        self,
        path: PathLike,
        has_header: bool = True,
    ) -> Tuple[CSVTable, MappingResult]:
        """
        Read a spreadsheet and propose a column mapping.

        Returns:
            Tuple of (table, mapping)
        """
        table = self.read_csv(path, has_header=has_header)
        return table, self.mapper.analyze_headers(table.headers)

    def import_csv_file(
        self,
        path: PathLike,
        mapping: Optional[MappingResult] = None,
        overrides: Optional[Mapping[int, Optional[TargetField]]] = None,
        has_header: bool = True,
    ) -> ImportResult:
        """
        Import a spreadsheet file.

        Args:
            path: File to import
            mapping: Finalized mapping; analyzed from the headers when None
            overrides: Manual column reassignments applied on top of the mapping
            has_header: Whether the first row holds column names

        Returns:
            ImportResult with the imported items
        """
        table = self.read_csv(path, has_header=has_header)
        if mapping is None:
            mapping = self.mapper.analyze_headers(table.headers)
        if overrides:
            mapping = self.mapper.apply_overrides(mapping, overrides)

        for warning in mapping.warnings:
            logger.warning(f"{path}: {warning}")

        return self.csv_importer.import_table(table, mapping)

    def restore(
        self,
        path: PathLike,
        snapshot: InventorySnapshot,
        strategy: RestoreStrategy = RestoreStrategy.MERGE,
    ) -> RestoreResult:
        """
        Restore a JSON archive file into an inventory snapshot.

        Args:
            path: Archive file
            snapshot: Inventory to restore into (mutated in place)
            strategy: Merge into or replace the existing inventory

        Returns:
            RestoreResult including any record errors from the import
        """
        imported = self.import_json_file(path)
        return SnapshotLoader(snapshot).restore(imported, strategy)

    def load_inventory(self, path: PathLike) -> InventorySnapshot:
        """Load an inventory saved as an archive; a missing file is an empty inventory."""
        if not Path(path).exists():
            return InventorySnapshot()
        return InventorySnapshot.from_archive(self.read_archive(path))

    def save_inventory(self, snapshot: InventorySnapshot, path: PathLike) -> Path:
        """Write an inventory snapshot as a JSON archive at path."""
        exporter = JSONExporter(app_version=self.config.app_version)
        return write_atomic(path, exporter.serialize(snapshot.to_archive(self.config.app_version)))
