"""Import items from a spreadsheet using a finalized column mapping."""

import logging
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from ..config import DEFAULT_MAX_QUANTITY
from ..models.mapping import MappingResult
from ..models.records import ItemRecord, new_id, utc_now
from ..models.results import ErrorKind, ImportIssue, ImportResult
from ..models.schema import CONDITION_FALLBACK, TargetField
from ..services.column_mapper import ColumnMapper
from ..services.parsers import parse_value
from ..services.validator import RecordValidator
from .csv_reader import CSVReader, CSVTable

logger = logging.getLogger(__name__)

# Target field -> ItemRecord attribute. Quantity is handled separately.
RECORD_ATTRIBUTES: Dict[TargetField, str] = {
    TargetField.NAME: "name",
    TargetField.BRAND: "brand",
    TargetField.MODEL_NUMBER: "model_number",
    TargetField.SERIAL_NUMBER: "serial_number",
    TargetField.PURCHASE_PRICE: "purchase_price",
    TargetField.PURCHASE_DATE: "purchase_date",
    TargetField.CURRENCY: "currency_code",
    TargetField.CATEGORY: "category_name",
    TargetField.ROOM: "room_name",
    TargetField.CONDITION: "condition",
    TargetField.CONDITION_NOTES: "condition_notes",
    TargetField.NOTES: "notes",
    TargetField.WARRANTY_EXPIRY: "warranty_expiry_date",
    TargetField.TAGS: "tags",
    TargetField.BARCODE: "barcode",
}


class CSVImporter:
    """
    Importer for third-party spreadsheets.

    Each data row is parsed through the mapped fields' value parsers into
    an ItemRecord. Rows without a usable name are reported and skipped;
    cells that cannot be parsed are left empty and noted as warnings.
    """

    def __init__(
        self,
        default_currency: str = "USD",
        validator: Optional[RecordValidator] = None,
        reader: Optional[CSVReader] = None,
        mapper: Optional[ColumnMapper] = None,
        max_quantity: int = DEFAULT_MAX_QUANTITY,
    ):
        """
        Initialize the importer.

        Args:
            default_currency: Currency for rows with no valid currency cell
            validator: Record validator (defaults to the standard rules)
            reader: CSV reader used by import_bytes
            mapper: Column mapper used when no mapping is supplied
            max_quantity: Largest number of records one row may expand to
        """
        self.default_currency = default_currency
        self.validator = validator or RecordValidator()
        self.reader = reader or CSVReader()
        self.mapper = mapper or ColumnMapper()
        self.max_quantity = max_quantity

    def import_bytes(
        self,
        data: bytes,
        mapping: Optional[MappingResult] = None,
        source: Optional[str] = None,
    ) -> ImportResult:
        """
        Parse CSV bytes and import their rows.

        Args:
            data: Raw file contents
            mapping: Finalized mapping; analyzed from the header row when None
            source: Label for logs and the result

        Returns:
            ImportResult with the imported items
        """
        table = self.reader.read_bytes(data, source=source)
        if mapping is None:
            mapping = self.mapper.analyze_headers(table.headers)
        return self.import_table(table, mapping)

    def import_table(self, table: CSVTable, mapping: MappingResult) -> ImportResult:
        """
        Import every row of a parsed table.

        An invalid mapping stops the import before any row is read and is
        reported as a single MAPPING issue.

        Args:
            table: Parsed table
            mapping: Finalized mapping for the table's columns

        Returns:
            ImportResult with the imported items
        """
        result = ImportResult(source=table.source, started_at=utc_now())

        if not mapping.is_valid:
            names = ", ".join(
                f.display_name for f in TargetField if f in mapping.missing_required_fields
            )
            result.add_error(ImportIssue(
                kind=ErrorKind.MAPPING,
                code="missing_required_field",
                description=f"Required fields not mapped: {names}",
                entity="column",
            ))
            logger.warning(f"Mapping is invalid, no rows imported: missing {names}")
            result.completed_at = utc_now()
            return result

        columns = mapping.field_columns
        for row_index in range(table.row_count):
            row = table.row_number(row_index)
            items = self._import_row(table, row_index, row, columns, result)
            result.items.extend(items)

        result.completed_at = utc_now()
        logger.info(
            f"{result.summary} ({table.row_count} rows, {len(result.warnings)} warnings)"
        )
        return result

    def _import_row(
        self,
        table: CSVTable,
        row_index: int,
        row: int,
        columns: Dict[TargetField, int],
        result: ImportResult,
    ) -> List[ItemRecord]:
        """Build the item records for one row, recording problems on result."""
        raw = {target: table.cell(row_index, column) for target, column in columns.items()}

        name_issue = self.validator.name_issue("item", raw.get(TargetField.NAME), row=row)
        if name_issue:
            result.add_error(name_issue)
            return []

        values: Dict[str, Any] = {}
        for target, text in raw.items():
            parsed = parse_value(target, text)
            if parsed is None and text.strip():
                result.add_warning(
                    f"Row {row}: could not parse {target.display_name.lower()} '{text.strip()}'"
                )
            if target in RECORD_ATTRIBUTES and parsed is not None:
                values[RECORD_ATTRIBUTES[target]] = parsed

        values.setdefault("currency_code", self.default_currency)
        values.setdefault("condition", CONDITION_FALLBACK)

        quantity = parse_value(TargetField.QUANTITY, raw.get(TargetField.QUANTITY, ""))
        if quantity is not None and quantity < 1:
            result.add_warning(f"Row {row}: ignoring quantity {quantity}, using 1")
            quantity = None
        quantity = quantity or 1
        if quantity > self.max_quantity:
            result.add_warning(
                f"Row {row}: quantity {quantity} exceeds the limit of {self.max_quantity}, "
                f"using {self.max_quantity}"
            )
            quantity = self.max_quantity

        now = utc_now()
        try:
            template = ItemRecord(created_at=now, updated_at=now, **values)
        except ValidationError as e:
            first = e.errors()[0]
            result.add_error(ImportIssue(
                kind=ErrorKind.VALIDATION,
                code="invalid_record",
                description=f"Row {row}: {first.get('msg', 'invalid value')}",
                entity="item",
                row=row,
            ))
            return []

        issues = self.validator.validate_record(template, "item", row=row)
        if issues:
            for issue in issues:
                result.add_error(issue)
            return []

        for warning in self.validator.item_warnings(template, f"Row {row}"):
            result.add_warning(warning)

        items = [template]
        for _ in range(quantity - 1):
            items.append(template.model_copy(update={"id": new_id()}, deep=True))
        return items
