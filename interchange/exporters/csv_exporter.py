"""Flattened CSV exporter for items."""

import csv
import io
import logging
from typing import Callable, List, Sequence, Tuple

from ..models.records import CategoryRecord, ItemRecord, ReceiptRecord, RoomRecord
from ..models.schema import ExportFormat
from .base import BaseExporter

logger = logging.getLogger(__name__)

TAG_SEPARATOR = "; "


def _text(value) -> str:
    if value is None:
        return ""
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return str(value)


def _yes_no(flag: bool) -> str:
    return "Yes" if flag else "No"


# Header label and value getter, in column order.
COLUMNS: Tuple[Tuple[str, Callable[[ItemRecord], str]], ...] = (
    ("Name", lambda i: i.name),
    ("Brand", lambda i: _text(i.brand)),
    ("Model Number", lambda i: _text(i.model_number)),
    ("Serial Number", lambda i: _text(i.serial_number)),
    ("Barcode", lambda i: _text(i.barcode)),
    ("Value", lambda i: _text(i.purchase_price)),
    ("Currency", lambda i: i.currency_code),
    ("Purchase Date", lambda i: _text(i.purchase_date)),
    ("Category", lambda i: _text(i.category_name)),
    ("Room", lambda i: _text(i.room_name)),
    ("Condition", lambda i: i.condition.value),
    ("Condition Notes", lambda i: _text(i.condition_notes)),
    ("Notes", lambda i: _text(i.notes)),
    ("Warranty Expiry", lambda i: _text(i.warranty_expiry_date)),
    ("Tags", lambda i: TAG_SEPARATOR.join(i.tags)),
    ("Has Photo", lambda i: _yes_no(i.has_photo)),
    ("Has Receipt", lambda i: _yes_no(i.has_receipt)),
    ("ID", lambda i: i.id),
    ("Created At", lambda i: _text(i.created_at)),
    ("Updated At", lambda i: _text(i.updated_at)),
)

HEADERS: List[str] = [label for label, _ in COLUMNS]


class CSVExporter(BaseExporter):
    """
    Exports items as one CSV row each.

    Categories, rooms and receipts have no CSV representation and are
    ignored. Values containing the delimiter, a quote or a newline are
    quoted with internal quotes doubled.
    """

    format = ExportFormat.CSV

    def __init__(self, delimiter: str = ","):
        self.delimiter = delimiter

    def rows(self, items: Sequence[ItemRecord]) -> List[List[str]]:
        """Header row followed by one row per item."""
        return [HEADERS] + [[getter(item) for _, getter in COLUMNS] for item in items]

    def export(
        self,
        items: Sequence[ItemRecord] = (),
        categories: Sequence[CategoryRecord] = (),
        rooms: Sequence[RoomRecord] = (),
        receipts: Sequence[ReceiptRecord] = (),
    ) -> bytes:
        """Serialize items as CSV."""
        buffer = io.StringIO(newline="")
        writer = csv.writer(
            buffer,
            delimiter=self.delimiter,
            quoting=csv.QUOTE_MINIMAL,
            lineterminator="\r\n",
        )
        writer.writerows(self.rows(items))
        logger.info(f"Exporting CSV: {len(items)} items")
        return buffer.getvalue().encode("utf-8")
