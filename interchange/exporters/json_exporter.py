"""JSON archive exporter."""

import json
import logging
from datetime import datetime
from typing import Optional, Sequence

from ..models.records import Archive, CategoryRecord, ItemRecord, ReceiptRecord, RoomRecord, utc_now
from ..models.schema import ExportFormat
from .base import BaseExporter

logger = logging.getLogger(__name__)


class JSONExporter(BaseExporter):
    """
    Serializes the full archive envelope.

    Keys follow model declaration order; decimals are written as strings
    so no precision is lost.
    """

    format = ExportFormat.JSON

    def __init__(self, app_version: str = "1.0.0", indent: Optional[int] = 2):
        """
        Initialize the exporter.

        Args:
            app_version: Producer version written into the envelope
            indent: JSON indentation, or None for compact output
        """
        self.app_version = app_version
        self.indent = indent

    def build_archive(
        self,
        items: Sequence[ItemRecord] = (),
        categories: Sequence[CategoryRecord] = (),
        rooms: Sequence[RoomRecord] = (),
        receipts: Sequence[ReceiptRecord] = (),
        export_date: Optional[datetime] = None,
    ) -> Archive:
        """Wrap records in an Archive envelope."""
        return Archive(
            export_date=export_date or utc_now(),
            app_version=self.app_version,
            items=list(items),
            categories=list(categories),
            rooms=list(rooms),
            receipts=list(receipts),
        )

    def serialize(self, archive: Archive) -> bytes:
        """Encode an archive as UTF-8 JSON."""
        text = json.dumps(archive.to_dict(), indent=self.indent, ensure_ascii=False)
        return text.encode("utf-8")

    def export(
        self,
        items: Sequence[ItemRecord] = (),
        categories: Sequence[CategoryRecord] = (),
        rooms: Sequence[RoomRecord] = (),
        receipts: Sequence[ReceiptRecord] = (),
    ) -> bytes:
        """Serialize records as a JSON archive."""
        archive = self.build_archive(items, categories, rooms, receipts)
        logger.info(
            f"Exporting JSON archive: {len(archive.items)} items, "
            f"{len(archive.categories)} categories, {len(archive.rooms)} rooms, "
            f"{len(archive.receipts)} receipts"
        )
        return self.serialize(archive)
