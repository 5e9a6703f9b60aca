"""Apply imported records to an in-memory inventory using a restore strategy."""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from ..models.records import Archive, CategoryRecord, ItemRecord, ReceiptRecord, RoomRecord
from ..models.results import ImportResult, RestoreResult
from ..models.schema import RestoreStrategy

logger = logging.getLogger(__name__)

# Dependency order: items reference categories and rooms by name, receipts
# link to items by id.
RESTORE_ORDER = ("categories", "rooms", "items", "receipts")


def _name_key(name: str) -> str:
    return name.strip().casefold()


@dataclass
class InventorySnapshot:
    """
    Plain-record view of a persisted inventory.

    Stands in for the host's object graph: the restore step reads and
    mutates it, and the host persists the outcome.
    """
    items: List[ItemRecord] = field(default_factory=list)
    categories: List[CategoryRecord] = field(default_factory=list)
    rooms: List[RoomRecord] = field(default_factory=list)
    receipts: List[ReceiptRecord] = field(default_factory=list)

    @classmethod
    def from_archive(cls, archive: Archive) -> "InventorySnapshot":
        return cls(
            items=list(archive.items),
            categories=list(archive.categories),
            rooms=list(archive.rooms),
            receipts=list(archive.receipts),
        )

    def to_archive(self, app_version: str) -> Archive:
        return Archive(
            app_version=app_version,
            items=list(self.items),
            categories=list(self.categories),
            rooms=list(self.rooms),
            receipts=list(self.receipts),
        )

    def find_item(self, item_id: str) -> Optional[ItemRecord]:
        for item in self.items:
            if item.id == item_id:
                return item
        return None

    def find_category(self, name: str) -> Optional[CategoryRecord]:
        key = _name_key(name)
        for category in self.categories:
            if _name_key(category.name) == key:
                return category
        return None

    def find_room(self, name: str) -> Optional[RoomRecord]:
        key = _name_key(name)
        for room in self.rooms:
            if _name_key(room.name) == key:
                return room
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "items": len(self.items),
            "categories": len(self.categories),
            "rooms": len(self.rooms),
            "receipts": len(self.receipts),
        }


class SnapshotLoader:
    """
    Loads imported records into an InventorySnapshot.

    Merge adds backup data to what exists: categories and rooms are matched
    by name and have their presentation updated, and items and receipts
    whose id already exists are skipped. Replace first clears items,
    receipts, custom categories and non-default rooms.
    """

    def __init__(self, snapshot: InventorySnapshot):
        """
        Initialize the loader.

        Args:
            snapshot: Inventory to restore into (mutated in place)
        """
        self.snapshot = snapshot

    def restore(
        self,
        source: Union[ImportResult, Archive],
        strategy: RestoreStrategy = RestoreStrategy.MERGE,
    ) -> RestoreResult:
        """
        Restore records into the snapshot.

        Args:
            source: Import result (its errors are carried over) or archive
            strategy: Merge or replace

        Returns:
            RestoreResult with per-kind counts
        """
        result = RestoreResult()
        if isinstance(source, ImportResult):
            result.errors.extend(source.errors)

        logger.info(f"Restoring with strategy '{strategy.value}'")
        if strategy is RestoreStrategy.REPLACE:
            self.clear_restorable()

        for entity in RESTORE_ORDER:
            records = getattr(source, entity)
            getattr(self, f"_restore_{entity}")(records, result)

        logger.info(f"{result.summary} ({result.skipped} skipped)")
        return result

    def clear_restorable(self) -> None:
        """Remove everything a replace-restore overwrites."""
        snapshot = self.snapshot
        snapshot.items = []
        snapshot.receipts = []
        snapshot.categories = [c for c in snapshot.categories if not c.is_custom]
        snapshot.rooms = [r for r in snapshot.rooms if r.is_default]

    def _restore_categories(self, records: List[CategoryRecord], result: RestoreResult) -> None:
        for record in records:
            existing = self.snapshot.find_category(record.name)
            if existing is not None:
                existing.icon_name = record.icon_name
                existing.color_hex = record.color_hex
                existing.sort_order = record.sort_order
            else:
                self.snapshot.categories.append(record.model_copy(deep=True))
            result.categories_restored += 1

    def _restore_rooms(self, records: List[RoomRecord], result: RestoreResult) -> None:
        for record in records:
            existing = self.snapshot.find_room(record.name)
            if existing is not None:
                existing.icon_name = record.icon_name
                existing.sort_order = record.sort_order
            else:
                self.snapshot.rooms.append(record.model_copy(deep=True))
            result.rooms_restored += 1

    def _restore_items(self, records: List[ItemRecord], result: RestoreResult) -> None:
        existing_ids = {item.id for item in self.snapshot.items}
        for record in records:
            if record.id in existing_ids:
                result.skipped += 1
                continue
            self.snapshot.items.append(record.model_copy(deep=True))
            existing_ids.add(record.id)
            result.items_restored += 1

    def _restore_receipts(self, records: List[ReceiptRecord], result: RestoreResult) -> None:
        existing_ids = {receipt.id for receipt in self.snapshot.receipts}
        for record in records:
            if record.id in existing_ids:
                result.skipped += 1
                continue
            self.snapshot.receipts.append(record.model_copy(deep=True))
            existing_ids.add(record.id)
            result.receipts_restored += 1

            if record.linked_item_id is None:
                continue
            item = self.snapshot.find_item(record.linked_item_id)
            if item is None:
                result.warnings.append(
                    f"Receipt {record.id} links to missing item {record.linked_item_id}"
                )
            elif record.id not in item.receipt_ids:
                item.receipt_ids.append(record.id)
