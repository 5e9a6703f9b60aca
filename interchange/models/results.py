"""Result and error models for import and restore operations."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple
from datetime import datetime
from enum import Enum

from .records import CategoryRecord, ItemRecord, ReceiptRecord, RoomRecord


class ErrorKind(str, Enum):
    """
    Error taxonomy surfaced to callers.

    SOURCE and STRUCTURAL are fatal and raised. VALIDATION and MAPPING are
    accumulated as data on a result.
    """
    SOURCE = "source"
    STRUCTURAL = "structural"
    VALIDATION = "validation"
    MAPPING = "mapping"


class InterchangeError(Exception):
    """Base class for fatal interchange failures."""
    kind = ErrorKind.STRUCTURAL

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.path = path

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind.value, "message": self.message, "path": self.path}


class SourceUnavailableError(InterchangeError):
    """The source file is missing, unreadable, too large or undecodable."""
    kind = ErrorKind.SOURCE


class InvalidArchiveError(InterchangeError):
    """The input is not a structurally valid archive or table."""
    kind = ErrorKind.STRUCTURAL


class ExportError(InterchangeError):
    """Writing an export failed."""
    kind = ErrorKind.SOURCE


@dataclass
class ImportIssue:
    """One itemized, non-fatal problem found during import."""
    kind: ErrorKind
    code: str
    description: str
    entity: Optional[str] = None  # item, category, room, receipt, column
    index: Optional[int] = None  # position in the collection
    row: Optional[int] = None  # 1-based spreadsheet row, header is row 1
    field: Optional[str] = None

    def __str__(self) -> str:
        return self.description

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "kind": self.kind.value,
            "code": self.code,
            "description": self.description,
            "entity": self.entity,
            "index": self.index,
            "row": self.row,
            "field": self.field,
        }


_PLURALS = {
    "item": "items",
    "category": "categories",
    "room": "rooms",
    "receipt": "receipts",
    "error": "errors",
}


def pluralize(count: int, singular: str) -> str:
    """Render '1 item' / '2 items'."""
    word = singular if count == 1 else _PLURALS.get(singular, singular + "s")
    return f"{count} {word}"


def summarize(verb: str, counts: Sequence[Tuple[str, int]], error_count: int) -> str:
    """Build a summary line such as 'Imported 2 items, 1 category. 1 error occurred.'"""
    parts = [pluralize(n, noun) for noun, n in counts if n > 0]
    if parts:
        text = f"{verb} {', '.join(parts)}."
    else:
        text = f"No data was {verb.lower()}."
    if error_count:
        text += f" {pluralize(error_count, 'error')} occurred."
    return text


@dataclass
class ImportResult:
    """Records that passed validation plus every itemized problem."""
    items: List[ItemRecord] = field(default_factory=list)
    categories: List[CategoryRecord] = field(default_factory=list)
    rooms: List[RoomRecord] = field(default_factory=list)
    receipts: List[ReceiptRecord] = field(default_factory=list)
    errors: List[ImportIssue] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    source: Optional[str] = None
    export_date: Optional[datetime] = None
    app_version: Optional[str] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    def add_error(self, issue: ImportIssue) -> None:
        self.errors.append(issue)

    def add_warning(self, message: str) -> None:
        self.warnings.append(message)

    @property
    def item_count(self) -> int:
        return len(self.items)

    @property
    def category_count(self) -> int:
        return len(self.categories)

    @property
    def room_count(self) -> int:
        return len(self.rooms)

    @property
    def receipt_count(self) -> int:
        return len(self.receipts)

    @property
    def success_count(self) -> int:
        return self.item_count + self.category_count + self.room_count + self.receipt_count

    @property
    def has_errors(self) -> bool:
        return len(self.errors) > 0

    @property
    def duration_seconds(self) -> Optional[float]:
        """Get duration in seconds."""
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None

    @property
    def summary(self) -> str:
        return summarize(
            "Imported",
            [("item", self.item_count), ("category", self.category_count),
             ("room", self.room_count), ("receipt", self.receipt_count)],
            len(self.errors),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "source": self.source,
            "export_date": self.export_date.isoformat() if self.export_date else None,
            "app_version": self.app_version,
            "counts": {
                "items": self.item_count,
                "categories": self.category_count,
                "rooms": self.room_count,
                "receipts": self.receipt_count,
            },
            "errors": [e.to_dict() for e in self.errors],
            "warnings": self.warnings,
            "has_errors": self.has_errors,
            "summary": self.summary,
            "duration_seconds": self.duration_seconds,
        }


@dataclass
class RestoreResult:
    """Counts of records materialized into an inventory by a restore."""
    items_restored: int = 0
    categories_restored: int = 0
    rooms_restored: int = 0
    receipts_restored: int = 0
    skipped: int = 0
    errors: List[ImportIssue] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def total_restored(self) -> int:
        return (self.items_restored + self.categories_restored
                + self.rooms_restored + self.receipts_restored)

    @property
    def has_errors(self) -> bool:
        return len(self.errors) > 0

    @property
    def summary(self) -> str:
        return summarize(
            "Restored",
            [("item", self.items_restored), ("category", self.categories_restored),
             ("room", self.rooms_restored), ("receipt", self.receipts_restored)],
            len(self.errors),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "items_restored": self.items_restored,
            "categories_restored": self.categories_restored,
            "rooms_restored": self.rooms_restored,
            "receipts_restored": self.receipts_restored,
            "skipped": self.skipped,
            "errors": [e.to_dict() for e in self.errors],
            "warnings": self.warnings,
            "summary": self.summary,
        }
