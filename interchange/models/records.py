"""
Canonical record models.

Records are flat and denormalized: an item carries its category and room
by name, never by reference, so an archive can be decoded without any
live object graph. Field names on the wire are camelCase.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, List, Optional
import uuid

from dateutil import parser as date_parser
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .schema import ItemCondition


def new_id() -> str:
    """Generate a fresh record identifier."""
    return str(uuid.uuid4())


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def check_uuid(value: str) -> str:
    """Validate that value is UUID text and return it unchanged."""
    try:
        uuid.UUID(value)
    except (ValueError, AttributeError, TypeError):
        raise ValueError(f"not a valid UUID: {value!r}")
    return value


def _coerce_date(value: Any) -> Any:
    # Full timestamps are accepted for date fields; the time part is dropped.
    if isinstance(value, str) and "T" in value:
        try:
            return date_parser.isoparse(value).date()
        except ValueError:
            return value
    return value


class WireModel(BaseModel):
    """Base for models serialized with camelCase field names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_dict(self) -> dict:
        """Convert to the camelCase wire representation."""
        return self.model_dump(mode="json", by_alias=True)


class CanonicalRecord(WireModel):
    """Base for every exportable record. The id survives round-trips verbatim."""

    id: str = Field(default_factory=new_id)

    @field_validator("id")
    @classmethod
    def _validate_id(cls, value: str) -> str:
        return check_uuid(value)


class ItemRecord(CanonicalRecord):
    """An inventory item."""

    name: str
    brand: Optional[str] = None
    model_number: Optional[str] = None
    serial_number: Optional[str] = None
    barcode: Optional[str] = None
    purchase_price: Optional[Decimal] = None
    purchase_date: Optional[date] = None
    currency_code: str = "USD"
    category_name: Optional[str] = None
    room_name: Optional[str] = None
    condition: ItemCondition = ItemCondition.GOOD
    condition_notes: Optional[str] = None
    notes: Optional[str] = None
    warranty_expiry_date: Optional[date] = None
    tags: List[str] = Field(default_factory=list)
    photo_identifiers: List[str] = Field(default_factory=list)
    receipt_ids: List[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @field_validator("purchase_date", "warranty_expiry_date", mode="before")
    @classmethod
    def _accept_timestamps(cls, value: Any) -> Any:
        return _coerce_date(value)

    @field_validator("condition", mode="before")
    @classmethod
    def _condition_key(cls, value: Any) -> Any:
        if isinstance(value, str):
            for condition in ItemCondition:
                if value.strip().casefold() == condition.value.casefold():
                    return condition
        return value

    @field_validator("receipt_ids")
    @classmethod
    def _validate_receipt_ids(cls, value: List[str]) -> List[str]:
        return [check_uuid(v) for v in value]

    @property
    def has_photo(self) -> bool:
        return bool(self.photo_identifiers)

    @property
    def has_receipt(self) -> bool:
        return bool(self.receipt_ids)


class CategoryRecord(CanonicalRecord):
    """An item category."""

    name: str
    icon_name: str = "folder"
    color_hex: str = "#007AFF"
    is_custom: bool = False
    sort_order: int = 0


class RoomRecord(CanonicalRecord):
    """A room or storage location."""

    name: str
    icon_name: str = "house"
    sort_order: int = 0
    is_default: bool = False


class ReceiptRecord(CanonicalRecord):
    """A purchase receipt captured for one or more items."""

    vendor: Optional[str] = None
    total: Optional[Decimal] = None
    tax_amount: Optional[Decimal] = None
    purchase_date: Optional[date] = None
    image_identifier: Optional[str] = None
    raw_text: Optional[str] = None
    confidence: float = 0.0
    linked_item_id: Optional[str] = None
    created_at: datetime = Field(default_factory=utc_now)

    @field_validator("purchase_date", mode="before")
    @classmethod
    def _accept_timestamps(cls, value: Any) -> Any:
        return _coerce_date(value)

    @field_validator("linked_item_id")
    @classmethod
    def _validate_linked_item(cls, value: Optional[str]) -> Optional[str]:
        return check_uuid(value) if value is not None else None


class Archive(WireModel):
    """
    The versioned export envelope.

    An archive whose four collections are all empty is valid.
    """

    export_date: datetime = Field(default_factory=utc_now)
    app_version: str
    items: List[ItemRecord] = Field(default_factory=list)
    categories: List[CategoryRecord] = Field(default_factory=list)
    rooms: List[RoomRecord] = Field(default_factory=list)
    receipts: List[ReceiptRecord] = Field(default_factory=list)

    @property
    def total_records(self) -> int:
        return len(self.items) + len(self.categories) + len(self.rooms) + len(self.receipts)
