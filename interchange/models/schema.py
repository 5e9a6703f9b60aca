"""Schema models: the closed set of mappable item fields and their metadata."""

from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, List, Optional, Tuple
from enum import Enum


class ValueKind(str, Enum):
    """How a spreadsheet cell is interpreted for a target field."""
    TEXT = "text"
    CURRENCY_AMOUNT = "currency_amount"
    CURRENCY_CODE = "currency_code"
    DATE = "date"
    INTEGER = "integer"
    CONDITION = "condition"
    TAG_LIST = "tag_list"


class ItemCondition(str, Enum):
    """Condition vocabulary. Values are the keys stored in archives."""
    NEW = "New"
    LIKE_NEW = "Like New"
    GOOD = "Good"
    FAIR = "Fair"
    POOR = "Poor"


# Unrecognized condition text normalizes to this value instead of failing.
CONDITION_FALLBACK = ItemCondition.GOOD


class TargetField(str, Enum):
    """
    Canonical item attributes a spreadsheet column can map to.

    Declaration order is significant: it breaks exact confidence ties in
    header matching (first declared wins).
    """
    NAME = "name"
    BRAND = "brand"
    MODEL_NUMBER = "modelNumber"
    SERIAL_NUMBER = "serialNumber"
    PURCHASE_PRICE = "purchasePrice"
    PURCHASE_DATE = "purchaseDate"
    CURRENCY = "currency"
    CATEGORY = "category"
    ROOM = "room"
    CONDITION = "condition"
    CONDITION_NOTES = "conditionNotes"
    NOTES = "notes"
    WARRANTY_EXPIRY = "warrantyExpiry"
    TAGS = "tags"
    QUANTITY = "quantity"
    BARCODE = "barcode"

    @property
    def definition(self) -> "FieldDefinition":
        """Metadata for this field."""
        return FIELD_DEFINITIONS[self]

    @property
    def display_name(self) -> str:
        return FIELD_DEFINITIONS[self].display_name

    @property
    def is_required(self) -> bool:
        return FIELD_DEFINITIONS[self].required

    @property
    def declaration_index(self) -> int:
        return _DECLARATION_ORDER[self]


@dataclass(frozen=True)
class FieldDefinition:
    """Definition of one target field: labels, requiredness and value kind."""
    field: TargetField
    display_name: str
    value_kind: ValueKind = ValueKind.TEXT
    required: bool = False
    aliases: Tuple[str, ...] = ()

    @property
    def alias_set(self) -> FrozenSet[str]:
        """Aliases plus the display name, case-folded."""
        return frozenset(a.casefold() for a in self.aliases + (self.display_name,))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "field": self.field.value,
            "display_name": self.display_name,
            "value_kind": self.value_kind.value,
            "required": self.required,
            "aliases": list(self.aliases),
        }


def _definitions(*defs: FieldDefinition) -> Dict[TargetField, FieldDefinition]:
    table = {d.field: d for d in defs}
    missing = [f.value for f in TargetField if f not in table]
    if missing:
        raise RuntimeError(f"Target fields without a definition: {missing}")
    return table


FIELD_DEFINITIONS: Dict[TargetField, FieldDefinition] = _definitions(
    FieldDefinition(
        field=TargetField.NAME,
        display_name="Item Name",
        required=True,
        aliases=("name", "item", "item name", "product", "product name", "title",
                 "description", "item description"),
    ),
    FieldDefinition(
        field=TargetField.BRAND,
        display_name="Brand",
        aliases=("brand", "manufacturer", "make", "company", "vendor"),
    ),
    FieldDefinition(
        field=TargetField.MODEL_NUMBER,
        display_name="Model Number",
        aliases=("model", "model number", "model no", "model #", "model no.", "sku",
                 "part number", "part no"),
    ),
    FieldDefinition(
        field=TargetField.SERIAL_NUMBER,
        display_name="Serial Number",
        aliases=("serial", "serial number", "serial no", "serial #", "serial no.", "sn", "s/n"),
    ),
    FieldDefinition(
        field=TargetField.PURCHASE_PRICE,
        display_name="Purchase Price",
        value_kind=ValueKind.CURRENCY_AMOUNT,
        aliases=("price", "purchase price", "cost", "amount", "value", "paid",
                 "purchase amount", "item price", "retail price", "original price"),
    ),
    FieldDefinition(
        field=TargetField.PURCHASE_DATE,
        display_name="Purchase Date",
        value_kind=ValueKind.DATE,
        aliases=("purchase date", "date purchased", "bought", "date bought", "acquired",
                 "date acquired", "purchase", "buy date"),
    ),
    FieldDefinition(
        field=TargetField.CURRENCY,
        display_name="Currency",
        value_kind=ValueKind.CURRENCY_CODE,
        aliases=("currency", "currency code", "ccy", "iso currency"),
    ),
    FieldDefinition(
        field=TargetField.CATEGORY,
        display_name="Category",
        aliases=("category", "type", "group", "classification", "class", "kind"),
    ),
    FieldDefinition(
        field=TargetField.ROOM,
        display_name="Room",
        aliases=("room", "location", "place", "area", "zone", "where", "stored in", "storage"),
    ),
    FieldDefinition(
        field=TargetField.CONDITION,
        display_name="Condition",
        value_kind=ValueKind.CONDITION,
        aliases=("condition", "status", "state", "quality"),
    ),
    FieldDefinition(
        field=TargetField.CONDITION_NOTES,
        display_name="Condition Notes",
        aliases=("condition notes", "condition details", "condition description",
                 "damage notes"),
    ),
    FieldDefinition(
        field=TargetField.NOTES,
        display_name="Notes",
        aliases=("notes", "note", "comments", "comment", "remarks", "description",
                 "details", "memo"),
    ),
    FieldDefinition(
        field=TargetField.WARRANTY_EXPIRY,
        display_name="Warranty Expiry",
        value_kind=ValueKind.DATE,
        aliases=("warranty", "warranty expiration", "warranty expires", "warranty expiry",
                 "warranty end", "warranty date", "guarantee"),
    ),
    FieldDefinition(
        field=TargetField.TAGS,
        display_name="Tags",
        value_kind=ValueKind.TAG_LIST,
        aliases=("tags", "tag", "labels", "label", "keywords"),
    ),
    FieldDefinition(
        field=TargetField.QUANTITY,
        display_name="Quantity",
        value_kind=ValueKind.INTEGER,
        aliases=("quantity", "qty", "count", "amount", "number", "units", "pieces"),
    ),
    FieldDefinition(
        field=TargetField.BARCODE,
        display_name="Barcode",
        aliases=("barcode", "bar code", "upc", "ean", "gtin"),
    ),
)

_DECLARATION_ORDER: Dict[TargetField, int] = {f: i for i, f in enumerate(TargetField)}

REQUIRED_FIELDS: Tuple[TargetField, ...] = tuple(f for f in TargetField if f.is_required)


def parse_target_field(value: Optional[str]) -> Optional[TargetField]:
    """
    Resolve a user-supplied field name.

    Accepts the canonical value ("modelNumber"), the enum name
    ("MODEL_NUMBER") or the display name ("Model Number"), case-insensitively.
    Empty input and "none" mean "unmapped".
    """
    if value is None:
        return None
    wanted = value.strip().casefold()
    if wanted in ("", "none", "-"):
        return None
    for target in TargetField:
        if wanted in (target.value.casefold(), target.name.casefold(),
                      target.display_name.casefold()):
            return target
    raise ValueError(f"Unknown target field: {value}")


class ExportFormat(str, Enum):
    """Supported export formats."""
    JSON = "json"
    CSV = "csv"

    @property
    def file_extension(self) -> str:
        return self.value


class RestoreStrategy(str, Enum):
    """How imported records are reconciled with an existing inventory."""
    MERGE = "merge"
    REPLACE = "replace"

    @property
    def description(self) -> str:
        if self is RestoreStrategy.MERGE:
            return "Add backup data to existing inventory"
        return "Clear existing data and restore from backup"


def field_catalog() -> List[Dict[str, Any]]:
    """All field definitions in declaration order, as dictionaries."""
    return [FIELD_DEFINITIONS[f].to_dict() for f in TargetField]
