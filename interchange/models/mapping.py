"""Column mapping models."""

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Optional, Tuple
from enum import Enum

from .schema import REQUIRED_FIELDS, TargetField

# Auto-mapped columns below this confidence are flagged for review.
LOW_CONFIDENCE_THRESHOLD = 0.7


class MatchTier(str, Enum):
    """Which header matching rule produced a mapping."""
    EXACT = "exact"
    ALIAS = "alias"
    FUZZY = "fuzzy"
    MANUAL = "manual"
    NONE = "none"

    @property
    def rank(self) -> int:
        return _TIER_RANK[self]


_TIER_RANK = {
    MatchTier.MANUAL: 0,
    MatchTier.EXACT: 1,
    MatchTier.ALIAS: 2,
    MatchTier.FUZZY: 3,
    MatchTier.NONE: 4,
}


@dataclass(frozen=True)
class ColumnMapping:
    """Association between one source column and an optional target field."""
    column_index: int
    header: str
    field: Optional[TargetField] = None
    confidence: float = 0.0
    tier: MatchTier = MatchTier.NONE

    @property
    def is_mapped(self) -> bool:
        return self.field is not None

    @property
    def is_manual(self) -> bool:
        return self.tier is MatchTier.MANUAL

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "column_index": self.column_index,
            "header": self.header,
            "field": self.field.value if self.field else None,
            "confidence": round(self.confidence, 4),
            "tier": self.tier.value,
        }


@dataclass(frozen=True)
class MappingResult:
    """
    Outcome of analyzing one header row.

    Instances are immutable. Reassignment builds a new result through
    ``from_mappings`` so the derived sets are always recomputed from the
    mappings themselves.
    """
    mappings: Tuple[ColumnMapping, ...] = ()
    unmapped_columns: Tuple[int, ...] = ()
    missing_required_fields: FrozenSet[TargetField] = field(default_factory=frozenset)

    @classmethod
    def from_mappings(cls, mappings: List[ColumnMapping]) -> "MappingResult":
        """Build a result, deriving unmapped columns and missing required fields."""
        ordered = tuple(sorted(mappings, key=lambda m: m.column_index))
        claimed = [m.field for m in ordered if m.field is not None]
        if len(claimed) != len(set(claimed)):
            raise ValueError("A target field is mapped by more than one column")

        return cls(
            mappings=ordered,
            unmapped_columns=tuple(m.column_index for m in ordered if m.field is None),
            missing_required_fields=frozenset(f for f in REQUIRED_FIELDS if f not in claimed),
        )

    @property
    def is_valid(self) -> bool:
        """True when every required field is covered by some column."""
        return not self.missing_required_fields

    @property
    def headers(self) -> List[str]:
        return [m.header for m in self.mappings]

    @property
    def mapped_field_count(self) -> int:
        return sum(1 for m in self.mappings if m.field is not None)

    def mapping_for_column(self, column_index: int) -> Optional[ColumnMapping]:
        for mapping in self.mappings:
            if mapping.column_index == column_index:
                return mapping
        return None

    def field_for_column(self, column_index: int) -> Optional[TargetField]:
        mapping = self.mapping_for_column(column_index)
        return mapping.field if mapping else None

    def column_for_field(self, target: TargetField) -> Optional[int]:
        for mapping in self.mappings:
            if mapping.field is target:
                return mapping.column_index
        return None

    @property
    def field_columns(self) -> Dict[TargetField, int]:
        """Mapped fields keyed to their column index."""
        return {m.field: m.column_index for m in self.mappings if m.field is not None}

    @property
    def warnings(self) -> List[str]:
        """Human-readable review hints for the current mapping."""
        warnings = []

        if self.missing_required_fields:
            names = ", ".join(
                f.display_name for f in TargetField if f in self.missing_required_fields
            )
            warnings.append(f"Required fields not mapped: {names}")

        if self.mappings and len(self.unmapped_columns) > len(self.mappings) / 2:
            warnings.append("More than half of columns could not be auto-mapped")

        low = [
            m.header for m in self.mappings
            if m.field is not None and not m.is_manual
            and m.confidence < LOW_CONFIDENCE_THRESHOLD
        ]
        if low:
            warnings.append(f"Low confidence mappings (review recommended): {', '.join(low)}")

        return warnings

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "mappings": [m.to_dict() for m in self.mappings],
            "unmapped_columns": list(self.unmapped_columns),
            "missing_required_fields": [
                f.value for f in TargetField if f in self.missing_required_fields
            ],
            "is_valid": self.is_valid,
            "warnings": self.warnings,
        }
