"""Data models for the interchange engine."""

from .schema import (
    TargetField,
    FieldDefinition,
    FIELD_DEFINITIONS,
    REQUIRED_FIELDS,
    ValueKind,
    ItemCondition,
    CONDITION_FALLBACK,
    ExportFormat,
    RestoreStrategy,
    parse_target_field,
)
from .records import (
    ItemRecord,
    CategoryRecord,
    RoomRecord,
    ReceiptRecord,
    Archive,
    new_id,
)
from .mapping import (
    ColumnMapping,
    MappingResult,
    MatchTier,
    LOW_CONFIDENCE_THRESHOLD,
)
from .results import (
    ErrorKind,
    ImportIssue,
    ImportResult,
    RestoreResult,
    InterchangeError,
    SourceUnavailableError,
    InvalidArchiveError,
    ExportError,
)

__all__ = [
    "TargetField",
    "FieldDefinition",
    "FIELD_DEFINITIONS",
    "REQUIRED_FIELDS",
    "ValueKind",
    "ItemCondition",
    "CONDITION_FALLBACK",
    "ExportFormat",
    "RestoreStrategy",
    "parse_target_field",
    "ItemRecord",
    "CategoryRecord",
    "RoomRecord",
    "ReceiptRecord",
    "Archive",
    "new_id",
    "ColumnMapping",
    "MappingResult",
    "MatchTier",
    "LOW_CONFIDENCE_THRESHOLD",
    "ErrorKind",
    "ImportIssue",
    "ImportResult",
    "RestoreResult",
    "InterchangeError",
    "SourceUnavailableError",
    "InvalidArchiveError",
    "ExportError",
]
