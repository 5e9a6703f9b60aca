"""Per-record validation shared by the JSON and CSV import paths."""

import logging
from typing import Any, Callable, Dict, List, Optional, Set, Tuple, Type

from pydantic import ValidationError

from ..models.records import CanonicalRecord, ItemRecord
from ..models.results import ErrorKind, ImportIssue

logger = logging.getLogger(__name__)

# Entities whose records must carry a non-blank name.
NAMED_ENTITIES = ("item", "category", "room")


def is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def _location(entity: str, index: Optional[int], row: Optional[int]) -> str:
    if row is not None:
        return f"Row {row}"
    if index is not None:
        return f"{entity.capitalize()} {index + 1}"
    return entity.capitalize()


def _describe_pydantic(error: ValidationError) -> Tuple[Optional[str], str]:
    """First offending field (wire name) and a short message."""
    first = error.errors()[0]
    loc = ".".join(str(part) for part in first.get("loc", ()))
    return (loc or None), first.get("msg", "invalid value")


class RecordValidator:
    """
    Validator for canonical records before they are accepted.

    Supports:
    - Schema validation of raw archive records
    - Non-blank name validation
    - Duplicate id detection within a collection
    - Custom validation rules
    """

    def __init__(self):
        """Initialize the validator."""
        self._custom_rules: Dict[str, Callable[[CanonicalRecord], Optional[str]]] = {}

    def register_rule(self, name: str, func: Callable[[CanonicalRecord], Optional[str]]) -> None:
        """
        Register a custom rule.

        The function returns an error message, or None when the record passes.
        """
        self._custom_rules[name] = func

    def name_issue(
        self,
        entity: str,
        name: Optional[str],
        index: Optional[int] = None,
        row: Optional[int] = None,
    ) -> Optional[ImportIssue]:
        """Issue for a blank name, or None."""
        if not is_blank(name):
            return None
        label = "item name" if entity == "item" else f"{entity} name"
        return ImportIssue(
            kind=ErrorKind.VALIDATION,
            code="empty_name",
            description=f"{_location(entity, index, row)}: {label} is empty",
            entity=entity,
            index=index,
            row=row,
            field="name",
        )

    def validate_record(
        self,
        record: CanonicalRecord,
        entity: str,
        index: Optional[int] = None,
        row: Optional[int] = None,
    ) -> List[ImportIssue]:
        """
        Validate an already-built record.

        Args:
            record: Record to check
            entity: Entity label used in messages (item, category, room, receipt)
            index: Position in its collection, for archive records
            row: 1-based spreadsheet row, for CSV records

        Returns:
            List of issues; empty when the record is acceptable
        """
        issues = []

        if entity in NAMED_ENTITIES:
            issue = self.name_issue(entity, getattr(record, "name", None), index, row)
            if issue:
                issues.append(issue)

        for rule_name, rule in self._custom_rules.items():
            message = rule(record)
            if message:
                issues.append(ImportIssue(
                    kind=ErrorKind.VALIDATION,
                    code=rule_name,
                    description=f"{_location(entity, index, row)}: {message}",
                    entity=entity,
                    index=index,
                    row=row,
                ))

        return issues

    def validate_raw(
        self,
        raw: Dict[str, Any],
        model: Type[CanonicalRecord],
        entity: str,
        index: int,
        seen_ids: Set[str],
    ) -> Tuple[Optional[CanonicalRecord], List[ImportIssue]]:
        """
        Build and validate one archive record.

        Args:
            raw: Decoded JSON object
            model: Record model to validate against
            entity: Entity label used in messages
            index: Position in its collection
            seen_ids: Ids already accepted in this collection; updated on success

        Returns:
            Tuple of (record or None, issues)
        """
        # A blank name is reported as such even if other fields are also bad.
        if entity in NAMED_ENTITIES and isinstance(raw, dict) and isinstance(raw.get("name"), str):
            issue = self.name_issue(entity, raw["name"], index=index)
            if issue:
                return None, [issue]

        try:
            record = model.model_validate(raw)
        except ValidationError as e:
            field, message = _describe_pydantic(e)
            return None, [ImportIssue(
                kind=ErrorKind.VALIDATION,
                code="invalid_record",
                description=f"{_location(entity, index, None)}: invalid {field or 'record'} ({message})",
                entity=entity,
                index=index,
                field=field,
            )]

        if record.id in seen_ids:
            return None, [ImportIssue(
                kind=ErrorKind.VALIDATION,
                code="duplicate_id",
                description=f"{_location(entity, index, None)}: duplicate id {record.id}",
                entity=entity,
                index=index,
                field="id",
            )]

        issues = self.validate_record(record, entity, index=index)
        if issues:
            return None, issues

        seen_ids.add(record.id)
        return record, []

    def item_warnings(self, item: ItemRecord, label: str) -> List[str]:
        """Non-fatal observations about an accepted item."""
        warnings = []
        if item.purchase_price is not None and item.purchase_price < 0:
            warnings.append(f"{label}: negative purchase price {item.purchase_price}")
        if (item.purchase_date and item.warranty_expiry_date
                and item.warranty_expiry_date < item.purchase_date):
            warnings.append(f"{label}: warranty expires before the purchase date")
        return warnings
