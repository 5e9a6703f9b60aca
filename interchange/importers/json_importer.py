"""Import canonical records from a versioned JSON archive."""

import json
import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, List, Optional, Tuple, Type, Union

from pydantic import ValidationError

from ..models.records import (
    Archive,
    CanonicalRecord,
    CategoryRecord,
    ItemRecord,
    ReceiptRecord,
    RoomRecord,
    utc_now,
    WireModel,
)
from ..models.results import ImportResult, InvalidArchiveError
from ..services.validator import RecordValidator

logger = logging.getLogger(__name__)

# (collection key, entity label, record model), in restore order.
COLLECTIONS: Tuple[Tuple[str, str, Type[CanonicalRecord]], ...] = (
    ("categories", "category", CategoryRecord),
    ("rooms", "room", RoomRecord),
    ("items", "item", ItemRecord),
    ("receipts", "receipt", ReceiptRecord),
)


class ArchiveEnvelope(WireModel):
    """
    Structural view of an archive.

    Every key is required; records stay undecoded so each one can be
    validated separately.
    """
    export_date: datetime
    app_version: str
    items: List[Any]
    categories: List[Any]
    rooms: List[Any]
    receipts: List[Any]


def decode_envelope(data: Union[bytes, str], source: Optional[str] = None) -> ArchiveEnvelope:
    """
    Decode archive bytes into an envelope.

    Raises:
        InvalidArchiveError: On malformed JSON or missing/ill-typed envelope keys
    """
    try:
        text = data.decode("utf-8-sig") if isinstance(data, bytes) else data
        payload = json.loads(text, parse_float=Decimal)
    except (ValueError, RecursionError) as e:
        # ValueError covers decode errors and oversized integer literals.
        logger.error(f"Malformed archive {source or ''}: {e}")
        raise InvalidArchiveError(f"Archive is not valid JSON: {e}", path=source) from e

    if not isinstance(payload, dict):
        raise InvalidArchiveError("Archive must be a JSON object", path=source)

    try:
        return ArchiveEnvelope.model_validate(payload)
    except ValidationError as e:
        problems = sorted({
            ".".join(str(p) for p in err["loc"]) or "archive" for err in e.errors()
        })
        logger.error(f"Invalid archive envelope {source or ''}: {problems}")
        raise InvalidArchiveError(
            f"Archive envelope is missing or has invalid keys: {', '.join(problems)}",
            path=source,
        ) from e


class JSONImporter:
    """
    Importer for JSON archives.

    The envelope must be structurally sound or the whole import fails.
    Once it is, records are validated one at a time and bad records are
    reported without stopping the rest.
    """

    def __init__(self, validator: Optional[RecordValidator] = None):
        """
        Initialize the importer.

        Args:
            validator: Record validator (defaults to the standard rules)
        """
        self.validator = validator or RecordValidator()

    def import_archive(self, data: Union[bytes, str], source: Optional[str] = None) -> ImportResult:
        """
        Import every valid record from an archive.

        Args:
            data: Archive bytes or text
            source: Label for logs and the result (usually a file path)

        Returns:
            ImportResult with accepted records and itemized errors

        Raises:
            InvalidArchiveError: If the envelope cannot be decoded
        """
        started_at = utc_now()
        envelope = decode_envelope(data, source)
        result = ImportResult(
            source=source,
            export_date=envelope.export_date,
            app_version=envelope.app_version,
            started_at=started_at,
        )

        for key, entity, model in COLLECTIONS:
            accepted = getattr(result, key)
            seen_ids = set()
            for index, raw in enumerate(getattr(envelope, key)):
                record, issues = self.validator.validate_raw(raw, model, entity, index, seen_ids)
                for issue in issues:
                    logger.warning(issue.description)
                    result.add_error(issue)
                if record is not None:
                    accepted.append(record)

        for index, item in enumerate(result.items):
            for warning in self.validator.item_warnings(item, f"Item {index + 1}"):
                result.add_warning(warning)

        item_ids = {item.id for item in result.items}
        for receipt in result.receipts:
            if receipt.linked_item_id and receipt.linked_item_id not in item_ids:
                result.add_warning(
                    f"Receipt {receipt.id} links to item {receipt.linked_item_id}, "
                    f"which is not in the archive"
                )

        result.completed_at = utc_now()
        logger.info(f"{result.summary} (source: {source or 'bytes'}, version {envelope.app_version})")
        return result


def result_to_archive(result: ImportResult) -> Archive:
    """Re-wrap the accepted records of an import as an Archive."""
    return Archive(
        export_date=result.export_date or utc_now(),
        app_version=result.app_version or "",
        items=list(result.items),
        categories=list(result.categories),
        rooms=list(result.rooms),
        receipts=list(result.receipts),
    )
