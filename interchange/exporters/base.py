"""Base exporter interface and shared file helpers."""

import os
import tempfile
import logging
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional, Sequence, Union

from ..models.records import CategoryRecord, ItemRecord, ReceiptRecord, RoomRecord, utc_now
from ..models.results import ExportError
from ..models.schema import ExportFormat

logger = logging.getLogger(__name__)

DEFAULT_FILENAME_PREFIX = "nestory-backup-"

_stamp_lock = threading.Lock()
_last_stamp: Optional[datetime] = None


def _next_stamp(now: Optional[datetime] = None) -> datetime:
    # Strictly increasing within the process so repeated exports never collide.
    global _last_stamp
    with _stamp_lock:
        stamp = now or utc_now()
        if stamp.tzinfo is None:
            stamp = stamp.replace(tzinfo=timezone.utc)
        if _last_stamp is not None and stamp <= _last_stamp:
            stamp = _last_stamp + timedelta(microseconds=1)
        _last_stamp = stamp
        return stamp


def export_filename(
    fmt: ExportFormat,
    prefix: str = DEFAULT_FILENAME_PREFIX,
    now: Optional[datetime] = None,
) -> str:
    """
    Build an export filename such as nestory-backup-20240315-101500-000123.json.

    Names sort lexically in creation order.
    """
    stamp = _next_stamp(now)
    return f"{prefix}{stamp:%Y%m%d-%H%M%S}-{stamp:%f}.{fmt.file_extension}"


def write_atomic(path: Union[str, Path], data: bytes) -> Path:
    """
    Write bytes to path via a temp file in the same directory.

    Raises:
        ExportError: If the file cannot be written
    """
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=".tmp-", suffix=path.suffix)
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            os.replace(tmp_name, path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise
    except OSError as e:
        logger.error(f"Failed to write export {path}: {e}")
        raise ExportError(f"Unable to write {path}: {e}", path=str(path)) from e

    logger.info(f"Wrote {len(data)} bytes to {path}")
    return path


class BaseExporter(ABC):
    """
    Base class for exporters.

    Exporters turn canonical records into archive bytes in one format.
    """

    format: ExportFormat

    @abstractmethod
    def export(
        self,
        items: Sequence[ItemRecord] = (),
        categories: Sequence[CategoryRecord] = (),
        rooms: Sequence[RoomRecord] = (),
        receipts: Sequence[ReceiptRecord] = (),
    ) -> bytes:
        """
        Serialize records.

        Returns:
            Encoded archive bytes
        """
        pass

    def export_to_file(
        self,
        directory: Union[str, Path],
        items: Sequence[ItemRecord] = (),
        categories: Sequence[CategoryRecord] = (),
        rooms: Sequence[RoomRecord] = (),
        receipts: Sequence[ReceiptRecord] = (),
        prefix: str = DEFAULT_FILENAME_PREFIX,
    ) -> Path:
        """
        Serialize records and write them under a fresh export filename.

        Returns:
            Path of the written file
        """
        data = self.export(items, categories, rooms, receipts)
        path = Path(directory) / export_filename(self.format, prefix)
        return write_atomic(path, data)
