"""Tolerant CSV table reader with encoding and delimiter detection."""

import csv
import io
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from ..models.results import InvalidArchiveError, SourceUnavailableError

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = (".csv", ".tsv", ".txt")
CANDIDATE_DELIMITERS = (",", ";", "\t", "|")
FALLBACK_ENCODINGS = ("cp1252", "latin-1")

_BOMS: Tuple[Tuple[bytes, str], ...] = (
    (b"\xef\xbb\xbf", "utf-8-sig"),
    (b"\xff\xfe", "utf-16"),
    (b"\xfe\xff", "utf-16"),
)


def column_letter(index: int) -> str:
    """Spreadsheet-style column name: 0 -> A, 25 -> Z, 26 -> AA."""
    letters = ""
    index += 1
    while index > 0:
        index, remainder = divmod(index - 1, 26)
        letters = chr(ord("A") + remainder) + letters
    return letters


def detect_delimiter(line: str) -> str:
    """
    Sniff the delimiter of a header line among the candidate delimiters.

    A line the sniffer cannot decide on defaults to a comma.
    """
    try:
        dialect = csv.Sniffer().sniff(line, delimiters="".join(CANDIDATE_DELIMITERS))
    except csv.Error:
        return ","
    return dialect.delimiter


@dataclass
class CSVTable:
    """A parsed table: headers plus data rows."""
    headers: List[str]
    rows: List[List[str]] = field(default_factory=list)
    row_numbers: List[int] = field(default_factory=list)  # spreadsheet row of each data row
    delimiter: str = ","
    encoding: str = "utf-8"
    has_header: bool = True
    source: Optional[str] = None

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def column_count(self) -> int:
        return len(self.headers)

    def cell(self, row: int, column: int) -> str:
        """Cell text, or an empty string when the row is short."""
        values = self.rows[row]
        return values[column] if 0 <= column < len(values) else ""

    def column(self, column: int) -> List[str]:
        return [self.cell(r, column) for r in range(self.row_count)]

    def row_number(self, row: int) -> int:
        return self.row_numbers[row] if row < len(self.row_numbers) else row + 2

    def preview(self, max_rows: int = 5) -> List[List[str]]:
        """First rows, padded to the header width."""
        return [
            [self.cell(r, c) for c in range(self.column_count)]
            for r in range(min(max_rows, self.row_count))
        ]

    def to_dict(self, max_rows: int = 5) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "source": self.source,
            "headers": self.headers,
            "row_count": self.row_count,
            "delimiter": self.delimiter,
            "encoding": self.encoding,
            "preview": self.preview(max_rows),
        }


class CSVReader:
    """
    Reader for third-party spreadsheet exports.

    Supports:
    - BOM-aware encoding detection with cp1252 and latin-1 fallbacks
    - Delimiter detection among comma, semicolon, tab and pipe
    - Quoted fields with embedded delimiters, quotes and newlines
    - Optional header-less mode with generated column names
    """

    def __init__(
        self,
        encoding: str = "utf-8",
        delimiter: Optional[str] = None,
        has_header: bool = True,
    ):
        """
        Initialize the reader.

        Args:
            encoding: Encoding tried first when the data carries no BOM
            delimiter: Fixed delimiter; detected from the first line when None
            has_header: Whether the first row holds column names
        """
        self.encoding = encoding
        self.delimiter = delimiter
        self.has_header = has_header

    def decode(self, data: bytes) -> Tuple[str, str]:
        """
        Decode raw bytes.

        Returns:
            Tuple of (text, encoding used)
        """
        for bom, encoding in _BOMS:
            if data.startswith(bom):
                try:
                    return data.decode(encoding), encoding
                except UnicodeDecodeError:
                    break

        for encoding in (self.encoding,) + FALLBACK_ENCODINGS:
            try:
                text = data.decode(encoding)
            except (UnicodeDecodeError, LookupError):
                logger.warning(f"{encoding} decode failed, trying next encoding")
                continue
            return text.lstrip("\ufeff"), encoding

        raise SourceUnavailableError("Unable to decode file contents")

    def read_bytes(self, data: bytes, source: Optional[str] = None) -> CSVTable:
        """
        Parse a CSV table from bytes.

        Raises:
            InvalidArchiveError: If there is no header row or the CSV is malformed
        """
        text, encoding = self.decode(data)
        return self.read_text(text, source=source, encoding=encoding)

    def read_text(self, text: str, source: Optional[str] = None,
                  encoding: str = "utf-8") -> CSVTable:
        """Parse a CSV table from already-decoded text."""
        first_line = text.split("\n", 1)[0].rstrip("\r")
        delimiter = self.delimiter or detect_delimiter(first_line)

        records: List[Tuple[int, List[str]]] = []
        # No single cell can be longer than the whole text.
        field_limit = csv.field_size_limit()
        csv.field_size_limit(max(field_limit, len(text)))
        try:
            reader = csv.reader(io.StringIO(text, newline=""), delimiter=delimiter)
            for number, values in enumerate(reader, start=1):
                if not any(v.strip() for v in values):
                    continue
                records.append((number, values))
        except csv.Error as e:
            logger.error(f"Malformed CSV in {source or 'CSV data'}: {e}")
            raise InvalidArchiveError(f"Malformed CSV: {e}", path=source) from e
        finally:
            csv.field_size_limit(field_limit)

        if not records:
            logger.error(f"No header row in {source or 'CSV data'}")
            raise InvalidArchiveError("CSV file has no header row", path=source)

        if self.has_header:
            header_values = records[0][1]
            data_records = records[1:]
            headers = [h.strip() for h in header_values]
        else:
            data_records = records
            width = max(len(values) for _, values in records)
            headers = [f"Column {column_letter(i)}" for i in range(width)]

        table = CSVTable(
            headers=headers,
            rows=[values for _, values in data_records],
            row_numbers=[number for number, _ in data_records],
            delimiter=delimiter,
            encoding=encoding,
            has_header=self.has_header,
            source=source,
        )
        logger.info(
            f"Read {table.row_count} rows x {table.column_count} columns "
            f"({encoding}, delimiter {delimiter!r}) from {source or 'CSV data'}"
        )
        return table

    def read_file(self, path: Union[str, Path], max_bytes: Optional[int] = None) -> CSVTable:
        """
        Read and parse a CSV file.

        Raises:
            SourceUnavailableError: If the file is missing, unsupported or unreadable
            InvalidArchiveError: If there is no header row
        """
        path = Path(path)
        if path.suffix.lower() not in SUPPORTED_EXTENSIONS:
            raise SourceUnavailableError(
                f"Unsupported file type '{path.suffix}' (expected csv, tsv or txt)",
                path=str(path),
            )
        data = read_source_bytes(path, max_bytes)
        return self.read_bytes(data, source=str(path))


def read_source_bytes(path: Union[str, Path], max_bytes: Optional[int] = None) -> bytes:
    """
    Read a whole source file.

    Raises:
        SourceUnavailableError: If the file is missing, too large or unreadable
    """
    path = Path(path)
    if not path.is_file():
        logger.error(f"Source file not found: {path}")
        raise SourceUnavailableError(f"File not found: {path}", path=str(path))

    try:
        if max_bytes is not None and path.stat().st_size > max_bytes:
            raise SourceUnavailableError(
                f"File exceeds the {max_bytes} byte limit: {path}", path=str(path)
            )
        with open(path, "rb") as f:
            return f.read()
    except OSError as e:
        logger.error(f"Failed to read {path}: {e}")
        raise SourceUnavailableError(f"Unable to read {path}: {e}", path=str(path)) from e


def table_from_rows(headers: Sequence[str], rows: Sequence[Sequence[str]]) -> CSVTable:
    """Build a table from in-memory rows."""
    return CSVTable(
        headers=list(headers),
        rows=[list(r) for r in rows],
        row_numbers=[i + 2 for i in range(len(rows))],
    )
