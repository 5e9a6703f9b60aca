"""
Unit tests for the CSV table reader.
"""

import csv

import pytest

from interchange.importers import csv_reader
from interchange.importers.csv_reader import (
    CSVReader,
    column_letter,
    detect_delimiter,
    read_source_bytes,
)
from interchange.models.results import InvalidArchiveError, SourceUnavailableError


@pytest.fixture
def reader():
    return CSVReader()


# ===================
# DELIMITERS
# ===================

class TestDelimiterDetection:
    """Tests for delimiter detection on the header line."""

    @pytest.mark.parametrize("line, expected", [
        ("Name,Brand,Price", ","),
        ("Name;Brand;Price", ";"),
        ("Name\tBrand\tPrice", "\t"),
        ("Name|Brand|Price", "|"),
        ("Name", ","),
    ])
    def test_detects(self, line, expected):
        assert detect_delimiter(line) == expected

    def test_quoted_delimiters_ignored(self):
        assert detect_delimiter('"Name, full";"Brand, maker";Price') == ";"
        assert detect_delimiter('"a;b;c",d,e') == ","

    def test_semicolon_file(self, reader):
        table = reader.read_bytes(b"Name;Price\nLamp;1,50\n")
        assert table.delimiter == ";"
        assert table.rows == [["Lamp", "1,50"]]


# ===================
# ENCODINGS
# ===================

class TestEncodingDetection:
    """Tests for byte decoding."""

    def test_utf8_bom(self, reader):
        table = reader.read_bytes(b"\xef\xbb\xbfName,Brand\r\nLamp,Ikea\r\n")
        assert table.headers == ["Name", "Brand"]
        assert table.encoding == "utf-8-sig"

    def test_utf16_bom(self, reader):
        table = reader.read_bytes("Name,Brand\nLamp,Ikea\n".encode("utf-16"))
        assert table.headers == ["Name", "Brand"]
        assert table.encoding == "utf-16"

    def test_plain_utf8(self, reader):
        table = reader.read_bytes("Name\nCafé table\n".encode("utf-8"))
        assert table.encoding == "utf-8"
        assert table.cell(0, 0) == "Café table"

    def test_cp1252_fallback(self, reader):
        table = reader.read_bytes("Name\nCafé “Deluxe”\n".encode("cp1252"))
        assert table.encoding == "cp1252"
        assert table.cell(0, 0) == "Café “Deluxe”"

    def test_latin1_last_resort(self, reader):
        # 0x81 is undefined in cp1252
        table = reader.read_bytes(b"Name\nA\x81B\n")
        assert table.encoding == "latin-1"


# ===================
# PARSING
# ===================

class TestParsing:
    """Tests for table structure."""

    def test_quoted_fields(self, reader):
        data = b'Name,Notes\n"Lamp, brass","She said ""hi""\nsecond line"\n'
        table = reader.read_bytes(data)
        assert table.cell(0, 0) == "Lamp, brass"
        assert table.cell(0, 1) == 'She said "hi"\nsecond line'

    def test_blank_rows_skipped_with_row_numbers(self, reader):
        table = reader.read_bytes(b"Name\nA\n\n , \nB\n")
        assert table.rows == [["A"], ["B"]]
        assert table.row_number(0) == 2
        assert table.row_number(1) == 5

    def test_headers_are_trimmed(self, reader):
        table = reader.read_bytes(b" Name , Brand \nA,B\n")
        assert table.headers == ["Name", "Brand"]

    def test_short_rows_read_as_empty(self, reader):
        table = reader.read_bytes(b"Name,Brand,Price\nLamp\n")
        assert table.cell(0, 2) == ""
        assert table.preview() == [["Lamp", "", ""]]

    def test_headerless_mode(self):
        table = CSVReader(has_header=False).read_bytes(b"Lamp,Ikea,20\nDesk,Hay\n")
        assert table.headers == ["Column A", "Column B", "Column C"]
        assert table.row_count == 2
        assert table.row_number(0) == 1

    def test_preview_limit(self, reader):
        table = reader.read_bytes(b"Name\n1\n2\n3\n4\n")
        assert table.preview(2) == [["1"], ["2"]]
        assert table.column(0) == ["1", "2", "3", "4"]

    @pytest.mark.parametrize("data", [b"", b"\n\n", b" , \n"])
    def test_no_header_row(self, reader, data):
        with pytest.raises(InvalidArchiveError):
            reader.read_bytes(data)

    def test_fixed_delimiter(self):
        table = CSVReader(delimiter="|").read_bytes(b"Name,Brand\nA,B\n")
        assert table.headers == ["Name,Brand"]

    def test_cell_longer_than_default_field_limit(self, reader):
        limit = csv.field_size_limit()
        notes = "x" * 200_000
        table = reader.read_bytes(b"Name,Notes\nWidget," + notes.encode("ascii"))

        assert table.cell(0, 1) == notes
        assert csv.field_size_limit() == limit

    def test_malformed_csv(self, reader, monkeypatch):
        def broken_reader(*args, **kwargs):
            raise csv.Error("unexpected end of data")

        monkeypatch.setattr(csv_reader.csv, "reader", broken_reader)
        limit = csv.field_size_limit()

        with pytest.raises(InvalidArchiveError, match="Malformed CSV"):
            reader.read_bytes(b"Name\nLamp\n", source="items.csv")
        assert csv.field_size_limit() == limit


@pytest.mark.parametrize("index, letters", [(0, "A"), (25, "Z"), (26, "AA"), (27, "AB"), (701, "ZZ")])
def test_column_letter(index, letters):
    assert column_letter(index) == letters


# ===================
# FILES
# ===================

class TestReadFile:
    """Tests for file access."""

    def test_tsv_file(self, reader, write_file):
        path = write_file("items.tsv", "Name\tRoom\nLamp\tOffice\n")
        table = reader.read_file(path)
        assert table.delimiter == "\t"
        assert table.source == str(path)

    def test_missing_file(self, reader, tmp_path):
        with pytest.raises(SourceUnavailableError):
            reader.read_file(tmp_path / "missing.csv")

    def test_unsupported_extension(self, reader, write_file):
        path = write_file("items.xlsx", b"PK")
        with pytest.raises(SourceUnavailableError):
            reader.read_file(path)

    def test_size_limit(self, write_file):
        path = write_file("big.csv", "Name\n" + "x\n" * 100)
        with pytest.raises(SourceUnavailableError):
            read_source_bytes(path, max_bytes=10)
