"""
Unit tests for the JSON and CSV exporters.
"""

import csv
import io
import json
import re
from datetime import datetime, timezone

from interchange.exporters import base
from interchange.exporters.base import export_filename, write_atomic
from interchange.exporters.csv_exporter import HEADERS, CSVExporter
from interchange.exporters.json_exporter import JSONExporter
from interchange.models.records import ItemRecord
from interchange.models.schema import ExportFormat


def csv_text(items):
    return CSVExporter().export(items).decode("utf-8")


# ===================
# JSON
# ===================

class TestJSONExporter:
    """Tests for the JSON archive envelope."""

    def test_empty_archive_is_complete(self):
        payload = json.loads(JSONExporter(app_version="3.0").export())

        assert list(payload) == ["exportDate", "appVersion", "items", "categories", "rooms", "receipts"]
        assert payload["appVersion"] == "3.0"
        assert payload["items"] == []
        assert payload["receipts"] == []

    def test_item_fields_are_camel_case_in_order(self, item):
        payload = json.loads(JSONExporter().export([item]))
        keys = list(payload["items"][0])

        assert keys[:4] == ["id", "name", "brand", "modelNumber"]
        assert "warrantyExpiryDate" in keys
        assert keys[-2:] == ["createdAt", "updatedAt"]

    def test_values(self, item, receipt):
        payload = json.loads(JSONExporter().export([item], receipts=[receipt]))
        exported = payload["items"][0]

        assert exported["id"] == item.id
        assert exported["purchasePrice"] == "1999.50"
        assert exported["purchaseDate"] == "2023-11-02"
        assert exported["condition"] == "Like New"
        assert exported["tags"] == ["work", "apple"]
        assert exported["receiptIds"] == [receipt.id]
        assert payload["receipts"][0]["linkedItemId"] == item.id

    def test_unicode_preserved(self):
        data = JSONExporter().export([ItemRecord(name="Café chair")])
        assert "Café chair" in data.decode("utf-8")


# ===================
# CSV
# ===================

class TestCSVExporter:
    """Tests for the flattened item table."""

    def test_header_row(self):
        text = csv_text([])
        assert text == ",".join(HEADERS) + "\r\n"
        assert HEADERS[:5] == ["Name", "Brand", "Model Number", "Serial Number", "Barcode"]

    def test_comma_is_quoted(self):
        text = csv_text([ItemRecord(name="Item with, comma")])
        assert '"Item with, comma"' in text

    def test_quotes_are_doubled(self):
        text = csv_text([ItemRecord(name='She said "hi"')])
        assert '"She said ""hi"""' in text

    def test_newline_is_quoted(self):
        text = csv_text([ItemRecord(name="Lamp", notes="line one\nline two")])
        assert '"line one\nline two"' in text

    def test_row_values(self, item):
        rows = list(csv.reader(io.StringIO(csv_text([item]))))
        row = dict(zip(rows[0], rows[1]))

        assert row["Name"] == "MacBook Pro 14"
        assert row["Value"] == "1999.50"
        assert row["Purchase Date"] == "2023-11-02"
        assert row["Condition"] == "Like New"
        assert row["Tags"] == "work; apple"
        assert row["Has Photo"] == "Yes"
        assert row["Has Receipt"] == "Yes"
        assert row["ID"] == item.id

    def test_missing_values_are_empty(self):
        rows = list(csv.reader(io.StringIO(csv_text([ItemRecord(name="Lamp")]))))
        row = dict(zip(rows[0], rows[1]))

        assert row["Brand"] == ""
        assert row["Value"] == ""
        assert row["Has Photo"] == "No"

    def test_other_collections_ignored(self, category, room):
        text = CSVExporter().export([], [category], [room]).decode("utf-8")
        assert text.count("\r\n") == 1


# ===================
# FILES
# ===================

class TestExportFiles:
    """Tests for filenames and file writing."""

    def test_filename_format(self):
        name = export_filename(ExportFormat.JSON)
        assert re.fullmatch(r"nestory-backup-\d{8}-\d{6}-\d{6}\.json", name)

    def test_filenames_unique_and_sorted(self):
        names = [export_filename(ExportFormat.CSV) for _ in range(50)]
        assert len(set(names)) == 50
        assert names == sorted(names)

    def test_custom_prefix(self):
        assert export_filename(ExportFormat.CSV, prefix="inv-").startswith("inv-")

    def test_naive_and_aware_times_mix(self, monkeypatch):
        monkeypatch.setattr(base, "_last_stamp", None)
        naive = datetime(2024, 3, 15, 10, 15, 0, 123)

        first = export_filename(ExportFormat.JSON, now=naive)
        second = export_filename(ExportFormat.JSON, now=naive.replace(tzinfo=timezone.utc))

        assert first == "nestory-backup-20240315-101500-000123.json"
        assert second == "nestory-backup-20240315-101500-000124.json"

    def test_export_to_file(self, tmp_path, item):
        path = JSONExporter().export_to_file(tmp_path / "out", [item])

        assert path.parent == tmp_path / "out"
        assert path.suffix == ".json"
        assert json.loads(path.read_text(encoding="utf-8"))["items"][0]["name"] == item.name
        assert [p.name for p in path.parent.iterdir()] == [path.name]

    def test_write_atomic_replaces(self, tmp_path):
        target = tmp_path / "inventory.json"
        write_atomic(target, b"old")
        write_atomic(target, b"new")
        assert target.read_bytes() == b"new"
