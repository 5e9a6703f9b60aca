"""
Tests for the file-level orchestrator, configuration and CLI.
"""

import json
from pathlib import Path

import pytest

from interchange.cli import main, parse_overrides
from interchange.config import InterchangeConfig
from interchange.loaders.snapshot import InventorySnapshot
from interchange.models.records import ItemRecord
from interchange.models.results import InvalidArchiveError, SourceUnavailableError
from interchange.models.schema import ExportFormat, RestoreStrategy, TargetField
from interchange.orchestrator import InterchangeOrchestrator


SPREADSHEET = (
    "Item Name,Manufacturer,Cost,Bought,Location,Qty\r\n"
    "Desk Lamp,Ikea,$24.99,2023-01-05,Office,2\r\n"
    ",Hay,$10,,Office,1\r\n"
    "\"Sofa, 3-seat\",Muji,\"$1,200\",\"Mar 3, 2022\",Living Room,\r\n"
)


@pytest.fixture
def backup_path(orchestrator, item, category, room, receipt):
    return orchestrator.export_archive([item], [category], [room], [receipt])


# ===================
# EXPORT / IMPORT
# ===================

class TestArchiveFiles:
    """Tests for exporting and re-importing archive files."""

    def test_export_json(self, orchestrator, config, backup_path):
        assert backup_path.parent == Path(config.output_dir)
        assert backup_path.name.startswith("nestory-backup-")
        assert backup_path.suffix == ".json"

    def test_export_csv(self, orchestrator, item, tmp_path):
        path = orchestrator.export_archive([item], fmt=ExportFormat.CSV, directory=tmp_path)
        assert path.suffix == ".csv"
        assert "MacBook Pro 14" in path.read_text(encoding="utf-8")

    def test_import_round_trip(self, orchestrator, backup_path, item, receipt):
        result = orchestrator.import_json_file(backup_path)

        assert result.items == [item]
        assert result.receipts == [receipt]
        assert result.source == str(backup_path)
        assert result.summary == "Imported 1 item, 1 category, 1 room, 1 receipt."

    def test_read_archive(self, orchestrator, backup_path):
        archive = orchestrator.read_archive(backup_path)
        assert archive.total_records == 4
        assert archive.app_version == orchestrator.config.app_version

    def test_missing_file(self, orchestrator, tmp_path):
        with pytest.raises(SourceUnavailableError):
            orchestrator.import_json_file(tmp_path / "nope.json")

    def test_invalid_file(self, orchestrator, write_file):
        with pytest.raises(InvalidArchiveError):
            orchestrator.import_json_file(write_file("bad.json", "{]"))

    def test_size_limit(self, tmp_path, backup_path):
        orchestrator = InterchangeOrchestrator(InterchangeConfig(max_file_bytes=16))
        with pytest.raises(SourceUnavailableError):
            orchestrator.import_json_file(backup_path)


class TestValidateBackup:
    """Tests for backup validation."""

    def test_valid(self, orchestrator, backup_path):
        assert orchestrator.validate_backup(backup_path)

    def test_record_errors_do_not_invalidate(self, orchestrator, write_file, archive_payload):
        archive_payload["items"][0]["name"] = ""
        path = write_file("partial.json", json.dumps(archive_payload))
        assert orchestrator.validate_backup(path)

    @pytest.mark.parametrize("content", ["", "[]", '{"items": []}'])
    def test_invalid(self, orchestrator, write_file, content):
        assert not orchestrator.validate_backup(write_file("bad.json", content))

    def test_missing(self, orchestrator, tmp_path):
        assert not orchestrator.validate_backup(tmp_path / "missing.json")

    def test_deeply_nested(self, orchestrator, write_file):
        assert not orchestrator.validate_backup(write_file("nested.json", b"[" * 200_000))


# ===================
# SPREADSHEETS
# ===================

class TestSpreadsheets:
    """Tests for analyzing and importing CSV files."""

    def test_analyze(self, orchestrator, write_file):
        table, mapping = orchestrator.analyze_csv_file(write_file("inv.csv", SPREADSHEET))

        assert table.row_count == 3
        assert mapping.is_valid
        assert mapping.field_columns == {
            TargetField.NAME: 0,
            TargetField.BRAND: 1,
            TargetField.PURCHASE_PRICE: 2,
            TargetField.PURCHASE_DATE: 3,
            TargetField.ROOM: 4,
            TargetField.QUANTITY: 5,
        }

    def test_import(self, orchestrator, write_file):
        result = orchestrator.import_csv_file(write_file("inv.csv", SPREADSHEET))

        assert [i.name for i in result.items] == ["Desk Lamp", "Desk Lamp", "Sofa, 3-seat"]
        assert result.items[2].purchase_price == 1200
        assert len(result.errors) == 1
        assert result.errors[0].row == 3

    def test_import_with_overrides(self, orchestrator, write_file):
        path = write_file("inv.csv", SPREADSHEET)
        result = orchestrator.import_csv_file(path, overrides={1: None, 4: TargetField.CATEGORY})

        assert result.items[0].brand is None
        assert result.items[0].category_name == "Office"
        assert result.items[0].room_name is None

    def test_default_currency_from_config(self, write_file):
        orchestrator = InterchangeOrchestrator(InterchangeConfig(default_currency="CAD"))
        result = orchestrator.import_csv_file(write_file("inv.csv", SPREADSHEET))
        assert {i.currency_code for i in result.items} == {"CAD"}

    def test_import_long_notes_cell(self, orchestrator, write_file):
        notes = "x" * 200_000
        result = orchestrator.import_csv_file(write_file("notes.csv", f"Name,Notes\nWidget,{notes}\n"))

        assert result.items[0].notes == notes
        assert not result.has_errors

    def test_max_quantity_from_config(self, write_file):
        orchestrator = InterchangeOrchestrator(InterchangeConfig(max_quantity=3))
        result = orchestrator.import_csv_file(write_file("qty.csv", "Name,Quantity\nWidget,\"50,000\"\n"))

        assert len(result.items) == 3
        assert any("exceeds the limit of 3" in w for w in result.warnings)


# ===================
# RESTORE
# ===================

class TestRestore:
    """Tests for restoring backup files."""

    def test_restore_into_snapshot(self, orchestrator, backup_path, item):
        snapshot = InventorySnapshot(items=[ItemRecord(name="Existing")])
        result = orchestrator.restore(backup_path, snapshot, RestoreStrategy.REPLACE)

        assert result.items_restored == 1
        assert [i.id for i in snapshot.items] == [item.id]

    def test_inventory_file_round_trip(self, orchestrator, tmp_path, item):
        path = tmp_path / "inventory.json"
        assert orchestrator.load_inventory(path).to_dict()["items"] == 0

        orchestrator.save_inventory(InventorySnapshot(items=[item]), path)
        assert orchestrator.load_inventory(path).items == [item]


# ===================
# CONFIG
# ===================

class TestConfig:
    """Tests for configuration."""

    def test_defaults(self):
        config = InterchangeConfig()
        assert config.app_version == "1.0.0"
        assert config.filename_prefix == "nestory-backup-"
        assert config.default_currency == "USD"

    def test_from_env(self):
        config = InterchangeConfig.from_env({
            "NESTORY_APP_VERSION": "4.2",
            "NESTORY_DEFAULT_CURRENCY": "eur",
            "NESTORY_OUTPUT_DIR": "/srv/exports",
            "NESTORY_MAX_FILE_BYTES": "1024",
        })
        assert config.app_version == "4.2"
        assert config.default_currency == "EUR"
        assert config.output_dir == "/srv/exports"
        assert config.max_file_bytes == 1024

    def test_from_env_max_quantity(self):
        assert InterchangeConfig.from_env({"NESTORY_MAX_QUANTITY": "25"}).max_quantity == 25

    def test_from_env_invalid_integer(self):
        with pytest.raises(ValueError, match="NESTORY_MAX_FILE_BYTES must be an integer"):
            InterchangeConfig.from_env({"NESTORY_MAX_FILE_BYTES": "50MB"})

    def test_dict_round_trip(self):
        config = InterchangeConfig(app_version="5", filename_prefix="x-")
        assert InterchangeConfig.from_dict(config.to_dict()) == config


# ===================
# CLI
# ===================

class TestCLI:
    """Tests for the command-line interface."""

    def test_parse_overrides(self):
        assert parse_overrides(["0=name", "2=Model Number", "3=none"]) == {
            0: TargetField.NAME, 2: TargetField.MODEL_NUMBER, 3: None,
        }
        with pytest.raises(ValueError):
            parse_overrides(["brand"])
        with pytest.raises(ValueError):
            parse_overrides(["1=colour"])

    def test_no_command(self, capsys):
        assert main([]) == 0
        assert "usage" in capsys.readouterr().out

    def test_analyze(self, write_file, capsys):
        assert main(["analyze", str(write_file("inv.csv", SPREADSHEET))]) == 0
        out = capsys.readouterr().out
        assert "Item Name" in out
        assert "Mapping is valid" in out

    def test_analyze_json(self, write_file, capsys):
        assert main(["analyze", str(write_file("inv.csv", SPREADSHEET)), "--json"]) == 0
        payload = json.loads(capsys.readouterr().out)
        assert payload["mapping"]["is_valid"] is True

    def test_import_csv(self, write_file, tmp_path, capsys):
        out_dir = tmp_path / "archives"
        code = main(["import-csv", str(write_file("inv.csv", SPREADSHEET)), "--output", str(out_dir)])

        assert code == 1  # one row has no name
        assert "Imported 3 items. 1 error occurred." in capsys.readouterr().out
        assert len(list(out_dir.glob("*.json"))) == 1

    def test_validate(self, backup_path, write_file, capsys):
        assert main(["validate", str(backup_path)]) == 0
        assert main(["validate", str(write_file("bad.json", "nope"))]) == 1

    def test_export_csv(self, backup_path, tmp_path):
        out_dir = tmp_path / "csv"
        assert main(["export-csv", str(backup_path), "--output", str(out_dir)]) == 0
        assert len(list(out_dir.glob("*.csv"))) == 1

    def test_restore(self, backup_path, tmp_path, capsys):
        inventory = tmp_path / "inventory.json"
        assert main(["restore", str(backup_path), "--into", str(inventory)]) == 0
        assert "Restored 1 item, 1 category, 1 room, 1 receipt." in capsys.readouterr().out
        assert json.loads(inventory.read_text(encoding="utf-8"))["items"][0]["name"] == "MacBook Pro 14"

    def test_missing_input(self, tmp_path, capsys):
        assert main(["validate", str(tmp_path / "none.json")]) == 1
        assert main(["export-csv", str(tmp_path / "none.json")]) == 1
        assert "Error:" in capsys.readouterr().err
