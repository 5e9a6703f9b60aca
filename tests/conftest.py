"""
Shared test fixtures.
"""

import sys
from pathlib import Path

# Add project root to Python path
project_dir = Path(__file__).parent.parent
sys.path.insert(0, str(project_dir))

import json
from datetime import date
from decimal import Decimal

import pytest

from interchange.config import InterchangeConfig
from interchange.exporters.json_exporter import JSONExporter
from interchange.models.records import (
    CategoryRecord,
    ItemRecord,
    ReceiptRecord,
    RoomRecord,
    new_id,
)
from interchange.models.schema import ItemCondition
from interchange.orchestrator import InterchangeOrchestrator


# ===================
# RECORDS
# ===================

@pytest.fixture
def receipt_id():
    return new_id()


@pytest.fixture
def item(receipt_id):
    """A fully populated item."""
    return ItemRecord(
        name="MacBook Pro 14",
        brand="Apple",
        model_number="A2442",
        serial_number="C02XYZ123",
        barcode="0194252000000",
        purchase_price=Decimal("1999.50"),
        purchase_date=date(2023, 11, 2),
        currency_code="USD",
        category_name="Electronics",
        room_name="Office",
        condition=ItemCondition.LIKE_NEW,
        condition_notes="Tiny scuff on lid",
        notes="Work laptop",
        warranty_expiry_date=date(2026, 11, 2),
        tags=["work", "apple"],
        photo_identifiers=["photo-1.jpg"],
        receipt_ids=[receipt_id],
    )


@pytest.fixture
def category():
    return CategoryRecord(name="Electronics", icon_name="tv", color_hex="#FF0000",
                          is_custom=False, sort_order=1)


@pytest.fixture
def room():
    return RoomRecord(name="Office", icon_name="desk", sort_order=2, is_default=False)


@pytest.fixture
def receipt(receipt_id, item):
    return ReceiptRecord(
        id=receipt_id,
        vendor="Apple Store",
        total=Decimal("2159.46"),
        tax_amount=Decimal("159.96"),
        purchase_date=date(2023, 11, 2),
        raw_text="APPLE STORE\nTOTAL 2159.46",
        confidence=0.87,
        linked_item_id=item.id,
    )


@pytest.fixture
def archive_payload(item, category, room, receipt):
    """Decoded JSON of an archive holding one record of each kind."""
    data = JSONExporter(app_version="2.1.0").export([item], [category], [room], [receipt])
    return json.loads(data)


@pytest.fixture
def encode():
    """Encode a payload dict as archive bytes."""
    def _encode(payload) -> bytes:
        return json.dumps(payload).encode("utf-8")
    return _encode


# ===================
# FILES
# ===================

@pytest.fixture
def config(tmp_path):
    return InterchangeConfig(output_dir=str(tmp_path / "exports"))


@pytest.fixture
def orchestrator(config):
    return InterchangeOrchestrator(config)


@pytest.fixture
def write_file(tmp_path):
    """Write text or bytes to a file under tmp_path and return its path."""
    def _write(name, content):
        path = tmp_path / name
        if isinstance(content, str):
            content = content.encode("utf-8")
        path.write_bytes(content)
        return path
    return _write
