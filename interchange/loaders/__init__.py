"""Loaders that apply imported records to an inventory."""

from .snapshot import InventorySnapshot, SnapshotLoader

__all__ = [
    "InventorySnapshot",
    "SnapshotLoader",
]
