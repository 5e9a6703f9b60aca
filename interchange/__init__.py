"""
Nestory Interchange

The structured data interchange engine behind inventory backups and
spreadsheet imports.

Supports:
- Versioned JSON archives of items, categories, rooms and receipts
- Flattened CSV export of items
- Re-import of archives with itemized validation errors
- Confidence-scored mapping of arbitrary spreadsheet headers to item fields
- Type-aware parsing of free-text spreadsheet cells
"""

__version__ = "0.1.0"
