"""Exporters for JSON archives and CSV tables."""

from .base import BaseExporter, export_filename
from .json_exporter import JSONExporter
from .csv_exporter import CSVExporter

__all__ = [
    "BaseExporter",
    "export_filename",
    "JSONExporter",
    "CSVExporter",
]
