"""Importers for JSON archives and spreadsheets."""

from .csv_reader import CSVReader, CSVTable
from .csv_importer import CSVImporter
from .json_importer import JSONImporter

__all__ = [
    "CSVReader",
    "CSVTable",
    "CSVImporter",
    "JSONImporter",
]
