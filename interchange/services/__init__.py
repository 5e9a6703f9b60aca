"""Service layer for the interchange engine."""

from .header_matcher import HeaderMatcher, HeaderMatch, normalize_header
from .column_mapper import ColumnMapper, analyze_headers, update_mapping
from .validator import RecordValidator
from . import parsers

__all__ = [
    "HeaderMatcher",
    "HeaderMatch",
    "normalize_header",
    "ColumnMapper",
    "analyze_headers",
    "update_mapping",
    "RecordValidator",
    "parsers",
]
