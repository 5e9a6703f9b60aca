"""
Value parsers for free-text spreadsheet cells.

Every parser takes a raw string and returns a typed value or None. Input
that is present but unusable is treated the same as absent input; callers
decide whether that deserves a warning.
"""

import re
import logging
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..models.schema import (
    CONDITION_FALLBACK,
    FIELD_DEFINITIONS,
    ItemCondition,
    TargetField,
    ValueKind,
)

logger = logging.getLogger(__name__)

CURRENCY_SYMBOLS = "$€£¥₹₩"

_LEADING_SYMBOL = re.compile(rf"^([+-]?)\s*[{CURRENCY_SYMBOLS}]\s*")
_INTEGER = re.compile(r"[+-]?[0-9]+")
_CURRENCY_CODE = re.compile(r"[A-Z]{3}")
_TAG_SEPARATORS = re.compile(r"[,;|]")

# Tried in this order; the first successful parse wins. Slash dates are
# therefore always read month-first when both readings are possible.
DATE_FORMATS: Tuple[str, ...] = (
    "%Y-%m-%d",     # 2024-03-15
    "%m/%d/%Y",     # 03/15/2024
    "%d-%m-%Y",     # 15-03-2024
    "%b %d, %Y",    # Mar 15, 2024
    "%d/%m/%Y",     # 15/03/2024
    "%m-%d-%Y",     # 03-15-2024
    "%Y/%m/%d",     # 2024/03/15
    "%B %d, %Y",    # March 15, 2024
    "%d %b %Y",     # 15 Mar 2024
    "%d %B %Y",     # 15 March 2024
)

# Checked in order. "like new" must precede "new" and "very good" must
# precede "good".
CONDITION_KEYWORDS: Tuple[Tuple[ItemCondition, Tuple[str, ...]], ...] = (
    (ItemCondition.LIKE_NEW, ("like new", "likenew", "very good", "great", "near mint")),
    (ItemCondition.NEW, ("brand new", "new", "mint", "excellent", "sealed", "unused")),
    (ItemCondition.POOR, ("poor", "bad", "damaged", "broken", "needs repair")),
    (ItemCondition.FAIR, ("fair", "ok", "okay", "average", "worn")),
    (ItemCondition.GOOD, ("good", "nice")),
)

_CONDITION_PATTERNS = tuple(
    (condition, re.compile(r"\b(" + "|".join(re.escape(k) for k in keywords) + r")\b"))
    for condition, keywords in CONDITION_KEYWORDS
)


def _clean(value: Optional[str]) -> str:
    return value.strip() if value else ""


def parse_text(value: Optional[str]) -> Optional[str]:
    """Trimmed text, or None when blank."""
    text = _clean(value)
    return text or None


def parse_currency(value: Optional[str]) -> Optional[Decimal]:
    """
    Parse a currency amount such as "$1,234.56".

    A leading currency symbol and thousands separators are removed before
    the remainder is read as a decimal.

    Returns:
        The amount, or None for empty or non-numeric input
    """
    text = _clean(value)
    if not text:
        return None

    text = _LEADING_SYMBOL.sub(r"\1", text)
    text = text.replace(",", "").replace(" ", "")
    if not text:
        return None

    try:
        amount = Decimal(text)
    except InvalidOperation:
        return None

    if not amount.is_finite():
        return None
    return amount


def parse_date(value: Optional[str]) -> Optional[date]:
    """
    Parse a calendar date by trying DATE_FORMATS in order.

    Returns:
        The first successful parse, or None if no format matches
    """
    text = " ".join(_clean(value).split())
    if not text:
        return None

    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def parse_quantity(value: Optional[str]) -> Optional[int]:
    """
    Parse an integral quantity such as "1,200".

    Fractional values are rejected rather than rounded.
    """
    text = _clean(value).replace(",", "").replace(" ", "")
    if not text or "." in text:
        return None
    if not _INTEGER.fullmatch(text):
        return None
    return int(text)


def parse_condition(value: Optional[str]) -> Optional[ItemCondition]:
    """
    Normalize free-text condition to the condition vocabulary.

    Matching is case-insensitive keyword containment. Text that matches no
    keyword falls back to CONDITION_FALLBACK; only blank input yields None.
    """
    text = _clean(value)
    if not text:
        return None

    folded = " ".join(re.sub(r"[-_]", " ", text.casefold()).split())
    for condition in ItemCondition:
        if folded == condition.value.casefold():
            return condition

    for condition, pattern in _CONDITION_PATTERNS:
        if pattern.search(folded):
            return condition

    logger.debug(f"Unrecognized condition '{text}', using {CONDITION_FALLBACK.value}")
    return CONDITION_FALLBACK


def parse_currency_code(value: Optional[str]) -> Optional[str]:
    """Three-letter ISO currency code, upper-cased, or None."""
    text = _clean(value).upper()
    if _CURRENCY_CODE.fullmatch(text):
        return text
    return None


def parse_tags(value: Optional[str]) -> Optional[List[str]]:
    """Split a tag cell on commas, semicolons or pipes, dropping duplicates."""
    tags: List[str] = []
    for part in _TAG_SEPARATORS.split(_clean(value)):
        tag = part.strip()
        if tag and tag not in tags:
            tags.append(tag)
    return tags or None


PARSERS: Dict[ValueKind, Callable[[Optional[str]], Any]] = {
    ValueKind.TEXT: parse_text,
    ValueKind.CURRENCY_AMOUNT: parse_currency,
    ValueKind.CURRENCY_CODE: parse_currency_code,
    ValueKind.DATE: parse_date,
    ValueKind.INTEGER: parse_quantity,
    ValueKind.CONDITION: parse_condition,
    ValueKind.TAG_LIST: parse_tags,
}


def parser_for(target: TargetField) -> Callable[[Optional[str]], Any]:
    """Look up the parser for a target field's value kind."""
    return PARSERS[FIELD_DEFINITIONS[target].value_kind]


def parse_value(target: TargetField, value: Optional[str]) -> Any:
    """Parse a raw cell for the given target field."""
    return parser_for(target)(value)
