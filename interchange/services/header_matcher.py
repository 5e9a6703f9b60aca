"""Header matcher: maps raw column headers to target fields."""

import re
import logging
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Tuple

from rapidfuzz.distance import Levenshtein

from ..models.mapping import MatchTier
from ..models.schema import FIELD_DEFINITIONS, FieldDefinition, TargetField

logger = logging.getLogger(__name__)

# Edit-distance similarity must exceed this for a fuzzy match.
SIMILARITY_THRESHOLD = 0.7
SIMILARITY_WEIGHT = 0.8

# Whole-word containment scores CONTAINMENT_BASE plus up to
# CONTAINMENT_SPAN scaled by the length ratio of the two strings.
CONTAINMENT_BASE = 0.6
CONTAINMENT_SPAN = 0.3
CONTAINMENT_MIN_LENGTH = 3


def normalize_header(text: str) -> str:
    """Lowercase and collapse punctuation, underscores and whitespace to single spaces."""
    if not text:
        return ""
    return " ".join(re.sub(r"[\W_]+", " ", text.casefold()).split())


def _fold(text: str) -> str:
    return " ".join(text.split()).casefold()


@dataclass(frozen=True)
class HeaderMatch:
    """A scored candidate field for one header."""
    field: TargetField
    confidence: float
    tier: MatchTier
    matched_text: str

    @property
    def sort_key(self) -> Tuple[float, int, int]:
        # Highest confidence first, then the stronger tier, then declaration order.
        return (-self.confidence, self.tier.rank, self.field.declaration_index)


def fuzzy_score(header_norm: str, alias_norm: str) -> float:
    """
    Score two normalized strings.

    Whole-word containment of one in the other scores in [0.6, 0.9];
    otherwise Levenshtein similarity above the threshold scores
    similarity * 0.8. Anything else scores 0.
    """
    if not header_norm or not alias_norm:
        return 0.0

    best = 0.0
    shorter, longer = sorted((header_norm, alias_norm), key=len)
    if len(shorter) >= CONTAINMENT_MIN_LENGTH and f" {shorter} " in f" {longer} ":
        best = CONTAINMENT_BASE + CONTAINMENT_SPAN * (len(shorter) / len(longer))

    similarity = Levenshtein.normalized_similarity(header_norm, alias_norm)
    if similarity > SIMILARITY_THRESHOLD:
        best = max(best, similarity * SIMILARITY_WEIGHT)

    return best


class HeaderMatcher:
    """
    Matches one header string against the target field table.

    Tiers, strongest first:
    - exact canonical field name (confidence 1.0)
    - exact alias or display name (confidence 1.0)
    - fuzzy alias match (0.5 < confidence < 1.0)

    A header that fuzzy-matches several fields resolves to the highest
    score; exact ties go to the field declared first.
    """

    def __init__(self, definitions: Optional[Mapping[TargetField, FieldDefinition]] = None):
        """
        Initialize the matcher.

        Args:
            definitions: Field table to match against (defaults to all target fields)
        """
        self.definitions = dict(definitions or FIELD_DEFINITIONS)
        self._aliases: Dict[TargetField, Tuple[str, ...]] = {
            target: tuple(sorted(definition.alias_set))
            for target, definition in self.definitions.items()
        }
        self._normalized_aliases: Dict[TargetField, Tuple[Tuple[str, str], ...]] = {
            target: tuple((alias, normalize_header(alias)) for alias in aliases)
            for target, aliases in self._aliases.items()
        }

    def score_field(self, header: str, target: TargetField) -> Optional[HeaderMatch]:
        """Best match of a header against a single field, or None."""
        folded = _fold(header or "")
        if not folded:
            return None

        if folded == target.value.casefold():
            return HeaderMatch(target, 1.0, MatchTier.EXACT, target.value)

        if folded in self._aliases[target]:
            return HeaderMatch(target, 1.0, MatchTier.ALIAS, folded)

        header_norm = normalize_header(header)
        best: Optional[HeaderMatch] = None
        for alias, alias_norm in self._normalized_aliases[target]:
            score = fuzzy_score(header_norm, alias_norm)
            if score > 0 and (best is None or score > best.confidence):
                best = HeaderMatch(target, score, MatchTier.FUZZY, alias)
        return best

    def candidates(self, header: str) -> List[HeaderMatch]:
        """
        All fields the header could map to, best first.

        Args:
            header: Raw header text

        Returns:
            Matches ordered by confidence, tier and field declaration order
        """
        matches = []
        for target in TargetField:
            if target not in self.definitions:
                continue
            match = self.score_field(header, target)
            if match is not None:
                matches.append(match)

        matches.sort(key=lambda m: m.sort_key)
        return matches

    def match(self, header: str) -> Optional[HeaderMatch]:
        """
        Best field for a header.

        Returns:
            The winning HeaderMatch, or None when nothing clears the thresholds
        """
        matches = self.candidates(header)
        if not matches:
            logger.debug(f"No field matches header '{header}'")
            return None

        best = matches[0]
        logger.debug(
            f"Header '{header}' -> {best.field.value} "
            f"({best.tier.value}, confidence {best.confidence:.2f})"
        )
        return best
